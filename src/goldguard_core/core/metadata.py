"""Image Metadata Extraction

Purpose: Best-effort metadata for uploaded evidence images (Pillow).

Key Functions:
- extract_image_metadata(): Raw bytes → ImageMetadata
- extract_from_data_url(): data:image/...;base64,... → ImageMetadata

Nothing here raises for missing or unreadable metadata: absent fields are
None. Only a malformed data URL is a ValidationError.
"""

import base64
import binascii
import io
import logging
import re
from datetime import datetime
from typing import Any, Optional

from PIL import Image, UnidentifiedImageError

from goldguard_core.exceptions import ValidationError
from goldguard_core.models.metadata import (
    CameraInfo,
    GpsCoordinates,
    ImageDimensions,
    ImageMetadata,
)

logger = logging.getLogger(__name__)


# EXIF tag ids
_TAG_MAKE = 0x010F
_TAG_MODEL = 0x0110
_TAG_DATETIME = 0x0132
_IFD_EXIF = 0x8769
_IFD_GPS = 0x8825
_TAG_EXPOSURE_TIME = 0x829A
_TAG_FNUMBER = 0x829D
_TAG_ISO = 0x8827
_TAG_DATETIME_ORIGINAL = 0x9003

# GPS IFD tag ids
_GPS_LAT_REF = 1
_GPS_LAT = 2
_GPS_LNG_REF = 3
_GPS_LNG = 4
_GPS_ALT_REF = 5
_GPS_ALT = 6

_EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
_DATA_URL_RE = re.compile(r"^data:(?P<mime>image/[\w.+-]+)(?P<params>(;[^,;]*)*),(?P<payload>.*)$", re.DOTALL)

DEFAULT_MIME_TYPE = "image/jpeg"


def estimate_jpeg_quality(file_size: int) -> str:
    """Rough quality label from encoded size alone"""
    megabytes = file_size / (1024 * 1024)
    if megabytes < 0.1:
        return "High Compression (Low Quality)"
    if megabytes < 0.5:
        return "Medium Compression"
    return "Low Compression (High Quality)"


def _to_float(value: Any) -> float:
    # IFDRational, (num, den) tuples and plain numbers
    if isinstance(value, tuple) and len(value) == 2:
        return value[0] / value[1]
    return float(value)


def _dms_to_degrees(dms: Any, ref: Any) -> float:
    degrees, minutes, seconds = (_to_float(v) for v in dms)
    value = degrees + minutes / 60.0 + seconds / 3600.0
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if str(ref).strip().upper() in ("S", "W"):
        value = -value
    return value


def _read_gps(exif: Image.Exif) -> Optional[GpsCoordinates]:
    gps = exif.get_ifd(_IFD_GPS)
    if not gps or _GPS_LAT not in gps or _GPS_LNG not in gps:
        return None
    try:
        latitude = _dms_to_degrees(gps[_GPS_LAT], gps.get(_GPS_LAT_REF, "N"))
        longitude = _dms_to_degrees(gps[_GPS_LNG], gps.get(_GPS_LNG_REF, "E"))
        altitude = None
        if _GPS_ALT in gps:
            altitude = _to_float(gps[_GPS_ALT])
            if gps.get(_GPS_ALT_REF) in (1, b"\x01"):
                altitude = -altitude
        return GpsCoordinates(latitude=latitude, longitude=longitude, altitude=altitude)
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.debug(f"Ignoring unreadable GPS block: {e}")
        return None


def _read_captured_at(exif: Image.Exif) -> Optional[datetime]:
    raw = exif.get_ifd(_IFD_EXIF).get(_TAG_DATETIME_ORIGINAL) or exif.get(_TAG_DATETIME)
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw).strip("\x00 "), _EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug(f"Ignoring unparseable EXIF date {raw!r}")
        return None


def _format_exposure(seconds: float) -> str:
    if 0 < seconds < 1:
        return f"1/{round(1 / seconds)}s"
    return f"{seconds:g}s"


def _read_camera(exif: Image.Exif) -> Optional[CameraInfo]:
    make = str(exif.get(_TAG_MAKE, "")).strip("\x00 ") or None
    model = str(exif.get(_TAG_MODEL, "")).strip("\x00 ") or None

    settings = []
    sub = exif.get_ifd(_IFD_EXIF)
    try:
        if _TAG_FNUMBER in sub:
            settings.append(f"f/{_to_float(sub[_TAG_FNUMBER]):g}")
        if _TAG_EXPOSURE_TIME in sub:
            settings.append(_format_exposure(_to_float(sub[_TAG_EXPOSURE_TIME])))
        if _TAG_ISO in sub:
            iso = sub[_TAG_ISO]
            if isinstance(iso, tuple):
                iso = iso[0]
            settings.append(f"ISO {int(iso)}")
    except (TypeError, ValueError, ZeroDivisionError) as e:
        logger.debug(f"Ignoring unreadable exposure settings: {e}")

    if not (make or model or settings):
        return None
    return CameraInfo(make=make, model=model, settings=", ".join(settings) or None)


def _format_from_mime(mime_type: str) -> str:
    return mime_type.split("/")[-1].upper()


def extract_image_metadata(
    data: bytes,
    file_name: str,
    mime_type: Optional[str] = None,
) -> ImageMetadata:
    """
    Extract whatever metadata an image carries.

    Args:
        data: Encoded image bytes
        file_name: Original file name
        mime_type: Declared MIME type, used when Pillow cannot identify the data

    Returns:
        ImageMetadata; sub-fields Pillow could not read are None
    """
    declared = mime_type or DEFAULT_MIME_TYPE
    metadata = ImageMetadata(
        file_name=file_name,
        file_size=len(data),
        mime_type=declared,
        format=_format_from_mime(declared),
    )

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format:
                metadata.format = img.format
                metadata.mime_type = Image.MIME.get(img.format, declared)
            metadata.dimensions = ImageDimensions(width=img.width, height=img.height)
            exif = img.getexif()
            metadata.gps = _read_gps(exif)
            metadata.captured_at = _read_captured_at(exif)
            metadata.camera = _read_camera(exif)
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.info(f"Could not decode {file_name} as an image, returning basic metadata: {e}")

    if metadata.format and metadata.format.upper() in ("JPEG", "JPG"):
        metadata.compression = "JPEG"
        metadata.quality = estimate_jpeg_quality(metadata.file_size)

    return metadata


def extract_from_data_url(data_url: str, file_name: str) -> ImageMetadata:
    """
    Extract metadata from a browser data URL.

    Raises:
        ValidationError: If the URL is not a base64 data:image/... URL
    """
    match = _DATA_URL_RE.match(data_url.strip()) if data_url else None
    if match is None:
        raise ValidationError("Invalid image data format. Expected data URL.", fields=["imageData"])
    if ";base64" not in match.group("params"):
        raise ValidationError("Image data URL must be base64 encoded", fields=["imageData"])

    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image data is not valid base64: {e}", fields=["imageData"]) from e

    return extract_image_metadata(data, file_name, mime_type=match.group("mime"))
