"""Image metadata models.

Every sub-field except file name, size and MIME type is optional: extraction is
best-effort and a partially populated ImageMetadata is a valid result.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ImageDimensions(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class GpsCoordinates(BaseModel):
    """Decimal-degree position read from EXIF GPS tags"""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: Optional[float] = None
    address: Optional[str] = Field(default=None, max_length=500)


class CameraInfo(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    settings: Optional[str] = Field(
        default=None,
        description="Human-readable exposure summary, e.g. 'f/8, 1/250s, ISO 200'",
    )


class ImageMetadata(BaseModel):
    """Metadata extracted from one uploaded image"""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName", min_length=1, max_length=255)
    file_size: int = Field(alias="fileSize", ge=0, description="Size in bytes")
    mime_type: str = Field(alias="mimeType", default="image/jpeg")
    format: Optional[str] = Field(default=None, description="Upper-case format name, e.g. 'JPEG'")
    dimensions: Optional[ImageDimensions] = None
    captured_at: Optional[datetime] = Field(
        default=None,
        alias="capturedAt",
        description="EXIF DateTimeOriginal, if present",
    )
    gps: Optional[GpsCoordinates] = None
    camera: Optional[CameraInfo] = None
    quality: Optional[str] = None
    compression: Optional[str] = None
    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_location(self) -> bool:
        return self.gps is not None

    @property
    def size_label(self) -> str:
        return f"{self.file_size / 1024:.2f} KB"
