"""
Shared data models for GoldGuard.

This package provides the Pydantic models used by intake, reconciliation and
verification, plus the wire models for the remote case API.
"""

from goldguard_core.models.metadata import (
    CameraInfo,
    GpsCoordinates,
    ImageDimensions,
    ImageMetadata,
)
from goldguard_core.models.case import (
    # Core case model
    Case,
    CaseOrigin,
    CaseStatus,
    VerificationStatus,
    Priority,

    # Components
    Region,
    REGION_CENTROIDS,
    Reporter,
    Location,
    EvidenceAttachment,
    EvidenceType,
    TimelineEntry,
    TimelineAction,
    CaseComment,
    COMMENT_MAX_LENGTH,
    TITLE_MAX_LENGTH,

    # Status vocabulary
    LEGACY_STATUS_SYNONYMS,
    normalize_status,
    is_valid_transition,
)
from goldguard_core.models.report import ReportSubmission, SubmissionReceipt, SyncResult
from goldguard_core.models.api_models import (
    CaseListResponse,
    CaseUpdateRequest,
    RemoteCaseRecord,
    RemoteComment,
    RemoteOfficer,
    SubmitReportResponse,
)

__all__ = [
    # Metadata
    "CameraInfo", "GpsCoordinates", "ImageDimensions", "ImageMetadata",
    # Core case
    "Case", "CaseOrigin", "CaseStatus", "VerificationStatus", "Priority",
    # Components
    "Region", "REGION_CENTROIDS", "Reporter", "Location",
    "EvidenceAttachment", "EvidenceType", "TimelineEntry", "TimelineAction",
    "CaseComment", "COMMENT_MAX_LENGTH", "TITLE_MAX_LENGTH",
    # Status vocabulary
    "LEGACY_STATUS_SYNONYMS", "normalize_status", "is_valid_transition",
    # Reports
    "ReportSubmission", "SubmissionReceipt", "SyncResult",
    # Wire
    "CaseListResponse", "CaseUpdateRequest", "RemoteCaseRecord", "RemoteComment", "RemoteOfficer",
    "SubmitReportResponse",
]
