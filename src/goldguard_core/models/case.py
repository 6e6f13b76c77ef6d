"""Case data models - citizen report lifecycle.

This module defines the canonical case record shared by intake, reconciliation
and verification.

Key Models:
- Case: Root case entity, one per logical citizen report
- CaseStatus: Public lifecycle status (NEW → OPEN → ... → RESOLVED/CLOSED)
- VerificationStatus: Evidence review status (PENDING_VERIFICATION → VERIFIED/REJECTED)
- Priority: Computed severity (LOW | MEDIUM | HIGH | CRITICAL)
- Reporter / Location / EvidenceAttachment: Case components
- TimelineEntry: Audit trail of everything that happened to a case
- CaseComment: Officer notes, public or internal

Architecture:
- Two status vocabularies on one record: `status` (lifecycle) and
  `verification_status` (evidence review). They never share values by accident.
- Legacy status synonyms are resolved through an explicit table
  (see normalize_status), not by treating them as equal.
- `source` tracks which store produced the record. Reconciliation only.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from goldguard_core.models.metadata import ImageMetadata


# ============================================================
# Regions
# ============================================================

class Region(str, Enum):
    """Ghanaian administrative regions (closed set)."""

    GREATER_ACCRA = "Greater Accra"
    ASHANTI = "Ashanti"
    WESTERN = "Western"
    EASTERN = "Eastern"
    NORTHERN = "Northern"
    UPPER_EAST = "Upper East"
    UPPER_WEST = "Upper West"
    VOLTA = "Volta"
    CENTRAL = "Central"
    BRONG_AHAFO = "Brong-Ahafo"
    WESTERN_NORTH = "Western North"
    AHAFO = "Ahafo"
    BONO = "Bono"
    BONO_EAST = "Bono East"
    OTI = "Oti"
    SAVANNAH = "Savannah"
    NORTH_EAST = "North East"

    @classmethod
    def parse(cls, value: str) -> "Region":
        """Resolve a region name, tolerating case and the 'Brong Ahafo' spelling."""
        key = " ".join(value.replace("-", " ").split()).lower()
        for region in cls:
            if region.value.replace("-", " ").lower() == key:
                return region
        raise ValueError(f"Unknown region: {value!r}")


# Approximate regional capitals, used when a case carries no coordinates.
REGION_CENTROIDS: Dict[Region, Tuple[float, float]] = {
    Region.GREATER_ACCRA: (5.6037, -0.1870),
    Region.ASHANTI: (6.6885, -1.6244),
    Region.WESTERN: (4.8963, -1.7554),
    Region.EASTERN: (6.0940, -0.2591),
    Region.NORTHERN: (9.4008, -0.8393),
    Region.UPPER_EAST: (10.7856, -0.8514),
    Region.UPPER_WEST: (10.0601, -2.5099),
    Region.VOLTA: (6.6008, 0.4713),
    Region.CENTRAL: (5.1053, -1.2466),
    Region.BRONG_AHAFO: (7.3349, -2.3123),
    Region.WESTERN_NORTH: (6.2030, -2.4890),
    Region.AHAFO: (6.8040, -2.5200),
    Region.BONO: (7.3349, -2.3123),
    Region.BONO_EAST: (7.5900, -1.9300),
    Region.OTI: (8.0670, 0.1770),
    Region.SAVANNAH: (9.0830, -1.8190),
    Region.NORTH_EAST: (10.5200, -0.3700),
}


# ============================================================
# Status & Lifecycle
# ============================================================

class CaseStatus(str, Enum):
    """
    Public case lifecycle status.

    Lifecycle Flow:
      NEW → OPEN → UNDER_INVESTIGATION ⇄ IN_PROGRESS ⇄ PENDING
                                       → RESOLVED → CLOSED
          ↘ REJECTED (terminal)

    NEW is only ever assigned at intake; it cannot be re-entered.
    VERIFIED is used by location-verification audit records.
    """

    NEW = "New"
    OPEN = "Open"
    UNDER_INVESTIGATION = "Under Investigation"
    IN_PROGRESS = "In Progress"
    PENDING = "Pending"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REJECTED = "Rejected"
    VERIFIED = "Verified"

    @property
    def is_terminal(self) -> bool:
        """Check if no further lifecycle work is expected"""
        return self in (CaseStatus.RESOLVED, CaseStatus.CLOSED, CaseStatus.REJECTED)

    @property
    def is_open(self) -> bool:
        """Check if case still waits for someone to act on it"""
        return self in (CaseStatus.NEW, CaseStatus.OPEN, CaseStatus.IN_PROGRESS)


class VerificationStatus(str, Enum):
    """
    Evidence review status.

    Lifecycle Flow:
      PENDING_VERIFICATION → UNDER_REVIEW → VERIFIED (terminal)
                                          → REJECTED (terminal)
                         ↘ VERIFIED / REJECTED (direct reviewer action)
    """

    PENDING_VERIFICATION = "Pending Verification"
    UNDER_REVIEW = "Under Review"
    VERIFIED = "Verified"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (VerificationStatus.VERIFIED, VerificationStatus.REJECTED)


class Priority(str, Enum):
    """Case priority. Intake never produces LOW; it only comes from manual edits."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]


_PRIORITY_WEIGHTS = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}


class CaseOrigin(str, Enum):
    """Which store produced a record. Used only by reconciliation."""

    REMOTE = "remote"
    LOCAL_PENDING = "local-pending"


class EvidenceType(str, Enum):
    PHOTO = "Photo"
    VIDEO = "Video"
    AUDIO = "Audio"
    DOCUMENT = "Document"


class TimelineAction(str, Enum):
    """Kinds of audit entries recorded on a case"""

    CREATED = "created"
    ASSIGNED = "assigned"
    STATUS_CHANGED = "status_changed"
    PRIORITY_CHANGED = "priority_changed"
    VERIFICATION_CHANGED = "verification_changed"
    EVIDENCE_ADDED = "evidence_added"
    COMMENT_ADDED = "comment_added"
    CLOSED = "closed"


COMMENT_MAX_LENGTH = 1000


# Legacy spellings found in stored records and backend payloads.
LEGACY_STATUS_SYNONYMS: Dict[str, CaseStatus] = {
    "solved": CaseStatus.RESOLVED,
    "active": CaseStatus.IN_PROGRESS,
    "submitted": CaseStatus.NEW,
    "pending_backend_sync": CaseStatus.NEW,
    "under review": CaseStatus.UNDER_INVESTIGATION,
    "assigned": CaseStatus.IN_PROGRESS,
    "completed": CaseStatus.RESOLVED,
}


def normalize_status(value) -> CaseStatus:
    """
    Resolve a status string (canonical or legacy synonym) to CaseStatus.

    Matching is case-insensitive on trimmed text. Canonical values win over
    synonyms.

    Raises:
        ValueError: If the value is neither canonical nor a known synonym
    """
    if isinstance(value, CaseStatus):
        return value
    key = " ".join(str(value).split()).lower()
    for status in CaseStatus:
        if status.value.lower() == key:
            return status
    if key in LEGACY_STATUS_SYNONYMS:
        return LEGACY_STATUS_SYNONYMS[key]
    raise ValueError(f"Unknown case status: {value!r}")


_ACTIVE_STATES = (
    CaseStatus.OPEN,
    CaseStatus.UNDER_INVESTIGATION,
    CaseStatus.IN_PROGRESS,
    CaseStatus.PENDING,
)

_VALID_TRANSITIONS: Dict[CaseStatus, Tuple[CaseStatus, ...]] = {
    CaseStatus.NEW: _ACTIVE_STATES + (CaseStatus.RESOLVED, CaseStatus.CLOSED, CaseStatus.REJECTED),
    CaseStatus.OPEN: _ACTIVE_STATES + (CaseStatus.RESOLVED, CaseStatus.CLOSED, CaseStatus.REJECTED),
    CaseStatus.UNDER_INVESTIGATION: _ACTIVE_STATES + (CaseStatus.RESOLVED, CaseStatus.CLOSED, CaseStatus.REJECTED),
    CaseStatus.IN_PROGRESS: _ACTIVE_STATES + (CaseStatus.RESOLVED, CaseStatus.CLOSED),
    CaseStatus.PENDING: _ACTIVE_STATES + (CaseStatus.RESOLVED, CaseStatus.CLOSED, CaseStatus.REJECTED),
    CaseStatus.RESOLVED: (CaseStatus.CLOSED, CaseStatus.OPEN),
    CaseStatus.CLOSED: (CaseStatus.OPEN,),
    CaseStatus.REJECTED: (),
    CaseStatus.VERIFIED: (CaseStatus.CLOSED,),
}


def is_valid_transition(from_status: CaseStatus, to_status: CaseStatus) -> bool:
    """
    Validate a lifecycle status change.

    Valid:
    - Any status → itself (idempotent re-assertion)
    - NEW/OPEN/UNDER_INVESTIGATION/PENDING → any active state, RESOLVED, CLOSED, REJECTED
    - IN_PROGRESS → any active state, RESOLVED, CLOSED
    - RESOLVED → CLOSED | OPEN (reopen)
    - CLOSED → OPEN (reopen)
    - VERIFIED → CLOSED

    Invalid:
    - * → NEW (intake only)
    - REJECTED → * (terminal)
    """
    if from_status == to_status:
        return True
    return to_status in _VALID_TRANSITIONS.get(from_status, ())


# ============================================================
# Case Components
# ============================================================

class Reporter(BaseModel):
    """Who submitted the report. Anonymity is explicit, never inferred downstream."""

    model_config = ConfigDict(populate_by_name=True)

    anonymous: bool = Field(
        description="True iff the submitter declined to supply identifying fields"
    )
    name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=254)

    @model_validator(mode='after')
    def anonymous_has_no_contact(self) -> 'Reporter':
        """Anonymous reporters must not carry contact details"""
        if self.anonymous and (self.name or self.phone or self.email):
            raise ValueError("Anonymous reporter cannot carry name, phone or email")
        return self

    @property
    def display_name(self) -> str:
        if self.anonymous:
            return "Anonymous"
        return self.name or "Unknown"


class Location(BaseModel):
    """Point location of an incident"""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    address: Optional[str] = Field(default=None, max_length=500)


class EvidenceAttachment(BaseModel):
    """One evidence file attached to a case"""

    model_config = ConfigDict(populate_by_name=True)

    type: EvidenceType
    description: str = Field(default="", max_length=500)
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    file_name: Optional[str] = Field(default=None, alias="fileName", max_length=255)

    @property
    def is_photo(self) -> bool:
        return self.type == EvidenceType.PHOTO


class TimelineEntry(BaseModel):
    """
    Record of one thing that happened to a case.
    Provides audit trail for the case lifecycle.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    action: TimelineAction
    description: str = Field(default="", max_length=500)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    performed_by: Optional[str] = Field(
        default=None,
        alias="performedBy",
        description="Reviewer/officer name, or None for system actions",
    )
    previous_value: Optional[str] = Field(default=None, alias="previousValue")
    new_value: Optional[str] = Field(default=None, alias="newValue")


class CaseComment(BaseModel):
    """Officer note on a case. Internal notes are hidden from reporters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    content: str = Field(min_length=1, max_length=COMMENT_MAX_LENGTH)
    author: Optional[str] = None
    is_internal: bool = Field(default=False, alias="isInternal")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
    )


# ============================================================
# Case
# ============================================================

TITLE_MAX_LENGTH = 200

class Case(BaseModel):
    """
    Root case entity.
    Represents one logical citizen report, wherever it is currently stored.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )

    # ============================================================
    # Core Identity
    # ============================================================
    case_id: str = Field(
        alias="id",
        min_length=1,
        max_length=128,
        description="Opaque unique identifier. Never parsed for meaning.",
    )

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)

    region: Region

    type: str = Field(
        min_length=1,
        max_length=100,
        description="Free-text category, e.g. 'Illegal Mining', 'Water Pollution'",
    )

    description: str = Field(default="", max_length=2000)

    subject: Optional[str] = Field(
        default=None,
        description="Report form subject, kept so queued reports can be re-submitted",
    )

    # ============================================================
    # Status (two distinct vocabularies)
    # ============================================================
    status: CaseStatus = Field(default=CaseStatus.NEW)

    verification_status: VerificationStatus = Field(
        default=VerificationStatus.PENDING_VERIFICATION,
        alias="verificationStatus",
    )

    priority: Priority = Field(default=Priority.MEDIUM)

    assigned_to: Optional[str] = Field(
        default=None,
        alias="assignedTo",
        description="Officer handling the case; None means Unassigned",
    )

    # ============================================================
    # Report Content
    # ============================================================
    reporter: Reporter = Field(default_factory=lambda: Reporter(anonymous=True))

    location: Optional[Location] = None

    evidence: List[EvidenceAttachment] = Field(default_factory=list)

    image_metadata: List[ImageMetadata] = Field(
        default_factory=list,
        alias="imageMetadata",
        description="Extracted image metadata (location-verification records only)",
    )

    timeline: List[TimelineEntry] = Field(default_factory=list)

    comments: List[CaseComment] = Field(default_factory=list)

    # ============================================================
    # Timestamps
    # ============================================================
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="updatedAt",
    )

    resolved_at: Optional[datetime] = Field(default=None, alias="resolvedAt")

    # ============================================================
    # Reconciliation
    # ============================================================
    source: CaseOrigin = Field(default=CaseOrigin.LOCAL_PENDING)

    # ============================================================
    # Computed Properties
    # ============================================================
    @property
    def has_photo_evidence(self) -> bool:
        return any(ev.is_photo for ev in self.evidence)

    @property
    def photo_evidence(self) -> List[EvidenceAttachment]:
        return [ev for ev in self.evidence if ev.is_photo]

    @property
    def coordinates(self) -> Tuple[float, float]:
        """(latitude, longitude), falling back to the region centroid"""
        if self.location is not None:
            return (self.location.latitude, self.location.longitude)
        return REGION_CENTROIDS[self.region]

    @property
    def display_location(self) -> str:
        if self.location is not None and self.location.address:
            return self.location.address
        return f"{self.region.value}, Ghana"

    @property
    def is_local_pending(self) -> bool:
        return self.source == CaseOrigin.LOCAL_PENDING

    # ============================================================
    # Validation
    # ============================================================
    @field_validator('title', 'type')
    @classmethod
    def not_blank(cls, v):
        """Ensure text is not just whitespace"""
        if not v or not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    @field_validator('region', mode='before')
    @classmethod
    def parse_region(cls, v):
        if isinstance(v, str) and not isinstance(v, Region):
            return Region.parse(v)
        return v

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        if isinstance(v, str) and not isinstance(v, CaseStatus):
            return normalize_status(v)
        return v

    @field_validator('created_at', 'updated_at', 'resolved_at')
    @classmethod
    def ensure_timezone(cls, v):
        """Naive timestamps are assumed UTC"""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode='after')
    def validate_timestamp_ordering(self) -> 'Case':
        """created_at <= updated_at, and resolved_at (if set) after created_at"""
        if self.created_at > self.updated_at:
            raise ValueError(
                f"created_at ({self.created_at}) cannot be after updated_at ({self.updated_at})"
            )
        if self.resolved_at and self.created_at > self.resolved_at:
            raise ValueError(
                f"created_at ({self.created_at}) cannot be after resolved_at ({self.resolved_at})"
            )
        return self

    # ============================================================
    # Mutation helpers
    # ============================================================
    def touch(self, now: Optional[datetime] = None) -> None:
        """Advance updated_at, never moving it before created_at"""
        now = now or datetime.now(timezone.utc)
        self.updated_at = max(now, self.created_at)

    def record(self, entry: TimelineEntry) -> None:
        self.timeline = [*self.timeline, entry]

    def to_storage(self) -> dict:
        """JSON-compatible dict for local persistence (camelCase keys)"""
        return self.model_dump(mode='json', by_alias=True)
