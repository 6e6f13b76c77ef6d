"""Remote case API wire models.

These models describe the backend's JSON schema (camelCase, Mongo-flavoured
nesting) and convert it to the domain Case. They handle:
- Response envelope validation ({success, data: {cases: [...]}})
- Backend field variants (populated officer objects, GeoJSON coordinates)
- Case comments, public and internal
- Status normalization through the legacy-synonym table
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from goldguard_core.models.case import (
    Case,
    CaseComment,
    COMMENT_MAX_LENGTH,
    CaseOrigin,
    CaseStatus,
    EvidenceAttachment,
    EvidenceType,
    Location,
    Priority,
    Reporter,
    TITLE_MAX_LENGTH,
    VerificationStatus,
    normalize_status,
)


# Backend evidence vocabulary → domain vocabulary
_EVIDENCE_TYPES: Dict[str, EvidenceType] = {
    "photo": EvidenceType.PHOTO,
    "image": EvidenceType.PHOTO,
    "video": EvidenceType.VIDEO,
    "audio": EvidenceType.AUDIO,
    "document": EvidenceType.DOCUMENT,
    "sensor_data": EvidenceType.DOCUMENT,
}


class RemoteEvidence(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    description: Optional[str] = None
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    url: Optional[str] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")
    filename: Optional[str] = None

    def to_attachment(self) -> EvidenceAttachment:
        return EvidenceAttachment(
            type=_EVIDENCE_TYPES.get(self.type.lower(), EvidenceType.DOCUMENT),
            description=self.description or "",
            file_url=self.file_url or self.url,
            file_name=self.file_name or self.filename,
        )


class RemoteReporter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    full_name: Optional[str] = Field(default=None, alias="fullName")
    phone: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    email: Optional[str] = None
    anonymous: Optional[bool] = None
    is_anonymous: Optional[bool] = Field(default=None, alias="isAnonymous")

    def to_reporter(self) -> Reporter:
        flag = self.anonymous if self.anonymous is not None else self.is_anonymous
        name = self.name or self.full_name
        phone = self.phone or self.phone_number
        if flag or not (name or phone or self.email):
            return Reporter(anonymous=True)
        return Reporter(anonymous=False, name=name, phone=phone, email=self.email)


class RemoteLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    coordinates: Optional[Union[Dict[str, Any], List[float]]] = None

    def to_location(self) -> Optional[Location]:
        lat, lng = self.latitude, self.longitude
        coords = self.coordinates
        if isinstance(coords, dict):
            coords = coords.get("coordinates")
        # GeoJSON order is [longitude, latitude]
        if (lat is None or lng is None) and isinstance(coords, list) and len(coords) == 2:
            lng, lat = coords
        if lat is None or lng is None:
            return None
        return Location(latitude=lat, longitude=lng, address=self.address)


class RemoteOfficerProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")


class RemoteOfficer(BaseModel):
    """Populated user object (assignedTo, comments.author)"""

    model_config = ConfigDict(extra="ignore")

    username: Optional[str] = None
    profile: Optional[RemoteOfficerProfile] = None

    @property
    def display_name(self) -> Optional[str]:
        if self.profile is not None:
            parts = [p for p in (self.profile.first_name, self.profile.last_name) if p]
            if parts:
                return f"Officer {' '.join(parts)}"
        return self.username


class RemoteComment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str
    author: Optional[Union[str, RemoteOfficer]] = None
    is_internal: bool = Field(default=False, alias="isInternal")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def to_comment(self) -> CaseComment:
        author = self.author
        if isinstance(author, RemoteOfficer):
            author = author.display_name
        data = {
            "content": self.content.strip()[:COMMENT_MAX_LENGTH],
            "author": author,
            "is_internal": self.is_internal,
        }
        if self.created_at is not None:
            data["created_at"] = self.created_at
        return CaseComment(**data)


class RemoteCaseRecord(BaseModel):
    """One case as the backend returns it"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    case_id: str = Field(alias="caseId", min_length=1)
    title: Optional[str] = None
    region: str
    type: str
    status: Optional[str] = None
    verification_status: Optional[str] = Field(default=None, alias="verificationStatus")
    priority: Optional[str] = None
    assigned_to: Optional[Union[str, RemoteOfficer]] = Field(default=None, alias="assignedTo")
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    resolved_at: Optional[datetime] = Field(default=None, alias="resolutionDate")
    description: Optional[str] = None
    location: Optional[RemoteLocation] = None
    reporter: Optional[RemoteReporter] = None
    evidence: List[RemoteEvidence] = Field(default_factory=list)
    comments: List[RemoteComment] = Field(default_factory=list)

    def _officer_name(self) -> Optional[str]:
        officer = self.assigned_to
        if officer is None:
            return None
        if isinstance(officer, str):
            return None if officer in ("", "Unassigned") else officer
        return officer.display_name

    def to_case(self) -> Case:
        """Convert to the domain Case (source = remote)"""
        status = normalize_status(self.status) if self.status else CaseStatus.NEW
        verification = (
            VerificationStatus(self.verification_status)
            if self.verification_status
            else VerificationStatus.PENDING_VERIFICATION
        )
        priority = Priority(self.priority) if self.priority else Priority.MEDIUM

        return Case(
            case_id=self.case_id,
            title=(self.title or f"{self.type} - {self.region}")[:TITLE_MAX_LENGTH],
            region=self.region,
            type=self.type,
            description=self.description or "",
            status=status,
            verification_status=verification,
            priority=priority,
            assigned_to=self._officer_name(),
            reporter=self.reporter.to_reporter() if self.reporter else Reporter(anonymous=True),
            location=self.location.to_location() if self.location else None,
            evidence=[ev.to_attachment() for ev in self.evidence],
            comments=[c.to_comment() for c in self.comments if c.content.strip()],
            created_at=self.created_at,
            updated_at=self.updated_at or self.created_at,
            resolved_at=self.resolved_at,
            source=CaseOrigin.REMOTE,
        )


class CaseListData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cases: List[Dict[str, Any]]


class CaseListResponse(BaseModel):
    """Envelope of GET /api/cases"""

    model_config = ConfigDict(extra="ignore")

    success: bool
    data: CaseListData


class SubmitReportResponse(BaseModel):
    """Envelope of POST /api/reports/submit"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    success: bool
    case_id: str = Field(alias="caseId", min_length=1)
    report_id: Optional[str] = Field(default=None, alias="reportId")
    message: Optional[str] = None


class CaseUpdateRequest(BaseModel):
    """Body of PUT /api/cases/{id}. Only set fields are sent."""

    model_config = ConfigDict(populate_by_name=True)

    status: Optional[CaseStatus] = None
    verification_status: Optional[VerificationStatus] = Field(
        default=None, alias="verificationStatus"
    )
    priority: Optional[Priority] = None
    assigned_to: Optional[str] = Field(default=None, alias="assignedTo")
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")

    def to_wire(self) -> dict:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
