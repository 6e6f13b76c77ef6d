"""Citizen report submission models.

These mirror the shape the public report form posts. JSON uses camelCase
aliases (fullName, phoneNumber, isAnonymous); Python code uses snake_case.
Field-level requirements are deliberately loose here: intake decides what is
missing and raises the domain ValidationError.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from goldguard_core.models.case import Case, EvidenceAttachment, Location


class ReportSubmission(BaseModel):
    """Free-form citizen submission, before intake"""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    email: Optional[str] = None
    region: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=2000)
    is_anonymous: bool = Field(default=False, alias="isAnonymous")
    location: Optional[Location] = None
    evidence: List[EvidenceAttachment] = Field(default_factory=list)

    def without_contact(self) -> "ReportSubmission":
        """Copy with name, phone and email removed"""
        return self.model_copy(update={"full_name": None, "phone_number": None, "email": None})

    def to_wire(self) -> dict:
        """Payload for POST /api/reports/submit"""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class SubmissionReceipt(BaseModel):
    """Outcome of submitting a report through the service facade"""

    case: Case
    synced: bool = Field(description="True if the remote API accepted the report")
    persisted: bool = Field(
        default=True,
        description="False if neither the remote API nor the local queue stored the case",
    )

    @property
    def case_id(self) -> str:
        return self.case.case_id


class SyncResult(BaseModel):
    """Outcome of re-submitting the local queue"""

    synced: Dict[str, str] = Field(
        default_factory=dict,
        description="Local case id → backend case id for every accepted report",
    )
    failed: List[str] = Field(default_factory=list, description="Local ids still queued")

    @property
    def complete(self) -> bool:
        return not self.failed
