"""Verification Workflow

Purpose: Move photo-backed cases through evidence review.

States:
    PENDING_VERIFICATION → UNDER_REVIEW → VERIFIED | REJECTED
    PENDING_VERIFICATION → VERIFIED | REJECTED   (direct reviewer action)

Rules:
- Only cases with photo evidence are eligible (the verification queue).
- Re-asserting the current state is a no-op: no timeline entry, no write.
- A reviewer may flip VERIFIED ⇄ REJECTED with an explicit verify/reject;
  the last call wins. Nothing else leaves a terminal state.
- Changes are written back to whichever store holds the case. Write failures
  are logged; the in-memory change stands and the reviewer is not interrupted.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from goldguard_core.auth.token_provider import TokenProvider
from goldguard_core.clients.case_api_client import CaseApiClient
from goldguard_core.core.intake import generate_case_id
from goldguard_core.core.reconciliation import verification_queue
from goldguard_core.core.write_back import write_back
from goldguard_core.exceptions import (
    CaseNotFound,
    InvalidStatusTransition,
    NotEligibleForVerification,
    PersistenceError,
    ValidationError,
)
from goldguard_core.models.api_models import CaseUpdateRequest
from goldguard_core.models.case import (
    REGION_CENTROIDS,
    Case,
    CaseOrigin,
    CaseStatus,
    EvidenceAttachment,
    EvidenceType,
    Location,
    Priority,
    Region,
    Reporter,
    TimelineAction,
    TITLE_MAX_LENGTH,
    TimelineEntry,
    VerificationStatus,
)
from goldguard_core.models.metadata import ImageMetadata
from goldguard_core.storage.base import CaseRepository

logger = logging.getLogger(__name__)


LOCATION_VERIFICATION_TYPE = "Location Verification"

_TRANSITIONS: Dict[VerificationStatus, tuple] = {
    VerificationStatus.PENDING_VERIFICATION: (
        VerificationStatus.UNDER_REVIEW,
        VerificationStatus.VERIFIED,
        VerificationStatus.REJECTED,
    ),
    VerificationStatus.UNDER_REVIEW: (
        VerificationStatus.VERIFIED,
        VerificationStatus.REJECTED,
    ),
    VerificationStatus.VERIFIED: (),
    VerificationStatus.REJECTED: (),
}


def can_transition(
    from_status: VerificationStatus,
    to_status: VerificationStatus,
    reviewer_override: bool = False,
) -> bool:
    """
    Validate a verification status change.

    Args:
        from_status: Current verification status
        to_status: Requested verification status
        reviewer_override: True for explicit verify/reject actions, which may
            switch one terminal decision for the other

    Returns:
        True if the change is allowed (same-state is always allowed)
    """
    if from_status == to_status:
        return True
    if from_status.is_terminal and to_status.is_terminal:
        return reviewer_override
    return to_status in _TRANSITIONS[from_status]


def nearest_region(latitude: float, longitude: float) -> Region:
    """Region whose reference point is closest to the given position"""
    return min(
        REGION_CENTROIDS,
        key=lambda r: math.hypot(
            REGION_CENTROIDS[r][0] - latitude, REGION_CENTROIDS[r][1] - longitude
        ),
    )


class VerificationWorkflow:
    """
    Review actions over a working set of cases.

    The workflow mutates the Case objects in `cases` in place, so a caller
    holding the same dict (e.g. CaseService) sees every change immediately.

    Usage:
        workflow = VerificationWorkflow(result.cases, repository, client, tokens)
        for case in workflow.queue():
            await workflow.verify(case.case_id, reviewer="Officer Mensah")
    """

    def __init__(
        self,
        cases: Dict[str, Case],
        repository: CaseRepository,
        client: Optional[CaseApiClient] = None,
        token_provider: Optional[TokenProvider] = None,
    ):
        self.cases = cases
        self.repository = repository
        self.client = client
        self.token_provider = token_provider or TokenProvider()

    def queue(self) -> List[Case]:
        """Cases awaiting or past review: everything with photo evidence"""
        return verification_queue(self.cases)

    def pending(self) -> List[Case]:
        """Queue entries without a terminal decision yet"""
        return [c for c in self.queue() if not c.verification_status.is_terminal]

    def _eligible(self, case_id: str) -> Case:
        case = self.cases.get(case_id)
        if case is None:
            raise CaseNotFound(case_id)
        if not case.has_photo_evidence:
            raise NotEligibleForVerification(
                f"Case {case_id} has no photo evidence and is not in the verification queue"
            )
        return case

    async def start_review(self, case_id: str, reviewer: Optional[str] = None) -> Case:
        """Mark a pending case as under review"""
        return await self._apply(case_id, VerificationStatus.UNDER_REVIEW, reviewer, override=False)

    async def verify(self, case_id: str, reviewer: Optional[str] = None) -> Case:
        return await self._apply(case_id, VerificationStatus.VERIFIED, reviewer, override=True)

    async def reject(self, case_id: str, reviewer: Optional[str] = None) -> Case:
        return await self._apply(case_id, VerificationStatus.REJECTED, reviewer, override=True)

    async def _apply(
        self,
        case_id: str,
        target: VerificationStatus,
        reviewer: Optional[str],
        override: bool,
    ) -> Case:
        case = self._eligible(case_id)
        current = case.verification_status

        if current == target:
            logger.debug(f"Case {case_id} already {target.value}; nothing to do")
            return case

        if not can_transition(current, target, reviewer_override=override):
            raise InvalidStatusTransition(
                f"Cannot move case {case_id} from {current.value} to {target.value}"
            )

        now = datetime.now(timezone.utc)
        case.verification_status = target
        case.touch(now)
        case.record(
            TimelineEntry(
                action=TimelineAction.VERIFICATION_CHANGED,
                description=f"Verification status changed to {target.value}",
                timestamp=case.updated_at,
                performed_by=reviewer,
                previous_value=current.value,
                new_value=target.value,
            )
        )
        logger.info(f"Case {case_id}: verification {current.value} → {target.value}")

        await write_back(
            case,
            CaseUpdateRequest(verification_status=target, last_updated=case.updated_at),
            self.repository,
            self.client,
            self.token_provider,
        )
        return case

    async def verify_location(
        self,
        metadata: ImageMetadata,
        reviewer: Optional[str] = None,
        region: Optional[Region] = None,
    ) -> Case:
        """
        Record that an image's GPS position has been checked.

        Creates a new audit Case (type "Location Verification", status and
        verification VERIFIED, priority MEDIUM) carrying the metadata. The case
        the image came from is left untouched.

        Args:
            metadata: Extracted image metadata; must include GPS coordinates
            reviewer: Name recorded as reporter and on the timeline
            region: Region override; defaults to the region nearest the GPS fix

        Raises:
            ValidationError: If the metadata carries no GPS coordinates
        """
        gps = metadata.gps
        if gps is None:
            raise ValidationError(
                f"No GPS coordinates in metadata of {metadata.file_name}",
                fields=["gps"],
            )

        now = datetime.now(timezone.utc)
        reviewer_name = reviewer or "System Admin"
        case = Case(
            case_id=generate_case_id(),
            title=f"Location Verified: {metadata.file_name}"[:TITLE_MAX_LENGTH],
            region=region or nearest_region(gps.latitude, gps.longitude),
            type=LOCATION_VERIFICATION_TYPE,
            description=(
                "Location verified from image metadata. GPS coordinates: "
                f"{gps.latitude:.6f}, {gps.longitude:.6f}"
            ),
            status=CaseStatus.VERIFIED,
            verification_status=VerificationStatus.VERIFIED,
            priority=Priority.MEDIUM,
            reporter=Reporter(anonymous=False, name=reviewer_name),
            location=Location(latitude=gps.latitude, longitude=gps.longitude, address=gps.address),
            evidence=[
                EvidenceAttachment(
                    type=EvidenceType.PHOTO,
                    description="Image used for location verification",
                    file_name=metadata.file_name,
                )
            ],
            image_metadata=[metadata],
            timeline=[
                TimelineEntry(
                    action=TimelineAction.CREATED,
                    description="Location verification record created",
                    timestamp=now,
                    performed_by=reviewer_name,
                )
            ],
            created_at=now,
            updated_at=now,
            source=CaseOrigin.LOCAL_PENDING,
        )

        self.cases[case.case_id] = case
        try:
            await self.repository.put(case)
        except PersistenceError as e:
            logger.error(f"Could not save location verification {case.case_id}: {e}")

        logger.info(
            f"Location verified for {metadata.file_name} as {case.case_id} "
            f"({case.region.value}, {gps.latitude:.6f}, {gps.longitude:.6f})"
        )
        return case
