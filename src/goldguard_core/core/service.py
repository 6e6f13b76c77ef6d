"""Case Service

Purpose: One entry point for the report form and the admin dashboard.

Wires intake, the case API client, the local repository, reconciliation,
verification and polling together around a single working set of cases
(`CaseService.cases`), the dict every view reads from.

Usage:
    service = await CaseService.from_settings()
    receipt = await service.submit_report(submission)
    result = await service.refresh()
    await service.verification.verify(case_id, reviewer="Officer Mensah")
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from goldguard_core.auth import TokenProvider, token_provider_from_settings
from goldguard_core.clients.case_api_client import CaseApiClient
from goldguard_core.config import GoldGuardSettings
from goldguard_core.core.intake import intake_report
from goldguard_core.core.polling import CasePoller
from goldguard_core.core.reconciliation import (
    CaseReconciler,
    DeleteOutcome,
    ReconciliationResult,
)
from goldguard_core.core.verification import VerificationWorkflow
from goldguard_core.core.write_back import write_back
from goldguard_core.exceptions import (
    CaseNotFound,
    InvalidStatusTransition,
    PersistenceError,
    RemoteUnavailable,
    ValidationError,
)
from goldguard_core.models.api_models import CaseUpdateRequest
from goldguard_core.models.case import (
    Case,
    CaseComment,
    COMMENT_MAX_LENGTH,
    CaseOrigin,
    CaseStatus,
    Priority,
    TimelineAction,
    TimelineEntry,
    VerificationStatus,
    is_valid_transition,
    normalize_status,
)
from goldguard_core.models.report import ReportSubmission, SubmissionReceipt, SyncResult
from goldguard_core.storage import CaseRepository, build_repository
from goldguard_core.utils.resilience import create_custom_retry

logger = logging.getLogger(__name__)

_UNASSIGNED = ("", "unassigned")


def _resubmission(case: Case) -> ReportSubmission:
    """Rebuild the form submission a queued case came from"""
    reporter = case.reporter
    return ReportSubmission(
        full_name=reporter.name,
        phone_number=reporter.phone,
        email=reporter.email,
        region=case.region.value,
        subject=case.subject,
        message=case.description,
        is_anonymous=reporter.anonymous,
        location=case.location,
        evidence=list(case.evidence),
    )


class CaseService:
    """
    Facade over the case stores.

    Remote first, local fallback: reports go to the case API and land in the
    local queue only when the API is unreachable; sync_pending() drains the
    queue later.
    """

    def __init__(
        self,
        client: CaseApiClient,
        repository: CaseRepository,
        token_provider: Optional[TokenProvider] = None,
        poll_interval: float = 30.0,
        sync_attempts: int = 3,
        sync_wait: float = 1.0,
    ):
        self.client = client
        self.repository = repository
        self.token_provider = token_provider or TokenProvider()
        self.poll_interval = poll_interval
        self.sync_attempts = sync_attempts
        self.sync_wait = sync_wait

        self.cases: Dict[str, Case] = {}
        self.last_result: Optional[ReconciliationResult] = None

        self.reconciler = CaseReconciler(client, repository, self.token_provider)
        self.verification = VerificationWorkflow(
            self.cases, repository, client, self.token_provider
        )

    @classmethod
    async def from_settings(cls, settings: Optional[GoldGuardSettings] = None) -> "CaseService":
        """Build client, repository and credentials from settings (env by default)"""
        settings = settings or GoldGuardSettings.from_env()
        client = CaseApiClient(base_url=settings.api_url, timeout=settings.api_timeout)
        repository = await build_repository(settings)
        return cls(
            client=client,
            repository=repository,
            token_provider=token_provider_from_settings(settings),
            poll_interval=settings.poll_interval,
        )

    # ============================================================
    # Intake
    # ============================================================

    async def submit_report(self, submission: ReportSubmission) -> SubmissionReceipt:
        """
        Validate a citizen report and store it.

        Raises:
            ValidationError: If the submission is missing required fields
        """
        case = intake_report(submission)
        if submission.is_anonymous:
            submission = submission.without_contact()

        try:
            receipt = await self.client.submit_report(submission)
        except RemoteUnavailable as e:
            logger.warning(f"Case API unavailable, queueing report {case.case_id} locally: {e}")
        else:
            case.case_id = receipt.case_id
            case.source = CaseOrigin.REMOTE
            self.cases[case.case_id] = case
            return SubmissionReceipt(case=case, synced=True)

        persisted = True
        try:
            await self.repository.put(case)
        except PersistenceError as e:
            logger.error(f"Could not queue report {case.case_id} locally: {e}")
            persisted = False

        self.cases[case.case_id] = case
        return SubmissionReceipt(case=case, synced=False, persisted=persisted)

    async def sync_pending(self) -> SyncResult:
        """
        Re-submit locally queued reports.

        Each report is retried (tenacity) before it is left in the queue.
        Accepted reports are removed from the local repository and replace
        their local entry in the working set under the backend id. Local
        audit records without a subject (location verifications) stay local.
        """
        result = SyncResult()
        try:
            queued = await self.repository.list()
        except PersistenceError as e:
            logger.error(f"Cannot read local queue for sync: {e}")
            return result

        submit = create_custom_retry(
            max_attempts=self.sync_attempts,
            min_wait=self.sync_wait,
            max_wait=self.sync_wait * 8,
            retry_on=(RemoteUnavailable,),
        )(self.client.submit_report)

        for case in queued:
            if not case.is_local_pending or not case.subject:
                continue
            try:
                receipt = await submit(_resubmission(case))
            except RemoteUnavailable as e:
                logger.warning(f"Report {case.case_id} still queued: {e}")
                result.failed.append(case.case_id)
                continue

            local_id = case.case_id
            try:
                await self.repository.delete(local_id)
            except PersistenceError as e:
                logger.error(f"Synced {local_id} but could not remove it from the queue: {e}")

            self.cases.pop(local_id, None)
            case.case_id = receipt.case_id
            case.source = CaseOrigin.REMOTE
            self.cases[case.case_id] = case
            result.synced[local_id] = receipt.case_id
            logger.info(f"Synced queued report {local_id} as {receipt.case_id}")

            await self._push_local_edits(case)

        logger.info(f"Sync finished: {len(result.synced)} synced, {len(result.failed)} still queued")
        return result

    async def _push_local_edits(self, case: Case) -> None:
        """Carry review, triage and comments made offline over to the backend record"""
        for comment in case.comments:
            await self._send_comment(case.case_id, comment)
        if (
            case.status == CaseStatus.NEW
            and case.verification_status == VerificationStatus.PENDING_VERIFICATION
            and case.assigned_to is None
        ):
            return
        await write_back(
            case,
            CaseUpdateRequest(
                status=case.status,
                verification_status=case.verification_status,
                priority=case.priority,
                assigned_to=case.assigned_to,
                last_updated=case.updated_at,
            ),
            self.repository,
            self.client,
            self.token_provider,
        )

    # ============================================================
    # Admin views
    # ============================================================

    async def refresh(self) -> ReconciliationResult:
        """Reload both stores and replace the working set"""
        result = await self.reconciler.load()
        self.cases.clear()
        self.cases.update(result.cases)
        self.last_result = result
        return result

    def poller(self, on_update=None) -> CasePoller:
        """Poller that calls refresh() every poll_interval seconds"""
        return CasePoller(self.refresh, interval=self.poll_interval, on_update=on_update)

    def get_case(self, case_id: str) -> Case:
        case = self.cases.get(case_id)
        if case is None:
            raise CaseNotFound(case_id)
        return case

    async def update_case(
        self,
        case_id: str,
        status: Optional[Union[CaseStatus, str]] = None,
        assigned_to: Optional[str] = None,
        priority: Optional[Priority] = None,
        performed_by: Optional[str] = None,
    ) -> Case:
        """
        Edit status, assignment and/or priority of a case.

        Assigning an officer to a New/Open case moves it to In Progress unless
        a status is given explicitly. Moving to Resolved/Closed stamps
        resolved_at; reopening clears it. Pass assigned_to="Unassigned" (or "")
        to clear the assignment.

        Raises:
            CaseNotFound: Unknown case id
            InvalidStatusTransition: Lifecycle change not allowed
            ValueError: Unknown status string
        """
        case = self.get_case(case_id)
        now = datetime.now(timezone.utc)
        entries = []

        target = normalize_status(status) if status is not None else None

        new_officer = case.assigned_to
        if assigned_to is not None:
            new_officer = None if assigned_to.strip().lower() in _UNASSIGNED else assigned_to.strip()
        assignment_changed = new_officer != case.assigned_to

        if (
            target is None
            and assignment_changed
            and new_officer is not None
            and case.status in (CaseStatus.NEW, CaseStatus.OPEN)
        ):
            target = CaseStatus.IN_PROGRESS

        if target is not None and not is_valid_transition(case.status, target):
            raise InvalidStatusTransition(
                f"Cannot move case {case_id} from {case.status.value} to {target.value}"
            )

        if assignment_changed:
            entries.append(
                TimelineEntry(
                    action=TimelineAction.ASSIGNED,
                    description=f"Assigned to {new_officer or 'Unassigned'}",
                    timestamp=now,
                    performed_by=performed_by,
                    previous_value=case.assigned_to,
                    new_value=new_officer,
                )
            )
            case.assigned_to = new_officer

        if target is not None and target != case.status:
            previous = case.status
            entries.append(
                TimelineEntry(
                    action=TimelineAction.CLOSED if target == CaseStatus.CLOSED else TimelineAction.STATUS_CHANGED,
                    description=f"Status changed to {target.value}",
                    timestamp=now,
                    performed_by=performed_by,
                    previous_value=previous.value,
                    new_value=target.value,
                )
            )
            case.status = target
            if target in (CaseStatus.RESOLVED, CaseStatus.CLOSED):
                if case.resolved_at is None or previous not in (CaseStatus.RESOLVED, CaseStatus.CLOSED):
                    case.resolved_at = max(now, case.created_at)
            elif case.resolved_at is not None:
                case.resolved_at = None

        if priority is not None and priority != case.priority:
            entries.append(
                TimelineEntry(
                    action=TimelineAction.PRIORITY_CHANGED,
                    description=f"Priority changed to {priority.value}",
                    timestamp=now,
                    performed_by=performed_by,
                    previous_value=case.priority.value,
                    new_value=priority.value,
                )
            )
            case.priority = priority

        if not entries:
            logger.debug(f"Update of {case_id} changed nothing")
            return case

        case.touch(now)
        for entry in entries:
            case.record(entry)
        logger.info(
            f"Updated case {case_id}: status={case.status.value}, "
            f"assigned_to={case.assigned_to}, priority={case.priority.value}"
        )

        await write_back(
            case,
            CaseUpdateRequest(
                status=case.status,
                priority=case.priority,
                assigned_to=case.assigned_to or "Unassigned",
                last_updated=case.updated_at,
            ),
            self.repository,
            self.client,
            self.token_provider,
        )
        return case

    async def add_comment(
        self,
        case_id: str,
        content: str,
        author: Optional[str] = None,
        is_internal: bool = False,
    ) -> Case:
        """
        Attach an officer comment to a case and record it on the timeline.

        Raises:
            CaseNotFound: Unknown case id
            ValidationError: Blank comment or longer than COMMENT_MAX_LENGTH
        """
        case = self.get_case(case_id)
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content is required", fields=["content"])
        if len(content) > COMMENT_MAX_LENGTH:
            raise ValidationError(
                f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters", fields=["content"]
            )

        now = datetime.now(timezone.utc)
        comment = CaseComment(content=content, author=author, is_internal=is_internal, created_at=now)
        case.comments = [*case.comments, comment]
        case.touch(now)
        case.record(
            TimelineEntry(
                action=TimelineAction.COMMENT_ADDED,
                description="Internal comment added" if is_internal else "Comment added",
                timestamp=now,
                performed_by=author,
            )
        )

        if case.is_local_pending:
            try:
                await self.repository.put(case)
            except PersistenceError as e:
                logger.error(f"Could not save comment on {case_id} locally: {e}")
        else:
            await self._send_comment(case_id, comment)
        return case

    async def _send_comment(self, case_id: str, comment: CaseComment) -> bool:
        token = await self.token_provider.get_token()
        try:
            await self.client.add_comment(case_id, comment.content, token, comment.is_internal)
            return True
        except RemoteUnavailable as e:
            logger.error(f"Could not send comment on {case_id} to case API: {e}")
            if e.is_auth_failure:
                await self.token_provider.invalidate_token()
            return False

    async def delete_case(self, case_id: str) -> DeleteOutcome:
        """Delete everywhere (remote best-effort, local authoritative)"""
        outcome = await self.reconciler.delete(case_id)
        self.cases.pop(case_id, None)
        return outcome

    async def close(self) -> None:
        await self.client.close()
        await self.repository.close()
