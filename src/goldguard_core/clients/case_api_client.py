"""HTTP client for the GoldGuard case API."""

import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from goldguard_core.clients.base import BaseApiClient
from goldguard_core.exceptions import RemoteUnavailable
from goldguard_core.models.api_models import (
    CaseListResponse,
    CaseUpdateRequest,
    RemoteCaseRecord,
    SubmitReportResponse,
)
from goldguard_core.models.case import Case
from goldguard_core.models.report import ReportSubmission

logger = logging.getLogger(__name__)


class CaseApiClient(BaseApiClient):
    """Async client for the backend case-management API.

    All calls except submit_report need an admin bearer token. Backend records
    are converted to domain Cases with source=remote.

    Usage:
        client = CaseApiClient(base_url="http://localhost:5000")
        cases = await client.list_cases(token="...")
    """

    def __init__(self, base_url: str = "http://localhost:5000", timeout: float = 8.0, transport=None):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)

    @staticmethod
    def _require_token(token: Optional[str], operation: str) -> str:
        if not token:
            raise RemoteUnavailable(f"No admin credential for {operation}", status_code=401)
        return token

    async def list_cases(self, token: Optional[str]) -> List[Case]:
        """Fetch every case the backend knows about.

        A malformed envelope fails the whole call. A malformed individual
        record is skipped and logged.

        Raises:
            RemoteUnavailable: Missing token, transport/HTTP failure or bad envelope
        """
        token = self._require_token(token, "list_cases")
        body = await self._request("GET", "/api/cases", token=token)

        try:
            envelope = CaseListResponse.model_validate(body)
        except PydanticValidationError as e:
            raise RemoteUnavailable(f"Malformed case list response: {e}") from e
        if not envelope.success:
            raise RemoteUnavailable("Case API reported success=false for case list")

        cases: List[Case] = []
        for raw in envelope.data.cases:
            try:
                cases.append(RemoteCaseRecord.model_validate(raw).to_case())
            except (PydanticValidationError, ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed remote case {raw.get('caseId', '?')!r}: {e}")
        logger.debug(f"Fetched {len(cases)} remote cases")
        return cases

    async def submit_report(self, submission: ReportSubmission) -> SubmitReportResponse:
        """Submit a citizen report. Public endpoint, no credential.

        Returns:
            Backend receipt carrying the backend-issued caseId

        Raises:
            RemoteUnavailable: Transport/HTTP failure or unusable receipt
        """
        body = await self._request("POST", "/api/reports/submit", json=submission.to_wire())
        try:
            receipt = SubmitReportResponse.model_validate(body)
        except PydanticValidationError as e:
            raise RemoteUnavailable(f"Malformed submit response: {e}") from e
        if not receipt.success:
            raise RemoteUnavailable(f"Report rejected by case API: {receipt.message}")
        logger.info(f"Report accepted by case API as {receipt.case_id}")
        return receipt

    async def update_case(
        self, case_id: str, update: CaseUpdateRequest, token: Optional[str]
    ) -> None:
        """Apply a partial update (status, verification, priority, assignment).

        Raises:
            RemoteUnavailable: Missing token or transport/HTTP failure
        """
        token = self._require_token(token, "update_case")
        await self._request("PUT", f"/api/cases/{case_id}", token=token, json=update.to_wire())
        logger.debug(f"Updated remote case {case_id}: {update.to_wire()}")

    async def add_comment(
        self, case_id: str, content: str, token: Optional[str], is_internal: bool = False
    ) -> None:
        """Append a comment to a remote case.

        Raises:
            RemoteUnavailable: Missing token or transport/HTTP failure
        """
        token = self._require_token(token, "add_comment")
        await self._request(
            "POST",
            f"/api/cases/{case_id}/comments",
            token=token,
            json={"content": content, "isInternal": is_internal},
        )
        logger.debug(f"Added comment to remote case {case_id}")

    async def delete_case(self, case_id: str, token: Optional[str]) -> bool:
        """Delete case.

        Returns:
            True if deleted successfully

        Raises:
            RemoteUnavailable: Missing token or transport/HTTP failure
        """
        token = self._require_token(token, "delete_case")
        await self._request("DELETE", f"/api/cases/{case_id}", token=token)
        return True
