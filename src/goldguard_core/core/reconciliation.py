"""Case Store Reconciliation

Purpose: Merge the remote case set and the local offline queue into one
deduplicated view keyed by case id.

Key Components:
- RemoteCase / LocalPendingCase: Tagged wrappers (CaseSource) recording origin
- reconcile(): Pure merge; remote wins on id collision
- verification_queue(): Cases eligible for evidence review
- CaseReconciler: Loads both stores with degraded-mode semantics

Merge rules:
- Remote entries are inserted first, then local entries whose id is absent.
- Ids are compared exactly (case-sensitive, no trimming).
- Statuses are never rewritten; only `source` is set on the merged copies.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from goldguard_core.auth.token_provider import TokenProvider
from goldguard_core.clients.case_api_client import CaseApiClient
from goldguard_core.exceptions import PersistenceError, RemoteUnavailable
from goldguard_core.models.case import Case, CaseOrigin
from goldguard_core.storage.base import CaseRepository

logger = logging.getLogger(__name__)


# ============================================================
# Tagged sources
# ============================================================

class RemoteCase(BaseModel):
    """A case as returned by the remote case API"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    case: Case

    def tagged(self) -> Case:
        return self.case.model_copy(update={"source": CaseOrigin.REMOTE}, deep=True)


class LocalPendingCase(BaseModel):
    """A case held only in the local repository (not yet synced)"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local-pending"] = "local-pending"
    case: Case

    def tagged(self) -> Case:
        return self.case.model_copy(update={"source": CaseOrigin.LOCAL_PENDING}, deep=True)


CaseSource = Union[RemoteCase, LocalPendingCase]


def merge_sources(sources: Iterable[CaseSource]) -> Dict[str, Case]:
    """First entry per id wins; order of `sources` decides precedence."""
    merged: Dict[str, Case] = {}
    for source in sources:
        case_id = source.case.case_id
        if case_id in merged:
            continue
        merged[case_id] = source.tagged()
    return merged


def reconcile(remote: Iterable[Case], local: Iterable[Case]) -> Dict[str, Case]:
    """
    Merge remote and local cases into one view keyed by case id.

    Total over its inputs: never raises, never drops an id that appears in
    either input, never returns two cases for one id.

    Args:
        remote: Cases from the remote API (authoritative)
        local: Cases from the local repository

    Returns:
        Ordered dict id → Case; remote ids first, then local-only ids.
        Each case carries `source` matching the store it came from.
    """
    sources: List[CaseSource] = [RemoteCase(case=c) for c in remote]
    sources.extend(LocalPendingCase(case=c) for c in local)
    return merge_sources(sources)


def verification_queue(cases: Union[Mapping[str, Case], Iterable[Case]]) -> List[Case]:
    """Cases with at least one Photo evidence entry, in input order"""
    if isinstance(cases, Mapping):
        cases = cases.values()
    return [case for case in cases if case.has_photo_evidence]


# ============================================================
# Loader
# ============================================================

class ReconciliationResult(BaseModel):
    """One reconciled snapshot of both stores"""

    cases: Dict[str, Case] = Field(default_factory=dict)
    remote_available: bool = Field(
        description="False if the remote set could not be fetched (credential, network, parse)"
    )
    local_available: bool = Field(
        default=True,
        description="False if the local repository could not be read",
    )
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def remote_count(self) -> int:
        return sum(1 for c in self.cases.values() if c.source == CaseOrigin.REMOTE)

    @property
    def local_pending_count(self) -> int:
        return sum(1 for c in self.cases.values() if c.source == CaseOrigin.LOCAL_PENDING)

    def __len__(self) -> int:
        return len(self.cases)


class DeleteOutcome(BaseModel):
    """What an explicit delete managed to remove"""

    case_id: str
    remote_deleted: bool = False
    local_deleted: bool = False

    @property
    def deleted(self) -> bool:
        return self.remote_deleted or self.local_deleted


class CaseReconciler:
    """
    Loads the remote and local case sets and reconciles them.

    Failure handling:
    - No credential, HTTP error, timeout, malformed payload → remote set is
      empty and `remote_available` is False
    - Local repository failure → local set is empty, `local_available` False
    Neither is raised; load() always returns a result.
    """

    def __init__(
        self,
        client: CaseApiClient,
        repository: CaseRepository,
        token_provider: Optional[TokenProvider] = None,
    ):
        self.client = client
        self.repository = repository
        self.token_provider = token_provider or TokenProvider()

    async def _fetch_remote(self) -> Optional[List[Case]]:
        token = await self.token_provider.get_token()
        if not token:
            logger.info("No admin credential; showing local cases only")
            return None
        try:
            return await self.client.list_cases(token)
        except RemoteUnavailable as e:
            logger.warning(f"Remote case API unavailable, using local cases only: {e}")
            if e.is_auth_failure:
                await self.token_provider.invalidate_token()
            return None

    async def _fetch_local(self) -> Optional[List[Case]]:
        try:
            return await self.repository.list()
        except PersistenceError as e:
            logger.error(f"Local case repository unreadable: {e}")
            return None

    async def load(self) -> ReconciliationResult:
        """Fetch both stores and reconcile. Never raises."""
        remote = await self._fetch_remote()
        local = await self._fetch_local()

        result = ReconciliationResult(
            cases=reconcile(remote or [], local or []),
            remote_available=remote is not None,
            local_available=local is not None,
        )
        logger.debug(
            f"Reconciled {len(result)} cases "
            f"(remote={result.remote_count}, local_pending={result.local_pending_count}, "
            f"remote_available={result.remote_available})"
        )
        return result

    async def delete(self, case_id: str) -> DeleteOutcome:
        """
        Delete a case everywhere it may live.

        Remote delete is best-effort; the local delete is authoritative.
        Failures are logged and reported in the outcome, never raised.
        """
        outcome = DeleteOutcome(case_id=case_id)

        token = await self.token_provider.get_token()
        if token:
            try:
                outcome.remote_deleted = await self.client.delete_case(case_id, token)
            except RemoteUnavailable as e:
                logger.warning(f"Remote delete of {case_id} failed: {e}")
        else:
            logger.info(f"No admin credential; skipping remote delete of {case_id}")

        try:
            outcome.local_deleted = await self.repository.delete(case_id)
        except PersistenceError as e:
            logger.error(f"Local delete of {case_id} failed: {e}")

        logger.info(
            f"Deleted case {case_id}: remote={outcome.remote_deleted}, local={outcome.local_deleted}"
        )
        return outcome
