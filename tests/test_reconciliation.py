"""
Case store reconciliation tests
"""
import httpx
import pytest

from goldguard_core.auth import StaticTokenProvider, TokenProvider
from goldguard_core.core.reconciliation import (
    CaseReconciler,
    LocalPendingCase,
    RemoteCase,
    merge_sources,
    reconcile,
    verification_queue,
)
from goldguard_core.exceptions import PersistenceError
from goldguard_core.models import CaseOrigin, CaseStatus
from goldguard_core.storage import InMemoryCaseRepository
from tests.conftest import ADMIN_TOKEN, make_case, remote_record


class BrokenRepository(InMemoryCaseRepository):
    async def list(self):
        raise PersistenceError("disk on fire")

    async def delete(self, case_id):
        raise PersistenceError("disk on fire")


class TestReconcile:
    """Test the pure merge"""

    def test_remote_wins_on_collision(self):
        remote = [make_case("A", status="In Progress", source=CaseOrigin.REMOTE)]
        local = [make_case("A", status="New"), make_case("B")]

        merged = reconcile(remote, local)

        assert list(merged) == ["A", "B"]
        assert merged["A"].status == CaseStatus.IN_PROGRESS
        assert merged["A"].source == CaseOrigin.REMOTE
        assert merged["B"].source == CaseOrigin.LOCAL_PENDING

    def test_no_duplicates_and_no_losses(self):
        remote = [make_case(i) for i in ("1", "2", "3")]
        local = [make_case(i) for i in ("3", "4", "4", "5")]

        merged = reconcile(remote, local)

        assert sorted(merged) == ["1", "2", "3", "4", "5"]

    def test_ids_match_exactly(self):
        merged = reconcile([make_case("case-1")], [make_case("CASE-1"), make_case("case-1 ")])
        assert len(merged) == 3

    def test_sets_source_from_origin(self):
        # Tag comes from which input the case arrived in, not from the record
        merged = reconcile([make_case("X", source=CaseOrigin.LOCAL_PENDING)], [])
        assert merged["X"].source == CaseOrigin.REMOTE

    def test_status_not_rewritten(self):
        merged = reconcile([], [make_case("L", status="Pending")])
        assert merged["L"].status == CaseStatus.PENDING

    def test_does_not_alias_inputs(self):
        local = make_case("L")
        merged = reconcile([], [local])
        merged["L"].assigned_to = "Officer Asante"
        assert local.assigned_to is None

    def test_merge_sources_precedence(self):
        merged = merge_sources(
            [LocalPendingCase(case=make_case("A", status="New")), RemoteCase(case=make_case("A", status="Open"))]
        )
        assert merged["A"].status == CaseStatus.NEW
        assert merged["A"].source == CaseOrigin.LOCAL_PENDING

    def test_empty_inputs(self):
        assert reconcile([], []) == {}


class TestVerificationQueue:
    """Test the evidence gate"""

    def test_only_photo_cases(self):
        cases = [make_case("A", photo=True), make_case("B"), make_case("C", photo=True)]
        assert [c.case_id for c in verification_queue(cases)] == ["A", "C"]

    def test_accepts_mapping(self):
        merged = reconcile([], [make_case("A", photo=True), make_case("B")])
        assert [c.case_id for c in verification_queue(merged)] == ["A"]


class TestCaseReconciler:
    """Test loading with degraded-mode semantics"""

    async def test_load_merges_both_stores(self, fake_api, api_client, tokens, repository):
        fake_api.records = [remote_record("GG-1"), remote_record("L-2", status="Solved")]
        await repository.put(make_case("L-2", status="New"))
        await repository.put(make_case("L-3"))

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert result.remote_available
        assert result.local_available
        assert list(result.cases) == ["GG-1", "L-2", "L-3"]
        assert result.cases["L-2"].status == CaseStatus.RESOLVED
        assert result.remote_count == 2
        assert result.local_pending_count == 1
        assert fake_api.requests[0].headers["Authorization"] == f"Bearer {ADMIN_TOKEN}"

    async def test_no_credential_is_local_only(self, fake_api, api_client, repository):
        await repository.put(make_case("L-1"))

        result = await CaseReconciler(api_client, repository, TokenProvider()).load()

        assert not result.remote_available
        assert list(result.cases) == ["L-1"]
        assert fake_api.requests == []

    @pytest.mark.parametrize("status_code", [401, 500, 503])
    async def test_http_error_is_local_only(self, fake_api, api_client, tokens, repository, status_code):
        fake_api.fail_with = status_code
        await repository.put(make_case("L-1"))

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert not result.remote_available
        assert list(result.cases) == ["L-1"]

    async def test_timeout_is_local_only(self, fake_api, api_client, tokens, repository):
        fake_api.raise_error = httpx.ReadTimeout("slow backend")

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert not result.remote_available
        assert result.cases == {}

    async def test_malformed_envelope_is_local_only(self, fake_api, api_client, tokens, repository):
        fake_api.list_body = {"cases": "not the shape"}

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert not result.remote_available

    async def test_malformed_record_is_skipped(self, fake_api, api_client, tokens, repository):
        fake_api.records = [remote_record("GG-1"), {"caseId": "GG-2"}, remote_record("GG-3", region="Mars")]

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert result.remote_available
        assert list(result.cases) == ["GG-1"]

    async def test_unexpected_officer_shape_is_skipped(self, fake_api, api_client, tokens, repository):
        fake_api.records = [
            remote_record("GG-1"),
            remote_record("GG-2", assignedTo={"profile": "Kofi"}),
            remote_record("GG-3", assignedTo=["Kofi"]),
        ]

        result = await CaseReconciler(api_client, repository, tokens).load()

        assert result.remote_available
        assert list(result.cases) == ["GG-1"]

    async def test_rejected_token_is_invalidated(self, fake_api, api_client, repository):
        provider = StaticTokenProvider("stale-token")

        await CaseReconciler(api_client, repository, provider).load()

        assert await provider.get_token() is None

    async def test_unreadable_local_store(self, fake_api, api_client, tokens):
        fake_api.records = [remote_record("GG-1")]

        result = await CaseReconciler(api_client, BrokenRepository(), tokens).load()

        assert result.remote_available
        assert not result.local_available
        assert list(result.cases) == ["GG-1"]


class TestDelete:
    """Test best-effort remote, authoritative local delete"""

    async def test_deletes_both(self, fake_api, api_client, tokens, repository):
        await repository.put(make_case("A"))

        outcome = await CaseReconciler(api_client, repository, tokens).delete("A")

        assert outcome.remote_deleted
        assert outcome.local_deleted
        assert await repository.get("A") is None
        assert fake_api.requests_for("DELETE", "/api/cases/A")

    async def test_remote_failure_still_deletes_locally(self, fake_api, api_client, tokens, repository):
        fake_api.fail_with = 500
        await repository.put(make_case("A"))

        outcome = await CaseReconciler(api_client, repository, tokens).delete("A")

        assert not outcome.remote_deleted
        assert outcome.local_deleted
        assert outcome.deleted

    async def test_local_failure_is_reported(self, api_client, tokens):
        outcome = await CaseReconciler(api_client, BrokenRepository(), tokens).delete("A")

        assert outcome.remote_deleted
        assert not outcome.local_deleted
