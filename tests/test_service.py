"""
CaseService facade tests
"""
import json

import httpx
import pytest

from goldguard_core.auth import StaticTokenProvider
from goldguard_core.clients import CaseApiClient
from goldguard_core.config import GoldGuardSettings
from goldguard_core.core.service import CaseService
from goldguard_core.exceptions import (
    CaseNotFound,
    InvalidStatusTransition,
    PersistenceError,
    ValidationError,
)
from goldguard_core.models import (
    CaseOrigin,
    CaseStatus,
    Priority,
    ReportSubmission,
    TimelineAction,
    VerificationStatus,
)
from goldguard_core.storage import InMemoryCaseRepository, JsonFileCaseRepository
from tests.conftest import make_case, remote_record


class FailingRepository(InMemoryCaseRepository):
    async def put(self, case):
        raise PersistenceError("quota exceeded")


@pytest.fixture
def service(api_client, repository, tokens):
    return CaseService(api_client, repository, tokens, sync_wait=0)


class TestSubmitReport:
    """Test remote-first submission with local fallback"""

    async def test_remote_accepts(self, service, fake_api, repository, western_report):
        receipt = await service.submit_report(western_report)

        assert receipt.synced
        assert receipt.case_id == "GG-0001"
        assert receipt.case.source == CaseOrigin.REMOTE
        assert len(repository) == 0
        body = json.loads(fake_api.requests[0].content)
        assert body["region"] == "Western"
        assert body["subject"] == "Water Pollution"

    async def test_anonymous_report_sends_no_contact(self, service, fake_api):
        submission = ReportSubmission(
            full_name="Kwame Mensah",
            phone_number="0244000000",
            email="kwame@example.com",
            region="Ashanti",
            subject="Illegal Mining",
            message="Excavators in the river",
            is_anonymous=True,
        )

        receipt = await service.submit_report(submission)

        body = json.loads(fake_api.requests[0].content)
        assert "fullName" not in body
        assert "phoneNumber" not in body
        assert "email" not in body
        assert body["isAnonymous"] is True
        assert receipt.case.reporter.anonymous

    async def test_remote_down_queues_locally(self, service, fake_api, repository, western_report):
        fake_api.fail_with = 502

        receipt = await service.submit_report(western_report)

        assert not receipt.synced
        assert receipt.persisted
        assert receipt.case.source == CaseOrigin.LOCAL_PENDING
        assert (await repository.get(receipt.case_id)).status == CaseStatus.NEW
        assert receipt.case_id in service.cases

    async def test_nothing_stores_it(self, api_client, tokens, fake_api, western_report):
        fake_api.raise_error = httpx.ConnectError("no route")
        service = CaseService(api_client, FailingRepository(), tokens)

        receipt = await service.submit_report(western_report)

        assert not receipt.synced
        assert not receipt.persisted
        assert receipt.case.priority == Priority.HIGH

    async def test_invalid_report_raises(self, service, fake_api):
        with pytest.raises(ValidationError):
            await service.submit_report(ReportSubmission(region="Western", subject="Other"))
        assert fake_api.requests == []


class TestSyncPending:
    """Test draining the local queue"""

    async def test_sync_replaces_local_ids(self, service, fake_api, repository, western_report):
        fake_api.fail_with = 503
        queued = await service.submit_report(western_report)
        fake_api.fail_with = None

        result = await service.sync_pending()

        assert result.complete
        new_id = result.synced[queued.case_id]
        assert len(repository) == 0
        assert queued.case_id not in service.cases
        assert service.cases[new_id].source == CaseOrigin.REMOTE

    async def test_sync_keeps_failures_queued(self, service, fake_api, repository, western_report):
        fake_api.fail_with = 503
        queued = await service.submit_report(western_report)

        result = await service.sync_pending()

        assert result.failed == [queued.case_id]
        assert len(repository) == 1
        # 1 original submit + 3 sync attempts
        assert len(fake_api.requests_for("POST", "/api/reports/submit")) == 4

    async def test_sync_pushes_offline_review(self, service, fake_api, repository, western_report):
        fake_api.fail_with = 503
        queued = await service.submit_report(western_report)
        await service.update_case(queued.case_id, assigned_to="Officer Asante")
        fake_api.fail_with = None

        result = await service.sync_pending()

        new_id = result.synced[queued.case_id]
        puts = fake_api.requests_for("PUT", f"/api/cases/{new_id}")
        assert json.loads(puts[0].content)["assignedTo"] == "Officer Asante"

    async def test_location_records_stay_local(self, service, repository):
        await repository.put(make_case("LOC-1", subject=None, type="Location Verification"))

        result = await service.sync_pending()

        assert result.synced == {}
        assert len(repository) == 1


class TestUpdateCase:
    """Test status, assignment and priority edits"""

    async def test_assignment_moves_new_case_in_progress(self, service, repository):
        await repository.put(make_case("L-1"))
        await service.refresh()

        case = await service.update_case("L-1", assigned_to="Officer Asante", performed_by="admin")

        assert case.status == CaseStatus.IN_PROGRESS
        assert case.assigned_to == "Officer Asante"
        actions = [e.action for e in case.timeline]
        assert actions == [TimelineAction.ASSIGNED, TimelineAction.STATUS_CHANGED]
        assert (await repository.get("L-1")).assigned_to == "Officer Asante"

    async def test_resolve_stamps_resolved_at(self, service, repository):
        await repository.put(make_case("L-1", status="In Progress"))
        await service.refresh()

        case = await service.update_case("L-1", status="Solved")

        assert case.status == CaseStatus.RESOLVED
        assert case.resolved_at is not None

        reopened = await service.update_case("L-1", status=CaseStatus.OPEN)
        assert reopened.resolved_at is None

    async def test_invalid_transition(self, service, repository):
        await repository.put(make_case("L-1", status="Rejected"))
        await service.refresh()

        with pytest.raises(InvalidStatusTransition):
            await service.update_case("L-1", status="Open")

    async def test_unknown_case(self, service):
        with pytest.raises(CaseNotFound):
            await service.update_case("nope", status="Open")

    async def test_remote_case_is_put(self, service, fake_api):
        fake_api.records = [remote_record("GG-9")]
        await service.refresh()

        await service.update_case("GG-9", priority=Priority.CRITICAL)

        body = json.loads(fake_api.requests_for("PUT", "/api/cases/GG-9")[0].content)
        assert body["priority"] == "Critical"
        assert body["status"] == "Open"

    async def test_noop_update_writes_nothing(self, service, fake_api):
        fake_api.records = [remote_record("GG-9")]
        await service.refresh()

        await service.update_case("GG-9", status="Open")

        assert fake_api.requests_for("PUT", "/api/cases/") == []


class TestComments:
    """Test officer comments"""

    async def test_comment_on_remote_case_is_posted(self, service, fake_api):
        fake_api.records = [remote_record("GG-9")]
        await service.refresh()

        case = await service.add_comment("GG-9", "  Site visited, pits confirmed ", author="Officer Asante")

        assert case.comments[-1].content == "Site visited, pits confirmed"
        entry = case.timeline[-1]
        assert entry.action == TimelineAction.COMMENT_ADDED
        assert entry.performed_by == "Officer Asante"
        posts = fake_api.requests_for("POST", "/api/cases/GG-9/comments")
        assert json.loads(posts[0].content) == {"content": "Site visited, pits confirmed", "isInternal": False}

    async def test_comment_on_local_case_is_saved(self, service, fake_api, repository):
        await repository.put(make_case("L-1"))
        await service.refresh()

        await service.add_comment("L-1", "Follow up with district office", is_internal=True)

        stored = await repository.get("L-1")
        assert stored.comments[0].is_internal
        assert stored.timeline[-1].description == "Internal comment added"
        assert fake_api.requests == []

    @pytest.mark.parametrize("content", ["   ", "x" * 1001])
    async def test_invalid_comment(self, service, repository, content):
        await repository.put(make_case("L-1"))
        await service.refresh()

        with pytest.raises(ValidationError):
            await service.add_comment("L-1", content)
        assert service.cases["L-1"].comments == []

    async def test_remote_failure_keeps_comment(self, service, fake_api):
        fake_api.records = [remote_record("GG-9")]
        await service.refresh()
        fake_api.fail_with = 503

        case = await service.add_comment("GG-9", "noted")

        assert [c.content for c in case.comments] == ["noted"]

    async def test_offline_comment_pushed_on_sync(self, service, fake_api, western_report):
        fake_api.fail_with = 503
        queued = await service.submit_report(western_report)
        await service.add_comment(queued.case_id, "Called the reporter back")
        fake_api.fail_with = None

        result = await service.sync_pending()

        new_id = result.synced[queued.case_id]
        posts = fake_api.requests_for("POST", f"/api/cases/{new_id}/comments")
        assert json.loads(posts[0].content)["content"] == "Called the reporter back"


class TestRefreshAndDelete:
    """Test the shared working set"""

    async def test_refresh_shares_view_with_verification(self, service, fake_api):
        fake_api.records = [
            remote_record("GG-1", evidence=[{"type": "photo", "fileName": "a.jpg"}]),
        ]

        result = await service.refresh()
        await service.verification.verify("GG-1")

        assert result.remote_available
        assert service.cases["GG-1"].verification_status == VerificationStatus.VERIFIED

    async def test_delete_removes_from_view(self, service, repository):
        await repository.put(make_case("L-1"))
        await service.refresh()

        outcome = await service.delete_case("L-1")

        assert outcome.local_deleted
        assert "L-1" not in service.cases

    async def test_poller_refreshes(self, service, repository):
        await repository.put(make_case("L-1"))
        poller = service.poller()

        result = await poller.poll_once()

        assert list(result.cases) == ["L-1"]
        assert service.last_result is result


class TestFromSettings:
    """Test construction from configuration"""

    async def test_builds_json_backed_service(self, tmp_path):
        settings = GoldGuardSettings(
            api_url="http://case-api.test/",
            storage="json",
            storage_path=tmp_path / "queue.json",
            admin_token="abc",
            poll_interval=5,
        )

        service = await CaseService.from_settings(settings)

        assert isinstance(service.repository, JsonFileCaseRepository)
        assert isinstance(service.token_provider, StaticTokenProvider)
        assert isinstance(service.client, CaseApiClient)
        assert service.client.base_url == "http://case-api.test"
        assert service.poll_interval == 5
        await service.close()
