"""
Pytest configuration and fixtures for goldguard-core tests
"""
import io
import json
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from PIL import Image

from goldguard_core.auth import StaticTokenProvider
from goldguard_core.clients import CaseApiClient
from goldguard_core.models import (
    Case,
    CaseOrigin,
    EvidenceAttachment,
    EvidenceType,
    ReportSubmission,
)
from goldguard_core.storage import InMemoryCaseRepository

API_URL = "http://case-api.test"
ADMIN_TOKEN = "test-admin-token"


def make_case(
    case_id: str,
    *,
    photo: bool = False,
    source: CaseOrigin = CaseOrigin.LOCAL_PENDING,
    **overrides,
) -> Case:
    """Build a valid Case with sensible defaults"""
    data = dict(
        case_id=case_id,
        title=f"Illegal Mining - Ashanti ({case_id})",
        region="Ashanti",
        type="Illegal Mining",
        description="Excavators by the river",
        subject="Illegal Mining",
        created_at=datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        source=source,
    )
    if photo:
        data["evidence"] = [
            EvidenceAttachment(type=EvidenceType.PHOTO, description="site", file_name="site.jpg")
        ]
    data.update(overrides)
    return Case(**data)


def remote_record(case_id: str, **overrides) -> Dict:
    """Backend JSON for one case"""
    record = {
        "caseId": case_id,
        "title": "Water Pollution - Western",
        "region": "Western",
        "type": "Water Pollution",
        "status": "Open",
        "priority": "High",
        "createdAt": "2024-03-01T09:00:00Z",
        "updatedAt": "2024-03-02T09:00:00Z",
        "description": "River turned brown",
        "evidence": [],
    }
    record.update(overrides)
    return record


class FakeCaseApi:
    """In-memory stand-in for the backend, served through httpx.MockTransport"""

    def __init__(self, records: Optional[List[Dict]] = None):
        self.records: List[Dict] = list(records or [])
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[int] = None
        self.raise_error: Optional[Exception] = None
        self.list_body: Optional[object] = None
        self.next_case_id = 1

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"success": False})

        path = request.url.path
        if path == "/api/reports/submit" and request.method == "POST":
            case_id = f"GG-{self.next_case_id:04d}"
            self.next_case_id += 1
            return httpx.Response(
                201,
                json={"success": True, "caseId": case_id, "reportId": f"R-{case_id}"},
            )

        if request.headers.get("Authorization") != f"Bearer {ADMIN_TOKEN}":
            return httpx.Response(401, json={"success": False, "message": "Unauthorized"})

        if path == "/api/cases" and request.method == "GET":
            if self.list_body is not None:
                return httpx.Response(200, json=self.list_body)
            return httpx.Response(
                200,
                json={"success": True, "data": {"cases": self.records, "pagination": {}}},
            )
        if path.startswith("/api/cases/") and path.endswith("/comments") and request.method == "POST":
            return httpx.Response(201, json={"success": True, "data": json.loads(request.content)})
        if path.startswith("/api/cases/") and request.method == "PUT":
            return httpx.Response(200, json={"success": True, "data": json.loads(request.content)})
        if path.startswith("/api/cases/") and request.method == "DELETE":
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"success": False})

    def requests_for(self, method: str, prefix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(prefix)]


@pytest.fixture
def fake_api() -> FakeCaseApi:
    return FakeCaseApi()


@pytest.fixture
def api_client(fake_api: FakeCaseApi) -> CaseApiClient:
    return CaseApiClient(base_url=API_URL, timeout=2.0, transport=httpx.MockTransport(fake_api))


@pytest.fixture
def tokens() -> StaticTokenProvider:
    return StaticTokenProvider(ADMIN_TOKEN)


@pytest.fixture
def repository() -> InMemoryCaseRepository:
    return InMemoryCaseRepository()


@pytest.fixture
def case_factory() -> Callable[..., Case]:
    return make_case


@pytest.fixture
def western_report() -> ReportSubmission:
    """Anonymous water-pollution report from the Western region"""
    return ReportSubmission(
        region="Western",
        subject="Water Pollution",
        message="The river has turned brown near the mining pits",
    )


def _jpeg_bytes(exif: Optional[Image.Exif] = None, size=(64, 48)) -> bytes:
    buffer = io.BytesIO()
    image = Image.new("RGB", size, color=(180, 140, 60))
    if exif is not None:
        image.save(buffer, format="JPEG", exif=exif.tobytes())
    else:
        image.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def plain_jpeg() -> bytes:
    return _jpeg_bytes()


@pytest.fixture
def exif_jpeg() -> bytes:
    """JPEG carrying camera, capture time and a GPS fix near Tarkwa (5.3°N, 1.99°W)"""
    exif = Image.Exif()
    exif[0x010F] = "Canon"
    exif[0x0110] = "EOS 80D"
    exif[0x8769] = {
        0x9003: "2024:03:15 10:30:00",
        0x829D: 8.0,
        0x829A: 0.004,
        0x8827: 200,
    }
    exif[0x8825] = {
        1: "N",
        2: (5.0, 18.0, 0.0),
        3: "W",
        4: (1.0, 59.0, 24.0),
    }
    return _jpeg_bytes(exif)


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (10, 20)).save(buffer, format="PNG")
    return buffer.getvalue()
