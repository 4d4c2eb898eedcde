import json
from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient
from playwright.async_api import Error as PlaywrightError

from a11y_auditor.app.checks.base import CheckUnit, page_issue, verdict_from_issues
from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.coordinator.coordinator import AuditCoordinator
from a11y_auditor.app.main import app
from a11y_auditor.tests.fixtures.fake_page import FakePage


class FakePageProvider:
    def __init__(self, page=None, error=None):
        self.page = page or FakePage()
        self.error = error
        self.urls = []

    @asynccontextmanager
    async def open_page(self, url):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        self.page._url = url
        yield self.page


def landmark_check():
    async def run(page):
        return verdict_from_issues("1.3.1", page, [page_issue("Missing main landmark", "1.3.1")])

    return CheckUnit(check_id="structure-landmarks", criterion_ids=("1.3.1",), run=run)


def alt_check():
    async def run(page):
        return verdict_from_issues("1.1.1", page, [])

    return CheckUnit(check_id="axe-1.1.1", criterion_ids=("1.1.1",), run=run)


@pytest.fixture
def client():
    config = AuditorConfig(ENABLE_EVIDENCE_CAPTURE=False)
    app.state.config = config
    app.state.coordinator = AuditCoordinator(config, checks=[alt_check(), landmark_check()])
    app.state.page_provider = FakePageProvider()
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "a11y-auditor"}


def test_audit_returns_report(client):
    response = client.post("/audit", json={"url": "https://example.test/"})

    assert response.status_code == 200
    body = response.json()
    assert body["page_url"] == "https://example.test/"
    assert body["score"]["overall"] == 50
    assert [v["criterion_id"] for v in body["verdicts"]] == ["1.1.1", "1.3.1"]
    assert app.state.page_provider.urls == ["https://example.test/"]


def test_audit_rejects_non_http_urls(client):
    response = client.post("/audit", json={"url": "file:///etc/passwd"})

    assert response.status_code == 422


def test_load_failure_maps_to_bad_gateway(client):
    app.state.page_provider = FakePageProvider(error=PlaywrightError("net::ERR_CONNECTION_REFUSED"))

    response = client.post("/audit", json={"url": "https://down.example.test/"})

    assert response.status_code == 502


def test_closed_page_maps_to_service_unavailable(client):
    page = FakePage()
    page.closed = True
    app.state.page_provider = FakePageProvider(page=page)

    response = client.post("/audit", json={"url": "https://example.test/"})

    assert response.status_code == 503


def _sse_events(text):
    events = []
    for frame in text.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in frame.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


def test_stream_emits_progress_then_report(client):
    response = client.post("/audit/stream", json={"url": "https://example.test/"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _sse_events(response.text)
    names = [name for name, _ in events]
    assert names[0] == "audit_started"
    assert names.count("check_started") == 2
    assert names[-1] == "audit_completed"
    assert events[-1][1]["details"]["report"]["score"]["overall"] == 50


def test_stream_reports_load_failure(client):
    app.state.page_provider = FakePageProvider(error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))

    response = client.post("/audit/stream", json={"url": "https://nowhere.example.test/"})

    events = _sse_events(response.text)
    assert [name for name, _ in events] == ["audit_failed"]
    assert "ERR_NAME_NOT_RESOLVED" in events[0][1]["details"]["error"]
