import pytest

from a11y_auditor.app.checks.base import CheckUnit, page_issue, verdict_from_issues
from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.coordinator.coordinator import AuditCoordinator
from a11y_auditor.app.coordinator.evidence_binder import MemoryEvidenceStore
from a11y_auditor.app.events import AuditEventType, CollectingEventEmitter
from a11y_auditor.app.page.handle import PageUnavailableError
from a11y_auditor.app.schemas.criteria import Level
from a11y_auditor.app.schemas.verdicts import EvidenceKind, VerdictStatus
from a11y_auditor.tests.fixtures.fake_page import FakePage

pytestmark = pytest.mark.anyio


def passing_check(criterion_id):
    async def run(page):
        return verdict_from_issues(criterion_id, page, [])

    return CheckUnit(check_id="pass-" + criterion_id, criterion_ids=(criterion_id,), run=run)


def failing_check(criterion_id):
    async def run(page):
        return verdict_from_issues(
            criterion_id,
            page,
            [page_issue("No main landmark", criterion_id)],
        )

    return CheckUnit(check_id="fail-" + criterion_id, criterion_ids=(criterion_id,), run=run)


def exploding_check(criterion_id):
    async def run(page):
        raise RuntimeError("evaluation failed")

    return CheckUnit(check_id="boom-" + criterion_id, criterion_ids=(criterion_id,), run=run)


async def test_report_aggregates_scores_and_summary():
    config = AuditorConfig(ENABLE_EVIDENCE_CAPTURE=False)
    coordinator = AuditCoordinator(
        config,
        checks=[passing_check("1.1.1"), failing_check("1.3.1"), exploding_check("2.1.1")],
    )

    report = await coordinator.run_audit(page=FakePage(), audit_id="audit-001")

    assert report.audit_id == "audit-001"
    assert report.page_url == "https://example.test/"
    assert [v.criterion_id for v in report.verdicts] == ["1.1.1", "1.3.1", "2.1.1"]
    assert report.verdict_for("2.1.1").status == VerdictStatus.WARNING
    assert report.score.overall == 50
    assert report.score.by_level[Level.A].failed == 1
    assert report.summary.total_criteria == 3
    assert report.summary.evidence_captured == 0
    assert coordinator.evidence_binder is None


async def test_failing_verdicts_receive_evidence():
    store = MemoryEvidenceStore()
    page = FakePage()
    coordinator = AuditCoordinator(
        AuditorConfig(),
        checks=[failing_check("1.3.1"), passing_check("1.1.1")],
        evidence_store=store,
    )

    report = await coordinator.run_audit(page=page, audit_id="audit-002")

    failed = report.verdict_for("1.3.1")
    assert failed.status == VerdictStatus.FAIL
    assert [r.kind for r in failed.evidence_refs] == [EvidenceKind.VIEWPORT]
    assert failed.evidence_refs[0].key in store
    assert report.verdict_for("1.1.1").evidence_refs == []
    assert report.summary.evidence_captured == 1


async def test_lifecycle_events_wrap_check_events():
    emitter = CollectingEventEmitter()
    coordinator = AuditCoordinator(
        AuditorConfig(ENABLE_EVIDENCE_CAPTURE=False),
        checks=[passing_check("1.1.1")],
    )

    report = await coordinator.run_audit(page=FakePage(), audit_id="a-3", emitter=emitter)

    types = [e.event_type for e in emitter.events]
    assert types == [
        AuditEventType.AUDIT_STARTED,
        AuditEventType.CHECK_STARTED,
        AuditEventType.CHECK_COMPLETED,
        AuditEventType.AUDIT_COMPLETED,
    ]
    completed = emitter.events[-1].details
    assert completed["score"] == report.score.overall
    assert completed["report"]["audit_id"] == "a-3"


async def test_closed_page_fails_the_audit():
    emitter = CollectingEventEmitter()
    page = FakePage()
    page.closed = True
    coordinator = AuditCoordinator(AuditorConfig(), checks=[passing_check("1.1.1")])

    with pytest.raises(PageUnavailableError):
        await coordinator.run_audit(page=page, audit_id="a-4", emitter=emitter)

    assert emitter.events[-1].event_type == AuditEventType.AUDIT_FAILED
    assert emitter.events[-1].details["exception_type"] == "PageUnavailableError"


async def test_broken_emitter_does_not_affect_the_audit():
    class BrokenEmitter:
        async def emit(self, event):
            raise RuntimeError("socket closed")

    coordinator = AuditCoordinator(
        AuditorConfig(ENABLE_EVIDENCE_CAPTURE=False),
        checks=[passing_check("1.1.1")],
    )

    report = await coordinator.run_audit(page=FakePage(), audit_id="a-5", emitter=BrokenEmitter())

    assert report.score.overall == 100


async def test_audit_is_deterministic_for_the_same_page():
    coordinator = AuditCoordinator(
        AuditorConfig(ENABLE_EVIDENCE_CAPTURE=False),
        checks=[passing_check("1.1.1"), failing_check("1.3.1")],
    )

    first = await coordinator.run_audit(page=FakePage(), audit_id="x")
    second = await coordinator.run_audit(page=FakePage(), audit_id="x")

    assert first.score == second.score
    assert [(v.criterion_id, v.status, v.issues) for v in first.verdicts] == [
        (v.criterion_id, v.status, v.issues) for v in second.verdicts
    ]
