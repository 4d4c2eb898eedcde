import pytest
from pydantic import ValidationError

from a11y_auditor.app.coordinator.scorer import compute_score
from a11y_auditor.app.schemas.audit_report import AuditReport, AuditSummary
from a11y_auditor.app.schemas.catalog import get_criterion, load_catalog, principle_for
from a11y_auditor.app.schemas.criteria import Level, Principle
from a11y_auditor.app.schemas.findings import Issue, Severity
from a11y_auditor.app.schemas.verdicts import (
    EvidenceKind,
    EvidenceRef,
    Verdict,
    VerdictStatus,
)


URL = "https://example.test/"


def _issue(severity: Severity = Severity.SERIOUS) -> Issue:
    return Issue(description="missing alt", severity=severity)


def test_failing_verdict_requires_an_issue():
    with pytest.raises(ValidationError):
        Verdict(criterion_id="1.1.1", status=VerdictStatus.FAIL, page_url=URL)


def test_passing_verdict_rejects_issues():
    with pytest.raises(ValidationError):
        Verdict(
            criterion_id="1.1.1",
            status=VerdictStatus.PASS,
            issues=[_issue()],
            page_url=URL,
        )


def test_warning_and_manual_accept_either():
    Verdict(criterion_id="2.4.4", status=VerdictStatus.WARNING, page_url=URL)
    Verdict(
        criterion_id="1.2.2",
        status=VerdictStatus.MANUAL_REQUIRED,
        issues=[_issue(Severity.MINOR)],
        page_url=URL,
    )


def test_verdicts_are_immutable():
    verdict = Verdict(criterion_id="1.1.1", status=VerdictStatus.PASS, page_url=URL)

    with pytest.raises(ValidationError):
        verdict.status = VerdictStatus.FAIL


def test_with_evidence_appends_without_touching_status():
    verdict = Verdict(
        criterion_id="1.1.1",
        status=VerdictStatus.FAIL,
        issues=[_issue()],
        page_url=URL,
    )
    ref = EvidenceRef(key="a/b.png", kind=EvidenceKind.ELEMENT, issue_index=0)

    bound = verdict.with_evidence([ref])

    assert bound.status == VerdictStatus.FAIL
    assert bound.issues == verdict.issues
    assert bound.evidence_refs == [ref]
    assert verdict.evidence_refs == []
    assert verdict.with_evidence([]) is verdict


def test_unknown_impact_maps_to_moderate():
    assert Severity.from_impact("critical") == Severity.CRITICAL
    assert Severity.from_impact("Serious") == Severity.SERIOUS
    assert Severity.from_impact(None) == Severity.MODERATE
    assert Severity.from_impact("bogus") == Severity.MODERATE


def test_catalog_lookup():
    catalog = load_catalog()

    assert catalog["1.4.10"].level == Level.AA
    assert catalog["1.4.10"].title == "Reflow"
    assert get_criterion("2.5.8").wcag_version == "2.2"
    assert get_criterion("9.9.9") is None
    assert principle_for("3.2.3") == Principle.UNDERSTANDABLE
    assert principle_for("unknown") is None


def test_report_rejects_duplicate_criteria():
    verdicts = [
        Verdict(criterion_id="1.1.1", status=VerdictStatus.PASS, page_url=URL),
        Verdict(criterion_id="1.1.1", status=VerdictStatus.PASS, page_url=URL),
    ]

    with pytest.raises(ValidationError):
        AuditReport(
            audit_id="a",
            page_url=URL,
            verdicts=verdicts,
            score=compute_score(verdicts),
            summary=AuditSummary.from_verdicts(verdicts),
        )


def test_summary_counts_by_principle():
    verdicts = [
        Verdict(criterion_id="1.1.1", status=VerdictStatus.PASS, page_url=URL),
        Verdict(
            criterion_id="2.1.2",
            status=VerdictStatus.FAIL,
            issues=[_issue(Severity.CRITICAL), _issue()],
            page_url=URL,
        ),
        Verdict(
            criterion_id="unknown",
            status=VerdictStatus.WARNING,
            issues=[_issue()],
            page_url=URL,
        ),
    ]

    summary = AuditSummary.from_verdicts(verdicts)

    assert summary.total_criteria == 3
    assert summary.total_issues == 3
    assert summary.critical_issues == 1
    assert summary.by_principle[Principle.PERCEIVABLE].passed == 1
    assert summary.by_principle[Principle.OPERABLE].failed == 1
    assert Principle.ROBUST not in summary.by_principle
