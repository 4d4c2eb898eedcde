"""
AuditReport schema.

Defines the master report produced for one audited page: the final,
de-duplicated verdict set, the weighted score computed from it, and a
summary view for dashboards and CI gates.

Downstream consumers (export, CLI, dashboards) treat the report as plain
data.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from a11y_auditor.app.schemas.catalog import principle_for
from a11y_auditor.app.schemas.criteria import Principle
from a11y_auditor.app.schemas.findings import Severity
from a11y_auditor.app.schemas.score import Score
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus


# ---------------------------------------------------------------------------
# Summary (DERIVED)
# ---------------------------------------------------------------------------


class PrincipleSummary(BaseModel):
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    manual_required: int = 0

    model_config = ConfigDict(frozen=True, extra="forbid")


class AuditSummary(BaseModel):
    """Counts derived from the verdict set."""

    total_criteria: int = Field(..., ge=0)
    total_issues: int = Field(..., ge=0)
    critical_issues: int = Field(..., ge=0)
    by_principle: Dict[Principle, PrincipleSummary] = Field(default_factory=dict)
    evidence_captured: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_verdicts(cls, verdicts: List[Verdict]) -> "AuditSummary":
        counters: Dict[Principle, Dict[str, int]] = {}
        total_issues = 0
        critical = 0
        evidence = 0

        for verdict in verdicts:
            total_issues += len(verdict.issues)
            critical += sum(
                1 for issue in verdict.issues if issue.severity == Severity.CRITICAL
            )
            evidence += len(verdict.evidence_refs)

            principle = principle_for(verdict.criterion_id)
            if principle is None:
                continue

            bucket = counters.setdefault(
                principle,
                {"passed": 0, "failed": 0, "warnings": 0, "manual_required": 0},
            )
            if verdict.status == VerdictStatus.PASS:
                bucket["passed"] += 1
            elif verdict.status == VerdictStatus.FAIL:
                bucket["failed"] += 1
            elif verdict.status == VerdictStatus.WARNING:
                bucket["warnings"] += 1
            else:
                bucket["manual_required"] += 1

        return cls(
            total_criteria=len(verdicts),
            total_issues=total_issues,
            critical_issues=critical,
            by_principle={
                principle: PrincipleSummary(**values)
                for principle, values in counters.items()
            },
            evidence_captured=evidence,
        )


# ---------------------------------------------------------------------------
# Top-Level Report (PUBLIC, FROZEN CONTRACT)
# ---------------------------------------------------------------------------


class AuditReport(BaseModel):
    """
    Master audit report for one page evaluation.

    THIS SCHEMA IS A PUBLIC, FROZEN CONTRACT.
    """

    schema_version: str = Field("1.0", description="AuditReport schema version")

    audit_id: str
    page_url: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    verdicts: List[Verdict] = Field(default_factory=list)
    score: Score
    summary: AuditSummary

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _one_verdict_per_criterion(self) -> "AuditReport":
        seen = set()
        for verdict in self.verdicts:
            if verdict.criterion_id in seen:
                raise ValueError(
                    f"Duplicate verdict for criterion {verdict.criterion_id}"
                )
            seen.add(verdict.criterion_id)
        return self

    def verdict_for(self, criterion_id: str) -> Optional[Verdict]:
        for verdict in self.verdicts:
            if verdict.criterion_id == criterion_id:
                return verdict
        return None
