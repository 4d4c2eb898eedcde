"""
Central audit coordinator.

The coordinator is a DUMB AUTHORITY.

It MUST NOT:
- inspect page content
- interpret issues
- apply heuristics

Its sole responsibilities are:
- enforcing execution order
- aggregating results
- constructing the final AuditReport
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from a11y_auditor.app.checks.axe_engine import RuleEngine
from a11y_auditor.app.checks.base import CheckUnit
from a11y_auditor.app.checks.registry import build_default_checks
from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.coordinator.evidence_binder import EvidenceBinder, EvidenceStore
from a11y_auditor.app.coordinator.orchestrator import run_checks
from a11y_auditor.app.coordinator.scorer import compute_score
from a11y_auditor.app.page.handle import PageHandle
from a11y_auditor.app.schemas.audit_report import AuditReport, AuditSummary
from a11y_auditor.app.schemas.verdicts import Verdict

# Events (observational only)
from a11y_auditor.app.events import (
    AuditEvent,
    AuditEventEmitter,
    AuditEventType,
    NullEventEmitter,
)
from a11y_auditor.app.events.emitter import safe_emit

logger = logging.getLogger(__name__)


class AuditCoordinator:
    """
    Central audit coordinator.

    Execution order:
        1. Check units (sequential, each bounded by a timeout)
        2. Evidence binding for failing verdicts (optional)
        3. Scoring and report assembly
    """

    def __init__(
        self,
        config: AuditorConfig,
        rule_engine: Optional[RuleEngine] = None,
        checks: Optional[Sequence[CheckUnit]] = None,
        evidence_store: Optional[EvidenceStore] = None,
    ) -> None:
        """
        Direct constructor.

        ``checks`` replaces the default registry entirely; ``rule_engine``
        only replaces the axe-core collaborator of the default registry.
        """
        self._config = config
        self._checks: List[CheckUnit] = (
            list(checks)
            if checks is not None
            else build_default_checks(config, rule_engine)
        )
        self._evidence_binder: Optional[EvidenceBinder] = (
            EvidenceBinder.from_config(config, evidence_store)
            if config.ENABLE_EVIDENCE_CAPTURE
            else None
        )

    # ------------------------------------------------------------------
    # Integration constructor (composition root)
    # ------------------------------------------------------------------

    @classmethod
    def from_config(cls, config: AuditorConfig) -> "AuditCoordinator":
        """Construct a coordinator with the default check registry."""
        return cls(config=config)

    @property
    def checks(self) -> List[CheckUnit]:
        return list(self._checks)

    @property
    def evidence_binder(self) -> Optional[EvidenceBinder]:
        return self._evidence_binder

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_audit(
        self,
        *,
        page: PageHandle,
        audit_id: str,
        emitter: Optional[AuditEventEmitter] = None,
    ) -> AuditReport:
        """
        Audit one loaded page.

        The emitter is strictly observational:
        - failures must not affect execution
        - events must not influence control flow

        Raises PageUnavailableError if the page is closed or unusable
        before the first check.
        """
        emitter = emitter or NullEventEmitter()

        await safe_emit(
            emitter,
            AuditEvent(
                audit_id=audit_id,
                event_type=AuditEventType.AUDIT_STARTED,
                details={
                    "page_url": page.url,
                    "checks_count": len(self._checks),
                },
            ),
        )

        try:
            # ----------------------------------------------------------
            # 1. Checks
            # ----------------------------------------------------------
            verdicts = await run_checks(
                page,
                self._checks,
                timeout_seconds=self._config.CHECK_TIMEOUT_SECONDS,
                emitter=emitter,
                audit_id=audit_id,
            )

            # ----------------------------------------------------------
            # 2. Evidence (supplementary, never changes status)
            # ----------------------------------------------------------
            if self._evidence_binder is not None:
                verdicts = await self._evidence_binder.bind(
                    page,
                    verdicts,
                    emitter=emitter,
                    audit_id=audit_id,
                )

            # ----------------------------------------------------------
            # 3. Score and report
            # ----------------------------------------------------------
            report = self._finalize_report(
                audit_id=audit_id,
                page_url=page.url,
                verdicts=verdicts,
            )

            logger.info(
                "Audit %s of %s finished: score %d (%s), %d verdict(s)",
                audit_id,
                report.page_url,
                report.score.overall,
                report.score.grade.value,
                len(report.verdicts),
            )

            await safe_emit(
                emitter,
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.AUDIT_COMPLETED,
                    details={
                        "score": report.score.overall,
                        "grade": report.score.grade.value,
                        "report": report.model_dump(mode="json"),
                    },
                ),
            )

            return report

        except Exception as exc:
            await safe_emit(
                emitter,
                AuditEvent(
                    audit_id=audit_id,
                    event_type=AuditEventType.AUDIT_FAILED,
                    details={
                        "error": str(exc),
                        "exception_type": type(exc).__name__,
                    },
                ),
            )
            raise

    # ------------------------------------------------------------------
    # Structural helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _finalize_report(
        *,
        audit_id: str,
        page_url: str,
        verdicts: List[Verdict],
    ) -> AuditReport:
        """
        Construct the final immutable AuditReport.
        """
        return AuditReport(
            audit_id=audit_id,
            page_url=page_url,
            verdicts=verdicts,
            score=compute_score(verdicts),
            summary=AuditSummary.from_verdicts(verdicts),
        )
