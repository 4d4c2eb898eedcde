"""
Verdict schema.

A Verdict is the outcome for one Criterion on one page evaluation.

Verdicts are append-only: the evidence binder may attach evidence
references through ``with_evidence`` but status and issues never change
after construction.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from a11y_auditor.app.schemas.findings import Issue


class VerdictStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    MANUAL_REQUIRED = "manual-required"


class EvidenceKind(str, Enum):
    ELEMENT = "element"
    VIEWPORT = "viewport"


class EvidenceRef(BaseModel):
    """
    Reference to a stored visual artifact.

    The artifact bytes live in an evidence store; the verdict only carries
    the store key plus how the artifact was obtained.
    """

    key: str = Field(..., min_length=1, description="Evidence store key")
    kind: EvidenceKind
    media_type: str = "image/png"

    issue_index: Optional[int] = Field(
        None,
        ge=0,
        description="Index of the issue this artifact supports",
    )
    locator_tier: Optional[str] = Field(
        None,
        description="Element locator tier that resolved the element",
    )
    viewport: Optional[Tuple[int, int]] = Field(
        None,
        description="Viewport (width, height) the artifact was captured at",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class Verdict(BaseModel):
    """Outcome for one criterion on one evaluation run."""

    criterion_id: str = Field(
        ...,
        description="Dotted criterion id, or 'unknown' for unmapped rule tags",
    )
    status: VerdictStatus
    issues: List[Issue] = Field(default_factory=list)

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    page_url: str

    evidence_refs: List[EvidenceRef] = Field(default_factory=list)

    check_id: Optional[str] = Field(
        None,
        description="Identifier of the check unit that produced the verdict",
    )
    message: Optional[str] = Field(
        None,
        description="Free-text note (error text for degraded checks)",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def _status_matches_issues(self) -> "Verdict":
        if self.status == VerdictStatus.FAIL and not self.issues:
            raise ValueError("A failing verdict must carry at least one issue")
        if self.status == VerdictStatus.PASS and self.issues:
            raise ValueError("A passing verdict must not carry issues")
        return self

    # ------------------------------------------------------------------
    # Append-only evidence
    # ------------------------------------------------------------------

    def with_evidence(self, refs: Sequence[EvidenceRef]) -> "Verdict":
        """Return a copy carrying additional evidence references."""
        if not refs:
            return self
        return self.model_copy(
            update={"evidence_refs": [*self.evidence_refs, *refs]}
        )
