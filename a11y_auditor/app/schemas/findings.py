"""
Standardized issue schema.

An Issue is one concrete defect instance supporting a Verdict. Issues are
created by checks and are immutable once emitted; downstream components
(evidence binder, scorer, report consumers) only read them.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """
    Severity of an issue.

    Values follow the axe-core impact vocabulary so rule-engine output
    maps without translation. Ordering MUST remain stable.
    """

    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"

    @classmethod
    def from_impact(cls, impact: Optional[str]) -> "Severity":
        """Map a rule-engine impact string; unknown or missing is moderate."""
        if not impact:
            return cls.MODERATE
        try:
            return cls(impact.lower())
        except ValueError:
            return cls.MODERATE


# ---------------------------------------------------------------------------
# Issue (PUBLIC, FROZEN)
# ---------------------------------------------------------------------------


class Issue(BaseModel):
    """
    One concrete defect instance.

    An issue without ``element_descriptor`` and ``locator_hints`` is
    page-wide (e.g. a missing landmark).
    """

    description: str = Field(..., min_length=1)

    severity: Severity

    element_descriptor: Optional[str] = Field(
        None,
        description="Serialized outer markup of the offending element",
    )

    locator_hints: List[str] = Field(
        default_factory=list,
        description="Candidate CSS selectors, most to least specific",
    )

    help_text: Optional[str] = None
    help_url: Optional[str] = None

    rule_tags: List[str] = Field(
        default_factory=list,
        description="Raw rule tags reported by the originating check",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_page_wide(self) -> bool:
        return not self.element_descriptor and not self.locator_hints
