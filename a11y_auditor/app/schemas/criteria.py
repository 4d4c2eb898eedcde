"""
Success-criterion schema.

A Criterion is one immutable entry of the governing standard's catalog
(WCAG 2.1 + 2.2). Criteria are loaded once at process start and are
never mutated; checks and verdicts refer to them by dotted id.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations (FROZEN CONTRACTS)
# ---------------------------------------------------------------------------


class Principle(str, Enum):
    """Top-level WCAG principle. Decided by the first digit of the id."""

    PERCEIVABLE = "perceivable"
    OPERABLE = "operable"
    UNDERSTANDABLE = "understandable"
    ROBUST = "robust"


class Level(str, Enum):
    """
    Conformance level.

    Ordering is intentional: A is the minimum, AAA the strictest.
    """

    A = "A"
    AA = "AA"
    AAA = "AAA"


# Weight of each level in the compliance score.
LEVEL_WEIGHTS = {
    Level.A: 3,
    Level.AA: 2,
    Level.AAA: 1,
}

# Levels included when auditing at a given target level.
LEVELS_UP_TO = {
    Level.A: (Level.A,),
    Level.AA: (Level.A, Level.AA),
    Level.AAA: (Level.A, Level.AA, Level.AAA),
}


# ---------------------------------------------------------------------------
# Criterion (PUBLIC, FROZEN)
# ---------------------------------------------------------------------------


class Criterion(BaseModel):
    """One named accessibility rule from the catalog."""

    id: str = Field(
        ...,
        pattern=r"^\d+\.\d+\.\d+$",
        description="Dotted success-criterion number (e.g. '1.4.3')",
    )
    principle: Principle
    level: Level
    title: str = Field(..., min_length=1)
    wcag_version: str = Field(
        "2.1",
        description="WCAG version that introduced the criterion",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def weight(self) -> int:
        return LEVEL_WEIGHTS[self.level]
