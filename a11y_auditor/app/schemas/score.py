"""
Compliance score schema.

A Score is derived data: it is always recomputed from a verdict set and is
never persisted independently.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from a11y_auditor.app.schemas.criteria import Level


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class LevelScore(BaseModel):
    """Score restricted to the verdicts of one conformance level."""

    score: int = Field(..., ge=0, le=100)
    passed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def total(self) -> int:
        return self.passed + self.failed


class StatusCounts(BaseModel):
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    manual_required: int = 0

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.warnings + self.manual_required


class Score(BaseModel):
    """Weighted compliance score over a verdict set."""

    overall: int = Field(..., ge=0, le=100)
    grade: Grade
    by_level: Dict[Level, LevelScore] = Field(default_factory=dict)
    counts: StatusCounts

    model_config = ConfigDict(frozen=True, extra="forbid")


class ScoreComparison(BaseModel):
    """Difference between two scores (e.g. before and after a fix)."""

    delta: int
    previous_grade: Grade
    current_grade: Grade
    improved: bool
    summary: str
    level_deltas: Dict[Level, Optional[int]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")
