"""
Compliance scorer.

Scoring methodology:
- only pass and fail verdicts participate
- each criterion is weighted by its level (A=3, AA=2, AAA=1)
- score = round(100 * passed weight / participating weight), half up
- criteria missing from the catalog weigh 1 and have no level sub-score

The scorer is a pure function of the verdict set: the same verdicts always
produce the same Score, and verdict order does not matter.
"""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Dict, Iterable, List, Optional

from a11y_auditor.app.schemas.catalog import get_criterion
from a11y_auditor.app.schemas.criteria import LEVEL_WEIGHTS, Level
from a11y_auditor.app.schemas.score import (
    Grade,
    LevelScore,
    Score,
    ScoreComparison,
    StatusCounts,
)
from a11y_auditor.app.schemas.verdicts import Verdict, VerdictStatus

UNKNOWN_WEIGHT = 1

# (minimum score, grade), highest first
GRADE_THRESHOLDS = (
    (90, Grade.A),
    (80, Grade.B),
    (70, Grade.C),
    (60, Grade.D),
)

_PARTICIPATING = (VerdictStatus.PASS, VerdictStatus.FAIL)


def round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


def percentage(passed: int, total: int) -> int:
    """Half-up rounded percentage; 0 when nothing participates."""
    if total <= 0:
        return 0
    return round_half_up(Fraction(100 * passed, total))


def grade_for(score: int) -> Grade:
    for minimum, grade in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return Grade.F


def _level_of(verdict: Verdict) -> Optional[Level]:
    criterion = get_criterion(verdict.criterion_id)
    return criterion.level if criterion is not None else None


def _count(verdicts: List[Verdict]) -> StatusCounts:
    def n(status: VerdictStatus) -> int:
        return sum(1 for v in verdicts if v.status == status)

    return StatusCounts(
        passed=n(VerdictStatus.PASS),
        failed=n(VerdictStatus.FAIL),
        warnings=n(VerdictStatus.WARNING),
        manual_required=n(VerdictStatus.MANUAL_REQUIRED),
    )


def compute_score(verdicts: Iterable[Verdict]) -> Score:
    verdicts = list(verdicts)
    participating = [v for v in verdicts if v.status in _PARTICIPATING]

    total_weight = 0
    passed_weight = 0
    per_level: Dict[Level, List[int]] = {level: [0, 0] for level in Level}

    for verdict in participating:
        level = _level_of(verdict)
        weight = LEVEL_WEIGHTS[level] if level is not None else UNKNOWN_WEIGHT
        passed = verdict.status == VerdictStatus.PASS

        total_weight += weight
        if passed:
            passed_weight += weight

        if level is not None:
            per_level[level][0 if passed else 1] += 1

    overall = percentage(passed_weight, total_weight)

    by_level = {}
    for level, (passed, failed) in per_level.items():
        # Within one level every criterion has the same weight.
        by_level[level] = LevelScore(
            score=percentage(passed, passed + failed),
            passed=passed,
            failed=failed,
        )

    return Score(
        overall=overall,
        grade=grade_for(overall),
        by_level=by_level,
        counts=_count(verdicts),
    )


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------


def score_description(score: int) -> str:
    if score >= 90:
        return "Excellent accessibility - meets or exceeds standards"
    if score >= 80:
        return "Good accessibility - minor improvements needed"
    if score >= 70:
        return "Fair accessibility - some issues need attention"
    if score >= 60:
        return "Poor accessibility - significant issues present"
    return "Critical accessibility issues - immediate action required"


def recommendations(score: Score) -> List[str]:
    """Ordered, human-readable next steps derived from a score."""
    out: List[str] = []

    if score.overall < 70:
        out.append("Priority: fix Level A failures first")

    level_a = score.by_level.get(Level.A)
    if level_a is not None and level_a.failed:
        out.append(f"Level A: {level_a.failed} critical issue(s) remaining")

    level_aa = score.by_level.get(Level.AA)
    if level_aa is not None and level_aa.failed:
        out.append(f"Level AA: {level_aa.failed} compliance issue(s) remaining")

    if score.counts.manual_required:
        out.append(
            f"Manual testing: {score.counts.manual_required} criteria require human review"
        )

    if score.counts.warnings:
        out.append(f"Warnings: {score.counts.warnings} potential issue(s) detected")

    if score.overall >= 90 and score.counts.failed == 0:
        out.append("Excellent work - keep monitoring and testing regularly")

    return out


def compare_scores(previous: Score, current: Score) -> ScoreComparison:
    delta = current.overall - previous.overall

    if delta > 0:
        summary = (
            f"Improved by {delta} points "
            f"({previous.grade.value} -> {current.grade.value})"
        )
    elif delta < 0:
        summary = (
            f"Decreased by {abs(delta)} points "
            f"({previous.grade.value} -> {current.grade.value})"
        )
    else:
        summary = f"No change ({current.grade.value})"

    level_deltas: Dict[Level, Optional[int]] = {}
    for level in Level:
        before = previous.by_level.get(level)
        after = current.by_level.get(level)
        if before is None or after is None or not before.total or not after.total:
            level_deltas[level] = None
        else:
            level_deltas[level] = after.score - before.score

    return ScoreComparison(
        delta=delta,
        previous_grade=previous.grade,
        current_grade=current.grade,
        improved=delta > 0,
        summary=summary,
        level_deltas=level_deltas,
    )
