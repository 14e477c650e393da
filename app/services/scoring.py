"""Scoring rules: weighted progress, letter grades and severity bands.

Every dashboard number that blends attendance with assessment results, and
every colour hint the presentation layer shows next to it, comes from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.config import settings

# ---------------------------------------------------------------------------
# Severity bands
# ---------------------------------------------------------------------------
SUCCESS = "success"
INFO = "info"
WARNING = "warning"
ERROR = "error"

# ---------------------------------------------------------------------------
# Letter grade boundaries (lower bound inclusive)
# ---------------------------------------------------------------------------
GRADE_BOUNDARIES: list[tuple[float, str, str]] = [
    (90, "A", SUCCESS),
    (80, "B", SUCCESS),
    (70, "C", WARNING),
    (60, "D", WARNING),
]
FAILING_GRADE = ("F", ERROR)

# ---------------------------------------------------------------------------
# Progress bar bands (lower bound inclusive)
# ---------------------------------------------------------------------------
PROGRESS_BOUNDARIES: list[tuple[float, str]] = [
    (80, SUCCESS),
    (60, INFO),
    (40, WARNING),
]

# Score movement smaller than this is reported as "steady"
TREND_TOLERANCE = 0.5


@dataclass(frozen=True)
class ProgressWeights:
    """Share of attendance and assessment score in a progress value."""

    attendance: float = 0.4
    score: float = 0.6

    @classmethod
    def from_settings(cls) -> ProgressWeights:
        return cls(
            attendance=settings.PROGRESS_ATTENDANCE_WEIGHT,
            score=settings.PROGRESS_SCORE_WEIGHT,
        )


@dataclass(frozen=True)
class GradeBand:
    grade: str
    severity: str


def round_half_up(value: float, ndigits: int = 0) -> float | int:
    """Round with ties away from zero, as dashboards display them.

    Returns an ``int`` when *ndigits* is 0.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def weighted_progress(
    attendance_rate: float,
    avg_score: float,
    weights: ProgressWeights | None = None,
) -> int:
    """Blend attendance rate and average score into a 0-100 progress value.

    Parameters
    ----------
    attendance_rate : float
        Attended sessions as a percentage of sessions in scope.
    avg_score : float
        Mean of the non-null assessment scores in scope.
    weights : ProgressWeights | None
        Blend policy; the configured default when omitted.
    """
    if weights is None:
        weights = ProgressWeights.from_settings()
    blended = attendance_rate * weights.attendance + avg_score * weights.score
    return round_half_up(clamp(blended))


def grade_from_score(score: float) -> GradeBand:
    """Map a 0-100 score to its letter grade and severity band."""
    for lower, grade, severity in GRADE_BOUNDARIES:
        if score >= lower:
            return GradeBand(grade, severity)
    return GradeBand(*FAILING_GRADE)


def progress_severity(progress: float) -> str:
    """Severity band for a progress bar.

    Uses its own thresholds, distinct from :func:`grade_from_score`.
    """
    for lower, severity in PROGRESS_BOUNDARIES:
        if progress >= lower:
            return severity
    return ERROR


def performance_trend(first_score: float, last_score: float) -> str:
    """Classify movement between the first and last score of a period."""
    diff = last_score - first_score
    if diff > TREND_TOLERANCE:
        return "improving"
    if diff < -TREND_TOLERANCE:
        return "declining"
    return "steady"
