"""Insight provider interface for analytics that need a real data source.

Skill mastery, recommended focus areas, class comparison and learning goals
are shown on dashboards but nothing in the platform measures them yet. They
sit behind this interface so a real implementation can be plugged in; the
default one reports them as unavailable instead of inventing numbers.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

SKILL_MASTERY = "skill_mastery"
FOCUS_AREAS = "focus_areas"
CLASS_COMPARISON = "class_comparison"
LEARNING_GOALS = "learning_goals"

INSIGHT_KINDS = (SKILL_MASTERY, FOCUS_AREAS, CLASS_COMPARISON, LEARNING_GOALS)


class InsightsUnavailableError(Exception):
    """Raised when an insight has no data source behind it."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Insight '{kind}' requires a data source that is not configured")
        self.kind = kind


class InsightProvider(ABC):
    """Abstract interface for per-student learning insights."""

    @abstractmethod
    async def skill_mastery(self, student_id: int) -> list[dict]:
        """Mastery level per skill."""

    @abstractmethod
    async def focus_areas(self, student_id: int) -> list[dict]:
        """Areas the student should work on next."""

    @abstractmethod
    async def class_comparison(self, student_id: int) -> dict:
        """Percentile and rank against the student's class."""

    @abstractmethod
    async def learning_goals(self, student_id: int) -> list[dict]:
        """Goals with progress and target dates."""

    async def get(self, kind: str, student_id: int) -> list[dict] | dict:
        """Dispatch to the method for *kind*; unknown kinds raise KeyError."""
        handlers = {
            SKILL_MASTERY: self.skill_mastery,
            FOCUS_AREAS: self.focus_areas,
            CLASS_COMPARISON: self.class_comparison,
            LEARNING_GOALS: self.learning_goals,
        }
        return await handlers[kind](student_id)


class UnavailableInsightProvider(InsightProvider):
    """Default provider: every insight is reported as not implemented."""

    async def skill_mastery(self, student_id: int) -> list[dict]:
        raise InsightsUnavailableError(SKILL_MASTERY)

    async def focus_areas(self, student_id: int) -> list[dict]:
        raise InsightsUnavailableError(FOCUS_AREAS)

    async def class_comparison(self, student_id: int) -> dict:
        raise InsightsUnavailableError(CLASS_COMPARISON)

    async def learning_goals(self, student_id: int) -> list[dict]:
        raise InsightsUnavailableError(LEARNING_GOALS)


# Singleton instance
_insight_provider: InsightProvider | None = None


def get_insight_provider() -> InsightProvider:
    """Factory: returns the configured insight provider."""
    global _insight_provider
    if _insight_provider is None:
        logger.info("Using UnavailableInsightProvider")
        _insight_provider = UnavailableInsightProvider()
    return _insight_provider
