"""Service layer - progress aggregation, class statistics and insights."""

from app.services.class_stats import ClassContext, build_class_dashboard
from app.services.insights import InsightProvider, get_insight_provider
from app.services.progress import (
    ProgressContext,
    build_family_overview,
    build_progress_report,
)
from app.services.scoring import ProgressWeights

__all__ = [
    "ClassContext",
    "InsightProvider",
    "ProgressContext",
    "ProgressWeights",
    "build_class_dashboard",
    "build_family_overview",
    "build_progress_report",
    "get_insight_provider",
]
