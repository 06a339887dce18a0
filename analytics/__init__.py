"""Progress analytics over the per-theme session stats table."""

from .config import AnalyticsConfig
from .metrics import RATE_COLUMNS, compute_metrics
from .prepare import load_and_prepare, theme_summary
from .smoothing import ewma_by_session

__all__ = [
    "AnalyticsConfig",
    "RATE_COLUMNS",
    "compute_metrics",
    "load_and_prepare",
    "theme_summary",
    "ewma_by_session",
]
