# KPI Health Engine - Core Library
"""
Top-level shortcuts for embedding applications.

The CLI imports from lib.kpi and lib.observability directly.
"""

from .kpi import (
    DEFAULT_THRESHOLDS,
    MetricSnapshot,
    classify,
    classify_trend,
    compute_alerts,
    load_thresholds,
    score,
)
from .observability import configure_logging, get_logger

__all__ = [
    "DEFAULT_THRESHOLDS",
    "MetricSnapshot",
    "classify",
    "classify_trend",
    "compute_alerts",
    "load_thresholds",
    "score",
    "configure_logging",
    "get_logger",
]
