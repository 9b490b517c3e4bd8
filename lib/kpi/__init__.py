"""
KPI health engine: metric classification, composite health scores, alerts.

Usage:
    from lib.kpi import MetricSnapshot, classify, compute_alerts, score_collaborator

    result = classify(MetricSnapshot("mrr", 95000, 100000, "higher_is_better"))
    result.status            # Status.YELLOW
    result.progress_percent  # 95.0

All functions are pure; thresholds are passed explicitly (default:
DEFAULT_THRESHOLDS, or load_thresholds() for the YAML-configured set).
"""

from .alerts import AlertInput, AlertItem, AlertSeverity, compute_alerts, evaluate_alert
from .classifier import (
    ClassifiedMetric,
    Direction,
    MetricSnapshot,
    Status,
    TrendDirection,
    TrendPoint,
    TrendResult,
    classify,
    classify_many,
    classify_trend,
)
from .formatting import ValueFormat, format_value
from .health_score import (
    CompanyMetrics,
    CompanyTargets,
    CompositeScoreInput,
    HealthBand,
    HealthScoreResult,
    IndicatorScore,
    band_for,
    collaborator_indicators,
    company_indicators,
    score,
    score_collaborator,
    score_company,
)
from .rollup import (
    PeriodType,
    RollupResult,
    compute_period_value,
    compute_quarter_rollups,
    compute_rollup,
    compute_variance,
)
from .rulesets import MetricRuleset, MetricThreshold, metric_color
from .thresholds import (
    DEFAULT_THRESHOLDS,
    KpiThresholds,
    ThresholdConfigError,
    load_thresholds,
    validate_thresholds,
)

__all__ = [
    # Classification
    "Direction",
    "Status",
    "MetricSnapshot",
    "ClassifiedMetric",
    "TrendDirection",
    "TrendPoint",
    "TrendResult",
    "classify",
    "classify_many",
    "classify_trend",
    # Composite health
    "CompositeScoreInput",
    "IndicatorScore",
    "HealthBand",
    "HealthScoreResult",
    "CompanyMetrics",
    "CompanyTargets",
    "band_for",
    "score",
    "collaborator_indicators",
    "company_indicators",
    "score_collaborator",
    "score_company",
    # Alerts
    "AlertInput",
    "AlertItem",
    "AlertSeverity",
    "compute_alerts",
    "evaluate_alert",
    # Rollups
    "PeriodType",
    "RollupResult",
    "compute_period_value",
    "compute_quarter_rollups",
    "compute_rollup",
    "compute_variance",
    # Display
    "ValueFormat",
    "format_value",
    "MetricRuleset",
    "MetricThreshold",
    "metric_color",
    # Configuration
    "DEFAULT_THRESHOLDS",
    "KpiThresholds",
    "ThresholdConfigError",
    "load_thresholds",
    "validate_thresholds",
]
