"""
Composite health scoring.

Blends several independently measured indicators about one subject (a
collaborator, the company) into a single 0-100 score and a display band.

Each indicator carries a weight (points on the 100-point scale) and a
function that turns its raw value into earned points. Indicators without
data are dropped from both the numerator and the denominator, so partial
data is scored on what is known instead of being penalized.

The band boundaries here are display tiers and are independent of the
metric GREEN/YELLOW/RED thresholds in classifier.py.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from lib.kpi.thresholds import DEFAULT_THRESHOLDS, KpiThresholds

logger = logging.getLogger(__name__)


class HealthBand(Enum):
    """Qualitative band for a composite score."""

    EXCELLENT = "Excellent"
    ATTENTION = "Attention"
    CRITICAL = "Critical"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CompositeScoreInput:
    """
    One weighted sub-indicator.

    raw_value None means the indicator has no data and is excluded.
    earn maps the raw value to points in 0..weight.
    """

    name: str
    weight: float
    raw_value: Any
    earn: Callable[[Any], float]


@dataclass(frozen=True)
class IndicatorScore:
    """Contribution of one indicator to a composite score."""

    name: str
    weight: float
    raw_value: Any
    earned: float | None  # None when the indicator had no data

    @property
    def available(self) -> bool:
        return self.earned is not None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "weight": self.weight,
            "raw_value": self.raw_value,
            "earned": round(self.earned, 2) if self.earned is not None else None,
            "available": self.available,
        }


@dataclass(frozen=True)
class HealthScoreResult:
    """Composite score with its band and per-indicator breakdown."""

    score: int
    band: HealthBand
    earned_total: float
    total_weight: float
    breakdown: list[IndicatorScore] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        """False when no indicator had data; score 0 then means 'unknown'."""
        return self.total_weight > 0

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "band": self.band.value,
            "has_data": self.has_data,
            "earned_total": round(self.earned_total, 2),
            "total_weight": self.total_weight,
            "indicators": [i.to_dict() for i in self.breakdown],
        }


# =============================================================================
# SCORING
# =============================================================================


def band_for(score: float, config: KpiThresholds | None = None) -> HealthBand:
    """Map a 0-100 score to its display band."""
    cfg = config or DEFAULT_THRESHOLDS
    if score >= cfg.bands.excellent_at:
        return HealthBand.EXCELLENT
    if score >= cfg.bands.attention_at:
        return HealthBand.ATTENTION
    return HealthBand.CRITICAL


def score(
    indicators: Sequence[CompositeScoreInput], config: KpiThresholds | None = None
) -> HealthScoreResult:
    """
    Compute the weighted composite score.

    score = round(earned_total / total_weight * 100), counting only
    indicators with data. With no data at all the score is 0 and
    has_data is False.
    """
    earned_total = 0.0
    total_weight = 0.0
    breakdown = []

    for indicator in indicators:
        if indicator.raw_value is None:
            breakdown.append(IndicatorScore(indicator.name, indicator.weight, None, None))
            continue

        earned = min(indicator.weight, max(0.0, float(indicator.earn(indicator.raw_value))))
        earned_total += earned
        total_weight += indicator.weight
        breakdown.append(
            IndicatorScore(indicator.name, indicator.weight, indicator.raw_value, earned)
        )

    if total_weight <= 0:
        logger.debug("No indicator data available, composite score defaults to 0")
        value = 0
    else:
        value = max(0, min(100, round(earned_total / total_weight * 100)))

    return HealthScoreResult(
        score=value,
        band=band_for(value, config),
        earned_total=earned_total,
        total_weight=total_weight,
        breakdown=breakdown,
    )


# =============================================================================
# TIER HELPERS
# =============================================================================


def _points_at_least(value: float, tiers: Sequence[tuple]) -> float:
    """Points for the first tier whose minimum the value reaches."""
    for bound, points in tiers:
        if value >= bound:
            return points
    return 0.0


def _points_at_most(value: float, tiers: Sequence[tuple]) -> float:
    """Points for the first tier whose maximum the value stays within."""
    for bound, points in tiers:
        if value <= bound:
            return points
    return 0.0


# =============================================================================
# COLLABORATOR INDICATORS
# =============================================================================


def survey_indicator(survey_score: float | None, config: KpiThresholds | None = None) -> CompositeScoreInput:
    """Satisfaction survey score (0-10 scale)."""
    weights = (config or DEFAULT_THRESHOLDS).collaborator
    return CompositeScoreInput(
        name="survey",
        weight=weights.survey,
        raw_value=survey_score,
        earn=lambda v: _points_at_least(v, weights.survey_tiers),
    )


def meeting_recency_indicator(
    days_since_meeting: float | None, config: KpiThresholds | None = None
) -> CompositeScoreInput:
    """Days since the last one-on-one meeting."""
    weights = (config or DEFAULT_THRESHOLDS).collaborator
    return CompositeScoreInput(
        name="meeting_recency",
        weight=weights.meeting_recency,
        raw_value=days_since_meeting,
        earn=lambda v: _points_at_most(v, weights.meeting_tiers),
    )


def plan_completion_indicator(
    completion_percent: float | None, config: KpiThresholds | None = None
) -> CompositeScoreInput:
    """Development plan completion, linear over 0-100%."""
    weights = (config or DEFAULT_THRESHOLDS).collaborator
    return CompositeScoreInput(
        name="plan_completion",
        weight=weights.plan_completion,
        raw_value=completion_percent,
        earn=lambda v: v / 100 * weights.plan_completion,
    )


def pending_actions_indicator(
    pending_count: int | None, config: KpiThresholds | None = None
) -> CompositeScoreInput:
    """Open action items; full credit at zero, tiered decay above."""
    weights = (config or DEFAULT_THRESHOLDS).collaborator
    return CompositeScoreInput(
        name="pending_actions",
        weight=weights.pending_actions,
        raw_value=pending_count,
        earn=lambda v: _points_at_most(v, weights.pending_tiers),
    )


def collaborator_indicators(
    survey_score: float | None = None,
    days_since_meeting: float | None = None,
    plan_completion_percent: float | None = None,
    pending_actions: int | None = None,
    config: KpiThresholds | None = None,
) -> list[CompositeScoreInput]:
    """Standard indicator set for a collaborator health score."""
    return [
        survey_indicator(survey_score, config),
        meeting_recency_indicator(days_since_meeting, config),
        plan_completion_indicator(plan_completion_percent, config),
        pending_actions_indicator(pending_actions, config),
    ]


def score_collaborator(config: KpiThresholds | None = None, **raw) -> HealthScoreResult:
    """Shortcut: build collaborator indicators and score them."""
    return score(collaborator_indicators(config=config, **raw), config)


# =============================================================================
# COMPANY INDICATORS
# =============================================================================


@dataclass(frozen=True)
class CompanyMetrics:
    """Company actuals for the current period."""

    mrr: float | None = None
    revenue_ytd: float | None = None
    ebitda_ytd: float | None = None
    active_clients: float | None = None
    delinquency_pct: float | None = None
    churn_pct: float | None = None


@dataclass(frozen=True)
class CompanyTargets:
    """Company targets for the current period."""

    mrr: float | None = None
    revenue_annual: float | None = None
    ebitda_annual: float | None = None
    clients_eoy: float | None = None
    delinquency_max: float | None = None
    churn_max: float | None = None


def _capped_progress(actual: float | None, target: float | None) -> float | None:
    """min(100, actual / target * 100), or None without a usable target."""
    if actual is None or target is None or target <= 0:
        return None
    return max(0.0, min(100.0, actual / target * 100))


def _penalized_ceiling(actual: float | None, ceiling: float | None, per_point: float) -> float | None:
    """100 at or under the ceiling, minus per_point for each point over."""
    if actual is None or ceiling is None:
        return None
    if actual <= ceiling:
        return 100.0
    return max(0.0, 100 - (actual - ceiling) * per_point)


def _percent_indicator(name: str, weight: float, percent: float | None) -> CompositeScoreInput:
    return CompositeScoreInput(
        name=name,
        weight=weight,
        raw_value=percent,
        earn=lambda v: v / 100 * weight,
    )


def company_indicators(
    metrics: CompanyMetrics, targets: CompanyTargets, config: KpiThresholds | None = None
) -> list[CompositeScoreInput]:
    """
    Indicator set for the company OKR health score.

    Growth metrics score capped progress against target. Delinquency and
    churn score 100 under their ceiling and lose a fixed number of points
    per percentage point above it. A missing actual or target drops the
    indicator.
    """
    weights = (config or DEFAULT_THRESHOLDS).company
    return [
        _percent_indicator("mrr", weights.mrr, _capped_progress(metrics.mrr, targets.mrr)),
        _percent_indicator(
            "revenue", weights.revenue, _capped_progress(metrics.revenue_ytd, targets.revenue_annual)
        ),
        _percent_indicator(
            "ebitda", weights.ebitda, _capped_progress(metrics.ebitda_ytd, targets.ebitda_annual)
        ),
        _percent_indicator(
            "clients", weights.clients, _capped_progress(metrics.active_clients, targets.clients_eoy)
        ),
        _percent_indicator(
            "delinquency",
            weights.delinquency,
            _penalized_ceiling(
                metrics.delinquency_pct,
                targets.delinquency_max,
                weights.delinquency_penalty_per_point,
            ),
        ),
        _percent_indicator(
            "churn",
            weights.churn,
            _penalized_ceiling(metrics.churn_pct, targets.churn_max, weights.churn_penalty_per_point),
        ),
    ]


def score_company(
    metrics: CompanyMetrics, targets: CompanyTargets, config: KpiThresholds | None = None
) -> HealthScoreResult:
    """Shortcut: build company indicators and score them."""
    return score(company_indicators(metrics, targets, config), config)
