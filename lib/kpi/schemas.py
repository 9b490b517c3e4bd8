"""
Pydantic models for KPI evaluation documents.

These models validate snapshot documents at the boundary (CLI input,
embedding applications) and convert them into the engine's value objects.
Direction and format stay plain strings so an unknown value reaches the
engine's documented fallback instead of failing validation.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from lib.kpi.alerts import AlertInput
from lib.kpi.classifier import MetricSnapshot, TrendPoint
from lib.kpi.health_score import CompanyMetrics, CompanyTargets
from lib.kpi.rulesets import COLORS, MetricRuleset, MetricThreshold


class MetricModel(BaseModel):
    """One metric with its target."""

    key: str = Field(description="Metric identifier, also used as alert name")
    current_value: float | None = Field(default=None, description="Measured value; null = no data")
    target: float | None = Field(default=None, description="Target value; null = no target")
    direction: str = Field(default="higher_is_better", description="higher_is_better or lower_is_better")
    format: str = Field(default="COUNT", description="BRL, COUNT or PCT")

    def to_snapshot(self) -> MetricSnapshot:
        return MetricSnapshot(self.key, self.current_value, self.target, self.direction)

    def to_alert_input(self) -> AlertInput:
        return AlertInput(self.key, self.current_value, self.target, self.direction, self.format)


class TrendPointModel(BaseModel):
    period_label: str
    value: float


class TrendSeriesModel(BaseModel):
    """Chronological series for one metric, oldest first."""

    key: str
    points: list[TrendPointModel] = Field(default_factory=list)

    def to_points(self) -> list[TrendPoint]:
        return [TrendPoint(p.period_label, p.value) for p in self.points]


class CollaboratorHealthModel(BaseModel):
    """Raw inputs for one collaborator's health score."""

    name: str
    survey_score: float | None = Field(default=None, ge=0, le=10)
    days_since_meeting: float | None = Field(default=None, ge=0)
    plan_completion_percent: float | None = Field(default=None, ge=0, le=100)
    pending_actions: int | None = Field(default=None, ge=0)

    def indicator_values(self) -> dict[str, Any]:
        return self.model_dump(exclude={"name"})


class CompanyMetricsModel(BaseModel):
    mrr: float | None = None
    revenue_ytd: float | None = None
    ebitda_ytd: float | None = None
    active_clients: float | None = None
    delinquency_pct: float | None = None
    churn_pct: float | None = None


class CompanyTargetsModel(BaseModel):
    mrr: float | None = None
    revenue_annual: float | None = None
    ebitda_annual: float | None = None
    clients_eoy: float | None = None
    delinquency_max: float | None = None
    churn_max: float | None = None


class CompanyHealthModel(BaseModel):
    """Company actuals and targets for the OKR health score."""

    metrics: CompanyMetricsModel = Field(default_factory=CompanyMetricsModel)
    targets: CompanyTargetsModel = Field(default_factory=CompanyTargetsModel)

    def to_domain(self) -> tuple[CompanyMetrics, CompanyTargets]:
        return (
            CompanyMetrics(**self.metrics.model_dump()),
            CompanyTargets(**self.targets.model_dump()),
        )


class MetricThresholdModel(BaseModel):
    color: str
    min_value: float | None = None
    max_value: float | None = None

    @field_validator("color")
    @classmethod
    def _known_color(cls, v: str) -> str:
        if v not in COLORS:
            raise ValueError(f"unknown color {v!r}, expected one of {', '.join(COLORS)}")
        return v


class MetricRulesetModel(BaseModel):
    metric_key: str
    thresholds: list[MetricThresholdModel] = Field(default_factory=list)
    default_color: str = "default"

    def to_domain(self) -> MetricRuleset:
        return MetricRuleset(
            metric_key=self.metric_key,
            thresholds=tuple(
                MetricThreshold(t.color, t.min_value, t.max_value) for t in self.thresholds
            ),
            default_color=self.default_color,
        )


class EvaluationDocument(BaseModel):
    """
    A complete evaluation request.

    Every section is optional; the evaluator only reports on the sections
    that are present.
    """

    thresholds: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-document threshold overrides"
    )
    metrics: list[MetricModel] = Field(default_factory=list)
    trends: list[TrendSeriesModel] = Field(default_factory=list)
    collaborators: list[CollaboratorHealthModel] = Field(default_factory=list)
    company: CompanyHealthModel | None = None
    rulesets: list[MetricRulesetModel] = Field(default_factory=list)

    @field_validator("trends")
    @classmethod
    def _unique_trend_keys(cls, v: list[TrendSeriesModel]) -> list[TrendSeriesModel]:
        _reject_duplicates("trend key", [t.key for t in v])
        return v

    @field_validator("collaborators")
    @classmethod
    def _unique_collaborator_names(
        cls, v: list[CollaboratorHealthModel]
    ) -> list[CollaboratorHealthModel]:
        _reject_duplicates("collaborator name", [c.name for c in v])
        return v


def _reject_duplicates(label: str, names: list[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise ValueError(f"duplicate {label} {name!r}")
        seen.add(name)
