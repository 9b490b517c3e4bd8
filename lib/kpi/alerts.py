"""
Alert aggregation for off-target metrics.

Scans a batch of metrics against their targets and returns a ranked list
of alerts: every CRITICAL before every WARNING, and within a severity the
lowest percent-of-target first. The sort is stable, so ties keep input
order. Metrics without data never alert.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from lib.kpi.classifier import Direction, compliance_percent, overshoot_percent
from lib.kpi.formatting import ValueFormat, format_value
from lib.kpi.thresholds import DEFAULT_THRESHOLDS, KpiThresholds

logger = logging.getLogger(__name__)


class AlertSeverity(Enum):
    """Alert severity levels."""

    CRITICAL = "critical"  # materially off target
    WARNING = "warning"  # near target

    def __str__(self) -> str:
        return self.value


_SEVERITY_RANK = {AlertSeverity.CRITICAL: 0, AlertSeverity.WARNING: 1}


@dataclass(frozen=True)
class AlertInput:
    """One metric offered to the aggregator."""

    name: str
    current_value: float | None
    target: float | None
    direction: Direction | str = Direction.HIGHER_IS_BETTER
    format: ValueFormat | str = ValueFormat.COUNT

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AlertInput":
        return cls(
            name=data["name"],
            current_value=data.get("current_value"),
            target=data.get("target"),
            direction=data.get("direction", Direction.HIGHER_IS_BETTER),
            format=data.get("format", ValueFormat.COUNT),
        )


@dataclass(frozen=True)
class AlertItem:
    """A metric that is materially off target."""

    name: str
    current_value: float | None
    target: float
    percent_of_target: float
    severity: AlertSeverity
    direction: Direction
    format: ValueFormat = ValueFormat.COUNT

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "current_value": self.current_value,
            "target": self.target,
            "percent_of_target": round(self.percent_of_target, 2),
            "severity": self.severity.value,
            "direction": self.direction.value,
            "format": self.format.value,
            "current_display": format_value(self.current_value, self.format),
            "target_display": format_value(self.target, self.format),
        }


def evaluate_alert(item: AlertInput, config: KpiThresholds | None = None) -> AlertItem | None:
    """
    Decide whether one metric alerts.

    higher_is_better: percent_of_target = current / target * 100; below
    progress.yellow_at is CRITICAL, below progress.green_at is WARNING.

    lower_is_better: over target, percent_of_target = max(0, 100 - overshoot);
    overshoot above overshoot.yellow_max is CRITICAL, otherwise WARNING.

    Returns None when the metric is on target or lacks data.
    """
    cfg = config or DEFAULT_THRESHOLDS
    current = item.current_value
    target = item.target

    if current is None or target is None:
        return None

    direction = Direction.parse(item.direction)
    if direction is None:
        logger.warning("Unknown direction %r for alert %s, skipping", item.direction, item.name)
        return None

    fmt = ValueFormat.parse(item.format)

    if direction is Direction.HIGHER_IS_BETTER:
        if target == 0:
            return None
        pct = current / target * 100
        if pct >= cfg.progress.green_at:
            return None
        severity = AlertSeverity.CRITICAL if pct < cfg.progress.yellow_at else AlertSeverity.WARNING
        return AlertItem(item.name, current, target, pct, severity, direction, fmt)

    if current <= target:
        return None

    if target == 0:
        return AlertItem(item.name, current, target, 0.0, AlertSeverity.CRITICAL, direction, fmt)

    overshoot = overshoot_percent(current, target)
    severity = (
        AlertSeverity.CRITICAL if overshoot > cfg.overshoot.yellow_max else AlertSeverity.WARNING
    )
    return AlertItem(
        item.name, current, target, compliance_percent(overshoot), severity, direction, fmt
    )


def compute_alerts(
    items: Iterable[AlertInput | Mapping[str, Any]], config: KpiThresholds | None = None
) -> list[AlertItem]:
    """
    Build the ranked alert list for a batch of metrics.

    Inputs are not modified; a new list is returned on every call.
    """
    alerts = []
    for item in items:
        if not isinstance(item, AlertInput):
            item = AlertInput.from_mapping(item)
        alert = evaluate_alert(item, config)
        if alert is not None:
            alerts.append(alert)

    alerts.sort(key=lambda a: (_SEVERITY_RANK[a.severity], a.percent_of_target))
    return alerts
