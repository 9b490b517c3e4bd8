"""
Metric classification for KPI reporting.

Turns one metric snapshot (current value, target, direction) into a
red/yellow/green/gray status plus a progress percentage, and turns an
ordered series of period values into a trend direction.

Missing data is never an error: an absent current value classifies as
GRAY and short histories trend as STABLE.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from lib.kpi.thresholds import DEFAULT_THRESHOLDS, KpiThresholds

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Which way a metric should move."""

    HIGHER_IS_BETTER = "higher_is_better"  # MRR, revenue, client count
    LOWER_IS_BETTER = "lower_is_better"  # churn, delinquency, vacancy

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> Optional["Direction"]:
        """Parse a direction from an enum member or string. Unknown -> None."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Status(Enum):
    """Traffic-light status of a classified metric."""

    GREEN = "green"  # on or above target
    YELLOW = "yellow"  # close to target
    RED = "red"  # materially off target
    GRAY = "gray"  # not enough data to classify

    def __str__(self) -> str:
        return self.value


class TrendDirection(Enum):
    """Direction of a metric's recent movement."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MetricSnapshot:
    """One measured quantity at one point in time."""

    key: str
    current_value: float | None
    target: float | None
    direction: Direction | str = Direction.HIGHER_IS_BETTER


@dataclass(frozen=True)
class ClassifiedMetric:
    """A snapshot with its derived status and progress."""

    snapshot: MetricSnapshot
    status: Status
    progress_percent: float | None

    @property
    def key(self) -> str:
        return self.snapshot.key

    def to_dict(self) -> dict:
        direction = Direction.parse(self.snapshot.direction)
        return {
            "key": self.snapshot.key,
            "current_value": self.snapshot.current_value,
            "target": self.snapshot.target,
            "direction": direction.value if direction else str(self.snapshot.direction),
            "status": self.status.value,
            "progress_percent": (
                round(self.progress_percent, 2) if self.progress_percent is not None else None
            ),
        }


@dataclass(frozen=True)
class TrendPoint:
    """One value in a chronological series (oldest first)."""

    period_label: str
    value: float


@dataclass(frozen=True)
class TrendResult:
    """Trend direction with the window means that produced it."""

    direction: TrendDirection
    recent_mean: float | None = None
    previous_mean: float | None = None

    @property
    def delta(self) -> float | None:
        if self.recent_mean is None or self.previous_mean is None:
            return None
        return self.recent_mean - self.previous_mean

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "recent_mean": self.recent_mean,
            "previous_mean": self.previous_mean,
            "delta": self.delta,
        }


# =============================================================================
# SHARED MATH
# =============================================================================


def overshoot_percent(current: float, target: float) -> float:
    """Percent by which current exceeds target. Target must be non-zero."""
    return (current - target) / target * 100


def compliance_percent(overshoot: float) -> float:
    """'How close to compliant' for an over-target lower_is_better metric."""
    return max(0.0, 100 - overshoot)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


# =============================================================================
# CLASSIFICATION
# =============================================================================


def classify(snapshot: MetricSnapshot, config: KpiThresholds | None = None) -> ClassifiedMetric:
    """
    Classify one metric snapshot.

    higher_is_better: progress = current / target * 100, floored at 0, no
    ceiling. GREEN at >= progress.green_at, YELLOW at >= progress.yellow_at,
    RED below.

    lower_is_better: at or under target is GREEN with progress 100. Over
    target, overshoot = (current - target) / target * 100. Up to
    overshoot.yellow_max it is YELLOW with progress 100 - overshoot; beyond
    that it is RED with progress clamped to 0. A zero target with any
    positive value is RED without a progress value.
    Alerts for the same metric keep the unclamped compliance value
    max(0, 100 - overshoot) as percent_of_target.

    Absent current value, absent target or an unrecognized direction
    yields GRAY with progress None.
    """
    cfg = config or DEFAULT_THRESHOLDS
    current = snapshot.current_value
    target = snapshot.target

    if current is None:
        return ClassifiedMetric(snapshot, Status.GRAY, None)

    direction = Direction.parse(snapshot.direction)
    if direction is None:
        logger.warning(
            "Unknown direction %r for metric %s, classifying as gray",
            snapshot.direction,
            snapshot.key,
        )
        return ClassifiedMetric(snapshot, Status.GRAY, None)

    if target is None:
        return ClassifiedMetric(snapshot, Status.GRAY, None)

    if direction is Direction.HIGHER_IS_BETTER:
        if target == 0:
            logger.debug("Zero target for %s, progress undefined", snapshot.key)
            status = Status.GREEN if current >= 0 else Status.RED
            return ClassifiedMetric(snapshot, status, None)

        progress = max(0.0, current / target * 100)
        if progress >= cfg.progress.green_at:
            status = Status.GREEN
        elif progress >= cfg.progress.yellow_at:
            status = Status.YELLOW
        else:
            status = Status.RED
        return ClassifiedMetric(snapshot, status, progress)

    # lower_is_better
    if current <= target:
        return ClassifiedMetric(snapshot, Status.GREEN, 100.0)

    if target == 0:
        logger.debug("Zero target for %s exceeded by %s", snapshot.key, current)
        return ClassifiedMetric(snapshot, Status.RED, None)

    overshoot = overshoot_percent(current, target)
    if overshoot <= cfg.overshoot.yellow_max:
        return ClassifiedMetric(snapshot, Status.YELLOW, compliance_percent(overshoot))
    # Past the tolerance band the metric is out of compliance entirely.
    return ClassifiedMetric(snapshot, Status.RED, 0.0)


def classify_many(
    snapshots: Iterable[MetricSnapshot], config: KpiThresholds | None = None
) -> list[ClassifiedMetric]:
    """Classify a batch of snapshots, preserving order."""
    return [classify(s, config) for s in snapshots]


def classify_trend(
    series: Sequence[TrendPoint], config: KpiThresholds | None = None
) -> TrendResult:
    """
    Compare the mean of the most recent window against the window before it.

    The series must be chronological, oldest first. With fewer than two
    points, or nothing before the recent window, the trend is STABLE.
    Differences within the noise floor are STABLE.
    """
    cfg = config or DEFAULT_THRESHOLDS
    window = cfg.trend.window

    if len(series) < 2:
        return TrendResult(TrendDirection.STABLE)

    values = [p.value for p in series]
    recent = values[-window:]
    previous = values[max(0, len(values) - 2 * window) : len(values) - len(recent)]

    if not previous:
        return TrendResult(TrendDirection.STABLE, recent_mean=_mean(recent))

    recent_mean = _mean(recent)
    previous_mean = _mean(previous)
    delta = recent_mean - previous_mean

    if delta > cfg.trend.noise_floor:
        direction = TrendDirection.IMPROVING
    elif delta < -cfg.trend.noise_floor:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return TrendResult(direction, recent_mean=recent_mean, previous_mean=previous_mean)
