"""
Period rollups for monthly KPI series.

Monthly values are keyed "YYYY-MM". A period is a single month, a quarter
(Q1-Q4) or YTD. Flow metrics (revenue, new MRR) sum over the period;
stock metrics (active clients, MRR) take the period's end month;
percentage metrics average the months that have data.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from lib.kpi.classifier import Direction, MetricSnapshot, Status, classify
from lib.kpi.formatting import ValueFormat
from lib.kpi.thresholds import KpiThresholds

logger = logging.getLogger(__name__)


class PeriodType(Enum):
    """How monthly values combine into a period value."""

    MONTH_SUM = "month_sum"  # flows: sum the months
    MONTH_END = "month_end"  # stocks: value at the period's last month


QUARTERS = ("Q1", "Q2", "Q3", "Q4")
YTD = "YTD"

_QUARTER_MONTHS = {"Q1": (1, 2, 3), "Q2": (4, 5, 6), "Q3": (7, 8, 9), "Q4": (10, 11, 12)}


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _is_month_key(period: str) -> bool:
    return len(period) == 7 and period[4] == "-" and period[:4].isdigit() and period[5:].isdigit()


def months_for_period(period: str, year: int, up_to_month: str | None = None) -> list[str]:
    """
    Month keys covered by a period.

    YTD runs January through up_to_month (December if not given). An
    unrecognized period covers no months.
    """
    if _is_month_key(period):
        return [period]

    all_months = [month_key(year, m) for m in range(1, 13)]

    if period == YTD:
        end = up_to_month or all_months[-1]
        if end not in all_months:
            return all_months
        return all_months[: all_months.index(end) + 1]

    if period in _QUARTER_MONTHS:
        return [month_key(year, m) for m in _QUARTER_MONTHS[period]]

    return []


def end_month_for_period(period: str, year: int, up_to_month: str | None = None) -> str:
    """Last month of a period."""
    if _is_month_key(period):
        return period
    if period == YTD:
        return up_to_month or month_key(year, 12)
    if period in _QUARTER_MONTHS:
        return month_key(year, _QUARTER_MONTHS[period][-1])
    return month_key(year, 12)


def last_available_month(values: Mapping[str, float | None], year: int) -> str | None:
    """Latest month of the year with a value."""
    prefix = f"{year:04d}-"
    months = sorted(k for k, v in values.items() if k.startswith(prefix) and v is not None)
    return months[-1] if months else None


def compute_period_value(
    values: Mapping[str, float | None],
    period: str,
    year: int,
    period_type: PeriodType | str = PeriodType.MONTH_SUM,
    unit: ValueFormat | str = ValueFormat.BRL,
    up_to_month: str | None = None,
) -> float | None:
    """
    Aggregate monthly values into one period value.

    Returns None when no month in the period has data, or when a
    month_end period has no value at its end month.
    """
    period_type = PeriodType(period_type)
    unit = ValueFormat.parse(unit)

    if period == YTD and period_type is PeriodType.MONTH_END and not up_to_month:
        up_to_month = last_available_month(values, year) or month_key(year, 12)

    months = months_for_period(period, year, up_to_month)
    present = [values[m] for m in months if values.get(m) is not None]
    if not present:
        return None

    if unit is ValueFormat.PCT:
        return sum(present) / len(present)

    if period_type is PeriodType.MONTH_END:
        return values.get(end_month_for_period(period, year, up_to_month))

    return sum(present)


def compute_quarter_rollups(
    values: Mapping[str, float | None],
    year: int,
    period_type: PeriodType | str = PeriodType.MONTH_SUM,
    unit: ValueFormat | str = ValueFormat.BRL,
) -> dict[str, float | None]:
    """Q1-Q4 and YTD values for one series."""
    result = {q: compute_period_value(values, q, year, period_type, unit) for q in QUARTERS}
    result[YTD] = compute_period_value(values, YTD, year, period_type, unit)
    return result


def compute_variance(
    actual: float | None, plan: float | None
) -> tuple[float | None, float | None]:
    """(actual - plan, percent variance). Percent is None for a zero plan."""
    if actual is None or plan is None:
        return None, None
    variance = actual - plan
    variance_pct = variance / plan * 100 if plan != 0 else None
    return variance, variance_pct


@dataclass(frozen=True)
class RollupResult:
    """Plan vs actual for one metric over one period."""

    metric_key: str
    period: str
    plan: float | None
    actual: float | None
    variance: float | None
    variance_pct: float | None
    status: Status

    def to_dict(self) -> dict:
        return {
            "metric_key": self.metric_key,
            "period": self.period,
            "plan": self.plan,
            "actual": self.actual,
            "variance": self.variance,
            "variance_pct": round(self.variance_pct, 2) if self.variance_pct is not None else None,
            "status": self.status.value,
        }


def compute_rollup(
    metric_key: str,
    period: str,
    actual_values: Mapping[str, float | None],
    plan_values: Mapping[str, float | None],
    year: int,
    direction: Direction | str = Direction.HIGHER_IS_BETTER,
    period_type: PeriodType | str = PeriodType.MONTH_SUM,
    unit: ValueFormat | str = ValueFormat.BRL,
    config: KpiThresholds | None = None,
) -> RollupResult:
    """
    Roll plan and actual series up to a period and classify the result.

    For YTD stock metrics both series are cut at the last month with
    actuals, so plan and actual describe the same point in time.
    """
    up_to_month = None
    if period == YTD and PeriodType(period_type) is PeriodType.MONTH_END:
        up_to_month = last_available_month(actual_values, year)

    plan = compute_period_value(plan_values, period, year, period_type, unit, up_to_month)
    actual = compute_period_value(actual_values, period, year, period_type, unit, up_to_month)
    variance, variance_pct = compute_variance(actual, plan)

    classified = classify(MetricSnapshot(metric_key, actual, plan, direction), config)
    logger.debug(
        "Rollup %s %s: plan=%s actual=%s status=%s",
        metric_key,
        period,
        plan,
        actual,
        classified.status,
    )
    return RollupResult(metric_key, period, plan, actual, variance, variance_pct, classified.status)
