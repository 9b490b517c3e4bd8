"""
Colour rulesets for raw metric values.

A ruleset is an ordered list of value bands (optional min/max, inclusive)
for one metric key; the first band containing the value decides the colour.
Used for campaign-style metrics (CPL, CTR, CPM) that have no target but
do have known good/bad ranges.
"""

from dataclasses import dataclass, field
from typing import Sequence

DEFAULT_COLOR = "default"

COLORS = ("default", "red", "orange", "yellow", "green", "blue", "purple")


@dataclass(frozen=True)
class MetricThreshold:
    """One value band. None bounds are open."""

    color: str
    min_value: float | None = None
    max_value: float | None = None

    def contains(self, value: float) -> bool:
        if self.min_value is not None and value < self.min_value:
            return False
        if self.max_value is not None and value > self.max_value:
            return False
        return True


@dataclass(frozen=True)
class MetricRuleset:
    """Ordered bands for one metric key."""

    metric_key: str
    thresholds: tuple[MetricThreshold, ...] = field(default_factory=tuple)
    default_color: str = DEFAULT_COLOR


def metric_color(
    value: float | None, rulesets: Sequence[MetricRuleset], metric_key: str
) -> str:
    """Colour for a value under the ruleset for metric_key."""
    if value is None:
        return DEFAULT_COLOR

    ruleset = next((r for r in rulesets if r.metric_key == metric_key), None)
    if ruleset is None or not ruleset.thresholds:
        return DEFAULT_COLOR

    for threshold in ruleset.thresholds:
        if threshold.contains(value):
            return threshold.color or DEFAULT_COLOR

    return ruleset.default_color or DEFAULT_COLOR
