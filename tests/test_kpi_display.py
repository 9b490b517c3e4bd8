"""
Tests for value formatting and colour rulesets.
"""

import pytest

from lib.kpi.formatting import ValueFormat, format_value
from lib.kpi.rulesets import MetricRuleset, MetricThreshold, metric_color


class TestFormatValue:
    @pytest.mark.parametrize(
        "value,fmt,expected",
        [
            (1234.5, "BRL", "R$ 1.234,50"),
            (0, "BRL", "R$ 0,00"),
            (-2500, "BRL", "R$ -2.500,00"),
            (6.5, "PCT", "6,5%"),
            (12.345, "PCT", "12,3%"),
            (1234567, "COUNT", "1.234.567"),
            (41.6, "COUNT", "42"),
        ],
    )
    def test_formats(self, value, fmt, expected):
        assert format_value(value, fmt) == expected

    def test_none_is_dash(self):
        assert format_value(None, "BRL") == "-"

    def test_unknown_format_falls_back_to_count(self):
        assert format_value(1500, "weird") == "1.500"

    def test_parse(self):
        assert ValueFormat.parse("pct") is ValueFormat.PCT
        assert ValueFormat.parse(ValueFormat.BRL) is ValueFormat.BRL
        assert ValueFormat.parse(None) is ValueFormat.COUNT


CPL_RULES = [
    MetricRuleset(
        "cpl",
        (
            MetricThreshold("green", max_value=30),
            MetricThreshold("yellow", min_value=30, max_value=50),
            MetricThreshold("red", min_value=50),
        ),
    ),
    MetricRuleset("ctr", (MetricThreshold("green", min_value=2),), default_color="orange"),
]


class TestMetricColor:
    @pytest.mark.parametrize(
        "value,color", [(10, "green"), (30, "green"), (42.5, "yellow"), (50, "yellow"), (75, "red")]
    )
    def test_first_matching_band_wins(self, value, color):
        assert metric_color(value, CPL_RULES, "cpl") == color

    def test_ruleset_default(self):
        assert metric_color(1.0, CPL_RULES, "ctr") == "orange"

    def test_no_ruleset(self):
        assert metric_color(5, CPL_RULES, "cpm") == "default"

    def test_none_value(self):
        assert metric_color(None, CPL_RULES, "cpl") == "default"

    def test_empty_ruleset(self):
        assert metric_color(5, [MetricRuleset("cpm")], "cpm") == "default"
