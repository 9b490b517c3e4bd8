"""
Display formatting for KPI values (pt-BR conventions).
"""

from enum import Enum


class ValueFormat(Enum):
    """How a metric value is displayed."""

    BRL = "BRL"  # currency, R$ 1.234,56
    COUNT = "COUNT"  # integer count, 1.234
    PCT = "PCT"  # percentage points, 6,5%

    @classmethod
    def parse(cls, value) -> "ValueFormat":
        """Parse a format name. Unknown or missing -> COUNT."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        return cls.COUNT


MISSING = "-"


def _pt_br_number(value: float, decimals: int) -> str:
    formatted = f"{abs(value):,.{decimals}f}"  # 1,234.56
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{formatted}" if value < 0 else formatted


def format_value(value: float | None, fmt: ValueFormat | str = ValueFormat.COUNT) -> str:
    """Format a value for display; None renders as '-'."""
    if value is None:
        return MISSING

    kind = ValueFormat.parse(fmt)
    if kind is ValueFormat.BRL:
        return f"R$ {_pt_br_number(value, 2)}"
    if kind is ValueFormat.PCT:
        return f"{_pt_br_number(value, 1)}%"
    return _pt_br_number(round(value), 0)
