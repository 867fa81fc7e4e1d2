"""
Period-over-period percentage change.

Rules:
- no baseline and no current value: "No change"
- no baseline but a current value: reported as +100%, whatever the size
- otherwise the relative change, rounded half-up to one decimal
- moves that round below 0.1% collapse to "No change"

Non-finite inputs are not sanitized; they flow through as NaN/inf.
"""

import math
from decimal import Decimal
from typing import Union

from ledgerwise.models.summary import ChangeType, PercentChange

Number = Union[int, float, Decimal]

NO_CHANGE = PercentChange(value=0.0, text="No change", type=ChangeType.NEUTRAL)
FULL_INCREASE = PercentChange(value=100.0, text="+100%", type=ChangeType.POSITIVE)


def _round_one_decimal(value: float) -> float:
    if not math.isfinite(value):
        return value
    # Half-up: 0.05 rounds to 0.1, -0.05 rounds to 0.0
    return math.floor(value * 10 + 0.5) / 10


def _format_percent(value: float) -> str:
    sign = "+" if value > 0 else ""
    if math.isfinite(value) and value == int(value):
        return f"{sign}{int(value)}%"
    return f"{sign}{value}%"


def percent_change(current: Number, previous: Number) -> PercentChange:
    """Relative change from `previous` to `current`."""
    current = float(current)
    previous = float(previous)

    if previous == 0:
        if current == 0:
            return NO_CHANGE
        return FULL_INCREASE

    rounded = _round_one_decimal((current - previous) / previous * 100)

    if abs(rounded) < 0.1:
        return NO_CHANGE

    return PercentChange(
        value=rounded,
        text=_format_percent(rounded),
        type=ChangeType.POSITIVE if rounded > 0 else ChangeType.NEGATIVE,
    )
