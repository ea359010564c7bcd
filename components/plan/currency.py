"""Conversion of plan amounts between currencies' minor units."""

import math
from decimal import Decimal
from typing import Optional, Union

from components.plan.enums import CurrencyCode

Number = Union[int, float, Decimal, str, None]

# Minor units per major unit.
MINOR_UNIT_SCALE = {
    CurrencyCode.USD: 100,  # cents
    CurrencyCode.KRW: 1,  # won
}

# Pairs priced by a rate quoted as "1 USD major = rate KRW major".
USD_QUOTED = {CurrencyCode.KRW}


def to_minor_int(value: Number) -> int:
    """Truncate ``value`` toward zero; anything non-numeric or non-finite is 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return math.trunc(number)


def _finite(value: Number) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _valid_rate(fx_rate: Number) -> Optional[float]:
    if fx_rate is None or isinstance(fx_rate, bool):
        return None
    try:
        rate = float(fx_rate)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _currency(value) -> Optional[CurrencyCode]:
    try:
        return CurrencyCode(value)
    except ValueError:
        return None


def convert_minor(
    amount_minor: Number,
    from_currency: CurrencyCode,
    to_currency: CurrencyCode,
    fx_rate: Number = None,
) -> int:
    """
    Convert ``amount_minor`` from one currency's minor units to another's.

    Only USD <-> KRW is priced. ``fx_rate`` is how many KRW one USD buys.
    Priced pairs convert the amount as given and round half up. A missing or
    non-positive rate, or an unsupported pair, returns the truncated amount
    unconverted. Non-numeric or non-finite amounts are 0.
    """
    amount = _finite(amount_minor)
    if amount is None:
        return 0
    source = _currency(from_currency)
    target = _currency(to_currency)
    if amount == 0 or source is None or target is None or source == target:
        return to_minor_int(amount_minor)

    rate = _valid_rate(fx_rate)
    if rate is None:
        return to_minor_int(amount_minor)

    # Multiply before dividing; (150.5 / 100) * 1300 is not exactly 1956.5.
    if source == CurrencyCode.USD and target in USD_QUOTED:
        return _round_half_up(amount * rate * MINOR_UNIT_SCALE[target] / MINOR_UNIT_SCALE[source])
    if target == CurrencyCode.USD and source in USD_QUOTED:
        return _round_half_up(amount * MINOR_UNIT_SCALE[target] / (rate * MINOR_UNIT_SCALE[source]))

    return to_minor_int(amount_minor)
