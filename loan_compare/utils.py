"""Utility functions for the loan comparison calculator.

This module provides helpers for turning user input into the normalized
numbers the engine expects: decimal coercion, amount shorthand such as
``50l`` or ``1cr``, tenure given in years, and extra payments made monthly,
quarterly or yearly.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

from .exceptions import InvalidLoanInput

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[int, float, str, Decimal]

AMOUNT_SUFFIXES = {
    "cr": Decimal("10000000"),
    "l": Decimal("100000"),
    "m": Decimal("1000000"),
    "k": Decimal("1000"),
}

FREQUENCY_DIVISORS = {
    "monthly": Decimal("1"),
    "quarterly": Decimal("3"),
    "yearly": Decimal("12"),
}

TENURE_UNITS = ("months", "years")


def coerce_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert ``value`` into a finite ``Decimal``.

    Floats go through ``str`` first so ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises
    ------
    InvalidLoanInput
        If the value is missing, not numeric, NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        raise InvalidLoanInput(f"{name} is required")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidLoanInput(f"Invalid numeric value for {name}: {value!r}") from exc
    if not result.is_finite():
        raise InvalidLoanInput(f"{name} must be a finite number")
    return result


def round_currency(value: Decimal) -> int:
    """Round a currency amount to the nearest whole unit (halves away from zero)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("5000000", "50,00,000") and shorthand with
    ``k`` (thousand), ``l`` (lakh), ``m`` (million) and ``cr`` (crore)
    suffixes, e.g. "50l" meaning 5_000_000.
    """
    cleaned = str(value).strip().lower().replace(",", "").replace("_", "")
    factor = Decimal("1")
    for suffix, multiplier in AMOUNT_SUFFIXES.items():
        if cleaned.endswith(suffix):
            factor = multiplier
            cleaned = cleaned[: -len(suffix)].strip()
            break
    return coerce_decimal(cleaned, "amount") * factor


def tenure_to_months(value: Number, unit: str = "months") -> int:
    """Return the tenure in whole months.

    Year values may be fractional (``2.5`` years is 30 months) and are
    rounded to the nearest month. A tenure given in months must already be
    whole.
    """
    unit = unit.lower()
    if unit not in TENURE_UNITS:
        raise InvalidLoanInput(f"Tenure unit must be one of {', '.join(TENURE_UNITS)}; got {unit}")
    tenure = coerce_decimal(value, "tenure")
    if unit == "years":
        return int((tenure * 12).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if tenure != tenure.to_integral_value():
        raise InvalidLoanInput(f"Tenure in months must be a whole number; got {value}")
    return int(tenure)


def normalize_extra_payment(amount: Number, frequency: str = "monthly") -> Decimal:
    """Convert a recurring extra payment into its effective monthly amount.

    A quarterly payment is spread over three months and a yearly one over
    twelve; the result is rounded to whole currency units.
    """
    frequency = frequency.lower()
    if frequency not in FREQUENCY_DIVISORS:
        raise InvalidLoanInput(
            f"Frequency must be one of {', '.join(FREQUENCY_DIVISORS)}; got {frequency}"
        )
    extra = coerce_decimal(amount, "extra payment")
    if extra < 0:
        raise InvalidLoanInput("Extra payment cannot be negative")
    return Decimal(round_currency(extra / FREQUENCY_DIVISORS[frequency]))
