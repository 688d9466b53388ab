"""
Module: payday_kernel.db.types
Responsibility: Annotated type aliases and rounding helpers for monetary
    columns.  Centralizes precision and rounding so that every model and
    calculation uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and payday_engines.  MUST NOT import from any of
    those layers.

Invariants enforced:
    - round_money() is the ONLY sanctioned rounding function for monetary
      values.  Single implicit currency, two decimal places.
    - No floats: to_money() rejects float input.

Failure modes:
    - TypeError on float passed to to_money().
    - decimal.InvalidOperation on non-numeric string.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric

# Monetary amount with high storage precision
Money = Annotated[Decimal, Numeric(38, 9)]


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Coerce an int, str or Decimal to Decimal, rejecting floats.

    Raises:
        TypeError: If value is a float (binary floating point is never
            acceptable for money).
    """
    if isinstance(value, float):
        raise TypeError(f"Float amounts are not accepted: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for monetary values.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
