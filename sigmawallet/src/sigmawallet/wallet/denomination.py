"""
Sigma coin denominations and conversions between them and raw amounts.
"""

from __future__ import annotations

from decimal import Decimal, Inexact, InvalidOperation, localcontext
from enum import IntEnum

from sigmawallet.constants import COIN
from sigmawallet.wallet.errors import Err, FailureReason, InvalidDenominationError, Ok, Result


class Denomination(IntEnum):
    """Allowed face values. The enum value is the amount in base units."""

    D0_1 = COIN // 10
    D0_5 = COIN // 2
    D1 = COIN
    D10 = 10 * COIN
    D100 = 100 * COIN

    @property
    def amount(self) -> int:
        return int(self.value)

    def __str__(self) -> str:
        return _DENOMINATION_STRINGS[self]

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


_DENOMINATION_STRINGS: dict[Denomination, str] = {
    Denomination.D0_1: "0.1",
    Denomination.D0_5: "0.5",
    Denomination.D1: "1",
    Denomination.D10: "10",
    Denomination.D100: "100",
}

_STRING_DENOMINATIONS = {text: denom for denom, text in _DENOMINATION_STRINGS.items()}

# Largest first, the order greedy decomposition and coin selection walk in
DENOMINATIONS_DESCENDING: tuple[Denomination, ...] = tuple(
    sorted(Denomination, key=int, reverse=True)
)
SMALLEST_DENOMINATION = min(Denomination)
LARGEST_DENOMINATION = max(Denomination)


def denomination_to_amount(denomination: Denomination) -> int:
    return int(denomination)


def amount_to_denomination(amount: int) -> Result[Denomination]:
    """Map an amount in base units onto a denomination."""
    try:
        return Ok(Denomination(amount))
    except ValueError:
        return Err(FailureReason.INVALID_DENOMINATION, f"{amount} is not a denomination")


def string_to_denomination(text: str) -> Result[Denomination]:
    """Parse the canonical string form ("0.1", "0.5", "1", "10", "100")."""
    denomination = _STRING_DENOMINATIONS.get(text.strip())
    if denomination is None:
        return Err(FailureReason.INVALID_DENOMINATION, f"{text!r} is not a denomination")
    return Ok(denomination)


def decimal_to_amount(value: Decimal | float | int | str) -> int:
    """
    Convert a coin quantity (e.g. ``Decimal("0.5")``) to base units.

    Raises:
        InvalidDenominationError: If the value is not a finite number with at
            most 8 decimal places
    """
    try:
        quantity = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidDenominationError(f"{value!r} is not a number") from e

    if not quantity.is_finite():
        raise InvalidDenominationError(f"{value!r} is not a finite number")

    try:
        with localcontext() as ctx:
            ctx.traps[Inexact] = True
            amount = quantity * COIN
    except Inexact as e:
        raise InvalidDenominationError(f"{value!r} has more precision than the base unit") from e
    if amount != amount.to_integral_value():
        raise InvalidDenominationError(f"{value!r} has more precision than the base unit")
    return int(amount)


def decimal_to_denomination(value: Decimal | float | int | str) -> Result[Denomination]:
    """Real-number variant of :func:`amount_to_denomination`."""
    try:
        amount = decimal_to_amount(value)
    except InvalidDenominationError as e:
        return Err(FailureReason.INVALID_DENOMINATION, str(e))
    return amount_to_denomination(amount)


def denomination_to_decimal(denomination: Denomination) -> Decimal:
    return Decimal(int(denomination)) / COIN


def round_up_to_smallest(amount: int) -> int:
    """Round an amount up to the nearest multiple of the smallest denomination."""
    unit = int(SMALLEST_DENOMINATION)
    return -(-amount // unit) * unit


def decompose_amount(amount: int) -> list[Denomination]:
    """
    Split an amount into the fewest denominations, largest first.

    Greedy is optimal here because every face value divides the next larger one.

    Raises:
        InvalidDenominationError: If the amount is negative or not a multiple
            of the smallest denomination
    """
    if amount < 0:
        raise InvalidDenominationError(f"Cannot decompose negative amount {amount}")
    if amount % int(SMALLEST_DENOMINATION) != 0:
        raise InvalidDenominationError(
            f"{amount} is not a multiple of the smallest denomination {SMALLEST_DENOMINATION}"
        )

    result: list[Denomination] = []
    remaining = amount
    for denomination in DENOMINATIONS_DESCENDING:
        count, remaining = divmod(remaining, int(denomination))
        result.extend([denomination] * count)
    return result


def format_amount(amount: int) -> str:
    """Human readable coin quantity, e.g. 11175000000 -> '111.75'."""
    quantity = Decimal(amount) / COIN
    return f"{quantity.normalize():f}"
