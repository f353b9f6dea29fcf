from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Sequence, Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_cents(value: Number) -> int:
    """Convert a currency amount (dollars) to integer cents, rounding half-up."""
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def format_cents(cents: int) -> str:
    return f"${from_cents(cents)}"


def round_to_unit(value: Decimal, unit_cents: int = 1, rounding: str = ROUND_HALF_UP) -> int:
    """Round a (possibly fractional) cent value to a multiple of ``unit_cents``."""
    units = (value / Decimal(unit_cents)).quantize(Decimal("1"), rounding=rounding)
    return int(units) * unit_cents


def allocate(total_cents: int, weights: Sequence[Union[int, Decimal]]) -> list[int]:
    """Split ``total_cents`` in proportion to ``weights``.

    Every share but the last is rounded independently and the last one takes
    whatever is left. When that would push a share below zero, or above its
    own weight while the total fits inside the weights, the shares are taken
    from rounded cumulative boundaries instead, which keeps each one in range.
    Weights summing to zero split the total evenly.
    """
    if total_cents < 0:
        raise ValueError("total_cents must be non-negative")
    if not weights:
        raise ValueError("weights must not be empty")
    if any(weight < 0 for weight in weights):
        raise ValueError("weights must be non-negative")

    decimal_weights = [Decimal(weight) for weight in weights]
    weight_sum = sum(decimal_weights, Decimal(0))
    if weight_sum == 0:
        decimal_weights = [Decimal(1)] * len(weights)
        weight_sum = Decimal(len(weights))

    total = Decimal(total_cents)
    shares = [round_to_unit(total * weight / weight_sum) for weight in decimal_weights[:-1]]
    shares.append(total_cents - sum(shares))

    if _within_bounds(shares, decimal_weights, total, weight_sum):
        return shares
    return _allocate_cumulative(total, decimal_weights, weight_sum)


def _within_bounds(shares: Sequence[int], weights: Sequence[Decimal], total: Decimal, weight_sum: Decimal) -> bool:
    if any(share < 0 for share in shares):
        return False
    if total <= weight_sum:
        return all(share <= weight for share, weight in zip(shares, weights))
    return True


def _allocate_cumulative(total: Decimal, weights: Sequence[Decimal], weight_sum: Decimal) -> list[int]:
    shares: list[int] = []
    running = Decimal(0)
    previous = 0
    for weight in weights:
        running += weight
        boundary = round_to_unit(total * running / weight_sum)
        shares.append(boundary - previous)
        previous = boundary
    return shares


def split_evenly(total_cents: int, count: int) -> list[int]:
    if count <= 0:
        raise ValueError("count must be positive")
    return allocate(total_cents, [1] * count)


def decompose(totals: Sequence[int], tax_cents: int, tip_cents: int) -> list[tuple[int, int, int]]:
    """Break participant totals into (amount, tax, tip) parts.

    Tax is spread over the totals first, tip over what remains, so no part
    goes negative and each triple sums back to its total.
    """
    if tax_cents + tip_cents > sum(totals):
        raise ValueError("tax and tip exceed the amounts being decomposed")
    taxes = allocate(tax_cents, totals)
    remaining = [total - tax for total, tax in zip(totals, taxes)]
    tips = allocate(tip_cents, remaining)
    return [(rest - tip, tax, tip) for rest, tax, tip in zip(remaining, taxes, tips)]
