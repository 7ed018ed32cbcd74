"""Fixed-precision money helpers.

Amounts travel through the API as ``Decimal`` and are stored as integer cents.
All rounding is half-away-from-zero to two places.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.errors import ValidationError


CENT = Decimal("0.01")

# Balances within this distance of zero count as settled
SETTLED_TOLERANCE = CENT


def round_cents(value) -> Decimal:
    """Round to 2 decimal places, half away from zero (2.345 -> 2.35, -2.345 -> -2.35)."""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # Not a number, or too many digits to hold to the cent
        raise ValidationError(f"Amount {value} is not a valid money amount")


def to_cents(value) -> int:
    """Convert a decimal amount to integer cents, rounding as ``round_cents``."""
    return int(round_cents(value) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a 2-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def running_total_cents(values: list[Decimal]) -> list[int]:
    """
    Cents for each value, rounding the running total instead of each value.

    Each part is the difference between consecutive rounded running totals,
    so rounding error never accumulates: every part stays within a cent of
    its exact value and non-negative values never produce a negative part.
    """
    parts = []
    running = Decimal(0)
    allocated = 0
    for value in values:
        running += value
        cents = to_cents(running)
        parts.append(cents - allocated)
        allocated = cents
    return parts


def absorb_remainder(total_cents: int, parts: list[int]) -> list[int]:
    """
    Make ``parts`` sum to ``total_cents`` exactly.

    The last entry absorbs whatever the other entries leave over, so the
    ordering of ``parts`` must be deterministic for the result to be
    reproducible.
    """
    if not parts:
        return []
    head = parts[:-1]
    return head + [total_cents - sum(head)]
