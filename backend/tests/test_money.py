from decimal import Decimal

import pytest

from utils.errors import ValidationError
from utils.money import absorb_remainder, from_cents, round_cents, running_total_cents, to_cents


def test_round_cents_half_away_from_zero():
    assert round_cents("2.345") == Decimal("2.35")
    assert round_cents("-2.345") == Decimal("-2.35")
    assert round_cents("2.344") == Decimal("2.34")
    assert round_cents(10) == Decimal("10.00")


def test_round_cents_accepts_floats_without_binary_noise():
    # 1.005 is 1.00499999... as a binary float; str() keeps the written value
    assert round_cents(1.005) == Decimal("1.01")


def test_cents_conversion():
    assert to_cents("300") == 30000
    assert to_cents(Decimal("0.015")) == 2
    assert from_cents(3334) == Decimal("33.34")
    assert from_cents(-5) == Decimal("-0.05")


def test_absorb_remainder_gives_leftover_to_last_part():
    assert absorb_remainder(10000, [3333, 3333, 3333]) == [3333, 3333, 3334]
    assert absorb_remainder(100, [50, 51]) == [50, 50]
    assert absorb_remainder(100, [7]) == [100]
    assert absorb_remainder(100, []) == []


@pytest.mark.parametrize("value", ["1e30", "not a number", Decimal("-1E+40")])
def test_unrepresentable_amounts_raise_validation_error(value):
    with pytest.raises(ValidationError):
        to_cents(value)


def test_running_total_cents_never_drifts():
    # Rounding each 0.155 on its own would give 0.16 every time
    parts = running_total_cents([Decimal("0.155")] * 4)
    assert parts == [16, 15, 16, 15]
    assert running_total_cents([Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]) == [3333, 3333, 3334]
    assert running_total_cents([]) == []
