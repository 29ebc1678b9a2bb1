"""Tests for cr_common.cents — integer arithmetic utilities."""

from decimal import Decimal

import pytest

from src.cr_common.cents import (
    calculate_fee,
    cents_to_display,
    div_round_half_up,
    to_cents,
)


class TestToCents:
    def test_two_decimals(self) -> None:
        assert to_cents(Decimal("12.34")) == 1234

    def test_whole_amount(self) -> None:
        assert to_cents(Decimal("100")) == 10000

    def test_one_cent(self) -> None:
        assert to_cents(Decimal("0.01")) == 1

    def test_trailing_zero_third_place_ok(self) -> None:
        assert to_cents(Decimal("1.500")) == 150

    def test_fractional_cent_raises(self) -> None:
        with pytest.raises(ValueError, match="2 decimal places"):
            to_cents(Decimal("1.005"))


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "65.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "0.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "0.01"

    def test_large(self) -> None:
        assert cents_to_display(150000) == "1,500.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-12.00"


class TestDivRoundHalfUp:
    def test_rounds_down_below_half(self) -> None:
        # 10000 / 3 = 3333.33 → 3333
        assert div_round_half_up(10000, 3) == 3333

    def test_half_rounds_up(self) -> None:
        assert div_round_half_up(5, 2) == 3

    def test_above_half_rounds_up(self) -> None:
        # 200 / 3 = 66.67 → 67
        assert div_round_half_up(200, 3) == 67

    def test_small_numerator(self) -> None:
        assert div_round_half_up(1, 3) == 0

    def test_exact(self) -> None:
        assert div_round_half_up(300, 3) == 100

    def test_zero_denominator_raises(self) -> None:
        with pytest.raises(ValueError, match="denominator"):
            div_round_half_up(1, 0)

    def test_negative_numerator_raises(self) -> None:
        with pytest.raises(ValueError, match="numerator"):
            div_round_half_up(-1, 3)


class TestCalculateFee:
    def test_basic(self) -> None:
        # 10000 * 50 / 10000 = 50
        assert calculate_fee(10000, 50) == 50

    def test_rounds_half_up(self) -> None:
        # 150 * 100 / 10000 = 1.5 → 2
        assert calculate_fee(150, 100) == 2

    def test_rounds_down(self) -> None:
        # 140 * 100 / 10000 = 1.4 → 1
        assert calculate_fee(140, 100) == 1

    def test_zero_fee_rate(self) -> None:
        assert calculate_fee(6500, 0) == 0

    def test_zero_value(self) -> None:
        assert calculate_fee(0, 20) == 0
