"""
Tests for the money helpers.
"""
from decimal import Decimal

import pytest

from storefront.services.money import format_money, round2, to_decimal


class TestRound2:
    @pytest.mark.parametrize("value,expected", [
        (Decimal("1.234"), Decimal("1.23")),
        (Decimal("1.235"), Decimal("1.24")),
        (Decimal("0.125"), Decimal("0.13")),
        (Decimal("-0.125"), Decimal("-0.13")),
        (Decimal("7.5"), Decimal("7.50")),
        (0, Decimal("0.00")),
        ("157.5", Decimal("157.50")),
    ])
    def test_rounds_to_nearest_cent(self, value, expected):
        assert round2(value) == expected

    def test_result_has_two_places(self):
        assert str(round2(Decimal("3"))) == "3.00"

    def test_float_goes_through_repr(self):
        # 1.005 is 1.00499999... in binary; repr() keeps the written value
        assert round2(1.005) == Decimal("1.01")
        assert round2(0.1 + 0.2) == Decimal("0.30")

    @pytest.mark.parametrize("value", [
        Decimal("0.005"), Decimal("12.3456"), Decimal("-9.995"), Decimal("100"), 19.999,
    ])
    def test_idempotent(self, value):
        assert round2(round2(value)) == round2(value)


class TestToDecimal:
    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_decimal("twelve")

    def test_rejects_bool(self):
        with pytest.raises(TypeError):
            to_decimal(True)


class TestFormatMoney:
    @pytest.mark.parametrize("value,expected", [
        (0, "0.00"),
        (Decimal("50"), "50.00"),
        (Decimal("7.5"), "7.50"),
        (Decimal("-3.456"), "-3.46"),
        (Decimal("1234567.891"), "1234567.89"),
    ])
    def test_two_fractional_digits(self, value, expected):
        assert format_money(value) == expected

    def test_no_currency_symbol(self):
        assert "$" not in format_money(Decimal("10"))
