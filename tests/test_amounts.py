import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from amounts import add_amounts, format_amount, parse_amount, subtract_amounts
from errors import AmountOverflow, InvalidAmount


class TestParseAmount:
    @pytest.mark.parametrize("literal, expected", [
        ("5", Decimal("5")),
        ("5.0", Decimal("5.0")),
        (" 1.2345 ", Decimal("1.2345")),
        (".5", Decimal("0.5")),
        ("12.", Decimal("12")),
        ("+3.25", Decimal("3.25")),
        ("0", Decimal("0")),
    ])
    def test_valid(self, literal, expected):
        assert parse_amount(literal) == expected

    @pytest.mark.parametrize("literal", [
        "",
        "   ",
        "abc",
        "1.2.3",
        "1e3",
        "NaN",
        "Infinity",
        "-1",
        "-0",
        "-0.0001",
        "1.23456",
        "0.00001",
        "\u0665",
        "1.\u0665",
        "\uff11\uff12",
        "12345678901234567890123456789",
        "12345678901234567890123456789.1234",
    ])
    def test_invalid(self, literal):
        with pytest.raises(InvalidAmount):
            parse_amount(literal)

    def test_invalid_amount_is_value_error(self):
        with pytest.raises(ValueError):
            parse_amount("-5")

    def test_arithmetic_is_exact(self):
        total = parse_amount("0.0001") + parse_amount("1.2345") - parse_amount("0.2346")
        assert total == Decimal("1.0000")

    def test_accepts_28_significant_digits(self):
        assert parse_amount("999999999999999999999999.9999") == Decimal("999999999999999999999999.9999")

    def test_too_many_digits_is_not_rounded(self):
        with pytest.raises(InvalidAmount, match="significant digits"):
            parse_amount("1234567890123456789012345678.9")


class TestFormatAmount:
    @pytest.mark.parametrize("value, expected", [
        (Decimal("3.5000"), "3.5"),
        (Decimal("10.0"), "10"),
        (Decimal("0"), "0"),
        (Decimal("0.0000"), "0"),
        (Decimal("1.2345"), "1.2345"),
        (Decimal("100"), "100"),
        (Decimal("1.000000000000000000000000000E+24"), "1000000000000000000000000"),
    ])
    def test_format(self, value, expected):
        assert format_amount(value) == expected


class TestLedgerArithmetic:
    def test_add_is_exact(self):
        assert add_amounts(Decimal("99999999999999999999999.0001"), Decimal("0.0001")) == Decimal(
            "99999999999999999999999.0002"
        )

    def test_subtract_is_exact(self):
        assert subtract_amounts(Decimal("1.2345"), Decimal("0.2345")) == Decimal("1")

    def test_add_overflow_raises(self):
        with pytest.raises(AmountOverflow):
            add_amounts(Decimal("999999999999999999999999.9999"), Decimal("0.0002"))

    def test_subtract_overflow_raises(self):
        with pytest.raises(AmountOverflow):
            subtract_amounts(Decimal("999999999999999999999999.9999"), Decimal("-0.0002"))

    def test_dropping_trailing_zeros_is_not_overflow(self):
        assert add_amounts(Decimal("999999999999999999999999.9999"), Decimal("0.0001")) == Decimal(
            "1000000000000000000000000"
        )

    def test_overflow_is_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            add_amounts(Decimal("0.0001"), Decimal("9" * 28))
