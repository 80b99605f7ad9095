from __future__ import annotations

from decimal import Decimal

from ecf.utils.formatters import format_amount, format_dop, round_amount, to_decimal


class TestToDecimal:
    def test_float_has_no_binary_noise(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self):
        d = Decimal("1.005")
        assert to_decimal(d) is d


class TestRoundAmount:
    def test_half_up(self):
        assert round_amount("2.675") == Decimal("2.68")

    def test_half_up_negative(self):
        assert round_amount("-0.125") == Decimal("-0.13")

    def test_four_places(self):
        assert round_amount("58.123456", 4) == Decimal("58.1235")


class TestFormatAmount:
    def test_pads(self):
        assert format_amount("1000") == "1000.00"

    def test_rounds(self):
        assert format_amount("0.045") == "0.05"

    def test_four_places(self):
        assert format_amount("58.5", 4) == "58.5000"


class TestFormatDop:
    def test_simple(self):
        assert format_dop("1180") == "RD$ 1,180.00"

    def test_small(self):
        assert format_dop("5.5") == "RD$ 5.50"

    def test_zero(self):
        assert format_dop("0") == "RD$ 0.00"

    def test_large(self):
        assert format_dop("1234567.891") == "RD$ 1,234,567.89"
