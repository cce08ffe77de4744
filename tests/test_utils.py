from decimal import Decimal

import pytest

from loan_compare.exceptions import InvalidLoanInput
from loan_compare.utils import (
    coerce_decimal,
    normalize_extra_payment,
    parse_amount,
    round_currency,
    tenure_to_months,
)


class TestParseAmount:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("5000000", Decimal("5000000")),
            ("50,00,000", Decimal("5000000")),
            ("50l", Decimal("5000000")),
            ("1cr", Decimal("10000000")),
            ("1.5 Cr", Decimal("15000000")),
            ("500k", Decimal("500000")),
            ("2M", Decimal("2000000")),
        ],
    )
    def test_suffixes(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "lots", "12x", "cr"])
    def test_invalid(self, text):
        with pytest.raises(InvalidLoanInput):
            parse_amount(text)


class TestCoerceDecimal:
    def test_float_goes_through_str(self):
        assert coerce_decimal(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("value", [None, True, "nan", "inf", "abc"])
    def test_rejected(self, value):
        with pytest.raises(InvalidLoanInput):
            coerce_decimal(value, "principal")


class TestRoundCurrency:
    def test_half_rounds_up(self):
        assert round_currency(Decimal("84589.5")) == 84590

    def test_rounds_down(self):
        assert round_currency(Decimal("84589.49")) == 84589


class TestTenureToMonths:
    def test_months(self):
        assert tenure_to_months(300) == 300

    def test_years(self):
        assert tenure_to_months(25, "years") == 300

    def test_fractional_years(self):
        assert tenure_to_months("2.5", "years") == 30

    def test_fractional_months_rejected(self):
        with pytest.raises(InvalidLoanInput):
            tenure_to_months("12.5")

    def test_float_whole_months(self):
        assert tenure_to_months(300.0) == 300

    def test_years_round_to_nearest_month(self):
        assert tenure_to_months("2.04", "years") == 24

    def test_unknown_unit(self):
        with pytest.raises(InvalidLoanInput):
            tenure_to_months(25, "decades")


class TestNormalizeExtraPayment:
    def test_monthly(self):
        assert normalize_extra_payment(5000) == Decimal("5000")

    def test_quarterly(self):
        assert normalize_extra_payment(10000, "quarterly") == Decimal("3333")

    def test_yearly(self):
        assert normalize_extra_payment(120000, "yearly") == Decimal("10000")

    def test_negative(self):
        with pytest.raises(InvalidLoanInput):
            normalize_extra_payment(-1)

    def test_unknown_frequency(self):
        with pytest.raises(InvalidLoanInput):
            normalize_extra_payment(1000, "weekly")
