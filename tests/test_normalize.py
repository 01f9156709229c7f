"""Tests for the normalize module: amount coercion, dates, payroll months."""
import math
from datetime import date, datetime

import pytest

from finance_insights.normalize import (
    normalize,
    parse_date,
    parse_month,
    parse_year,
    period_key,
    period_label,
    round_half_up,
    split_period_key,
    text_or,
)


class TestNormalize:
    """Tests for normalize()."""

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "12abc", [], {}, object()])
    def test_unparsable_values_become_zero(self, value):
        """Missing and non-numeric values coerce to 0."""
        assert normalize(value) == 0.0

    def test_numeric_strings_are_parsed(self):
        assert normalize("1500") == 1500.0
        assert normalize(" 12.5 ") == 12.5

    def test_numbers_pass_through(self):
        assert normalize(42) == 42.0
        assert normalize(3.25) == 3.25

    def test_negative_values_are_not_clamped(self):
        """Sign is not enforced by the normalizer."""
        assert normalize(-50) == -50.0
        assert normalize("-7.5") == -7.5

    def test_nan_and_infinity_become_zero(self):
        assert normalize(float("nan")) == 0.0
        assert normalize(float("inf")) == 0.0
        assert normalize("NaN") == 0.0
        assert normalize("-Infinity") == 0.0

    def test_booleans_become_zero(self):
        assert normalize(True) == 0.0
        assert normalize(False) == 0.0

    def test_currency_symbols_are_not_parsed(self):
        assert normalize("$1,000") == 0.0

    def test_result_is_never_nan(self):
        for value in [None, "x", float("nan"), "1e400", 10 ** 400]:
            assert not math.isnan(normalize(value))


class TestRoundHalfUp:
    """Tests for round_half_up()."""

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3.0
        assert round_half_up(3.5) == 4.0

    def test_below_half_rounds_down(self):
        assert round_half_up(987.4) == 987.0


class TestParseDate:
    """Tests for parse_date()."""

    def test_iso_timestamp_with_z_suffix(self):
        assert parse_date("2024-03-15T10:30:00.000Z") == date(2024, 3, 15)

    def test_plain_formats(self):
        assert parse_date("2024-03-15") == date(2024, 3, 15)
        assert parse_date("03/15/2024") == date(2024, 3, 15)
        assert parse_date("20240315") == date(2024, 3, 15)

    def test_date_objects(self):
        assert parse_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_date(datetime(2024, 1, 2, 9, 0)) == date(2024, 1, 2)

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-45", True])
    def test_invalid_dates_return_none(self, value):
        assert parse_date(value) is None


class TestParseMonth:
    """Tests for parse_month()."""

    def test_full_names_and_abbreviations(self):
        assert parse_month("January") == 1
        assert parse_month("dec") == 12
        assert parse_month("Sept") == 9

    def test_numeric_months(self):
        assert parse_month("03") == 3
        assert parse_month(11) == 11

    @pytest.mark.parametrize("value", [None, "", "13", 0, "Janx", 2.5, "Smarch"])
    def test_invalid_months_return_none(self, value):
        assert parse_month(value) is None


class TestPeriods:
    """Tests for year parsing and period keys."""

    def test_parse_year(self):
        assert parse_year("2024") == 2024
        assert parse_year(2023) == 2023
        assert parse_year("abc") is None
        assert parse_year(24) is None

    def test_period_key_round_trip(self):
        assert period_key(2024, 3) == "2024-03"
        assert split_period_key("2024-03") == (2024, 3)

    def test_period_label(self):
        assert period_label(2024, 3) == "Mar 2024"

    def test_text_or_defaults_blank_values(self):
        assert text_or(None, "Unknown") == "Unknown"
        assert text_or("  ", "Unknown") == "Unknown"
        assert text_or(" Card ", "Unknown") == "Card"
