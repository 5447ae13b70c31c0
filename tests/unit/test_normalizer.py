"""Unit tests for name and date normalization."""

from datetime import date

import pytest

from providerloop_chains.reconciliation.normalizer import (
    capitalize_name,
    date_from_numeric,
    date_from_parts,
    format_date,
    month_number,
    normalize_date,
    resolve_two_digit_year,
    to_date,
)


class TestCapitalizeName:
    """Tests for capitalize_name."""

    def test_collapses_whitespace_and_capitalizes_each_token(self):
        assert capitalize_name("  mary   ANNE ") == "Mary Anne"

    def test_single_word(self):
        assert capitalize_name("SMITH") == "Smith"

    def test_empty_and_none(self):
        assert capitalize_name("") == ""
        assert capitalize_name(None) == ""

    def test_is_idempotent(self):
        # Arrange
        once = capitalize_name("jOHN pAUL")

        # Act
        twice = capitalize_name(once)

        # Assert
        assert once == twice == "John Paul"


class TestTwoDigitYears:
    """Tests for the two-digit year pivot."""

    def test_years_above_pivot_are_1900s(self):
        assert resolve_two_digit_year(55) == 1955
        assert resolve_two_digit_year(99) == 1999

    def test_years_at_or_below_pivot_are_2000s(self):
        assert resolve_two_digit_year(49) == 2049
        assert resolve_two_digit_year(50) == 2050
        assert resolve_two_digit_year(0) == 2000

    def test_four_digit_years_pass_through(self):
        assert resolve_two_digit_year(1980) == 1980

    def test_normalize_date_applies_pivot(self):
        assert normalize_date("03/15/55") == "03/15/1955"
        assert normalize_date("03/15/49") == "03/15/2049"


class TestMonthNumber:
    """Tests for month name resolution."""

    @pytest.mark.parametrize(
        "value,expected",
        [("January", 1), ("jan", 1), ("Sept", 9), ("sep.", 9), ("12", 12), (7, 7)],
    )
    def test_known_months(self, value, expected):
        assert month_number(value) == expected

    @pytest.mark.parametrize("value", ["Smarch", "13", 0, "0"])
    def test_unknown_months(self, value):
        assert month_number(value) is None


class TestDateFromParts:
    """Tests for calendar validation of captured dates."""

    def test_valid_date(self):
        assert date_from_parts("March", "15", "1980") == date(1980, 3, 15)

    def test_impossible_day_returns_none(self):
        assert date_from_parts(2, 30, 1980) is None

    def test_leap_day(self):
        assert date_from_parts(2, 29, 2000) == date(2000, 2, 29)
        assert date_from_parts(2, 29, 1900) is None

    def test_numeric_is_month_first_by_default(self):
        assert date_from_numeric("03", "04", "1980") == date(1980, 3, 4)

    def test_numeric_reads_day_first_when_first_cannot_be_month(self):
        assert date_from_numeric("25", "12", "1990") == date(1990, 12, 25)


class TestNormalizeDate:
    """Tests for normalize_date and to_date."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("01/15/1980", "01/15/1980"),
            ("1/5/1980", "01/05/1980"),
            ("01-15-1980", "01/15/1980"),
            ("01.15.1980", "01/15/1980"),
            ("March 15th, 1980", "03/15/1980"),
            ("march 15 1980", "03/15/1980"),
            ("Sept 5, 1990", "09/05/1990"),
            ("Jan. 3 1975", "01/03/1975"),
            ("15 March 1980", "03/15/1980"),
            ("3rd of June 2001", "06/03/2001"),
            ("1980-03-15", "03/15/1980"),
            ("25/12/1990", "12/25/1990"),
        ],
    )
    def test_supported_forms(self, raw, expected):
        assert normalize_date(raw) == expected

    def test_iso_output_format(self):
        assert normalize_date("03/15/80", output_format="iso") == "1980-03-15"

    def test_date_found_inside_text(self):
        assert normalize_date("DOB on file: 7/4/1976 (verified)") == "07/04/1976"

    @pytest.mark.parametrize("raw", ["", "   ", None, "no date here", "02/30/1980", "13/13/1980"])
    def test_invalid_returns_none(self, raw):
        assert normalize_date(raw) is None

    def test_month_name_preferred_over_numeric(self):
        # Arrange
        text = "Visit 04/01/2024 for patient born January 5, 1960"

        # Act
        result = to_date(text)

        # Assert
        assert result == date(1960, 1, 5)

    def test_unknown_output_format_raises(self):
        with pytest.raises(ValueError, match="Unknown date output format"):
            format_date(date(1980, 1, 1), output_format="eu")
