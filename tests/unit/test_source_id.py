"""Unit tests for Source ID derivation and parsing."""

import pytest

from providerloop_chains.models.patient import PatientIdentity
from providerloop_chains.reconciliation.source_id import derive_source_id, parse_source_id
from providerloop_chains.utils.exceptions import ValidationError


class TestDeriveSourceId:
    """Tests for derive_source_id."""

    def test_basic_source_id(self):
        assert derive_source_id("Smith", "John", "01/15/1980") == "Smith_John__01_15_1980"

    def test_inputs_are_normalized(self):
        # Arrange - messy capitalization and a month-name date
        result = derive_source_id("  smith ", "JOHN", "January 15th, 1980")

        # Assert
        assert result == "Smith_John__01_15_1980"

    def test_multi_word_names_use_underscores(self):
        result = derive_source_id("van der berg", "mary ann", "1/2/1990")

        assert result == "Van_Der_Berg_Mary_Ann__01_02_1990"

    def test_same_inputs_same_output(self):
        first = derive_source_id("Lee", "Ann", "12/31/1999")
        second = derive_source_id("Lee", "Ann", "12/31/1999")

        assert first == second == "Lee_Ann__12_31_1999"

    @pytest.mark.parametrize(
        "last,first,dob",
        [
            ("", "John", "01/15/1980"),
            ("Smith", None, "01/15/1980"),
            ("Smith", "John", ""),
            ("Smith", "John", "   "),
            (None, None, None),
        ],
    )
    def test_missing_field_returns_none(self, last, first, dob):
        assert derive_source_id(last, first, dob) is None

    def test_invalid_date_raises(self):
        with pytest.raises(ValidationError, match="Invalid date of birth"):
            derive_source_id("Smith", "John", "sometime in spring")

    def test_impossible_date_raises(self):
        with pytest.raises(ValidationError):
            derive_source_id("Smith", "John", "02/30/1980")


class TestParseSourceId:
    """Tests for parse_source_id."""

    def test_parse(self):
        identity = parse_source_id("Smith_John__01_15_1980")

        assert identity == PatientIdentity(
            first_name="John", last_name="Smith", date_of_birth="01/15/1980"
        )

    def test_round_trip_for_single_word_names(self):
        source_id = derive_source_id("Garcia", "Maria", "07/04/1976")

        identity = parse_source_id(source_id)

        assert identity.source_id == source_id

    def test_first_underscore_splits_last_from_first(self):
        # Multi-word last names cannot be told apart from multi-word first names
        identity = parse_source_id("Van_Der_Berg_Mary__01_02_1990")

        assert identity.last_name == "Van"
        assert identity.first_name == "Der Berg Mary"

    @pytest.mark.parametrize(
        "value",
        ["", "SmithJohn__01_15_1980", "Smith_John_01_15_1980", "Smith_John__1_15_1980",
         "Smith_John__02_30_1980"],
    )
    def test_invalid_source_ids(self, value):
        with pytest.raises(ValidationError):
            parse_source_id(value)


class TestPatientIdentity:
    """Tests for PatientIdentity helpers."""

    def test_complete_identity(self):
        identity = PatientIdentity("John", "Smith", "01/15/1980")

        assert identity.is_complete
        assert identity.missing_fields == []
        assert identity.source_id == "Smith_John__01_15_1980"

    def test_incomplete_identity(self):
        identity = PatientIdentity(first_name="John", last_name="  ")

        assert not identity.is_complete
        assert identity.missing_fields == ["last_name", "date_of_birth"]
        assert identity.source_id is None
