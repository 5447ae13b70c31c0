"""Unit tests for patient identity recognition in transcripts."""

import pytest

from providerloop_chains.reconciliation.transcript import (
    DATE_PATTERNS,
    NAME_PATTERNS,
    extract_date_of_birth,
    extract_name,
    extract_patient_info,
)


class TestPatternTables:
    """Tests for the ordering of the pattern tables."""

    def test_name_pattern_order(self):
        labels = [label for label, _ in NAME_PATTERNS]
        assert labels == [
            "patient_is",
            "name_is",
            "first_last_name",
            "honorific",
            "is_the_patient",
            "speaking_with",
        ]

    def test_month_name_date_patterns_come_before_numeric(self):
        labels = [label for label, _, _ in DATE_PATTERNS]
        assert labels.index("keyword_month_name") < labels.index("keyword_numeric")
        assert labels.index("month_name") < labels.index("numeric")


class TestExtractName:
    """Tests for extract_name."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Patient is john SMITH, born 01/15/1980", ("John", "Smith")),
            ("The patient named Maria Lopez came in today", ("Maria", "Lopez")),
            ("Hi, my name is jane doe", ("Jane", "Doe")),
            ("First name is Maria, last name is Garcia", ("Maria", "Garcia")),
            ("Good morning Mrs. Ann Lee", ("Ann", "Lee")),
            ("Robert Brown is the patient", ("Robert", "Brown")),
            ("I am speaking with Alice Walker today", ("Alice", "Walker")),
            ("We are treating Omar Haddad for a sprain", ("Omar", "Haddad")),
            ("Patient is Mary-Kate O'Neil", ("Mary-kate", "O'neil")),
            ("Patient is named Carl Reyes", ("Carl", "Reyes")),
            ("Patient name is John Smith", ("John", "Smith")),
        ],
    )
    def test_recognized_phrasings(self, text, expected):
        assert extract_name(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("The patient reports chest pain", None),
            ("The patient has a cough. My name is Jane Doe", ("Jane", "Doe")),
            ("Patient presents with fever, name is Ray Cole", ("Ray", "Cole")),
        ],
    )
    def test_clinical_words_after_patient_are_not_a_name(self, text, expected):
        assert extract_name(text) == expected

    def test_name_is_checked_before_honorific(self):
        # Arrange - the honorific appears first in the text
        text = "Mr. Tom Jones, my name is Ann Lee"

        # Act
        result = extract_name(text)

        # Assert
        assert result == ("Ann", "Lee")

    def test_first_matching_pattern_wins(self):
        # Arrange - both "patient is" and an honorific are present
        text = "Mr. Tom Jones called about his mother. Patient is Ruth Jones."

        # Act
        result = extract_name(text)

        # Assert - patient_is is checked first even though the honorific appears earlier
        assert result == ("Ruth", "Jones")

    def test_no_name(self):
        assert extract_name("The weather is nice today") is None
        assert extract_name("") is None


class TestExtractDateOfBirth:
    """Tests for extract_date_of_birth."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("born 01/15/1980", "01/15/1980"),
            ("born on March 3rd, 1975", "03/03/1975"),
            ("date of birth is 7-4-1976", "07/04/1976"),
            ("DOB: 12/1/64", "12/01/1964"),
            ("her birthday is Sept 9 2001", "09/09/2001"),
            ("seen for follow up, June 2 1990", "06/02/1990"),
            ("chart says 3/5/55", "03/05/1955"),
        ],
    )
    def test_recognized_dates(self, text, expected):
        assert extract_date_of_birth(text) == expected

    def test_keyword_date_preferred_over_visit_date(self):
        assert extract_date_of_birth("Visit 04/01/2024. DOB: January 5, 1960") == "01/05/1960"

    def test_impossible_matched_date_does_not_fall_through(self):
        # Arrange - the keyword date is impossible; a later valid date must not be used
        text = "Born 02/30/1980, seen on 03/01/2020"

        # Act
        result = extract_date_of_birth(text)

        # Assert
        assert result is None

    def test_no_date(self):
        assert extract_date_of_birth("No dates mentioned") is None


class TestExtractPatientInfo:
    """Tests for extract_patient_info."""

    def test_complete_identity(self):
        # Act
        info = extract_patient_info("Patient is John Smith, born 01/15/1980")

        # Assert
        assert info.first_name == "John"
        assert info.last_name == "Smith"
        assert info.date_of_birth == "01/15/1980"
        assert info.source_id == "Smith_John__01_15_1980"
        assert info.matched_patterns == ["patient_is", "keyword_numeric"]

    def test_clinical_filler_does_not_become_the_source_id(self):
        info = extract_patient_info("The patient reports chest pain. Name is Jane Doe, born 01/15/1980")

        assert (info.first_name, info.last_name) == ("Jane", "Doe")
        assert info.source_id == "Doe_Jane__01_15_1980"
        assert info.matched_patterns[0] == "name_is"

    def test_name_without_date_has_no_source_id(self):
        info = extract_patient_info("Patient is John Smith")

        assert info.first_name == "John"
        assert info.date_of_birth is None
        assert info.source_id is None
        assert info.to_identity().missing_fields == ["date_of_birth"]

    def test_date_without_name_has_no_source_id(self):
        info = extract_patient_info("born March 15, 1980")

        assert info.date_of_birth == "03/15/1980"
        assert info.first_name is None
        assert info.source_id is None

    @pytest.mark.parametrize("text", ["", "   ", "nothing useful here"])
    def test_unmatched_text_never_raises(self, text):
        info = extract_patient_info(text)

        assert info.first_name is None
        assert info.last_name is None
        assert info.date_of_birth is None
        assert info.source_id is None
