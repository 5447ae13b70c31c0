"""Unit tests for roster CSV parsing."""

from pathlib import Path

import pytest

from providerloop_chains.reconciliation.roster import parse_roster
from providerloop_chains.utils.exceptions import ValidationError


def _write_csv(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestParseRoster:
    """Tests for parse_roster."""

    def test_derives_source_ids(self, tmp_path):
        # Arrange
        csv_path = _write_csv(
            tmp_path / "roster.csv",
            "first_name,last_name,dob\n"
            "john,SMITH,1/15/1980\n"
            "Maria,Garcia,\"March 3, 1975\"\n",
        )

        # Act
        df, issues = parse_roster(csv_path)

        # Assert
        assert issues == []
        assert list(df["source_id"]) == ["Smith_John__01_15_1980", "Garcia_Maria__03_03_1975"]
        assert list(df["date_of_birth"]) == ["01/15/1980", "03/03/1975"]
        assert list(df["first_name"]) == ["John", "Maria"]

    def test_column_aliases(self, tmp_path):
        csv_path = _write_csv(
            tmp_path / "roster.csv",
            "FirstName,LastName,DOB,Phone\nAnn,Lee,12/31/1999,555-0100\n",
        )

        df, issues = parse_roster(csv_path)

        assert df.loc[0, "source_id"] == "Lee_Ann__12_31_1999"
        assert df.loc[0, "phone"] == "555-0100"
        assert issues == []

    def test_rows_with_problems_are_reported(self, tmp_path):
        # Arrange
        csv_path = _write_csv(
            tmp_path / "roster.csv",
            "first_name,last_name,dob\n"
            "John,Smith,01/15/1980\n"
            "Jane,Doe,\n"
            "Bob,Lee,not a date\n",
        )

        # Act
        df, issues = parse_roster(csv_path)

        # Assert
        assert list(df["source_id"]) == ["Smith_John__01_15_1980", "", ""]
        assert [(i.row_number, i.column_name) for i in issues] == [(3, "dob"), (4, "dob")]
        assert "Missing required field" in issues[0].message
        assert "Unrecognized date of birth" in issues[1].message

    def test_missing_columns(self, tmp_path):
        csv_path = _write_csv(tmp_path / "roster.csv", "first_name,dob\nJohn,01/15/1980\n")

        with pytest.raises(ValidationError, match="last_name"):
            parse_roster(csv_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_roster(tmp_path / "nope.csv")

    def test_empty_file(self, tmp_path):
        csv_path = _write_csv(tmp_path / "roster.csv", "")

        with pytest.raises(ValidationError, match="Failed to read roster"):
            parse_roster(csv_path)
