"""Patient roster parsing.

Reads a CSV of patients and adds the canonical date of birth and Source ID for
each row, so that a batch of chains can be triggered for known patients.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from providerloop_chains.reconciliation.normalizer import capitalize_name, normalize_date
from providerloop_chains.reconciliation.source_id import derive_source_id
from providerloop_chains.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["first_name", "last_name", "dob"]

# Accepted alternate headers, matched case-insensitively
COLUMN_ALIASES = {
    "firstname": "first_name",
    "first": "first_name",
    "lastname": "last_name",
    "last": "last_name",
    "dateofbirth": "dob",
    "date_of_birth": "dob",
    "birth_date": "dob",
}


@dataclass
class RosterIssue:
    """A problem found in one roster row.

    Attributes:
        row_number: 1-indexed CSV line number (header is line 1)
        column_name: Column the issue relates to
        message: Description of the issue
    """

    row_number: int
    column_name: str
    message: str


def _canonical_column(name: str) -> str:
    key = str(name).strip().lower()
    return COLUMN_ALIASES.get(key, key)


def parse_roster(csv_path: Path) -> tuple[pd.DataFrame, list[RosterIssue]]:
    """Parse a patient roster CSV and derive Source IDs.

    Args:
        csv_path: Path to CSV with first_name, last_name and dob columns

    Returns:
        Tuple of (DataFrame, issues). The DataFrame gains date_of_birth
        (MM/DD/YYYY) and source_id columns; rows that could not produce a
        Source ID have an empty source_id and at least one issue.

    Raises:
        FileNotFoundError: If the CSV does not exist
        ValidationError: If the file cannot be read or required columns are missing
    """
    logger.info(f"Loading roster from {csv_path}")

    if not csv_path.exists():
        raise FileNotFoundError(f"Roster file not found: {csv_path}")

    try:
        df = pd.read_csv(csv_path, encoding="utf-8", dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ValidationError(
            f"Failed to read roster {csv_path}. Ensure file is valid CSV with "
            f"UTF-8 encoding. Error: {e}"
        ) from e

    df = df.rename(columns={col: _canonical_column(col) for col in df.columns})

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        raise ValidationError(
            f"Missing required columns: {', '.join(missing_columns)}. "
            f"Required columns are: {', '.join(REQUIRED_COLUMNS)}"
        )

    issues: list[RosterIssue] = []
    dates: list[str] = []
    source_ids: list[str] = []

    for idx, row in df.iterrows():
        row_num = int(idx) + 2  # +1 for header, +1 for 1-indexed
        first = capitalize_name(row["first_name"])
        last = capitalize_name(row["last_name"])
        raw_dob = str(row["dob"]).strip()

        for column, value in (("first_name", first), ("last_name", last), ("dob", raw_dob)):
            if not value:
                issues.append(RosterIssue(row_num, column, f"Missing required field '{column}'"))

        dob = normalize_date(raw_dob) if raw_dob else None
        if raw_dob and dob is None:
            issues.append(
                RosterIssue(row_num, "dob", f"Unrecognized date of birth '{raw_dob}'")
            )

        dates.append(dob or "")
        source_id = derive_source_id(last, first, dob) if dob else None
        source_ids.append(source_id or "")

    df["first_name"] = df["first_name"].map(capitalize_name)
    df["last_name"] = df["last_name"].map(capitalize_name)
    df["date_of_birth"] = dates
    df["source_id"] = source_ids

    for issue in issues:
        logger.warning(f"Row {issue.row_number} [{issue.column_name}]: {issue.message}")

    logger.info(
        f"Parsed {len(df)} roster row(s): "
        f"{int((df['source_id'] != '').sum())} with Source ID, {len(issues)} issue(s)"
    )
    return df, issues
