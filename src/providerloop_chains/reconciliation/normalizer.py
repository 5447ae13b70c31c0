"""Name and date normalization shared by every extraction path.

Transcripts, OCR results and roster files all pass names and dates of birth
through the functions in this module, so a patient always resolves to the same
canonical spelling and the same MM/DD/YYYY date wherever it was captured.
"""

import logging
import re
from datetime import date
from typing import Optional, Union

logger = logging.getLogger(__name__)

MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Longest names first so "sept" wins over "sep" and "june" over "jun"
MONTH_NAME_PATTERN = "|".join(sorted(MONTHS, key=len, reverse=True))

# Years above this two-digit value belong to the 1900s
TWO_DIGIT_YEAR_PIVOT = 50

OUTPUT_FORMATS = {"us": "%m/%d/%Y", "iso": "%Y-%m-%d"}

_MONTH_NAME_DATE = re.compile(
    rf"\b({MONTH_NAME_PATTERN})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}}|\d{{2}})\b",
    re.IGNORECASE,
)
_DAY_MONTH_NAME_DATE = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({MONTH_NAME_PATTERN})\.?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
_ISO_DATE = re.compile(r"\b(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})\b")
_NUMERIC_DATE = re.compile(r"\b(\d{1,2})[\s\-/.](\d{1,2})[\s\-/.](\d{4}|\d{2})\b")
_WHITESPACE = re.compile(r"\s+")


def capitalize_name(raw: Optional[str]) -> str:
    """Capitalize a personal name.

    Whitespace is collapsed and each token gets an uppercase first letter with
    the rest lowercased. Punctuation inside a token is kept as-is.

    Args:
        raw: Name as captured (any case, any spacing)

    Returns:
        Canonical name, or "" for empty input

    Example:
        >>> capitalize_name("  mary   ANNE ")
        'Mary Anne'
    """
    if not raw:
        return ""
    tokens = _WHITESPACE.split(raw.strip())
    return " ".join(token[:1].upper() + token[1:].lower() for token in tokens if token)


def resolve_two_digit_year(year: int) -> int:
    """Expand a two-digit year; four-digit years pass through.

    >>> resolve_two_digit_year(55)
    1955
    >>> resolve_two_digit_year(49)
    2049
    """
    if year >= 100:
        return year
    if year > TWO_DIGIT_YEAR_PIVOT:
        return 1900 + year
    return 2000 + year


def month_number(value: Union[str, int]) -> Optional[int]:
    """Resolve a month name, abbreviation or number to 1-12."""
    if isinstance(value, int):
        return value if 1 <= value <= 12 else None
    text = value.strip().lower().rstrip(".")
    if text.isdigit():
        number = int(text)
        return number if 1 <= number <= 12 else None
    return MONTHS.get(text)


def date_from_parts(
    month: Union[str, int],
    day: Union[str, int],
    year: Union[str, int],
) -> Optional[date]:
    """Build a calendar date from captured parts.

    Args:
        month: Month number or name
        day: Day of month
        year: Two- or four-digit year

    Returns:
        date, or None when the parts do not form a real calendar date
    """
    month_value = month_number(month)
    if month_value is None:
        return None
    try:
        year_value = resolve_two_digit_year(int(year))
        return date(year_value, month_value, int(day))
    except ValueError:
        return None


def date_from_numeric(first: str, second: str, year: str) -> Optional[date]:
    """Build a date from an all-numeric capture.

    Month comes first unless the first number cannot be a month and the
    second can, in which case the capture is read day-first.
    """
    first_value, second_value = int(first), int(second)
    if first_value > 12 and second_value <= 12:
        return date_from_parts(second_value, first_value, year)
    return date_from_parts(first_value, second_value, year)


def to_date(raw: Optional[str]) -> Optional[date]:
    """Find a date in free text.

    Month-name dates are tried before numeric dates. Numeric dates are read
    month-first unless the first number cannot be a month and the second can.

    Args:
        raw: Text containing a date, e.g. "March 15th, 1980" or "03/15/80"

    Returns:
        date, or None when no valid date is present
    """
    if not raw or not raw.strip():
        return None
    text = raw.strip()

    match = _MONTH_NAME_DATE.search(text)
    if match:
        return date_from_parts(match.group(1), match.group(2), match.group(3))

    match = _DAY_MONTH_NAME_DATE.search(text)
    if match:
        return date_from_parts(match.group(2), match.group(1), match.group(3))

    match = _ISO_DATE.search(text)
    if match:
        return date_from_parts(match.group(2), match.group(3), match.group(1))

    match = _NUMERIC_DATE.search(text)
    if match:
        return date_from_numeric(match.group(1), match.group(2), match.group(3))

    return None


def format_date(value: date, output_format: str = "us") -> str:
    """Format a date as MM/DD/YYYY ("us") or YYYY-MM-DD ("iso")."""
    try:
        pattern = OUTPUT_FORMATS[output_format]
    except KeyError:
        raise ValueError(
            f"Unknown date output format: {output_format}. "
            f"Must be one of: {', '.join(OUTPUT_FORMATS)}"
        ) from None
    return value.strftime(pattern)


def normalize_date(raw: Optional[str], output_format: str = "us") -> Optional[str]:
    """Normalize a date of birth to a canonical string.

    Args:
        raw: Date text in any supported form
        output_format: "us" for MM/DD/YYYY, "iso" for YYYY-MM-DD

    Returns:
        Normalized date string, or None if no valid date was found

    Example:
        >>> normalize_date("March 15th, 1980")
        '03/15/1980'
        >>> normalize_date("03/15/80", output_format="iso")
        '1980-03-15'
    """
    parsed = to_date(raw)
    if parsed is None:
        logger.debug("No valid date found in input")
        return None
    return format_date(parsed, output_format)

