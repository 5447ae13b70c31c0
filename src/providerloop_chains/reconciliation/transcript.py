"""Patient identity recognition in spoken transcripts.

Names and dates of birth are located with fixed, ordered regex tables. The
first pattern that matches wins and later patterns are never consulted, so the
order of each table is part of the behavior.
"""

import logging
import re
from typing import Optional

from providerloop_chains.models.patient import TranscriptPatientInfo
from providerloop_chains.reconciliation.normalizer import (
    MONTH_NAME_PATTERN,
    capitalize_name,
    date_from_numeric,
    date_from_parts,
    format_date,
)
from providerloop_chains.reconciliation.source_id import derive_source_id

logger = logging.getLogger(__name__)

_WORD = r"([a-z]+(?:['\-][a-z]+)*)"
_DOB_KEYWORD = (
    r"(?:\bborn(?:\s+on)?|\bdate\s+of\s+birth(?:\s+is)?|\bd\.?o\.?b\.?(?:\s+is)?"
    r"|\bbirthday(?:\s+is)?)\s*:?\s*"
)
_MONTH_DAY_YEAR = rf"({MONTH_NAME_PATTERN})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}}|\d{{2}})\b"
_NUMERIC = r"(\d{1,2})[\s\-/.](\d{1,2})[\s\-/.](\d{4}|\d{2})\b"

# (label, pattern); groups are (first name, last name)
NAME_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "patient_is",
        re.compile(rf"\bpatient\s+(?:is\s+(?:named\s+)?|named\s+){_WORD}\s+{_WORD}", re.IGNORECASE),
    ),
    (
        "name_is",
        re.compile(rf"(?<!first\s)(?<!last\s)\bname\s+is\s+{_WORD}\s+{_WORD}", re.IGNORECASE),
    ),
    (
        "first_last_name",
        re.compile(
            rf"\bfirst\s+name\s+(?:is\s+)?{_WORD}.*?\blast\s+name\s+(?:is\s+)?{_WORD}",
            re.IGNORECASE | re.DOTALL,
        ),
    ),
    (
        "honorific",
        re.compile(rf"\b(?:mrs|mr|ms|miss)\.?\s+{_WORD}\s+{_WORD}", re.IGNORECASE),
    ),
    (
        "is_the_patient",
        re.compile(rf"\b{_WORD}\s+{_WORD}\s+is\s+the\s+patient\b", re.IGNORECASE),
    ),
    (
        "speaking_with",
        re.compile(rf"\b(?:speaking\s+with|treating)\s+{_WORD}\s+{_WORD}", re.IGNORECASE),
    ),
)

# (label, pattern, month-name groups?); month-name patterns come first
DATE_PATTERNS: tuple[tuple[str, re.Pattern[str], bool], ...] = (
    ("keyword_month_name", re.compile(_DOB_KEYWORD + _MONTH_DAY_YEAR, re.IGNORECASE), True),
    ("keyword_numeric", re.compile(_DOB_KEYWORD + _NUMERIC, re.IGNORECASE), False),
    ("month_name", re.compile(r"\b" + _MONTH_DAY_YEAR, re.IGNORECASE), True),
    ("numeric", re.compile(r"\b" + _NUMERIC), False),
)


def _match_name(text: str) -> Optional[tuple[str, str, str]]:
    for label, pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            return capitalize_name(match.group(1)), capitalize_name(match.group(2)), label
    return None


def _match_date(text: str) -> Optional[tuple[Optional[str], str]]:
    for label, pattern, month_name in DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        if month_name:
            parsed = date_from_parts(match.group(1), match.group(2), match.group(3))
        else:
            parsed = date_from_numeric(match.group(1), match.group(2), match.group(3))
        if parsed is None:
            logger.debug(f"Date pattern '{label}' matched an impossible date")
            return None, label
        return format_date(parsed), label
    return None


def extract_name(text: str) -> Optional[tuple[str, str]]:
    """Find the patient's name in a transcript.

    Args:
        text: Transcript text

    Returns:
        (first_name, last_name) with canonical capitalization, or None

    Example:
        >>> extract_name("Patient is john SMITH, born 01/15/1980")
        ('John', 'Smith')
    """
    if not text:
        return None
    result = _match_name(text)
    return (result[0], result[1]) if result else None


def extract_date_of_birth(text: str) -> Optional[str]:
    """Find the patient's date of birth in a transcript.

    Returns:
        Date of birth as MM/DD/YYYY, or None. A matched but impossible date
        (e.g. 02/30/1980) yields None rather than falling through to later
        patterns.
    """
    if not text:
        return None
    result = _match_date(text)
    return result[0] if result else None


def extract_patient_info(text: str) -> TranscriptPatientInfo:
    """Extract name, date of birth and Source ID from a transcript.

    Missing fields are simply absent; this never raises for unmatched text.

    Example:
        >>> info = extract_patient_info("Patient is John Smith, born 01/15/1980")
        >>> info.source_id
        'Smith_John__01_15_1980'
    """
    info = TranscriptPatientInfo()
    if not text or not text.strip():
        return info

    name = _match_name(text)
    if name:
        info.first_name, info.last_name, label = name
        info.matched_patterns.append(label)

    dob = _match_date(text)
    if dob:
        info.date_of_birth, label = dob
        info.matched_patterns.append(label)

    if info.first_name and info.last_name and info.date_of_birth:
        info.source_id = derive_source_id(info.last_name, info.first_name, info.date_of_birth)

    logger.debug(f"Transcript patterns matched: {info.matched_patterns or 'none'}")
    return info
