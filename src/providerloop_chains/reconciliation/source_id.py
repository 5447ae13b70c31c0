"""Source ID derivation.

A Source ID is the join key shared with the automation service:

    LASTNAME_FIRSTNAME__MM_DD_YYYY

Name parts keep their canonical capitalization and any interior whitespace
becomes an underscore. The double underscore separates the names from the date.
"""

import logging
import re
from typing import Optional

from providerloop_chains.models.patient import PatientIdentity
from providerloop_chains.reconciliation.normalizer import capitalize_name, to_date
from providerloop_chains.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

SOURCE_ID_PATTERN = re.compile(r"^(?P<names>.+)__(?P<month>\d{2})_(?P<day>\d{2})_(?P<year>\d{4})$")


def _name_part(name: str) -> str:
    return re.sub(r"\s+", "_", capitalize_name(name))


def derive_source_id(
    last_name: Optional[str],
    first_name: Optional[str],
    date_of_birth: Optional[str],
) -> Optional[str]:
    """Derive the Source ID for a patient.

    Args:
        last_name: Patient's last name
        first_name: Patient's first name
        date_of_birth: Date of birth in any form normalize_date understands

    Returns:
        Source ID string, or None if any field is missing or blank

    Raises:
        ValidationError: If date_of_birth is present but not a valid date

    Example:
        >>> derive_source_id("Smith", "John", "01/15/1980")
        'Smith_John__01_15_1980'
    """
    if not all(value and value.strip() for value in (last_name, first_name, date_of_birth)):
        logger.debug("Source ID not derived: identity fields incomplete")
        return None

    parsed = to_date(date_of_birth)
    if parsed is None:
        raise ValidationError(
            f"Invalid date of birth: '{date_of_birth}'. "
            f"Expected a date such as MM/DD/YYYY or 'March 15, 1980'."
        )

    return (
        f"{_name_part(last_name)}_{_name_part(first_name)}"
        f"__{parsed.month:02d}_{parsed.day:02d}_{parsed.year:04d}"
    )


def parse_source_id(source_id: str) -> PatientIdentity:
    """Split a Source ID back into identity fields.

    The first underscore in the name portion separates the last name from the
    first name, so multi-word last names do not round-trip exactly.

    Args:
        source_id: Source ID string

    Returns:
        PatientIdentity with date_of_birth as MM/DD/YYYY

    Raises:
        ValidationError: If the string is not in Source ID form
    """
    match = SOURCE_ID_PATTERN.match(source_id.strip()) if source_id else None
    if not match or "_" not in match.group("names"):
        raise ValidationError(
            f"Invalid Source ID: '{source_id}'. "
            f"Expected LASTNAME_FIRSTNAME__MM_DD_YYYY."
        )

    last, first = match.group("names").split("_", 1)
    date_of_birth = f"{match.group('month')}/{match.group('day')}/{match.group('year')}"
    if to_date(date_of_birth) is None:
        raise ValidationError(f"Invalid date in Source ID: '{source_id}'")

    return PatientIdentity(
        first_name=first.replace("_", " "),
        last_name=last.replace("_", " "),
        date_of_birth=date_of_birth,
    )
