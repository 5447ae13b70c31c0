"""Patient identity data models.

This module defines the identity triple (first name, last name, date of birth)
that every extraction path reduces to, and from which the Source ID is derived.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PatientIdentity:
    """Patient identity fields used to derive a Source ID.

    Attributes:
        first_name: Patient's first name (canonical capitalization)
        last_name: Patient's last name (canonical capitalization)
        date_of_birth: Date of birth as MM/DD/YYYY
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None

    @property
    def missing_fields(self) -> list[str]:
        """Names of identity fields that are absent or blank."""
        return [
            name
            for name in ("first_name", "last_name", "date_of_birth")
            if not (getattr(self, name) or "").strip()
        ]

    @property
    def is_complete(self) -> bool:
        """True when all three identity fields are present."""
        return not self.missing_fields

    @property
    def source_id(self) -> Optional[str]:
        """Source ID for this identity, or None when a field is missing."""
        from providerloop_chains.reconciliation.source_id import derive_source_id

        return derive_source_id(self.last_name, self.first_name, self.date_of_birth)


@dataclass
class TranscriptPatientInfo:
    """Patient details recognized in a spoken transcript.

    Every field is optional; source_id is only set when the other three were
    all found.
    """

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    source_id: Optional[str] = None
    matched_patterns: list[str] = field(default_factory=list)

    def to_identity(self) -> PatientIdentity:
        return PatientIdentity(
            first_name=self.first_name,
            last_name=self.last_name,
            date_of_birth=self.date_of_birth,
        )
