"""Reconciliation module.

Normalizes names and dates of birth from every capture path and derives the
Source ID that links patients to automation runs.
"""

from providerloop_chains.reconciliation.normalizer import (
    capitalize_name,
    normalize_date,
    resolve_two_digit_year,
    to_date,
)
from providerloop_chains.reconciliation.roster import RosterIssue, parse_roster
from providerloop_chains.reconciliation.source_id import derive_source_id, parse_source_id
from providerloop_chains.reconciliation.transcript import (
    DATE_PATTERNS,
    NAME_PATTERNS,
    extract_date_of_birth,
    extract_name,
    extract_patient_info,
)

__all__ = [
    "capitalize_name",
    "normalize_date",
    "resolve_two_digit_year",
    "to_date",
    "derive_source_id",
    "parse_source_id",
    "NAME_PATTERNS",
    "DATE_PATTERNS",
    "extract_name",
    "extract_date_of_birth",
    "extract_patient_info",
    "RosterIssue",
    "parse_roster",
]
