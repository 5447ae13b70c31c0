"""Normalization of untrusted oracle output into fixed-shape results.

The vision oracle returns loosely shaped JSON. Each normalizer here maps it
onto one result model: missing or wrong-typed leaves become "" (or the field's
default), unknown keys are dropped, and confidence scores are clamped. Nothing
in this module performs I/O.
"""

import json
import logging
from typing import Any, Optional, Union

from providerloop_chains.models.extraction import (
    SCREENSHOT_FIELDS,
    SCREENSHOT_IDENTITY_FIELDS,
    DocumentType,
    EpicInsuranceResult,
    InsuranceCardResult,
    PatientDocumentResult,
    ScreenshotResult,
    clamp_confidence,
)
from providerloop_chains.models.patient import PatientIdentity
from providerloop_chains.reconciliation.normalizer import capitalize_name, normalize_date
from providerloop_chains.utils.exceptions import ExtractionParseError

logger = logging.getLogger(__name__)

ExtractionResult = Union[
    PatientDocumentResult, InsuranceCardResult, EpicInsuranceResult, ScreenshotResult
]

__all__ = [
    "ExtractionResult",
    "clamp_confidence",
    "parse_oracle_json",
    "normalize_extraction",
    "normalize_patient_document",
    "normalize_insurance_card",
    "normalize_epic_insurance",
    "normalize_screenshot",
    "split_full_name",
    "to_identity",
]

# Insurance card groups and the string leaves each one carries
_CARD_GROUPS: dict[str, tuple[str, ...]] = {
    "insurer": (
        "name", "payer_id", "plan_name", "plan_type", "group_number",
        "effective_date", "termination_date",
    ),
    "pharmacy": ("bin", "pcn", "rx_group", "rx_id", "pharmacy_phone"),
    "contact": ("customer_service_phone", "website_url", "mailing_address"),
    "cost_share": ("pcp_copay", "specialist_copay", "er_copay", "deductible", "oop_max"),
    "security": ("card_number", "barcode_data", "magstripe_data"),
}

# Epic report keys mapped onto EpicCoverage fields
_EPIC_COVERAGE_KEYS: dict[str, str] = {
    "payer": "payer",
    "plan": "plan",
    "sponsorCode": "sponsor_code",
    "groupNumber": "group_number",
    "groupName": "group_name",
    "subscriberId": "subscriber_id",
    "subscriberName": "subscriber_name",
    "subscriberSSN": "subscriber_ssn",
    "subscriberAddress": "subscriber_address",
}


def _text(value: Any) -> str:
    """Coerce a JSON leaf to a stripped string; containers and null become ""."""
    if value is None or isinstance(value, (bool, dict, list)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _group(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _first(raw: dict[str, Any], *keys: str) -> str:
    """Return the first non-empty text value among alternative keys."""
    for key in keys:
        text = _text(raw.get(key))
        if text:
            return text
    return ""


def _require_object(raw: Any) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ExtractionParseError(
            f"Expected a JSON object from the extraction service, got {type(raw).__name__}"
        )
    return raw


def parse_oracle_json(text: Optional[str]) -> dict[str, Any]:
    """Parse the oracle's response body.

    Raises:
        ExtractionParseError: If the body is empty, not JSON, or not an object
    """
    if not text or not text.strip():
        raise ExtractionParseError("Extraction service returned an empty response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionParseError(
            f"Extraction service returned malformed JSON: {e.msg} "
            f"(line {e.lineno}, column {e.colno})"
        ) from e
    return _require_object(data)


def _canonical_date(raw: str) -> str:
    """Normalize a date string, keeping the original text when unparseable."""
    if not raw:
        return ""
    return normalize_date(raw) or raw


def normalize_patient_document(raw: Any) -> PatientDocumentResult:
    """Normalize an ID card or generic document extraction.

    Example:
        >>> normalize_patient_document({"firstName": "JOHN", "confidence": 1.4}).confidence
        1.0
    """
    raw = _require_object(raw)
    return PatientDocumentResult(
        first_name=capitalize_name(_first(raw, "firstName", "first_name")),
        last_name=capitalize_name(_first(raw, "lastName", "last_name")),
        date_of_birth=_canonical_date(_first(raw, "dateOfBirth", "date_of_birth", "dob")),
        address=_first(raw, "address"),
        confidence=clamp_confidence(raw.get("confidence")),
        raw_text=_first(raw, "rawText", "raw_text"),
    )


def normalize_insurance_card(raw: Any) -> InsuranceCardResult:
    """Normalize an insurance card extraction into its field groups."""
    raw = _require_object(raw)

    data: dict[str, Any] = {
        group: {name: _text(_group(raw, group).get(name)) for name in names}
        for group, names in _CARD_GROUPS.items()
    }

    member = _group(raw, "member")
    dependent = _group(member, "dependent")
    data["member"] = {
        "member_id": _text(member.get("member_id")),
        "subscriber_name": _text(member.get("subscriber_name")),
        "dependent": {
            "name": _text(dependent.get("name")),
            "relationship": _text(dependent.get("relationship")),
        },
        "dob": _text(member.get("dob")),
    }

    metadata = _group(raw, "metadata")
    ocr = _group(metadata, "ocr_confidence")
    unmapped = metadata.get("unmapped_lines")
    data["metadata"] = {
        "image_side": _text(metadata.get("image_side")),
        "ocr_confidence": {
            "member_id": ocr.get("member_id"),
            "subscriber_name": ocr.get("subscriber_name"),
            "overall": ocr.get("overall"),
        },
        "raw_text": _text(metadata.get("raw_text")),
        "unmapped_lines": [
            _text(line) for line in unmapped if _text(line)
        ] if isinstance(unmapped, list) else [],
    }

    return InsuranceCardResult.model_validate(data)


def normalize_epic_insurance(raw: Any) -> EpicInsuranceResult:
    """Normalize an Epic insurance coverage report extraction."""
    raw = _require_object(raw)

    def coverage(section: str) -> dict[str, str]:
        source = _group(raw, section)
        return {field: _text(source.get(key)) for key, field in _EPIC_COVERAGE_KEYS.items()}

    metadata = _group(raw, "metadata")
    return EpicInsuranceResult.model_validate(
        {
            "primary": coverage("primary"),
            "secondary": coverage("secondary"),
            "metadata": {
                "extraction_confidence": metadata.get("extractionConfidence"),
                "raw_text": _text(metadata.get("rawText")),
            },
        }
    )


def normalize_screenshot(raw: Any, extraction_type: str = "medical_system") -> ScreenshotResult:
    """Normalize a screenshot extraction to the flat field map for its type.

    Raises:
        ExtractionParseError: If raw is not an object
        ValueError: If extraction_type is not a known screenshot type
    """
    raw = _require_object(raw)
    if extraction_type not in SCREENSHOT_FIELDS:
        raise ValueError(
            f"Unknown screenshot type: {extraction_type}. "
            f"Must be one of: {', '.join(SCREENSHOT_FIELDS)}"
        )

    return ScreenshotResult(
        extraction_type=extraction_type,
        fields={name: _text(raw.get(name)) for name in SCREENSHOT_FIELDS[extraction_type]},
        raw_data=_first(raw, "rawData", "raw_data"),
        confidence=clamp_confidence(raw.get("confidence")),
    )


def normalize_extraction(
    raw: Any,
    document_type: Union[DocumentType, str],
    extraction_type: str = "medical_system",
) -> ExtractionResult:
    """Normalize oracle output for the given document type.

    Args:
        raw: Decoded oracle JSON
        document_type: Which result model to produce
        extraction_type: Screenshot type, used only for screenshots

    Raises:
        ExtractionParseError: If raw is not a JSON object
        ValueError: If document_type is unknown
    """
    document_type = DocumentType(document_type)
    if document_type is DocumentType.PATIENT_DOCUMENT:
        return normalize_patient_document(raw)
    if document_type is DocumentType.INSURANCE_CARD:
        return normalize_insurance_card(raw)
    if document_type is DocumentType.EPIC_INSURANCE:
        return normalize_epic_insurance(raw)
    return normalize_screenshot(raw, extraction_type)


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split a full name into (first, last).

    "Last, First" is honored; otherwise the last whitespace separates them.

    >>> split_full_name("John Q Smith")
    ('John Q', 'Smith')
    >>> split_full_name("SMITH, JOHN")
    ('John', 'Smith')
    """
    name = (full_name or "").strip()
    if "," in name:
        last, first = name.split(",", 1)
        return capitalize_name(first), capitalize_name(last)
    parts = name.rsplit(None, 1)
    if len(parts) < 2:
        return capitalize_name(name), ""
    return capitalize_name(parts[0]), capitalize_name(parts[1])


def _identity(first: str, last: str, dob: str) -> PatientIdentity:
    return PatientIdentity(
        first_name=capitalize_name(first) or None,
        last_name=capitalize_name(last) or None,
        date_of_birth=normalize_date(dob) if dob else None,
    )


def to_identity(result: ExtractionResult) -> PatientIdentity:
    """Reduce an extraction result to the patient identity it names.

    Fields the result does not carry are None. Epic reports have no date of
    birth, so their identity is never complete on its own.
    """
    if isinstance(result, PatientDocumentResult):
        return _identity(result.first_name, result.last_name, result.date_of_birth)

    if isinstance(result, InsuranceCardResult):
        first, last = split_full_name(result.member.subscriber_name)
        return _identity(first, last, result.member.dob)

    if isinstance(result, EpicInsuranceResult):
        first, last = split_full_name(result.primary.subscriber_name)
        return _identity(first, last, "")

    if result.extraction_type in SCREENSHOT_IDENTITY_FIELDS:
        first_key, last_key, dob_key = SCREENSHOT_IDENTITY_FIELDS[result.extraction_type]
        return _identity(
            result.fields.get(first_key, ""),
            result.fields.get(last_key, ""),
            result.fields.get(dob_key, ""),
        )

    first, last = split_full_name(result.fields.get("subscriber_name", ""))
    return _identity(first, last, "")
