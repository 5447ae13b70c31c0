"""Starting variables sent with each chain run.

Each capture path contributes a different set of variables. All values are
strings, and blank values are dropped before sending.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from providerloop_chains.models.extraction import (
    EpicInsuranceResult,
    InsuranceCardResult,
    PatientDocumentResult,
)
from providerloop_chains.models.patient import PatientIdentity, TranscriptPatientInfo

PROCESSED_VIA = "external_app"


def clean_variables(variables: Mapping[str, Any]) -> dict[str, str]:
    """Stringify and strip values, dropping blanks and None.

    >>> clean_variables({"a": " x ", "b": "", "c": None, "d": 3})
    {'a': 'x', 'd': '3'}
    """
    cleaned: dict[str, str] = {}
    for key, value in variables.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        text = str(value).strip()
        if text:
            cleaned[key] = text
    return cleaned


def _percent(confidence: float) -> str:
    return str(round(confidence * 100))


def build_intake_variables(
    identity: PatientIdentity,
    document: PatientDocumentResult,
    insurance: InsuranceCardResult,
    has_insurance_back: bool = False,
) -> dict[str, str]:
    """Variables for the patient-intake submission (ID document + insurance card)."""
    source_id = identity.source_id
    return clean_variables(
        {
            "Patient_ID": source_id,
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "date_of_birth": identity.date_of_birth,
            "source_id": source_id,
            "insurance_company": insurance.insurer.name,
            "member_id": insurance.member.member_id,
            "group_number": insurance.insurer.group_number,
            "subscriber_name": insurance.member.subscriber_name,
            "plan_name": insurance.insurer.plan_name,
            "customer_service_phone": insurance.contact.customer_service_phone,
            "pcp_copay": insurance.cost_share.pcp_copay,
            "specialist_copay": insurance.cost_share.specialist_copay,
            "er_copay": insurance.cost_share.er_copay,
            "deductible": insurance.cost_share.deductible,
            "rx_bin": insurance.pharmacy.bin,
            "rx_pcn": insurance.pharmacy.pcn,
            "rx_group": insurance.pharmacy.rx_group,
            "extraction_confidence": _percent(document.confidence),
            "insurance_confidence": _percent(insurance.metadata.ocr_confidence.overall),
            "has_insurance_back": has_insurance_back,
            "processed_via": PROCESSED_VIA,
            "intake_timestamp": datetime.now(timezone.utc).isoformat(),
        }
    )


def build_transcript_variables(
    info: TranscriptPatientInfo,
    transcript: str,
    method: str = "upload",
    duration_seconds: Optional[float] = None,
) -> dict[str, str]:
    """Variables for a transcript submission."""
    now = datetime.now()
    duration = None
    if duration_seconds is not None:
        minutes, seconds = divmod(int(duration_seconds), 60)
        duration = f"{minutes}:{seconds:02d}"
    return clean_variables(
        {
            "first_name": info.first_name,
            "last_name": info.last_name,
            "date_of_birth": info.date_of_birth,
            "transcription": transcript,
            "transcription_method": method,
            "recording_duration": duration,
            "recording_date": now.strftime("%m/%d/%Y"),
            "recording_time": now.strftime("%H:%M:%S"),
        }
    )


def build_document_variables(
    identity: PatientIdentity, document: PatientDocumentResult
) -> dict[str, str]:
    """Variables for a single identity document submission."""
    return clean_variables(
        {
            "first_name": identity.first_name,
            "last_name": identity.last_name,
            "date_of_birth": identity.date_of_birth,
            "address": document.address,
            "extraction_confidence": _percent(document.confidence),
            "processed_via": PROCESSED_VIA,
        }
    )


def build_epic_variables(
    identity: PatientIdentity, epic: EpicInsuranceResult
) -> dict[str, str]:
    """Variables for an Epic insurance report submission."""
    variables: dict[str, Any] = {
        "first_name": identity.first_name,
        "last_name": identity.last_name,
        "date_of_birth": identity.date_of_birth,
        "extraction_confidence": _percent(epic.metadata.extraction_confidence),
        "processed_via": PROCESSED_VIA,
    }
    for prefix, coverage in (("primary", epic.primary), ("secondary", epic.secondary)):
        for name, value in coverage.model_dump().items():
            variables[f"{prefix}_{name}"] = value
    return clean_variables(variables)
