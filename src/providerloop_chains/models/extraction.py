"""Extraction result models.

Every OCR or transcription path produces one of the models in this module.
String fields default to "" so consumers never see missing keys, and every
confidence score is clamped into [0, 1] on construction.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from providerloop_chains.models.patient import TranscriptPatientInfo


def clamp_confidence(value: Any, default: float = 0.0) -> float:
    """Coerce a confidence score into [0, 1].

    Non-numeric values (including booleans and None) fall back to default.

    >>> clamp_confidence(1.4)
    1.0
    >>> clamp_confidence(-0.2)
    0.0
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or value != value:  # NaN
        return default
    return max(0.0, min(1.0, float(value)))


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentType(str, Enum):
    """Kinds of document the vision oracle can extract from."""

    PATIENT_DOCUMENT = "patient_document"
    INSURANCE_CARD = "insurance_card"
    EPIC_INSURANCE = "epic_insurance"
    SCREENSHOT = "screenshot"


class ExtractionModel(BaseModel):
    """Base for extraction results; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


class PatientDocumentResult(ExtractionModel):
    """Patient identity read from an ID card, license or generic document."""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    address: str = ""
    confidence: float = 0.0
    raw_text: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def validate_confidence(cls, v: Any) -> float:
        return clamp_confidence(v)


class InsurerInfo(ExtractionModel):
    name: str = ""
    payer_id: str = ""
    plan_name: str = ""
    plan_type: str = ""
    group_number: str = ""
    effective_date: str = ""
    termination_date: str = ""


class DependentInfo(ExtractionModel):
    name: str = ""
    relationship: str = ""


class MemberInfo(ExtractionModel):
    member_id: str = ""
    subscriber_name: str = ""
    dependent: DependentInfo = Field(default_factory=DependentInfo)
    dob: str = ""


class PharmacyInfo(ExtractionModel):
    bin: str = ""
    pcn: str = ""
    rx_group: str = ""
    rx_id: str = ""
    pharmacy_phone: str = ""


class ContactInfo(ExtractionModel):
    customer_service_phone: str = ""
    website_url: str = ""
    mailing_address: str = ""


class CostShareInfo(ExtractionModel):
    pcp_copay: str = ""
    specialist_copay: str = ""
    er_copay: str = ""
    deductible: str = ""
    oop_max: str = ""


class SecurityInfo(ExtractionModel):
    card_number: str = ""
    barcode_data: str = ""
    magstripe_data: str = ""


class OcrConfidence(ExtractionModel):
    member_id: float = 0.0
    subscriber_name: float = 0.0
    overall: float = 0.0

    @field_validator("member_id", "subscriber_name", "overall", mode="before")
    @classmethod
    def validate_confidence(cls, v: Any) -> float:
        return clamp_confidence(v)


class CardMetadata(ExtractionModel):
    """Capture metadata for an insurance card image.

    Attributes:
        image_side: "front", "back" or "unknown"
        capture_timestamp: ISO-8601 time the result was produced
        ocr_confidence: Per-field and overall confidence scores
        raw_text: Complete OCR text
        unmapped_lines: Text lines that did not fit any field
    """

    image_side: Literal["front", "back", "unknown"] = "unknown"
    capture_timestamp: str = Field(default_factory=_utc_timestamp)
    ocr_confidence: OcrConfidence = Field(default_factory=OcrConfidence)
    raw_text: str = ""
    unmapped_lines: list[str] = Field(default_factory=list)

    @field_validator("image_side", mode="before")
    @classmethod
    def validate_image_side(cls, v: Any) -> str:
        side = str(v or "").strip().lower()
        return side if side in ("front", "back") else "unknown"


class InsuranceCardResult(ExtractionModel):
    """Insurance card fields grouped the way cards are laid out."""

    insurer: InsurerInfo = Field(default_factory=InsurerInfo)
    member: MemberInfo = Field(default_factory=MemberInfo)
    pharmacy: PharmacyInfo = Field(default_factory=PharmacyInfo)
    contact: ContactInfo = Field(default_factory=ContactInfo)
    cost_share: CostShareInfo = Field(default_factory=CostShareInfo)
    security: SecurityInfo = Field(default_factory=SecurityInfo)
    metadata: CardMetadata = Field(default_factory=CardMetadata)


class EpicCoverage(ExtractionModel):
    """One coverage section (primary or secondary) of an Epic insurance report."""

    payer: str = ""
    plan: str = ""
    sponsor_code: str = ""
    group_number: str = ""
    group_name: str = ""
    subscriber_id: str = ""
    subscriber_name: str = ""
    subscriber_ssn: str = ""
    subscriber_address: str = ""

    @property
    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class EpicMetadata(ExtractionModel):
    extraction_confidence: float = 0.8
    raw_text: str = ""
    timestamp: str = Field(default_factory=_utc_timestamp)

    @field_validator("extraction_confidence", mode="before")
    @classmethod
    def validate_confidence(cls, v: Any) -> float:
        return clamp_confidence(v, default=0.8)


class EpicInsuranceResult(ExtractionModel):
    """Primary and secondary coverage read from an Epic screenshot."""

    primary: EpicCoverage = Field(default_factory=EpicCoverage)
    secondary: EpicCoverage = Field(default_factory=EpicCoverage)
    metadata: EpicMetadata = Field(default_factory=EpicMetadata)


ScreenshotType = Literal["medical_system", "medical_database", "clinical_notes", "insurance_card"]

# Field names the oracle is asked to return, per screenshot type
SCREENSHOT_FIELDS: dict[str, tuple[str, ...]] = {
    "medical_system": (
        "accountNo", "firstName", "lastName", "dateOfBirth", "age", "sex",
        "street", "city", "state", "zip", "country", "homePhone", "cellPhone",
        "email", "primaryCareProvider", "maritalStatus", "language", "race",
        "ethnicity", "insurancePlanName", "subscriberNo", "relationship",
    ),
    "medical_database": (
        "patient_first_name", "patient_last_name", "patient_dob", "patient_gender",
        "patient_phone", "patient_email", "patient_address", "patient_city",
        "patient_state", "patient_zip", "patient_ssn", "medical_record_number",
        "account_number", "insurance_provider", "insurance_id", "insurance_group",
        "secondary_insurance", "secondary_insurance_id", "primary_care_physician",
        "allergies", "medications", "medical_conditions", "emergency_contact_name",
        "emergency_contact_phone", "last_visit_date", "next_appointment",
        "marital_status", "language", "race", "ethnicity",
    ),
    "clinical_notes": (
        "patient_first_name", "patient_last_name", "patient_date_of_birth",
        "signature_date", "provider_name",
    ),
    "insurance_card": (
        "insurance_provider", "member_id", "group_number", "subscriber_name",
        "plan_name", "effective_date", "copay_amounts", "deductible",
        "phone_numbers", "website",
    ),
}

# (first name, last name, date of birth) keys per screenshot type
SCREENSHOT_IDENTITY_FIELDS: dict[str, tuple[str, str, str]] = {
    "medical_system": ("firstName", "lastName", "dateOfBirth"),
    "medical_database": ("patient_first_name", "patient_last_name", "patient_dob"),
    "clinical_notes": ("patient_first_name", "patient_last_name", "patient_date_of_birth"),
}


class ScreenshotResult(ExtractionModel):
    """Flat field map read from a screenshot of a medical system or form."""

    extraction_type: ScreenshotType = "medical_system"
    fields: dict[str, str] = Field(default_factory=dict)
    raw_data: str = ""
    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def validate_confidence(cls, v: Any) -> float:
        return clamp_confidence(v)


class TranscriptionResult(ExtractionModel):
    """Speech-to-text output plus any patient identity found in it."""

    text: str = ""
    is_final: bool = False
    patient_info: Optional[TranscriptPatientInfo] = None

    @property
    def full_transcript(self) -> Optional[str]:
        return self.text if self.is_final else None
