"""OpenAI-backed vision and transcription oracles.

The oracles are opaque: they receive an image or recording and return JSON or
text. Everything they return is passed through extraction.normalizers (images)
or the shared transcript patterns (audio) before anything else sees it. API
failures surface once as OracleError; nothing is retried.
"""

import logging
import time
from pathlib import Path
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from providerloop_chains.config.manager import get_api_key
from providerloop_chains.config.schema import Config
from providerloop_chains.extraction.normalizers import (
    normalize_epic_insurance,
    normalize_insurance_card,
    normalize_patient_document,
    normalize_screenshot,
    parse_oracle_json,
)
from providerloop_chains.extraction.uploads import data_url, validate_upload
from providerloop_chains.logging_audit.audit import log_audit_event
from providerloop_chains.models.extraction import (
    SCREENSHOT_FIELDS,
    EpicInsuranceResult,
    InsuranceCardResult,
    PatientDocumentResult,
    ScreenshotResult,
    TranscriptionResult,
)
from providerloop_chains.reconciliation.transcript import extract_patient_info
from providerloop_chains.utils.exceptions import OracleError

logger = logging.getLogger(__name__)

PATIENT_DOCUMENT_PROMPT = """You are a medical document text extraction expert. Extract patient information from images of medical documents, driver's licenses, insurance cards, or any document containing patient data.

Return your response in JSON format with these exact fields:
{
  "firstName": "string",
  "lastName": "string",
  "dateOfBirth": "MM/DD/YYYY",
  "address": "string",
  "confidence": 0.0-1.0,
  "rawText": "all text found in the image"
}

Rules:
- If any required field cannot be found, use empty string ""
- Convert dates to MM/DD/YYYY
- Give the complete address as a single string"""

INSURANCE_CARD_PROMPT = """You are an insurance card OCR expert. Extract ALL insurance information from insurance card images (front or back).

Return JSON with this exact structure:
{
  "insurer": {"name": "", "payer_id": "", "plan_name": "", "plan_type": "", "group_number": "", "effective_date": "MM/DD/YYYY", "termination_date": "MM/DD/YYYY"},
  "member": {"member_id": "", "subscriber_name": "", "dependent": {"name": "", "relationship": ""}, "dob": "MM/DD/YYYY"},
  "pharmacy": {"bin": "", "pcn": "", "rx_group": "", "rx_id": "", "pharmacy_phone": ""},
  "contact": {"customer_service_phone": "", "website_url": "", "mailing_address": ""},
  "cost_share": {"pcp_copay": "", "specialist_copay": "", "er_copay": "", "deductible": "", "oop_max": ""},
  "security": {"card_number": "", "barcode_data": "", "magstripe_data": ""},
  "metadata": {"image_side": "front/back/unknown", "ocr_confidence": {"member_id": 0.0, "subscriber_name": 0.0, "overall": 0.0}, "raw_text": "", "unmapped_lines": []}
}

Rules:
- Use exact text as found on the card and "" for missing fields
- Detect front vs back side based on content
- Phone numbers as (xxx) xxx-xxxx, dates as MM/DD/YYYY, dollar amounts with $"""

EPIC_INSURANCE_PROMPT = """You extract insurance coverage data from Epic EMR insurance report screenshots that show Primary and Secondary coverage sections.

Return JSON with this exact structure:
{
  "primary": {"payer": "", "plan": "", "sponsorCode": "", "groupNumber": "", "groupName": "", "subscriberId": "", "subscriberName": "", "subscriberSSN": "", "subscriberAddress": ""},
  "secondary": {"payer": "", "plan": "", "sponsorCode": "", "groupNumber": "", "groupName": "", "subscriberId": "", "subscriberName": "", "subscriberSSN": "", "subscriberAddress": ""},
  "metadata": {"extractionConfidence": 0.0-1.0, "rawText": "complete text"}
}

Rules:
- Extract the "ID" field of each coverage as subscriberId
- Use exact text as it appears and "" for missing fields"""

SCREENSHOT_PROMPTS = {
    "medical_system": "Extract patient information from this screenshot of a medical system, EHR/EMR interface or registration screen.",
    "medical_database": "Extract comprehensive patient information from this medical database or patient management screenshot.",
    "clinical_notes": "Extract only the patient name, date of birth, signature date and provider name from this clinical form.",
    "insurance_card": "Extract member details, plan information, contact numbers and coverage details from this insurance card.",
}


def _screenshot_prompt(extraction_type: str) -> str:
    fields = ", ".join(f'"{name}"' for name in SCREENSHOT_FIELDS[extraction_type])
    return (
        f"{SCREENSHOT_PROMPTS[extraction_type]}\n\n"
        f"Return a JSON object with these exact string fields: {fields}, "
        f'plus "rawData" (all text found) and "confidence" (0.0-1.0). '
        f'Use "" for missing fields and MM/DD/YYYY for dates.'
    )


def create_client(config: Config) -> OpenAI:
    """Create an OpenAI client using the configured API key variable.

    Raises:
        ConfigurationError: If the API key environment variable is not set
    """
    return OpenAI(api_key=get_api_key(config.openai.api_key_env_var))


class VisionOracle:
    """Structured extraction from images through the OpenAI chat API.

    Example:
        >>> oracle = VisionOracle(config)
        >>> result = oracle.extract_patient_document(Path("license.jpg"))
        >>> result.first_name
        'John'
    """

    def __init__(self, config: Config, client: Optional[OpenAI] = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    def _complete_json(self, system_prompt: str, user_text: str, image_path: Path) -> dict[str, Any]:
        validate_upload(image_path, "image", self.config.uploads)
        start = time.time()
        try:
            response = self.client.chat.completions.create(
                model=self.config.openai.vision_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": user_text},
                            {"type": "image_url", "image_url": {"url": data_url(image_path)}},
                        ],
                    },
                ],
                response_format={"type": "json_object"},
                max_tokens=self.config.openai.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"Vision extraction failed: {e}")
            raise OracleError(f"Failed to extract data from image: {e}") from e

        logger.debug(f"Vision oracle responded in {time.time() - start:.2f}s")
        content = response.choices[0].message.content if response.choices else None
        return parse_oracle_json(content)

    def _audit(self, document_type: str, confidence: float) -> None:
        log_audit_event(
            "EXTRACTION_COMPLETED",
            {"status": "success", "document_type": document_type, "confidence": f"{confidence:.2f}"},
        )

    def extract_patient_document(self, image_path: Path) -> PatientDocumentResult:
        raw = self._complete_json(
            PATIENT_DOCUMENT_PROMPT,
            "Please extract the patient's first name, last name, date of birth, and address from this document image.",
            image_path,
        )
        result = normalize_patient_document(raw)
        self._audit("patient_document", result.confidence)
        return result

    def extract_insurance_card(self, image_path: Path) -> InsuranceCardResult:
        raw = self._complete_json(
            INSURANCE_CARD_PROMPT,
            "Extract all insurance information from this insurance card image.",
            image_path,
        )
        result = normalize_insurance_card(raw)
        self._audit("insurance_card", result.metadata.ocr_confidence.overall)
        return result

    def extract_epic_insurance(self, image_path: Path) -> EpicInsuranceResult:
        raw = self._complete_json(
            EPIC_INSURANCE_PROMPT,
            "Extract primary and secondary insurance coverage data from this Epic insurance report.",
            image_path,
        )
        result = normalize_epic_insurance(raw)
        self._audit("epic_insurance", result.metadata.extraction_confidence)
        return result

    def extract_screenshot(
        self, image_path: Path, extraction_type: str = "medical_system"
    ) -> ScreenshotResult:
        """Extract the flat field map for a screenshot type.

        Raises:
            ValueError: If extraction_type is unknown
        """
        if extraction_type not in SCREENSHOT_FIELDS:
            raise ValueError(
                f"Unknown screenshot type: {extraction_type}. "
                f"Must be one of: {', '.join(SCREENSHOT_FIELDS)}"
            )
        raw = self._complete_json(
            _screenshot_prompt(extraction_type),
            SCREENSHOT_PROMPTS[extraction_type],
            image_path,
        )
        result = normalize_screenshot(raw, extraction_type)
        self._audit(f"screenshot:{extraction_type}", result.confidence)
        return result


class TranscriptionOracle:
    """Speech-to-text through the OpenAI audio API.

    Patient identity is read from the transcript with the shared regex
    patterns in reconciliation.transcript.
    """

    def __init__(self, config: Config, client: Optional[OpenAI] = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    def transcribe(self, audio_path: Path, is_final: bool = True) -> TranscriptionResult:
        """Transcribe a recording and look for patient identity in it.

        Args:
            audio_path: Audio file (webm, mp3, wav, m4a, ...)
            is_final: Whether this is the complete recording

        Raises:
            InputValidationError: If the file is not an acceptable audio upload
            OracleError: If the transcription call fails
        """
        validate_upload(audio_path, "audio", self.config.uploads)

        kwargs: dict[str, Any] = {
            "model": self.config.openai.transcription_model,
            "response_format": "text",
        }
        if self.config.openai.language:
            kwargs["language"] = self.config.openai.language

        try:
            with open(audio_path, "rb") as audio_file:
                transcription = self.client.audio.transcriptions.create(file=audio_file, **kwargs)
        except OpenAIError as e:
            logger.error(f"Audio transcription failed: {e}")
            raise OracleError(f"Failed to transcribe audio: {e}") from e

        text = transcription if isinstance(transcription, str) else getattr(transcription, "text", "")
        text = (text or "").strip()

        info = extract_patient_info(text)
        logger.info(
            f"Transcribed {len(text)} characters; patient identified: {bool(info.source_id)}"
        )
        return TranscriptionResult(
            text=text,
            is_final=is_final,
            patient_info=info if (info.first_name or info.last_name or info.date_of_birth) else None,
        )
