"""Client for the card-scanning API.

An alternative to the vision oracle for insurance cards. The API's flat
extracted_fields are mapped onto the same InsuranceCardResult groups.
"""

import logging
import time
from pathlib import Path
from typing import Any, Optional

import requests

from providerloop_chains.config.manager import get_api_key
from providerloop_chains.config.schema import Config
from providerloop_chains.extraction.normalizers import normalize_insurance_card
from providerloop_chains.extraction.uploads import encode_base64, validate_upload
from providerloop_chains.logging_audit.audit import log_audit_event
from providerloop_chains.models.extraction import InsuranceCardResult
from providerloop_chains.transport.http_client import create_session_from_config
from providerloop_chains.utils.exceptions import OracleError

logger = logging.getLogger(__name__)

SCAN_PATH = "/cards/scan"

# (group, field) for each card-scan extracted field
FIELD_MAP: dict[str, tuple[str, str]] = {
    "member_id": ("member", "member_id"),
    "member_name": ("member", "subscriber_name"),
    "group_number": ("insurer", "group_number"),
    "plan_name": ("insurer", "plan_name"),
    "payer_name": ("insurer", "name"),
    "plan_type": ("insurer", "plan_type"),
    "effective_date": ("insurer", "effective_date"),
    "rx_bin": ("pharmacy", "bin"),
    "rx_pcn": ("pharmacy", "pcn"),
    "rx_group": ("pharmacy", "rx_group"),
    "phone_pharmacy": ("pharmacy", "pharmacy_phone"),
    "copay_primary_care": ("cost_share", "pcp_copay"),
    "copay_specialist": ("cost_share", "specialist_copay"),
    "copay_er": ("cost_share", "er_copay"),
    "deductible": ("cost_share", "deductible"),
    "phone_member_services": ("contact", "customer_service_phone"),
    "address": ("contact", "mailing_address"),
}


def map_scan_response(data: dict[str, Any]) -> InsuranceCardResult:
    """Map a card-scan response body onto InsuranceCardResult."""
    fields = data.get("extracted_fields")
    fields = fields if isinstance(fields, dict) else {}

    grouped: dict[str, Any] = {}
    for source, (group, name) in FIELD_MAP.items():
        if source in fields:
            grouped.setdefault(group, {})[name] = fields[source]

    grouped["metadata"] = {
        "raw_text": data.get("raw_text"),
        "ocr_confidence": {"overall": data.get("confidence")},
        "unmapped_lines": data.get("warnings") or [],
    }
    return normalize_insurance_card(grouped)


class CardScanClient:
    """Scans insurance card images through the card-scanning API.

    Example:
        >>> client = CardScanClient(config)
        >>> result = client.scan_insurance_card(Path("card-front.jpg"))
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or create_session_from_config(config.transport)
        self.base_url = config.endpoints.cardscan_url.rstrip("/")

    def scan_insurance_card(self, image_path: Path) -> InsuranceCardResult:
        """Scan one card image.

        Raises:
            ConfigurationError: If the API key is not configured
            InputValidationError: If the image is not an acceptable upload
            OracleError: If the API call fails or returns a non-2xx status
        """
        api_key = get_api_key(self.config.cardscan.api_key_env_var)
        validate_upload(image_path, "image", self.config.uploads)

        body = {
            "image": encode_base64(image_path),
            "options": {
                "extract_all_fields": True,
                "validate_data": True,
                "return_raw_text": True,
                "timeout_seconds": self.config.automation.timeout_seconds,
            },
        }
        start = time.time()
        try:
            response = self.session.post(
                f"{self.base_url}{SCAN_PATH}",
                json=body,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=(self.config.transport.timeout_connect, self.config.transport.timeout_read),
            )
        except requests.RequestException as e:
            raise OracleError(f"Card scan failed: {e}") from e

        if not response.ok:
            raise OracleError(
                f"Card scan API error: {response.status_code} {response.reason}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise OracleError(f"Card scan returned a non-JSON response: {response.text}") from e
        if not isinstance(data, dict):
            raise OracleError("Card scan returned an unexpected response shape")

        result = map_scan_response(data)
        log_audit_event(
            "EXTRACTION_COMPLETED",
            {
                "status": "success",
                "document_type": "cardscan",
                "duration": time.time() - start,
                "scan_id": data.get("scan_id", ""),
            },
        )
        return result
