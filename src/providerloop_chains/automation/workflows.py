"""End-to-end capture-to-dispatch workflows.

Each workflow reduces its input to a patient identity, requires a Source ID,
builds the starting variables for its capture path and triggers the chain.
Submission is suppressed when the Source ID cannot be derived.
"""

import logging
from typing import Optional

from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.automation.variables import (
    build_document_variables,
    build_epic_variables,
    build_intake_variables,
    build_transcript_variables,
)
from providerloop_chains.extraction.normalizers import to_identity
from providerloop_chains.models.dispatch import DispatchRecord
from providerloop_chains.models.extraction import (
    EpicInsuranceResult,
    InsuranceCardResult,
    PatientDocumentResult,
)
from providerloop_chains.models.patient import PatientIdentity
from providerloop_chains.reconciliation.transcript import extract_patient_info
from providerloop_chains.utils.exceptions import IncompleteIdentityError, InputValidationError

logger = logging.getLogger(__name__)

INTAKE_CHAIN = "ATTACHMENT PROCESSING (LABS)"


def require_source_id(identity: PatientIdentity) -> str:
    """Return the identity's Source ID.

    Raises:
        IncompleteIdentityError: If any identity field is missing
        ValidationError: If the date of birth is not a valid date
    """
    source_id = identity.source_id
    if source_id is None:
        missing = identity.missing_fields
        raise IncompleteIdentityError(
            f"Cannot trigger chain: missing {', '.join(missing)}",
            missing_fields=missing,
        )
    return source_id


def process_transcript(
    text: str,
    chain: str,
    dispatcher: AutomationDispatcher,
    method: str = "upload",
    duration_seconds: Optional[float] = None,
    idempotency_key: Optional[str] = None,
) -> DispatchRecord:
    """Parse a transcript for the patient and trigger a chain with it.

    Raises:
        InputValidationError: If the transcript is empty
        IncompleteIdentityError: If name or date of birth was not found
    """
    if not text or not text.strip():
        raise InputValidationError("Transcript is empty")

    info = extract_patient_info(text)
    source_id = require_source_id(info.to_identity())

    payload = dispatcher.payload_for(
        source_id,
        chain,
        build_transcript_variables(info, text, method=method, duration_seconds=duration_seconds),
    )
    return dispatcher.dispatch(payload, idempotency_key)


def process_patient_document(
    result: PatientDocumentResult,
    chain: str,
    dispatcher: AutomationDispatcher,
    idempotency_key: Optional[str] = None,
) -> DispatchRecord:
    """Trigger a chain for the patient named on an identity document."""
    identity = to_identity(result)
    source_id = require_source_id(identity)
    payload = dispatcher.payload_for(source_id, chain, build_document_variables(identity, result))
    return dispatcher.dispatch(payload, idempotency_key)


def process_epic_insurance(
    identity: PatientIdentity,
    epic: EpicInsuranceResult,
    chain: str,
    dispatcher: AutomationDispatcher,
    idempotency_key: Optional[str] = None,
) -> DispatchRecord:
    """Trigger a chain with Epic coverage for a patient identified elsewhere.

    Epic reports carry no date of birth, so the identity is supplied by the
    caller.
    """
    source_id = require_source_id(identity)
    payload = dispatcher.payload_for(source_id, chain, build_epic_variables(identity, epic))
    return dispatcher.dispatch(payload, idempotency_key)


def process_intake(
    document: PatientDocumentResult,
    insurance_front: InsuranceCardResult,
    dispatcher: AutomationDispatcher,
    insurance_back: Optional[InsuranceCardResult] = None,
    chain: str = INTAKE_CHAIN,
    idempotency_key: Optional[str] = None,
) -> DispatchRecord:
    """Submit a patient intake: identity document plus insurance card.

    Identity comes from the document; insurance fields from the card front.
    """
    identity = to_identity(document)
    require_source_id(identity)

    variables = build_intake_variables(
        identity, document, insurance_front, has_insurance_back=insurance_back is not None
    )
    payload = dispatcher.payload_for(identity.source_id, chain, variables)
    logger.info(f"Submitting patient intake with {len(variables)} starting variables")
    return dispatcher.dispatch(payload, idempotency_key)
