"""Models module.

This module provides data models and dataclasses for the application.
"""

from providerloop_chains.models.dispatch import (
    AutomationDispatchPayload,
    DispatchRecord,
    DispatchStatus,
)
from providerloop_chains.models.extraction import (
    DocumentType,
    EpicInsuranceResult,
    InsuranceCardResult,
    PatientDocumentResult,
    ScreenshotResult,
    TranscriptionResult,
)
from providerloop_chains.models.patient import PatientIdentity, TranscriptPatientInfo

__all__ = [
    "AutomationDispatchPayload",
    "DispatchRecord",
    "DispatchStatus",
    "DocumentType",
    "EpicInsuranceResult",
    "InsuranceCardResult",
    "PatientDocumentResult",
    "ScreenshotResult",
    "TranscriptionResult",
    "PatientIdentity",
    "TranscriptPatientInfo",
]
