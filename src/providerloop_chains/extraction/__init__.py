"""Extraction module.

Upload validation, OCR and transcription oracles, and normalization of their
output into fixed-shape result models.
"""

from providerloop_chains.extraction.normalizers import (
    clamp_confidence,
    normalize_extraction,
    parse_oracle_json,
    to_identity,
)
from providerloop_chains.extraction.uploads import encode_base64, guess_mime, validate_upload

__all__ = [
    "clamp_confidence",
    "normalize_extraction",
    "parse_oracle_json",
    "to_identity",
    "encode_base64",
    "guess_mime",
    "validate_upload",
]
