"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "endpoints": {
        # Local mock automation server (providerloop-chains server start)
        "automation_url": "http://localhost:8080/chains/start",
        "cardscan_url": "https://api.cardscan.ai/v1",
    },
    "openai": {
        "api_key_env_var": "OPENAI_API_KEY",
        "vision_model": "gpt-4o",
        "transcription_model": "whisper-1",
        "max_tokens": 2000,
        "language": "en",
    },
    "cardscan": {
        "api_key_env_var": "CARDSCAN_API_KEY",
    },
    "automation": {
        "run_email": "automation@providerloop.com",
        "default_chain": "ATTACHMENT PROCESSING (LABS)",
        "human_readable_record": "external app",
        # Single trigger call is abandoned after 30 seconds
        "timeout_seconds": 30,
    },
    "transport": {
        "verify_tls": True,
        "timeout_connect": 10,
        "timeout_read": 60,
        # No automatic retry of chain triggers
        "max_retries": 0,
        "backoff_factor": 0.3,
    },
    "uploads": {
        "max_image_mb": 10,
        "max_audio_mb": 25,
        "max_pdf_mb": 50,
    },
    "storage": {
        "dispatch_log_path": "data/dispatch-log.jsonl",
        "custom_chains_path": "data/custom-chains.json",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/providerloop-chains.log",
        # Patient names, DOBs and Source IDs are redacted unless turned off
        "redact_pii": True,
    },
}

DEFAULT_CONFIG_PATH = "config/config.json"
