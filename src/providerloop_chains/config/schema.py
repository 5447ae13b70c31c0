"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EndpointsConfig(BaseModel):
    """Configuration for external service URLs.

    Attributes:
        automation_url: Start-chain-run endpoint of the automation service
        cardscan_url: Base URL of the card-scanning API
    """

    automation_url: str = Field(..., description="Automation chain trigger URL")
    cardscan_url: str = Field(
        default="https://api.cardscan.ai/v1",
        description="Card-scanning API base URL",
    )

    @field_validator("automation_url", "cardscan_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS.

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v


class OpenAIConfig(BaseModel):
    """Configuration for the OpenAI vision and transcription oracles.

    Attributes:
        api_key_env_var: Environment variable holding the API key
        vision_model: Chat model used for image extraction
        transcription_model: Speech-to-text model
        max_tokens: Token cap for structured extraction responses
        language: Language hint for transcription
    """

    api_key_env_var: str = Field(default="OPENAI_API_KEY")
    vision_model: str = Field(default="gpt-4o")
    transcription_model: str = Field(default="whisper-1")
    max_tokens: int = Field(default=2000, ge=1)
    language: Optional[str] = Field(default="en")


class CardScanConfig(BaseModel):
    """Configuration for the card-scanning API.

    Attributes:
        api_key_env_var: Environment variable holding the API key
    """

    api_key_env_var: str = Field(default="CARDSCAN_API_KEY")


class AutomationConfig(BaseModel):
    """Configuration for automation chain dispatch.

    Attributes:
        run_email: Account email the automation service runs chains under
        default_chain: Chain used when none is selected
        human_readable_record: Default record label sent with each run
        timeout_seconds: Read timeout for the trigger call
    """

    run_email: str = Field(default="automation@providerloop.com")
    default_chain: str = Field(default="ATTACHMENT PROCESSING (LABS)")
    human_readable_record: str = Field(default="external app")
    timeout_seconds: int = Field(default=30, ge=1)

    @field_validator("run_email")
    @classmethod
    def validate_run_email(cls, v: str) -> str:
        """Validate run email looks like an address."""
        if "@" not in v:
            raise ValueError(f"Invalid run_email: {v}. Must be an email address")
        return v

    @field_validator("default_chain")
    @classmethod
    def validate_default_chain(cls, v: str) -> str:
        """Validate default chain name is not blank."""
        if not v.strip():
            raise ValueError("default_chain cannot be empty")
        return v.strip()


class TransportConfig(BaseModel):
    """Configuration for HTTP/HTTPS transport.

    Attributes:
        verify_tls: Whether to verify TLS certificates
        timeout_connect: Connection timeout in seconds
        timeout_read: Read timeout in seconds for non-automation calls
        max_retries: Automatic retry attempts (0 keeps dispatch single-shot)
        backoff_factor: Exponential backoff factor for retries
    """

    verify_tls: bool = True
    timeout_connect: int = Field(default=10, ge=1)
    timeout_read: int = Field(default=60, ge=1)
    max_retries: int = Field(default=0, ge=0)
    backoff_factor: float = Field(default=0.3, ge=0.0)


class UploadsConfig(BaseModel):
    """Size limits for uploaded files, in megabytes."""

    max_image_mb: float = Field(default=10, gt=0)
    max_audio_mb: float = Field(default=25, gt=0)
    max_pdf_mb: float = Field(default=50, gt=0)


class StorageConfig(BaseModel):
    """Local file storage locations.

    Attributes:
        dispatch_log_path: JSON-lines file of dispatch records
        custom_chains_path: JSON file of user-added chain names
    """

    dispatch_log_path: Path = Field(default=Path("data/dispatch-log.jsonl"))
    custom_chains_path: Path = Field(default=Path("data/custom-chains.json"))


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/providerloop-chains.log"))
    redact_pii: bool = Field(default=True)

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        return v_upper


class Config(BaseModel):
    """Root configuration model.

    Example:
        >>> config = Config(
        ...     endpoints=EndpointsConfig(
        ...         automation_url="http://localhost:8080/chains/start"
        ...     )
        ... )
        >>> config.automation.timeout_seconds
        30
    """

    endpoints: EndpointsConfig
    openai: OpenAIConfig = OpenAIConfig()
    cardscan: CardScanConfig = CardScanConfig()
    automation: AutomationConfig = AutomationConfig()
    transport: TransportConfig = TransportConfig()
    uploads: UploadsConfig = UploadsConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
