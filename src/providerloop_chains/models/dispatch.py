"""Automation dispatch data models.

This module defines the chain-trigger payload and the record kept for each
submission, including its idempotency key and explicit dispatch status.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AutomationDispatchPayload:
    """Body of a start-chain-run request.

    Attributes:
        chain_to_run: Name of the automation chain
        run_email: Account email the chain runs under
        human_readable_record: Label shown in the automation service
        source_id: Patient Source ID (optional)
        first_step_user_input: Free-form input for the chain's first step
        starting_variables: String variables passed to the chain
    """

    chain_to_run: str
    run_email: str
    human_readable_record: str = "external app"
    source_id: Optional[str] = None
    first_step_user_input: Optional[str] = None
    starting_variables: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire, omitting empty optional fields."""
        body: dict[str, Any] = {
            "run_email": self.run_email,
            "chain_to_run": self.chain_to_run,
            "human_readable_record": self.human_readable_record,
        }
        if self.source_id:
            body["source_id"] = self.source_id
        if self.first_step_user_input:
            body["first_step_user_input"] = self.first_step_user_input

        variables = {k: v for k, v in self.starting_variables.items() if v not in (None, "")}
        if variables:
            body["starting_variables"] = variables
        return body

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutomationDispatchPayload":
        return cls(
            chain_to_run=data.get("chain_to_run", ""),
            run_email=data.get("run_email", ""),
            human_readable_record=data.get("human_readable_record", "external app"),
            source_id=data.get("source_id"),
            first_step_user_input=data.get("first_step_user_input"),
            starting_variables=dict(data.get("starting_variables") or {}),
        )


class DispatchStatus(str, Enum):
    """Lifecycle of one chain submission."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class DispatchRecord:
    """Stored outcome of a chain submission.

    Attributes:
        idempotency_key: Client-generated key identifying this submission
        payload: Payload that was sent
        status: PENDING until the trigger call returns
        chain_run_id: Run identifier returned by the automation service
        response_text: Raw response body
        status_code: HTTP status code, if a response was received
        error_message: User-facing error (raw response text on non-2xx)
        created_at: When the submission started
        updated_at: Last status change
        agent_response: Agent output delivered by webhook, if any
        agent_name: Name of the agent system that replied
        agent_received_at: When the agent response arrived
    """

    idempotency_key: str
    payload: AutomationDispatchPayload
    status: DispatchStatus = DispatchStatus.PENDING
    chain_run_id: Optional[str] = None
    response_text: Optional[str] = None
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)
    agent_response: Optional[str] = None
    agent_name: Optional[str] = None
    agent_received_at: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        """True once an agent response has been recorded."""
        return self.agent_response is not None

    def mark(self, status: DispatchStatus, **changes: Any) -> None:
        """Move to a new status and apply field changes."""
        self.status = status
        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["payload"] = self.payload.to_dict()
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DispatchRecord":
        data = dict(data)
        data["payload"] = AutomationDispatchPayload.from_dict(data.get("payload") or {})
        data["status"] = DispatchStatus(data.get("status", DispatchStatus.PENDING.value))
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in known})
