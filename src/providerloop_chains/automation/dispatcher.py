"""Automation chain dispatcher.

Builds the start-chain-run request, sends it once, and records the outcome.
Every submission carries a client-generated idempotency key so that a user
retry of a submission that already succeeded does not start a second run.
"""

import json
import logging
import re
import time
import uuid
from dataclasses import replace
from typing import Any, Mapping, Optional

import requests

from providerloop_chains.automation.dispatch_log import DispatchLog
from providerloop_chains.config.schema import Config
from providerloop_chains.logging_audit.audit import log_audit_event, log_transaction
from providerloop_chains.models.dispatch import (
    AutomationDispatchPayload,
    DispatchRecord,
    DispatchStatus,
)
from providerloop_chains.transport.http_client import create_session_from_config
from providerloop_chains.utils.exceptions import DispatchError, InputValidationError

logger = logging.getLogger(__name__)

CHAIN_RUN_ID_PATTERN = re.compile(r'"ChainRun_ID"\s*:\s*"([^"]+)"')

IDEMPOTENCY_HEADER = "Idempotency-Key"
IDEMPOTENCY_VARIABLE = "idempotency_key"

# Top-level response keys tried after ChainRun_ID
_RESPONSE_ID_KEYS = ("ChainRun_ID", "chainRunId", "runId", "id", "uniqueId")

# Keys tried on the first row of an AppSheet-style response
_ROW_ID_KEYS = ("Run_ID", "_RowNumber", "ID", "Run_Auto_Key", "Chain_Run_Key", "id")


def build_payload(
    source_id: Optional[str],
    chain_to_run: str,
    starting_variables: Optional[Mapping[str, str]] = None,
    run_email: str = "",
    human_readable_record: str = "external app",
    first_step_user_input: Optional[str] = None,
) -> AutomationDispatchPayload:
    """Assemble a chain-trigger payload.

    Raises:
        InputValidationError: If chain_to_run or run_email is blank
    """
    if not chain_to_run or not chain_to_run.strip():
        raise InputValidationError("Please select a chain to run")
    if not run_email or not run_email.strip():
        raise InputValidationError("run_email is required to trigger a chain")

    return AutomationDispatchPayload(
        chain_to_run=chain_to_run.strip(),
        run_email=run_email.strip(),
        human_readable_record=human_readable_record,
        source_id=(source_id or "").strip() or None,
        first_step_user_input=(first_step_user_input or "").strip() or None,
        starting_variables=dict(starting_variables or {}),
    )


def _id_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value).strip()
    return text or None


def extract_chain_run_id(text: Optional[str]) -> Optional[str]:
    """Find the chain run ID in a trigger response.

    The literal "ChainRun_ID" field is located by regex first so that a body
    that is not strictly valid JSON still yields an ID. Failing that, the body
    is decoded and common ID keys are tried.

    Example:
        >>> extract_chain_run_id('{"ChainRun_ID": "abc-123", "status": "ok"}')
        'abc-123'
    """
    if not text:
        return None

    match = CHAIN_RUN_ID_PATTERN.search(text)
    if match:
        return match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    for key in _RESPONSE_ID_KEYS:
        found = _id_text(data.get(key))
        if found:
            return found

    responses = data.get("responses")
    if isinstance(responses, list) and responses and isinstance(responses[0], dict):
        rows = responses[0].get("rows")
        if isinstance(rows, list) and rows and isinstance(rows[0], dict):
            for key in _ROW_ID_KEYS:
                found = _id_text(rows[0].get(key))
                if found:
                    return found
    return None


class AutomationDispatcher:
    """Sends chain-trigger requests and tracks their outcome.

    Args:
        config: Loaded configuration
        session: HTTP session; one is created from transport settings if omitted
        log: Dispatch log; defaults to config.storage.dispatch_log_path

    Example:
        >>> dispatcher = AutomationDispatcher(config)
        >>> payload = build_payload("Smith_John__01_15_1980", "ATTACHMENT PROCESSING (LABS)",
        ...                         run_email=config.automation.run_email)
        >>> record = dispatcher.dispatch(payload)
        >>> record.status
        <DispatchStatus.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        config: Config,
        session: Optional[requests.Session] = None,
        log: Optional[DispatchLog] = None,
    ) -> None:
        self.config = config
        self.session = session or create_session_from_config(config.transport)
        self.log = log if log is not None else DispatchLog(config.storage.dispatch_log_path)

    @property
    def timeout(self) -> tuple[int, int]:
        return (self.config.transport.timeout_connect, self.config.automation.timeout_seconds)

    def payload_for(
        self,
        source_id: Optional[str],
        chain_to_run: str,
        starting_variables: Optional[Mapping[str, str]] = None,
        first_step_user_input: Optional[str] = None,
    ) -> AutomationDispatchPayload:
        """build_payload with run_email and record label taken from configuration."""
        return build_payload(
            source_id,
            chain_to_run,
            starting_variables,
            run_email=self.config.automation.run_email,
            human_readable_record=self.config.automation.human_readable_record,
            first_step_user_input=first_step_user_input,
        )

    def dispatch(
        self,
        payload: AutomationDispatchPayload,
        idempotency_key: Optional[str] = None,
    ) -> DispatchRecord:
        """Trigger a chain run.

        Failures are recorded on the returned record rather than raised.

        Args:
            payload: Chain-trigger payload
            idempotency_key: Key of an earlier attempt being retried; a new
                UUID4 is generated when omitted

        Returns:
            DispatchRecord with status SUCCEEDED or FAILED (or the earlier
            SUCCEEDED record when the key has already succeeded)
        """
        key = idempotency_key or str(uuid.uuid4())

        existing = self.log.get(key)
        if existing is not None and existing.status is DispatchStatus.SUCCEEDED:
            logger.info(
                f"Submission {key} already succeeded (chain run {existing.chain_run_id}); "
                "not sending again"
            )
            return existing

        payload = replace(
            payload,
            starting_variables={**payload.starting_variables, IDEMPOTENCY_VARIABLE: key},
        )
        record = DispatchRecord(idempotency_key=key, payload=payload)
        if existing is None:
            self.log.append(record)
        else:
            self.log.update(record)

        body = payload.to_dict()
        request_text = json.dumps(body)
        url = self.config.endpoints.automation_url
        logger.info(f"Triggering chain '{payload.chain_to_run}' ({key})")
        start = time.time()

        try:
            response = self.session.post(
                url,
                json=body,
                headers={IDEMPOTENCY_HEADER: key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Chain trigger request failed: {e}")
            record.mark(DispatchStatus.FAILED, error_message=f"Error: {e}")
            self._finish(record, request_text, time.time() - start)
            return record

        response_text = response.text
        if response.ok:
            record.mark(
                DispatchStatus.SUCCEEDED,
                status_code=response.status_code,
                response_text=response_text,
                chain_run_id=extract_chain_run_id(response_text),
            )
            if record.chain_run_id is None:
                logger.warning("Chain trigger succeeded but no ChainRun_ID was found in the response")
        else:
            record.mark(
                DispatchStatus.FAILED,
                status_code=response.status_code,
                response_text=response_text,
                error_message=response_text or f"HTTP {response.status_code}",
            )

        self._finish(record, request_text, time.time() - start)
        return record

    def _finish(self, record: DispatchRecord, request_text: str, duration: float) -> None:
        self.log.update(record)
        succeeded = record.status is DispatchStatus.SUCCEEDED
        log_transaction(
            "CHAIN_TRIGGER",
            request_text,
            record.response_text or record.error_message or "",
            status="success" if succeeded else "failure",
        )
        details: dict[str, Any] = {
            "status": "success" if succeeded else "failure",
            "chain": record.payload.chain_to_run,
            "idempotency_key": record.idempotency_key,
            "duration": duration,
        }
        if succeeded:
            details["chain_run_id"] = record.chain_run_id or ""
        else:
            details["error_message"] = record.error_message
            if record.status_code is not None:
                details["status_code"] = record.status_code
        log_audit_event("DISPATCH_SUCCEEDED" if succeeded else "DISPATCH_FAILED", details)

    def dispatch_or_raise(
        self,
        payload: AutomationDispatchPayload,
        idempotency_key: Optional[str] = None,
    ) -> DispatchRecord:
        """Like dispatch(), but raise DispatchError when the trigger fails.

        Raises:
            DispatchError: Carrying the raw response text and status code
        """
        record = self.dispatch(payload, idempotency_key)
        if record.status is not DispatchStatus.SUCCEEDED:
            raise DispatchError(
                record.error_message or "Chain trigger failed",
                response_text=record.response_text,
                status_code=record.status_code,
            )
        return record
