"""Chain dispatch examples.

This module demonstrates the capture-to-dispatch path: finding a patient in
a transcript, deriving the Source ID, triggering a chain, and handling the
three error tiers. Start the local server first so the default automation
URL answers:

    providerloop-chains server start
"""

import logging

from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.automation.workflows import process_transcript
from providerloop_chains.config import load_config
from providerloop_chains.models.dispatch import DispatchStatus
from providerloop_chains.reconciliation.source_id import derive_source_id, parse_source_id
from providerloop_chains.reconciliation.transcript import extract_patient_info
from providerloop_chains.utils.exceptions import (
    ErrorTier,
    IncompleteIdentityError,
    ValidationError,
    create_error_info,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

TRANSCRIPT = (
    "Okay, I'm speaking with Maria Garcia, date of birth March 3rd, 1975. "
    "She is here to go over her sleep study results."
)


def example_1_identify_patient():
    """Example 1: Find the patient in a transcript and derive the Source ID."""
    print("=" * 80)
    print("EXAMPLE 1: Identify Patient From Transcript")
    print("=" * 80)
    print()

    info = extract_patient_info(TRANSCRIPT)
    print(f"  First name:    {info.first_name}")
    print(f"  Last name:     {info.last_name}")
    print(f"  Date of birth: {info.date_of_birth}")
    print(f"  Source ID:     {info.source_id}")
    print(f"  Patterns:      {', '.join(info.matched_patterns)}")
    print()

    # Source IDs can be derived directly and split back apart
    source_id = derive_source_id("SMITH", "john", "1/15/80")
    identity = parse_source_id(source_id)
    print(f"  {source_id} -> {identity.last_name}, {identity.first_name} ({identity.date_of_birth})")
    print()


def example_2_dispatch_with_retry():
    """Example 2: Trigger a chain, retrying a failure with the same key.

    A retry that reuses the idempotency key of a submission that already
    succeeded returns the stored record instead of starting a second run.
    """
    print("=" * 80)
    print("EXAMPLE 2: Dispatch With Idempotent Retry")
    print("=" * 80)
    print()

    config = load_config()
    dispatcher = AutomationDispatcher(config)

    try:
        record = process_transcript(
            TRANSCRIPT, "ATTACHMENT PROCESSING (SLEEP STUDY)", dispatcher, method="recording"
        )
        if record.status is DispatchStatus.FAILED:
            print(f"  First attempt failed: {record.error_message}")
            record = process_transcript(
                TRANSCRIPT,
                "ATTACHMENT PROCESSING (SLEEP STUDY)",
                dispatcher,
                method="recording",
                idempotency_key=record.idempotency_key,
            )

        print(f"  Status:          {record.status.value}")
        print(f"  ChainRun_ID:     {record.chain_run_id}")
        print(f"  Idempotency key: {record.idempotency_key}")
    finally:
        dispatcher.session.close()
    print()


def example_3_error_tiers():
    """Example 3: Report errors by tier."""
    print("=" * 80)
    print("EXAMPLE 3: Error Tiers")
    print("=" * 80)
    print()

    config = load_config()
    dispatcher = AutomationDispatcher(config)

    for text in ("Patient is John Smith", "Patient is John Smith, born 02/30/1980"):
        try:
            process_transcript(text, "ATTACHMENT PROCESSING (LABS)", dispatcher)
        except (IncompleteIdentityError, ValidationError) as e:
            info = create_error_info(e)
            label = "fix input" if info.tier is ErrorTier.INPUT_VALIDATION else "re-capture"
            print(f"  [{info.tier.value}] {info.message}")
            print(f"    Next step ({label}): {info.remediation}")
    dispatcher.session.close()
    print()


if __name__ == "__main__":
    example_1_identify_patient()
    example_2_dispatch_with_retry()
    example_3_error_tiers()
