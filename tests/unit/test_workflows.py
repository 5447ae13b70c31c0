"""Unit tests for capture-to-dispatch workflows."""

from unittest.mock import MagicMock

import pytest

from providerloop_chains.automation.dispatcher import AutomationDispatcher
from providerloop_chains.automation.workflows import (
    INTAKE_CHAIN,
    process_epic_insurance,
    process_intake,
    process_patient_document,
    process_transcript,
    require_source_id,
)
from providerloop_chains.extraction.normalizers import (
    normalize_epic_insurance,
    normalize_insurance_card,
    normalize_patient_document,
)
from providerloop_chains.models.dispatch import DispatchStatus
from providerloop_chains.models.patient import PatientIdentity
from providerloop_chains.utils.exceptions import IncompleteIdentityError, InputValidationError

CHAIN = "ATTACHMENT PROCESSING (SLEEP STUDY)"


@pytest.fixture
def session(make_response):
    session = MagicMock()
    session.post.return_value = make_response(200, json_data={"ChainRun_ID": "run-1"})
    return session


@pytest.fixture
def dispatcher(config, session, dispatch_log):
    return AutomationDispatcher(config, session=session, log=dispatch_log)


def _sent_body(session):
    return session.post.call_args.kwargs["json"]


class TestRequireSourceId:
    """Tests for require_source_id."""

    def test_complete(self):
        identity = PatientIdentity("John", "Smith", "01/15/1980")

        assert require_source_id(identity) == "Smith_John__01_15_1980"

    def test_incomplete(self):
        with pytest.raises(IncompleteIdentityError) as exc_info:
            require_source_id(PatientIdentity(first_name="John"))

        assert exc_info.value.missing_fields == ["last_name", "date_of_birth"]


class TestProcessTranscript:
    """Tests for process_transcript."""

    def test_dispatches_with_source_id(self, dispatcher, session):
        # Act
        record = process_transcript(
            "Patient is John Smith, born 01/15/1980", CHAIN, dispatcher, duration_seconds=61
        )

        # Assert
        assert record.status is DispatchStatus.SUCCEEDED
        body = _sent_body(session)
        assert body["source_id"] == "Smith_John__01_15_1980"
        assert body["chain_to_run"] == CHAIN
        assert body["starting_variables"]["recording_duration"] == "1:01"
        assert body["starting_variables"]["transcription_method"] == "upload"

    def test_missing_date_blocks_submission(self, dispatcher, session):
        with pytest.raises(IncompleteIdentityError) as exc_info:
            process_transcript("Patient is John Smith", CHAIN, dispatcher)

        assert exc_info.value.missing_fields == ["date_of_birth"]
        session.post.assert_not_called()

    def test_empty_transcript(self, dispatcher, session):
        with pytest.raises(InputValidationError, match="empty"):
            process_transcript("  ", CHAIN, dispatcher)
        session.post.assert_not_called()


class TestImageWorkflows:
    """Tests for document, Epic and intake workflows."""

    def test_process_patient_document(self, dispatcher, session):
        document = normalize_patient_document(
            {"firstName": "ANN", "lastName": "LEE", "dateOfBirth": "December 31, 1999"}
        )

        process_patient_document(document, CHAIN, dispatcher)

        assert _sent_body(session)["source_id"] == "Lee_Ann__12_31_1999"

    def test_process_patient_document_incomplete(self, dispatcher, session):
        document = normalize_patient_document({"firstName": "Ann"})

        with pytest.raises(IncompleteIdentityError):
            process_patient_document(document, CHAIN, dispatcher)
        session.post.assert_not_called()

    def test_process_epic_insurance(self, dispatcher, session):
        epic = normalize_epic_insurance({"primary": {"payer": "Aetna"}})
        identity = PatientIdentity("John", "Smith", "01/15/1980")

        process_epic_insurance(identity, epic, CHAIN, dispatcher)

        body = _sent_body(session)
        assert body["source_id"] == "Smith_John__01_15_1980"
        assert body["starting_variables"]["primary_payer"] == "Aetna"

    def test_process_intake(self, dispatcher, session):
        # Arrange
        document = normalize_patient_document(
            {"firstName": "John", "lastName": "Smith", "dateOfBirth": "01/15/1980"}
        )
        front = normalize_insurance_card({"insurer": {"name": "Aetna"}})
        back = normalize_insurance_card({"contact": {"customer_service_phone": "(800) 555-0100"}})

        # Act
        record = process_intake(document, front, dispatcher, insurance_back=back)

        # Assert
        assert record.status is DispatchStatus.SUCCEEDED
        body = _sent_body(session)
        assert body["chain_to_run"] == INTAKE_CHAIN
        assert body["starting_variables"]["Patient_ID"] == "Smith_John__01_15_1980"
        assert body["starting_variables"]["insurance_company"] == "Aetna"
        assert body["starting_variables"]["has_insurance_back"] == "true"
