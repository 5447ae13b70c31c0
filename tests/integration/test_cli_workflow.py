"""Integration tests for CLI workflows against the in-process server."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from providerloop_chains.cli.main import cli
from providerloop_chains.models.dispatch import DispatchStatus
from providerloop_chains.server.config import ServerConfig

pytestmark = pytest.mark.integration

SOURCE_ID = "Smith_John__01_15_1980"


@pytest.fixture
def invoke(config_file, server_session):
    """Invoke the CLI with dispatches routed to the in-process server."""
    runner = CliRunner()

    def _invoke(*args, session=None):
        with patch("providerloop_chains.cli.main.configure_logging"), patch(
            "providerloop_chains.automation.dispatcher.create_session_from_config",
            return_value=session or server_session,
        ):
            return runner.invoke(cli, ["--config", str(config_file), *args])

    return _invoke


class TestDispatchWorkflow:
    """Trigger from the CLI, receive the agent callback, inspect the log."""

    def test_trigger_callback_and_inspect(self, invoke, client, dispatch_log):
        # Act: trigger
        result = invoke("dispatch", "trigger", "--source-id", SOURCE_ID, "--chain", "attachment processing (sleep study)")

        # Assert
        assert result.exit_code == 0, result.output
        record = dispatch_log.all()[0]
        assert record.status is DispatchStatus.SUCCEEDED
        assert record.payload.chain_to_run == "ATTACHMENT PROCESSING (SLEEP STUDY)"
        assert f"ChainRun_ID:     {record.chain_run_id}" in result.output

        # Act: agent callback, then list
        callback = client.post(
            "/webhook/agents",
            json={"Chain Run ID": record.chain_run_id, "summ": "Sleep study filed", "name": "Sleep Agent"},
        )
        listed = invoke("logs", "list")
        summary = invoke("logs", "summary")

        # Assert
        assert callback.status_code == 200
        assert f"run={record.chain_run_id}" in listed.output
        assert "agent=Sleep Agent" in listed.output
        assert "Agent replies:  1" in summary.output

    def test_custom_chain_dispatch(self, invoke, server_session):
        added = invoke("chains", "add", "QuickAddQHC")
        result = invoke("dispatch", "trigger", "--source-id", SOURCE_ID, "--chain", "quickaddqhc")

        assert added.exit_code == 0
        assert result.exit_code == 0, result.output
        assert server_session.requests[0]["json"]["chain_to_run"] == "QuickAddQHC"

    def test_retry_after_server_failure(self, invoke, dispatch_log, session_for):
        failing = session_for(ServerConfig(failure_rate=1.0))

        failed = invoke(
            "dispatch", "trigger", "--source-id", SOURCE_ID, "--idempotency-key", "visit-9",
            session=failing,
        )
        retried = invoke("dispatch", "trigger", "--source-id", SOURCE_ID, "--idempotency-key", "visit-9")

        assert failed.exit_code == 1
        assert "Retry with --idempotency-key visit-9" in failed.output
        assert retried.exit_code == 0, retried.output
        assert [r.status for r in dispatch_log.all()] == [DispatchStatus.SUCCEEDED]


class TestPatientWorkflow:
    """Roster to Source IDs to dispatch."""

    def test_roster_output_feeds_dispatch(self, invoke, tmp_path, server_session):
        # Arrange
        roster = tmp_path / "roster.csv"
        roster.write_text(
            "FirstName,LastName,DOB\nmaria,GARCIA,3/3/75\nJohn,Smith,01/15/1980\n", encoding="utf-8"
        )

        # Act
        parsed = invoke("patient", "roster", str(roster))
        source_ids = parsed.output.split()
        results = [invoke("dispatch", "trigger", "--source-id", source_id) for source_id in source_ids]

        # Assert
        assert source_ids == ["Garcia_Maria__03_03_1975", SOURCE_ID]
        assert all(r.exit_code == 0 for r in results)
        sent = [request["json"]["starting_variables"] for request in server_session.requests]
        assert [v["last_name"] for v in sent] == ["Garcia", "Smith"]
        assert [v["date_of_birth"] for v in sent] == ["03/03/1975", "01/15/1980"]

    def test_parse_json_output(self, invoke):
        result = invoke("patient", "parse", "--json", "My name is Ann Lee, DOB 12-31-1999")

        data = json.loads(result.output)
        assert data["source_id"] == "Lee_Ann__12_31_1999"
        assert "name_is" in data["matched_patterns"]
