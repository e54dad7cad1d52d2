"""Tests for the CLI module."""

import json

import pytest
from unittest.mock import patch, MagicMock
from click.testing import CliRunner

from mailagent.cli import main, interpret, run, status
from mailagent.mailchimp import MailchimpSettings
from mailagent.schemas import (
    ActionResult,
    ActionStatus,
    AgentResponse,
    LogEntry,
    LogLevel,
    SendCampaignAction,
)


def _sample_response(configured: bool = True) -> AgentResponse:
    return AgentResponse(
        configured=configured,
        summary="Completed 1 action: 1 succeeded",
        interpretation=(
            LogEntry(level=LogLevel.INFO, title="Send campaign", message="Send campaign 9a8b7c."),
        ),
        execution=(
            LogEntry(level=LogLevel.INFO, title="Send campaign 9a8b7c", message="Running step 1 of 1."),
            LogEntry(level=LogLevel.SUCCESS, title="Send campaign 9a8b7c succeeded", message="Sent"),
        ),
        results=(
            ActionResult(
                action=SendCampaignAction(campaign_id="9a8b7c"),
                status=ActionStatus.SUCCESS,
                detail="Sent campaign 9a8b7c",
                data={"id": "9a8b7c", "status": "sent"},
            ),
        ),
    )


class TestCLI:
    """Test CLI commands."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    def test_main_help(self, runner):
        """Main command shows help."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "MailAgent" in result.output
        assert "mailchimp" in result.output.lower()

    def test_version(self, runner):
        """Version flag works."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestRunCommand:
    """Test run command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @patch("mailagent.agent.run_instruction")
    def test_run_prints_traces(self, mock_run, runner):
        mock_run.return_value = _sample_response()

        result = runner.invoke(run, ["Send campaign 9a8b7c"])

        assert result.exit_code == 0
        assert "Interpretation" in result.output
        assert "Execution" in result.output
        assert "Completed 1 action: 1 succeeded" in result.output
        assert "credentials missing" not in result.output

    @patch("mailagent.agent.run_instruction")
    def test_run_passes_config(self, mock_run, runner):
        mock_run.return_value = _sample_response()

        result = runner.invoke(
            run,
            ["Add x@y.com", "--list-id", "1a2b3c4d5e", "--tag", "vip", "--tag", "beta"],
        )

        assert result.exit_code == 0
        config = mock_run.call_args[0][1]
        assert config.list_id == "1a2b3c4d5e"
        assert config.tags == ("vip", "beta")

    @patch("mailagent.agent.run_instruction")
    def test_run_raw_outputs_json(self, mock_run, runner):
        mock_run.return_value = _sample_response()

        result = runner.invoke(run, ["Send campaign 9a8b7c", "--raw"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["summary"] == "Completed 1 action: 1 succeeded"
        assert data["results"][0]["action"]["campaignId"] == "9a8b7c"

    @patch("mailagent.agent.run_instruction")
    def test_run_warns_when_unconfigured(self, mock_run, runner):
        mock_run.return_value = _sample_response(configured=False)

        result = runner.invoke(run, ["Send campaign 9a8b7c"])

        assert "credentials missing" in result.output

    @patch("mailagent.agent.run_instruction")
    def test_run_rejects_bad_reply_to(self, mock_run, runner):
        result = runner.invoke(run, ["List campaigns", "--reply-to", "nope"])

        assert result.exit_code == 2
        mock_run.assert_not_called()

    def test_run_rejects_blank_instruction(self, runner):
        result = runner.invoke(run, ["   "])
        assert result.exit_code == 2


class TestInterpretCommand:
    """Test interpret (dry run) command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_interpret_shows_plan(self, runner):
        result = runner.invoke(interpret, ["Send campaign 9a8b7c"])

        assert result.exit_code == 0
        assert "Planned actions:" in result.output
        assert '"campaignId": "9a8b7c"' in result.output

    def test_interpret_unrecognized(self, runner):
        result = runner.invoke(interpret, ["Hello there"])

        assert result.exit_code == 0
        assert "(none)" in result.output
        assert "WARNING" in result.output


class TestStatusCommand:
    """Test status command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @patch("mailagent.mailchimp.load_settings")
    def test_status_unconfigured(self, mock_settings, runner):
        mock_settings.return_value = MailchimpSettings()

        result = runner.invoke(status)

        assert result.exit_code == 0
        assert "not configured" in result.output

    @patch("mailagent.mailchimp.MailchimpClient")
    @patch("mailagent.mailchimp.load_settings")
    def test_status_configured(self, mock_settings, mock_client_cls, runner):
        mock_settings.return_value = MailchimpSettings(api_key="k-us21", server_prefix="us21")
        mock_client = MagicMock()
        mock_client.ping.return_value = True
        mock_client_cls.return_value = mock_client

        result = runner.invoke(status)

        assert result.exit_code == 0
        assert "us21" in result.output
        assert "Connectivity: ok" in result.output
