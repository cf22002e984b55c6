"""Tests for the CLI module."""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from crowny.cli import main
from crowny.header import ProtocolHeader
from crowny.schemas import ConsensusResult, SourceResult, TaskResult
from crowny.trit import Trit


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def program_file(tmp_path):
    path = tmp_path / "program.crw"
    path.write_text("넣어 10\n넣어 20\n더해\n보여줘\n종료\n", encoding="utf-8")
    return path


class TestCLI:
    """Test top-level CLI behavior."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "ternary" in result.output.lower()

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestRunCommand:
    """Test run command."""

    def test_run_local(self, runner, program_file):
        result = runner.invoke(main, ["run", str(program_file), "--local"])
        assert result.exit_code == 0
        assert "[crowny] 30" in result.output
        assert "[P]" in result.output

    def test_run_local_json(self, runner, program_file):
        result = runner.invoke(main, ["--json", "run", str(program_file), "--local"])
        assert result.exit_code == 0
        payload = json.loads(result.output[result.output.index("{"):])
        assert payload["state"] == "P"
        assert payload["data"] == 30

    def test_run_local_failure_exit_code(self, runner, tmp_path):
        path = tmp_path / "bad.crw"
        path.write_text("jump 1\n", encoding="utf-8")

        result = runner.invoke(main, ["run", str(path), "--local"])

        assert result.exit_code == 1
        assert "[T]" in result.output

    @patch("crowny.cli.CrownyClient")
    def test_run_remote(self, mock_client_class, runner, program_file):
        mock_client = MagicMock()
        mock_client.run.return_value = TaskResult(state=Trit.PENDING, data={"state": "queued"}, task_id=1)
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["--url", "http://remote:7293", "run", str(program_file)])

        assert result.exit_code == 2
        mock_client.run.assert_called_once()
        config = mock_client_class.call_args[1]["config"]
        assert config.base_url == "http://remote:7293"

    def test_run_missing_file(self, runner):
        result = runner.invoke(main, ["run", "does-not-exist.crw"])
        assert result.exit_code != 0


class TestRemoteCommands:
    """Test commands that talk to the service."""

    @patch("crowny.cli.CrownyClient")
    def test_ask_with_model(self, mock_client_class, runner):
        mock_client = MagicMock()
        mock_client.ask.return_value = TaskResult(state=Trit.SUCCESS, data="answer", task_id=1)
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["ask", "why?", "--model", "gpt4"])

        assert result.exit_code == 0
        assert "answer" in result.output
        mock_client.ask.assert_called_once_with("why?", "gpt4")

    @patch("crowny.cli.CrownyClient")
    def test_compile(self, mock_client_class, runner, program_file):
        mock_client = MagicMock()
        mock_client.compile.return_value = TaskResult(state=Trit.FAILED, data="compile error", task_id=1)
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["compile", str(program_file)])

        assert result.exit_code == 1
        assert "compile error" in result.output

    @patch("crowny.cli.CrownyClient")
    def test_consensus_sources(self, mock_client_class, runner):
        trits = [Trit.SUCCESS, Trit.SUCCESS, Trit.FAILED]
        mock_client = MagicMock()
        mock_client.consensus_call.return_value = ConsensusResult(
            consensus=Trit.SUCCESS,
            per_source=[
                SourceResult(source=name, result=TaskResult(state=trit, task_id=i))
                for i, (name, trit) in enumerate(zip(["a", "b", "c"], trits), 1)
            ],
            trits=trits,
            header=ProtocolHeader.from_trits([Trit.SUCCESS, *trits]),
        )
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["consensus", "q", "-s", "a", "-s", "b", "-s", "c"])

        assert result.exit_code == 0
        assert "Consensus: P" in result.output
        assert "PPPTOOOOO" in result.output
        mock_client.consensus_call.assert_called_once_with("q", ["a", "b", "c"])

    @patch("crowny.cli.CrownyClient")
    def test_consensus_json(self, mock_client_class, runner):
        mock_client = MagicMock()
        mock_client.consensus_call.return_value = ConsensusResult(consensus=Trit.PENDING)
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["--json", "consensus", "q"])

        assert result.exit_code == 2
        payload = json.loads(result.output)
        assert payload["consensus"] == "O"
        assert payload["header"] == "OOOOOOOOO"
        mock_client.consensus_call.assert_called_once_with("q", None)

    @patch("crowny.cli.CrownyClient")
    def test_ping_unreachable(self, mock_client_class, runner):
        mock_client = MagicMock()
        mock_client.ping.return_value = TaskResult(state=Trit.FAILED, data="Service unreachable")
        mock_client_class.return_value = mock_client

        result = runner.invoke(main, ["ping"])

        assert result.exit_code == 1
        assert "unreachable" in result.output


class TestHeaderCommand:
    """Test header decoding."""

    def test_header_text(self, runner):
        result = runner.invoke(main, ["header", "PPTOOOOOO"])
        assert result.exit_code == 0
        assert "Header: PPTOOOOOO" in result.output
        assert "Overall: T" in result.output

    def test_header_json(self, runner):
        result = runner.invoke(main, ["--json", "header", "PPP"])
        payload = json.loads(result.output)
        assert payload["header"] == "PPPOOOOOO"
        assert payload["slots"]["permission"] == "P"
        assert payload["overall"] == "O"
