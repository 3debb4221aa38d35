"""
Tests for the command-line interface.
"""

import json
from unittest.mock import Mock, patch

import pytest

from tool_loop.cli import DEMO_PROMPT, InteractiveCLI, Runner, build_parser, main, resolve_settings
from tool_loop.oracles import MockOracle, ScriptedOracle
from tool_loop.tools import ToolRegistry, default_tools


@pytest.fixture(autouse=True)
def no_tracing():
    """Keep Langfuse out of CLI runs regardless of the environment."""
    with patch("tool_loop.cli.init_tracing_client") as mock_init:
        mock_init.return_value = Mock(enabled=False)
        yield mock_init


def _runner(oracle, **overrides) -> Runner:
    budgets = {"max_steps": 6, "context_window": 20, "max_tool_retries": 1}
    budgets.update(overrides)
    return Runner(oracle=oracle, registry=ToolRegistry(default_tools()), **budgets)


class TestMain:
    """Tests for main()."""

    def test_demo_json(self, capsys):
        """Test the demo run with JSON output."""
        exit_code = main(["--demo", "--json"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["query"] == DEMO_PROMPT
        assert output["ok"] is True
        assert output["steps"] == 2
        assert output["answer"].startswith("Total is 153.8")
        assert output["trace"][0]["action"] == "calc"

    def test_single_query_plain_output(self, capsys):
        """Test a single query printing only the answer."""
        exit_code = main(["-q", "hello", "--backend", "mock"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == "Mock: No tool needed."

    def test_exhausted_budget_exit_code(self, capsys):
        """Test that an unanswered run exits with 1."""
        with patch("tool_loop.cli.create_oracle", return_value=ScriptedOracle(["nope"] * 2)):
            exit_code = main(["-q", "hi", "--max-steps", "2"])

        assert exit_code == 1
        assert "Max steps (2) reached without a final answer." in capsys.readouterr().out

    def test_oracle_error_exit_code(self, capsys):
        """Test that an oracle failure exits with 1."""
        failing = Mock(spec=["generate"])
        failing.generate.side_effect = ConnectionError("refused")
        with patch("tool_loop.cli.create_oracle", return_value=failing):
            exit_code = main(["-q", "hi"])

        assert exit_code == 1
        assert "refused" in capsys.readouterr().err

    def test_invalid_budget(self, capsys):
        """Test that a bad budget is a configuration error."""
        exit_code = main(["-q", "hi", "--backend", "mock", "--max-steps", "0"])

        assert exit_code == 2
        assert "max_steps" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path, capsys):
        """Test a missing configuration file."""
        exit_code = main(["-q", "hi", "-c", str(tmp_path / "missing.yaml")])

        assert exit_code == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_config_file(self, tmp_path, capsys):
        """Test budgets taken from a configuration file."""
        path = tmp_path / "config.yaml"
        path.write_text("oracle:\n  backend: mock\nloop:\n  max_steps: 1\n")

        exit_code = main(["--demo", "--json", "-c", str(path)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["ok"] is False
        assert output["steps"] == 1

    def test_closes_oracle(self):
        """Test that oracles with close() are closed on exit."""
        oracle = Mock()
        oracle.generate.return_value = '{"type":"final","answer":"x"}'
        with patch("tool_loop.cli.create_oracle", return_value=oracle):
            main(["-q", "hi"])

        oracle.close.assert_called_once()


class TestResolveSettings:
    """Tests for merging configuration and flags."""

    def test_flag_overrides(self):
        """Test that flags win over configuration."""
        args = build_parser().parse_args(
            ["--backend", "ollama", "--model", "qwen", "--base-url", "http://gpu:11434",
             "--max-steps", "3", "--context-window", "5", "--max-tool-retries", "0"]
        )

        settings = resolve_settings(args)

        assert settings.oracle.backend == "ollama"
        assert settings.oracle.model == "qwen"
        assert settings.oracle.base_url == "http://gpu:11434"
        assert (settings.max_steps, settings.context_window, settings.max_tool_retries) == (3, 5, 0)

    def test_demo_forces_mock(self):
        """Test that --demo without a backend uses the mock oracle."""
        settings = resolve_settings(build_parser().parse_args(["--demo"]))
        assert settings.oracle.backend == "mock"


class TestInteractiveCLI:
    """Tests for interactive mode."""

    def test_commands_and_query(self, capsys):
        """Test a short interactive session."""
        runner = _runner(MockOracle())
        inputs = ["/trace", "/tools", "", "What now?", "/trace", "/bogus", "/quit"]

        with patch("builtins.input", side_effect=inputs):
            InteractiveCLI(runner).run()

        out = capsys.readouterr().out
        assert "No trace available" in out
        assert " - calc: " in out
        assert "Mock: No tool needed." in out
        assert "ORCHESTRATION TRACE" in out
        assert "Unknown command: /bogus" in out
        assert "Goodbye!" in out

    def test_eof_exits(self, capsys):
        """Test that end of input ends the session."""
        with patch("builtins.input", side_effect=EOFError):
            InteractiveCLI(_runner(MockOracle())).run()

        assert "Goodbye!" in capsys.readouterr().out

    def test_oracle_error_keeps_session(self, capsys):
        """Test that an oracle failure is reported and the session continues."""
        with patch("builtins.input", side_effect=["hi", "/quit"]):
            InteractiveCLI(_runner(ScriptedOracle([]))).run()

        assert "Oracle error:" in capsys.readouterr().out


class TestRunner:
    """Tests for Runner."""

    def test_keeps_last_loop(self):
        """Test the last loop is kept for /trace."""
        runner = _runner(ScriptedOracle(['{"type":"final","answer":"a"}']))

        result = runner.run("q")

        assert result.ok is True
        assert runner.last_loop.get_trace()[0]["is_final"] is True

    def test_rejects_bad_budgets(self):
        """Test budget validation at construction."""
        with pytest.raises(ValueError):
            _runner(MockOracle(), context_window=0)
