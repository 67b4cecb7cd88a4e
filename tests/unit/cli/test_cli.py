"""Tests for the command line interface."""

import importlib
import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from ytanalytics import __version__
from ytanalytics.cli.commands.tools import parse_arguments
from ytanalytics.cli.main import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def env(tmp_path: Path) -> dict[str, str]:
    return {
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
        "YTANALYTICS_AUTH__CREDENTIALS_FILE": str(tmp_path / "token.json"),
        "YTANALYTICS_AUTH__CLIENT_SECRETS_FILE": str(tmp_path / "credentials.json"),
        "YTANALYTICS_AUTH__ALLOW_INTERACTIVE": "false",
    }


def write_token(path: Path) -> None:
    path.write_text(
        json.dumps(
            {
                "type": "authorized_user",
                "client_id": "a",
                "client_secret": "b",
                "refresh_token": "r",
                "access_token": "t",
                "expiry_date": 4102444800000,
            }
        )
    )


@pytest.mark.cli
class TestCli:
    """Commands that need no network access."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_status_not_authenticated(
        self, runner: CliRunner, env: dict[str, str]
    ) -> None:
        result = runner.invoke(app, ["auth", "status"], env=env)

        assert result.exit_code == 0
        assert "Not authenticated" in result.output

    def test_status_authenticated(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        write_token(tmp_path / "token.json")

        result = runner.invoke(app, ["auth", "status"], env=env)

        assert result.exit_code == 0
        assert "Authenticated" in result.output
        assert "Not authenticated" not in result.output
        assert "2100-01-01" in result.output

    def test_revoke_cancelled(self, runner: CliRunner, env: dict[str, str]) -> None:
        result = runner.invoke(app, ["auth", "revoke"], env=env, input="n\n")

        assert result.exit_code == 0
        assert "Revoke cancelled" in result.output

    def test_login_without_client_config(
        self, runner: CliRunner, env: dict[str, str]
    ) -> None:
        result = runner.invoke(app, ["auth", "login", "--no-browser"], env=env)

        assert result.exit_code == 1
        assert "Login failed" in result.output

    def test_tools_list(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["tools", "list"])

        assert result.exit_code == 0
        assert "check_auth_status" in result.output

    def test_tools_call_auth_status(
        self, runner: CliRunner, env: dict[str, str], tmp_path: Path
    ) -> None:
        write_token(tmp_path / "token.json")

        result = runner.invoke(app, ["tools", "call", "check_auth_status"], env=env)

        assert result.exit_code == 0
        assert "Authentication Status: Authenticated" in result.output

    def test_tools_call_error_exits_nonzero(
        self, runner: CliRunner, env: dict[str, str]
    ) -> None:
        result = runner.invoke(app, ["tools", "call", "get_channel_info"], env=env)

        assert result.exit_code == 1
        assert "auth login" in result.output


@pytest.mark.cli
class TestLoggingOptions:
    """Logging follows the [logging] section unless flags override it."""

    @pytest.fixture
    def calls(self, monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
        recorded: list[dict[str, Any]] = []

        def record(**kwargs: Any) -> None:
            recorded.append(kwargs)

        monkeypatch.setattr(
            importlib.import_module("ytanalytics.cli.main"), "setup_logging", record
        )
        return recorded

    @pytest.fixture
    def config_file(self, tmp_path: Path) -> Path:
        log_file = tmp_path / "logs" / "ytanalytics.jsonl"
        path = tmp_path / "config.toml"
        path.write_text(
            f'[logging]\nlevel = "debug"\nformat = "json"\nfile = "{log_file.as_posix()}"\n'
        )
        return path

    def test_config_section_is_applied(
        self,
        runner: CliRunner,
        env: dict[str, str],
        calls: list[dict[str, Any]],
        config_file: Path,
        tmp_path: Path,
    ) -> None:
        result = runner.invoke(
            app, ["--config", str(config_file), "auth", "status"], env=env
        )

        assert result.exit_code == 0
        assert calls == [
            {
                "json_logs": True,
                "log_level_name": "DEBUG",
                "log_file": tmp_path / "logs" / "ytanalytics.jsonl",
            }
        ]

    def test_flags_override_config(
        self,
        runner: CliRunner,
        env: dict[str, str],
        calls: list[dict[str, Any]],
        config_file: Path,
    ) -> None:
        result = runner.invoke(
            app,
            [
                "--config",
                str(config_file),
                "--log-level",
                "ERROR",
                "--console-logs",
                "auth",
                "status",
            ],
            env=env,
        )

        assert result.exit_code == 0
        assert calls[0]["json_logs"] is False
        assert calls[0]["log_level_name"] == "ERROR"

    def test_defaults_without_config(
        self, runner: CliRunner, env: dict[str, str], calls: list[dict[str, Any]]
    ) -> None:
        result = runner.invoke(app, ["auth", "status"], env=env)

        assert result.exit_code == 0
        assert calls == [
            {"json_logs": False, "log_level_name": "WARNING", "log_file": None}
        ]


class TestParseArguments:
    """``--arg`` and ``--json`` merging."""

    def test_pairs_are_json_decoded_when_possible(self) -> None:
        assert parse_arguments(
            ["query=python", "max_results=5", 'metrics=["views"]'], None
        ) == {"query": "python", "max_results": 5, "metrics": ["views"]}

    def test_pairs_override_json(self) -> None:
        assert parse_arguments(["a=2"], '{"a": 1, "b": 3}') == {"a": 2, "b": 3}

    @pytest.mark.parametrize(("pairs", "raw"), [(["novalue"], None), ([], "[1]"), ([], "{")])
    def test_invalid_input(self, pairs: list[str], raw: str | None) -> None:
        import typer

        with pytest.raises(typer.BadParameter):
            parse_arguments(pairs, raw)
