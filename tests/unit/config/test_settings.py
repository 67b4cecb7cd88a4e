"""Tests for settings loading."""

from pathlib import Path

import pytest

from ytanalytics.config.settings import ConfigurationError, Settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in [
        "YTANALYTICS_RETRY__MAX_ATTEMPTS",
        "YTANALYTICS_AUTH__REFRESH_POLICY",
        "YTANALYTICS_LOGGING__LEVEL",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Defaults, environment and TOML layering."""

    def test_defaults(self, tmp_path: Path) -> None:
        settings = Settings.from_config()

        assert settings.retry.max_attempts == 3
        assert settings.auth.refresh_margin_seconds == 300
        assert settings.auth.refresh_policy == "reactive"
        assert settings.auth.credentials_file == tmp_path / "xdg" / "ytanalytics" / "token.json"
        assert any("yt-analytics.readonly" in scope for scope in settings.auth.scopes)

    def test_environment_nested_delimiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YTANALYTICS_RETRY__MAX_ATTEMPTS", "5")
        monkeypatch.setenv("YTANALYTICS_AUTH__REFRESH_POLICY", "proactive")

        settings = Settings()

        assert settings.retry.max_attempts == 5
        assert settings.auth.refresh_policy == "proactive"

    def test_toml_file(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.toml"
        config.write_text(
            '[retry]\nmax_attempts = 4\njitter_ratio = 0.0\n\n[logging]\nlevel = "debug"\n'
        )

        settings = Settings.from_config(config)

        assert settings.retry.max_attempts == 4
        assert settings.retry.jitter_ratio == 0.0
        assert settings.logging.level == "DEBUG"

    def test_discovered_toml_in_working_directory(self, tmp_path: Path) -> None:
        (tmp_path / ".ytanalytics.toml").write_text("[auth]\nallow_interactive = false\n")

        settings = Settings.from_config()

        assert settings.auth.allow_interactive is False

    def test_environment_beats_toml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config = tmp_path / "settings.toml"
        config.write_text("[retry]\nmax_attempts = 4\n")
        monkeypatch.setenv("YTANALYTICS_RETRY__MAX_ATTEMPTS", "7")

        assert Settings.from_config(config).retry.max_attempts == 7

    def test_keyword_overrides_beat_toml(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.toml"
        config.write_text("[retry]\nmax_attempts = 4\nbase_delay = 2.0\n")

        settings = Settings.from_config(config, retry={"max_attempts": 2})

        assert settings.retry.max_attempts == 2
        assert settings.retry.base_delay == 2.0

    @pytest.mark.parametrize(
        "content",
        ["[retry\n", "[retry]\nmax_attempts = 0\n", "[logging]\nlevel = 'loud'\n"],
    )
    def test_invalid_toml(self, tmp_path: Path, content: str) -> None:
        config = tmp_path / "settings.toml"
        config.write_text(content)

        with pytest.raises(ConfigurationError):
            Settings.from_config(config)

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            Settings.from_config(tmp_path / "absent.toml")

    def test_each_load_reads_current_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        first = Settings.from_config()
        monkeypatch.setenv("YTANALYTICS_RETRY__MAX_ATTEMPTS", "7")

        second = Settings.from_config()

        assert first.retry.max_attempts == 3
        assert second.retry.max_attempts == 7
        assert second is not first

    def test_logging_defaults_to_warning(self) -> None:
        settings = Settings.from_config()

        assert settings.logging.level == "WARNING"
        assert settings.logging.format == "console"
        assert settings.logging.file is None
