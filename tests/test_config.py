"""Tests for settings."""

import pytest

from callgate.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.enable_remote_functions is True
        assert settings.enable_script_functions is True
        assert settings.parse_arg_values is False
        assert settings.script_timeout_ms is None

    def test_return_checks_follow_debug(self) -> None:
        assert Settings(_env_file=None).check_return_types is False
        assert Settings(_env_file=None, debug=True).check_return_types is True

    def test_explicit_strict_mode_wins(self) -> None:
        settings = Settings(_env_file=None, debug=True, strict_return_types=False)
        assert settings.check_return_types is False

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_SCRIPT_FUNCTIONS", "false")
        monkeypatch.setenv("SCRIPT_TIMEOUT_MS", "250")
        settings = Settings(_env_file=None)
        assert settings.enable_script_functions is False
        assert settings.script_timeout_ms == 250
