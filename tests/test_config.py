from __future__ import annotations

import pytest
from pydantic import ValidationError

from jules_mcp.config import JulesSettings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JULES_API_KEY", raising=False)

    settings = JulesSettings(_env_file=None)

    assert settings.api_base_url == "https://jules.googleapis.com"
    assert settings.api_version == "v1alpha"
    assert settings.create_max_attempts == 3
    assert settings.create_backoff_seconds == 1.0
    assert not settings.api_configured


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JULES_API_KEY", "secret")
    monkeypatch.setenv("JULES_API_BASE_URL", "https://proxy.example.com/")
    monkeypatch.setenv("JULES_LOG_LEVEL", "debug")
    monkeypatch.setenv("JULES_CREATE_MAX_ATTEMPTS", "5")

    settings = JulesSettings(_env_file=None)

    assert settings.api_configured
    assert settings.api_key.get_secret_value() == "secret"
    assert "secret" not in repr(settings)
    assert settings.api_base_url == "https://proxy.example.com"
    assert settings.log_level == "DEBUG"
    assert settings.create_max_attempts == 5


def test_blank_api_key_is_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JULES_API_KEY", "   ")

    assert not JulesSettings(_env_file=None).api_configured


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("JULES_LOG_LEVEL", "verbose"),
        ("JULES_CREATE_MAX_ATTEMPTS", "0"),
        ("JULES_CREATE_BACKOFF_SECONDS", "-1"),
        ("JULES_REQUEST_TIMEOUT", "0"),
    ],
)
def test_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        JulesSettings(_env_file=None)
