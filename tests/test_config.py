import pytest

from referral_dispatch.config import ConfigError, get_settings


def test_defaults(monkeypatch) -> None:
    for name in ("TIMEZONE", "MAX_CONCURRENT_ACTIONS", "ACTION_TIMEOUT_SECONDS", "REGISTER_COMMAND"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.timezone == "UTC"
    assert settings.max_concurrent_actions == 1
    assert settings.action_timeout_seconds == 300


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("TIMEZONE", "Mars/Olympus_Mons"),
        ("MAX_CONCURRENT_ACTIONS", "0"),
        ("MAX_CONCURRENT_ACTIONS", "many"),
        ("ACTION_TIMEOUT_SECONDS", "0"),
        ("STORE_MAX_RETRIES", "-1"),
        ("SCHEDULE_HOUR", "24"),
        ("REGISTER_COMMAND", "  "),
    ],
)
def test_invalid_values_raise_config_error(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=name if name != "SCHEDULE_HOUR" else "schedule time"):
        get_settings()
