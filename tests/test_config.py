import pytest
from pydantic import ValidationError

from core.config import ChatSettings, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SECRET_KEY", "JWT_SECRET_KEY", "ACCESS_TOKEN_EXPIRE_MINUTES",
                 "JWT_EXPIRATION_MINUTES", "PROJECT_NAME", "APP_NAME"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_legacy_env_names_are_accepted(clean_env):
    clean_env.setenv("JWT_SECRET_KEY", "from-legacy-name")
    clean_env.setenv("JWT_EXPIRATION_MINUTES", "5")
    clean_env.setenv("APP_NAME", "Forum")

    s = Settings(_env_file=None)

    assert s.SECRET_KEY == "from-legacy-name"
    assert s.ACCESS_TOKEN_EXPIRE_MINUTES == 5
    assert s.PROJECT_NAME == "Forum"


def test_secret_key_is_required(clean_env):
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_nested_chat_settings_from_env(clean_env):
    clean_env.setenv("SECRET_KEY", "s")
    clean_env.setenv("CHAT__INTAKE_MAX", "8")
    clean_env.setenv("CHAT__HISTORY_LIMIT", "20")

    s = Settings(_env_file=None)

    assert s.chat.intake_max == 8
    assert s.chat.history_limit == 20


@pytest.mark.parametrize(
    "overrides",
    [
        {"ping_period_s": 60, "pong_wait_s": 60},
        {"send_queue_max": 0},
        {"intake_max": 0},
    ],
)
def test_chat_settings_reject_inconsistent_values(overrides):
    with pytest.raises(ValidationError):
        ChatSettings(**overrides)
