from __future__ import annotations

import pytest

from client import DEFAULT_SESSION_NAME, TelegramCredentials, read_credentials
from settings import ConfigError


def test_read_credentials_from_mapping() -> None:
    creds = read_credentials({"API_ID": " 12345 ", "API_HASH": "abc", "SESSION_NAME": "phone-a"})
    assert creds == TelegramCredentials(api_id=12345, api_hash="abc", session_name="phone-a")


def test_session_name_defaults() -> None:
    creds = read_credentials({"API_ID": "1", "API_HASH": "abc", "SESSION_NAME": ""})
    assert creds.session_name == DEFAULT_SESSION_NAME


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"API_ID": "1"},
        {"API_HASH": "abc"},
        {"API_ID": "not-a-number", "API_HASH": "abc"},
    ],
)
def test_missing_or_bad_credentials_raise_config_error(env) -> None:
    with pytest.raises(ConfigError):
        read_credentials(env)
