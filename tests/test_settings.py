from __future__ import annotations

import json
import os

import pytest

import settings
from settings import ConfigError, load_settings


def _write(tmp_path, data) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return str(path)


def test_missing_file_uses_defaults(tmp_path) -> None:
    loaded = load_settings(str(tmp_path / "absent.json"))

    assert [t.name for t in loaded.templates] == ["debit_xx1133", "kotak_sent"]
    assert loaded.store.key == "sms_messages"
    assert loaded.store.max_records is None
    assert loaded.store.db_path == os.path.join(settings.PROJECT_ROOT, "data", "txnwatch.db")
    assert loaded.notifications.surface == "memory"
    assert loaded.dispatch.window_seconds == 10.0
    assert loaded.service.pid_path.endswith(os.path.join("data", "txnwatch.pid"))
    assert loaded.activation_command == []
    assert loaded.listener_sources == []


def test_full_config(tmp_path) -> None:
    path = _write(
        tmp_path,
        {
            "templates": [{"name": "upi", "pattern": r"UPI txn of Rs\.\d+"}],
            "store": {"db_path": str(tmp_path / "db.sqlite"), "key": "inbox", "max_records": 100},
            "notifications": {"surface": "bot", "bot_chat_id": 12345},
            "dispatch": {"window_seconds": 2.5},
            "service": {"pid_path": str(tmp_path / "svc.pid"), "stop_timeout_seconds": 1},
            "activation": {"command": ["txnwatch", "panel"]},
            "listener": {"sources": ["@smsforwarder"]},
            "logging": {"level": "DEBUG"},
        },
    )

    loaded = load_settings(path)

    assert [t.name for t in loaded.templates] == ["upi"]
    assert loaded.store.db_path == str(tmp_path / "db.sqlite")
    assert loaded.store.key == "inbox"
    assert loaded.store.max_records == 100
    assert loaded.notifications.surface == "bot"
    assert loaded.notifications.bot_chat_id == "12345"
    assert loaded.dispatch.window_seconds == 2.5
    assert loaded.service.stop_timeout_seconds == 1.0
    assert loaded.activation_command == ["txnwatch", "panel"]
    assert loaded.listener_sources == ["@smsforwarder"]
    assert loaded.logging == {"level": "DEBUG"}


def test_config_path_from_environment(tmp_path, monkeypatch) -> None:
    path = _write(tmp_path, {"store": {"key": "from_env"}})
    monkeypatch.setenv(settings.CONFIG_ENV, path)
    assert load_settings().store.key == "from_env"


@pytest.mark.parametrize(
    "data",
    [
        "{broken",
        "[]",
        {"templates": [{"name": "bad", "pattern": "(unclosed"}]},
        {"templates": "INR"},
        {"store": {"max_records": 0}},
        {"store": []},
        {"notifications": {"surface": "pager"}},
        {"dispatch": {"window_seconds": -1}},
        {"activation": {"command": "txnwatch panel"}},
    ],
)
def test_invalid_config_raises(tmp_path, data) -> None:
    with pytest.raises(ConfigError):
        load_settings(_write(tmp_path, data))
