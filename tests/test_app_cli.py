from __future__ import annotations

import io
import json
import logging

import pytest
from rich.console import Console

import app
from core.models import InboundMessage
from settings import load_settings

DEBIT = "INR 500.00 debited from A/c no. XX1133 on 15-01-24"


def _config(tmp_path) -> str:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "store": {"db_path": str(tmp_path / "txnwatch.db")},
                "service": {"pid_path": str(tmp_path / "txnwatch.pid")},
                "logging": {"enabled": False},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_parse_batch() -> None:
    batch = app.parse_batch(json.dumps([{"sender": "A", "body": "x"}, {"sender": "B", "body": "y"}]))
    assert batch == [InboundMessage(sender="A", body="x"), InboundMessage(sender="B", body="y")]
    assert app.parse_batch('{"sender": "A", "body": "x"}') == [InboundMessage(sender="A", body="x")]


@pytest.mark.parametrize("raw", ["nope", "42", '[{"sender": "A"}]', '["text"]'])
def test_parse_batch_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(ValueError):
        app.parse_batch(raw)


def test_ingest_stores_matches_only(tmp_path, capsys) -> None:
    settings = load_settings(_config(tmp_path))
    batch = json.dumps(
        [
            {"sender": "VK-HDFCBK", "body": DEBIT},
            {"sender": "VM-OTP", "body": "Your OTP is 1234"},
        ]
    )

    assert app._ingest(settings, None, stdin=io.StringIO(batch)) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["received"] == 2
    assert report["matched"] == 1
    assert report["stored"] == 1

    records = app.build_pipeline(settings).store.load_all()
    assert [(r.sender, r.body) for r in records] == [("VK-HDFCBK", DEBIT)]


def test_ingest_from_file(tmp_path, capsys) -> None:
    settings = load_settings(_config(tmp_path))
    batch_path = tmp_path / "batch.json"
    batch_path.write_text(json.dumps([{"sender": "AD-KOTAK", "body": "Sent Rs.5 from Kotak Bank"}]), encoding="utf-8")

    assert app._ingest(settings, str(batch_path)) == 0
    assert json.loads(capsys.readouterr().out)["stored"] == 1


def test_ingest_rejects_bad_batch(tmp_path) -> None:
    settings = load_settings(_config(tmp_path))
    assert app._ingest(settings, None, stdin=io.StringIO("not json")) == 2


def test_ingest_missing_file_exits_with_error(tmp_path, caplog) -> None:
    settings = load_settings(_config(tmp_path))
    caplog.set_level(logging.ERROR)
    assert app._ingest(settings, str(tmp_path / "absent.json")) == 2
    assert "Cannot read batch file" in caplog.text


def test_service_status_without_running_service(tmp_path, capsys) -> None:
    assert app.main(["--config", _config(tmp_path), "service", "status"]) == 0
    assert capsys.readouterr().out.strip() == "stopped"


def test_config_error_exit_code(tmp_path, capsys) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"notifications": {"surface": "pager"}}', encoding="utf-8")
    assert app.main(["--config", str(path), "messages"]) == 2
    assert "config error" in capsys.readouterr().err


def test_messages_table(tmp_path) -> None:
    settings = load_settings(_config(tmp_path))
    app._ingest(settings, None, stdin=io.StringIO(json.dumps([{"sender": "VK-HDFCBK", "body": DEBIT}])))

    output = io.StringIO()
    app._messages(settings, console=Console(file=output, width=200))

    text = output.getvalue()
    assert "Stored messages (1)" in text
    assert "VK-HDFCBK" in text


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["s3cr3t"], fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "token=s3cr3t", None, None)
    assert formatter.format(record) == "token=***"


def test_login_without_credentials_is_a_config_error(tmp_path, monkeypatch, capsys) -> None:
    def _no_credentials():
        raise app.ConfigError("API_ID and API_HASH must be set")

    monkeypatch.setattr(app, "build_client", _no_credentials)
    assert app.main(["--config", _config(tmp_path), "login"]) == 2
    assert "API_ID" in capsys.readouterr().err
