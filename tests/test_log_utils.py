"""Tests for file logging helpers."""

import json

from ui.log_utils import clear_logs, write_cli_log, write_relay_log


def test_relay_log_grouped_by_host(tmp_path):
    path = write_relay_log(
        "/api/fetch-site",
        "https://Example.com/page",
        200,
        "text/html",
        rewritten=True,
        base_injected=True,
        links_rewritten=3,
        log_root=tmp_path,
    )

    assert path.parent == tmp_path / "relay" / "example.com"
    payload = json.loads(path.read_text())
    assert payload["status"] == 200
    assert payload["links_rewritten"] == 3
    assert payload["base_injected"] is True


def test_cli_log_appends_lines(tmp_path):
    log_file = tmp_path / "proxy.log"

    write_cli_log("RELAY", "first", log_file=log_file, status=200)
    write_cli_log("ERROR", "second", log_file=log_file)

    lines = log_file.read_text().splitlines()
    assert lines[0].endswith("RELAY: first status=200")
    assert lines[1].endswith("ERROR: second")


def test_clear_logs(tmp_path):
    log_root = tmp_path / "logs"
    write_cli_log("X", "y", log_file=log_root / "proxy.log")

    clear_logs(log_root)

    assert not log_root.exists()
