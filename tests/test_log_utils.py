"""Tests for relay log helpers."""

import json

from ui import log_utils
from ui.log_utils import clear_logs, redact_url, write_relay_log


class TestRedactUrl:
    def test_masks_credential_params(self):
        url = "https://api.stlouisfed.org/fred/series/observations?series_id=DGS10&api_key=abc123"

        redacted = redact_url(url)

        assert "abc123" not in redacted
        assert "api_key=***" in redacted
        assert "series_id=DGS10" in redacted

    def test_leaves_plain_urls_alone(self):
        url = "https://stooq.com/q/d/l/"

        assert redact_url(url) == url

    def test_masks_token_like_names(self):
        assert "xyz" not in redact_url("https://a.test/?accessToken=xyz&q=1")


class TestRelayLog:
    def test_writes_json_entry(self, tmp_path):
        path = write_relay_log(
            "us10y",
            "https://api.stlouisfed.org/fred/series/observations?api_key=secretvalue",
            200,
            used_fallback=True,
            log_root=tmp_path,
        )

        payload = json.loads(path.read_text())
        assert path.parent == tmp_path / "relay" / "us10y"
        assert payload["status"] == 200
        assert payload["used_fallback"] is True
        assert "secretvalue" not in path.read_text()

    def test_route_sanitized_for_folder(self, tmp_path):
        path = write_relay_log("a/../b", "https://a.test/", 200, log_root=tmp_path)

        assert path.parent == tmp_path / "relay" / "a____b"

    def test_clear_logs(self, tmp_path):
        write_relay_log("url", "https://a.test/", 200, log_root=tmp_path)

        clear_logs(tmp_path)

        assert not (tmp_path / "relay").exists()


def test_write_cli_log(tmp_path, monkeypatch):
    log_file = tmp_path / "relay.log"
    monkeypatch.setattr(log_utils, "CLI_LOG_FILE", log_file)

    log_utils.write_cli_log("ERROR", "boom", route="vix", status=502)

    line = log_file.read_text()
    assert "ERROR: boom" in line
    assert "route=vix status=502" in line
