"""Tests for the command-line entry point."""

import pytest
from click.testing import CliRunner

from zoombridge import main
from zoombridge.config import ZOOM_ENV_VARS


@pytest.fixture
def calls(monkeypatch, tmp_path):
    for var in ZOOM_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("ZOOMBRIDGE_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)

    seen = {}

    async def fake_run(settings):
        seen["settings"] = settings

    def fake_asyncio_run(coro):
        # Drive the coroutine without starting a real server
        try:
            coro.send(None)
        except StopIteration:
            pass

    def fake_setup_logging(level, json_output):
        seen["level"] = level
        seen["json"] = json_output

    monkeypatch.setattr(main, "run", fake_run)
    monkeypatch.setattr(main.asyncio, "run", fake_asyncio_run)
    monkeypatch.setattr(main, "setup_logging", fake_setup_logging)
    return seen


def test_cli_applies_overrides(calls):
    result = CliRunner().invoke(main.cli, ["--port", "5050", "--log-level", "DEBUG"])

    assert result.exit_code == 0, result.output
    assert calls["settings"].server.port == 5050
    assert calls["level"] == "DEBUG"
    assert calls["json"] is False


def test_cli_reads_yaml(calls, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 6060\nlog_json: true\n")

    result = CliRunner().invoke(main.cli, ["--config", str(path)])

    assert result.exit_code == 0, result.output
    assert calls["settings"].server.port == 6060
    assert calls["json"] is True
