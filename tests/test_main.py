"""Command line entry point and shutdown coordinator tests."""

import asyncio
import json
import os
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

import securelink.__main__ as entrypoint
from securelink.__main__ import main
from securelink.lifecycle import GracefulShutdown


@pytest.fixture(autouse=True)
def clean_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Run main() without inherited settings or a stray .env file."""
    for name in list(os.environ):
        if name.upper().startswith("SECURELINK_") or name.upper() == "SECRET":
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(entrypoint, "logger", structlog.get_logger())
    yield
    structlog.reset_defaults()


def _log_events(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_configuration_error_exits_1(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Missing settings are logged and end the process with status 1."""
    monkeypatch.setattr("sys.argv", ["securelink"])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    events = _log_events(capsys.readouterr().out)
    assert events[-1]["event"] == "configuration_error"
    assert events[-1]["level"] == "error"
    assert "secret" in events[-1]["error"]


def test_nginx_command_prints_config(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    base_dir: Path,
) -> None:
    """The nginx command writes the location blocks and exits cleanly."""
    monkeypatch.setenv("SECURELINK_SECRET", "hunter2")
    monkeypatch.setenv("SECURELINK_BASE_DIR", str(base_dir))
    monkeypatch.setattr("sys.argv", ["securelink", "nginx"])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "secure_link_md5" in out
    assert f"alias {base_dir}/;" in out
    assert "hunter2" not in out


def test_unknown_command_exits_2(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    base_dir: Path,
) -> None:
    """Unrecognised commands print usage and exit with status 2."""
    monkeypatch.setenv("SECURELINK_SECRET", "hunter2")
    monkeypatch.setenv("SECURELINK_BASE_DIR", str(base_dir))
    monkeypatch.setattr("sys.argv", ["securelink", "frobnicate"])

    with pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 2
    captured = capsys.readouterr()
    assert "Usage:" in captured.err
    event = _log_events(captured.out)[-1]
    assert event["event"] == "unknown_command"
    assert event["command"] == "frobnicate"


def test_shutdown_trigger_releases_waiters() -> None:
    """Triggering twice is harmless and wakes the waiting task."""

    async def run() -> None:
        shutdown = GracefulShutdown(timeout=1.0)
        waiter = asyncio.create_task(shutdown.wait_for_trigger())
        await asyncio.sleep(0)
        assert not waiter.done()

        shutdown.trigger()
        shutdown.trigger()
        await asyncio.wait_for(waiter, timeout=1.0)

    asyncio.run(run())
