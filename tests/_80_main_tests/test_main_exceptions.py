# tests/_80_main_tests/test_main_exceptions.py

import pytest

import polyemit.cli as mod_cli
import polyemit.utils as mod_utils
import polyemit.utils_logs as mod_logs
from polyemit.meta import Metadata
from tests.utils import patch_everywhere


def test_main_handles_controlled_exception(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """A controlled exception (e.g. ValueError) is logged and returns 1."""

    # --- stubs ---
    def fake_parser() -> object:
        xmsg = "mocked config failure"
        raise ValueError(xmsg)

    # --- patch and execute ---
    patch_everywhere(monkeypatch, mod_cli, "_setup_parser", fake_parser)
    code = mod_cli.main([])

    # --- verify ---
    assert code == 1
    err = capsys.readouterr().err
    assert "mocked config failure" in err
    assert "Unexpected" not in err


def test_main_handles_unexpected_exception(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """An unexpected internal error is logged as critical."""

    # --- stubs ---
    def fake_parser() -> object:
        xmsg = "boom!"
        raise OSError(xmsg)  # not one of the controlled types

    # --- patch and execute ---
    patch_everywhere(monkeypatch, mod_cli, "_setup_parser", fake_parser)
    code = mod_cli.main([])

    # --- verify ---
    assert code == 1
    err = capsys.readouterr().err
    assert "💥" in err
    assert "Unexpected internal error: boom!" in err


def test_main_shows_traceback_when_debugging(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- stubs ---
    def fake_parser() -> object:
        xmsg = "deep failure"
        raise RuntimeError(xmsg)

    # --- patch and execute ---
    monkeypatch.setitem(mod_logs.current_runtime, "log_level", "debug")
    patch_everywhere(monkeypatch, mod_cli, "_setup_parser", fake_parser)
    code = mod_cli.main([])

    # --- verify ---
    assert code == 1
    assert "Traceback" in capsys.readouterr().err


def test_main_fallbacks_to_safe_log(monkeypatch: pytest.MonkeyPatch) -> None:
    """If logging itself fails, safe_log() reports instead."""
    # --- setup ---
    called: dict[str, str] = {}

    # --- stubs ---
    def fake_parser() -> object:
        xmsg = "simulated fail"
        raise ValueError(xmsg)

    def bad_get_logger() -> object:
        xmsg = "log fail"
        raise RuntimeError(xmsg)

    def fake_safe_log(msg: str) -> None:
        called["msg"] = msg

    # --- patch and execute ---
    patch_everywhere(monkeypatch, mod_cli, "_setup_parser", fake_parser)
    patch_everywhere(monkeypatch, mod_logs, "get_logger", bad_get_logger)
    patch_everywhere(monkeypatch, mod_utils, "safe_log", fake_safe_log)
    code = mod_cli.main([])

    # --- verify ---
    assert code == 1
    assert "Logging failed while reporting" in called["msg"]
    assert "simulated fail" in called["msg"]


def test_main_rejects_old_python(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    patch_everywhere(monkeypatch, mod_utils, "get_sys_version_info", lambda: (3, 9, 0))

    code = mod_cli.main(["src/index.ts"])

    assert code == 1
    assert "requires Python 3.10" in capsys.readouterr().err


def test_main_color_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    # --- patch ---
    patch_everywhere(
        monkeypatch, mod_cli, "get_metadata", lambda: Metadata("1.2.3", "abc")
    )

    # --- execute and verify ---
    mod_cli.main(["--color", "--version"])
    assert mod_logs.current_runtime["use_color"] is True

    mod_cli.main(["--no-color", "--version"])
    assert mod_logs.current_runtime["use_color"] is False
