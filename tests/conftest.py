# tests/conftest.py
"""
Shared test setup for project.

Every test starts from a known runtime (log level, color) and never
reaches a real tsc or uglifyjs unless it is marked `toolchain`.
"""

import shutil

import pytest
from pytest import Config, Item as PytestItem

import polyemit.build as mod_build
import polyemit.runtime as mod_runtime
from polyemit.meta import PROGRAM_ENV
from tests.utils import FakeToolchainRunner


def _has_toolchain() -> bool:
    return bool(shutil.which("tsc") and shutil.which("uglifyjs"))


def pytest_report_header(config: Config) -> str:
    found = "found" if _has_toolchain() else "not found"
    return f"tsc/uglifyjs on PATH: {found}"


def pytest_collection_modifyitems(
    config: Config,
    items: list[PytestItem],
) -> None:
    """Skip toolchain tests when tsc or uglifyjs is not installed."""
    if _has_toolchain():
        return
    skip = pytest.mark.skip(reason="needs tsc and uglifyjs on PATH")
    for item in items:
        if "toolchain" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
def reset_runtime(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every test a predictable runtime and environment."""
    for key in ("LOG_LEVEL", "TSC", "UGLIFYJS"):
        monkeypatch.delenv(f"{PROGRAM_ENV}_{key}", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setitem(mod_runtime.current_runtime, "log_level", "info")
    monkeypatch.setitem(mod_runtime.current_runtime, "use_color", False)


@pytest.fixture
def fake_toolchain(monkeypatch: pytest.MonkeyPatch) -> FakeToolchainRunner:
    """Route builds that were not handed a runner through a fake toolchain."""
    runner = FakeToolchainRunner()
    monkeypatch.setattr(mod_build, "SubprocessCommandRunner", lambda: runner)
    return runner
