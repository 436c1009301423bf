# tests/_40_source_tests/test_dirs.py
"""Tests for polyemit.dirs (output and temp directory lifecycle)."""

from pathlib import Path

import pytest

import polyemit.dirs as mod_dirs


def test_ensure_clean_creates_missing_dir(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"

    created = mod_dirs.ensure_clean(target)

    assert created is True
    assert target.is_dir()


def test_ensure_clean_empties_files_but_keeps_subdirs(tmp_path: Path) -> None:
    # --- setup ---
    target = tmp_path / "dist"
    (target / "nested").mkdir(parents=True)
    (target / "old.js").write_text("stale")
    (target / "nested" / "keep.js").write_text("kept")

    # --- execute ---
    created = mod_dirs.ensure_clean(target)

    # --- verify ---
    assert created is False
    assert not (target / "old.js").exists()
    assert (target / "nested" / "keep.js").exists()


def test_ensure_clean_rejects_file(tmp_path: Path) -> None:
    target = tmp_path / "dist"
    target.write_text("not a dir")

    with pytest.raises(NotADirectoryError):
        mod_dirs.ensure_clean(target)


def test_temp_workspace_removed_on_exit(tmp_path: Path) -> None:
    with mod_dirs.temp_workspace() as tmp:
        (tmp / "x.ts").write_text("x")
        assert tmp.is_dir()
    assert not tmp.exists()


def test_temp_workspace_removed_on_error() -> None:
    seen: list[Path] = []
    with pytest.raises(RuntimeError), mod_dirs.temp_workspace() as tmp:
        seen.append(tmp)
        xmsg = "boom"
        raise RuntimeError(xmsg)
    assert not seen[0].exists()


def test_temp_workspace_keep(capsys: pytest.CaptureFixture[str]) -> None:
    with mod_dirs.temp_workspace(keep=True) as tmp:
        pass
    try:
        assert tmp.exists()
        assert str(tmp) in capsys.readouterr().out
    finally:
        mod_dirs.remove_created_dirs([tmp])


def test_temp_workspaces_are_unique() -> None:
    with mod_dirs.temp_workspace() as a, mod_dirs.temp_workspace() as b:
        assert a != b


def test_remove_created_dirs_ignores_missing(tmp_path: Path) -> None:
    present = tmp_path / "present"
    (present / "deep").mkdir(parents=True)

    mod_dirs.remove_created_dirs([present, tmp_path / "missing"])

    assert not present.exists()
