# tests/_50_build_tests/test_run_build.py
"""Tests for polyemit.build.run_build (the whole pipeline on a fake toolchain)."""

import json
from pathlib import Path

import pytest

import polyemit.build as mod_build
from polyemit.compiler import CompileError
from tests.utils import FakeToolchainRunner, make_build_cfg, write_sources


def test_builds_esm_and_cjs_in_commonjs_package(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "cjs"], declaration=True)
    runner = FakeToolchainRunner()

    # --- execute ---
    report = mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    dist = tmp_path / "dist"
    assert report.built == ["esm", "cjs"]
    assert sorted(p.name for p in (dist / "esm").iterdir()) == [
        "index.d.mts",
        "index.mjs",
    ]
    assert sorted(p.name for p in (dist / "cjs").iterdir()) == [
        "index.d.ts",
        "index.js",
    ]
    assert "ESNext" in (dist / "esm" / "index.mjs").read_text()
    assert "CommonJS" in (dist / "cjs" / "index.js").read_text()
    assert len(runner.tsc_calls) == 2


def test_module_package_renames_cjs(tmp_path: Path) -> None:
    write_sources(tmp_path)
    cfg = make_build_cfg(
        tmp_path, formats=["esm", "cjs"], declaration=True, package_type="module"
    )

    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    dist = tmp_path / "dist"
    assert (dist / "esm" / "index.js").exists()
    assert (dist / "esm" / "index.d.ts").exists()
    assert (dist / "cjs" / "index.cjs").exists()
    assert (dist / "cjs" / "index.d.cts").exists()


def test_merge_order_and_remove_export(tmp_path: Path) -> None:
    # --- setup ---
    index, helper = write_sources(tmp_path)
    cfg = make_build_cfg(
        tmp_path,
        formats=["esm"],
        index_file={"path": index},
        other_files=[{"path": helper, "lines": 1, "remove_export": True}],
    )

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    # --- verify ---
    text = (tmp_path / "dist" / "esm" / "index.mjs").read_text()
    assert 'const name = "demo";' in text
    assert "export const name" not in text
    assert "./unused" not in text
    assert text.index("const name") < text.index("export const greet")


def test_browser_build_is_global_script(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["browser"], declaration=True)

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    # --- verify ---
    out = tmp_path / "dist" / "browser"
    assert [p.name for p in out.iterdir()] == ["index.global.js"]
    text = (out / "index.global.js").read_text()
    assert "export" not in text
    assert "ES2015" in text


def test_minify_writes_source_maps(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "browser"], minify=True)

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    # --- verify ---
    dist = tmp_path / "dist"
    esm = (dist / "esm" / "index.mjs").read_text()
    assert esm.endswith("//# sourceMappingURL=index.mjs.map")
    assert (dist / "esm" / "index.mjs.map").exists()
    assert (dist / "browser" / "index.global.js.map").exists()


def test_missing_output_dir_skips_format_with_warning(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(
        tmp_path,
        formats=["esm", "cjs"],
        output_dirs={"esm": tmp_path / "dist" / "esm"},
    )
    runner = FakeToolchainRunner()

    # --- execute ---
    report = mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    assert report.built == ["esm"]
    assert report.skipped == ["cjs"]
    assert "cjs" in capsys.readouterr().err
    assert len(runner.tsc_calls) == 1
    assert (tmp_path / "dist" / "esm" / "index.mjs").exists()


def test_no_buildable_formats_is_a_noop(tmp_path: Path) -> None:
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm"], output_dirs={})
    runner = FakeToolchainRunner()

    report = mod_build.run_build(cfg, runner=runner)

    assert report.built == []
    assert runner.commands == []


def test_duplicate_formats_build_once(tmp_path: Path) -> None:
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "esm"])
    runner = FakeToolchainRunner()

    report = mod_build.run_build(cfg, runner=runner)

    assert report.built == ["esm"]
    assert len(runner.tsc_calls) == 1


def test_shared_output_dir_is_cleaned_once(tmp_path: Path) -> None:
    """esm and cjs may share a folder when their names differ."""
    # --- setup ---
    write_sources(tmp_path)
    shared = tmp_path / "lib"
    cfg = make_build_cfg(
        tmp_path,
        formats=["esm", "cjs"],
        output_dirs={"esm": shared, "cjs": shared},
    )

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    # --- verify ---
    assert sorted(p.name for p in shared.iterdir()) == ["index.js", "index.mjs"]


def test_stale_files_are_removed(tmp_path: Path) -> None:
    write_sources(tmp_path)
    out = tmp_path / "dist" / "esm"
    out.mkdir(parents=True)
    (out / "stale.mjs").write_text("old")
    cfg = make_build_cfg(tmp_path, formats=["esm"])

    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    assert not (out / "stale.mjs").exists()
    assert (out / "index.mjs").exists()


def test_rebuild_is_idempotent(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "cjs"], declaration=True)
    dist = tmp_path / "dist"

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())
    first = {p: p.read_text() for p in dist.rglob("*") if p.is_file()}
    mod_build.run_build(cfg, runner=FakeToolchainRunner())
    second = {p: p.read_text() for p in dist.rglob("*") if p.is_file()}

    # --- verify ---
    assert first == second


def test_dry_run_writes_and_runs_nothing(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "browser"], dry_run=True)
    runner = FakeToolchainRunner()

    # --- execute ---
    report = mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    assert report.built == ["esm", "browser"]
    assert runner.commands == []
    assert not (tmp_path / "dist").exists()
    assert "dry-run" in capsys.readouterr().out


def test_failure_removes_created_dirs(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    existing = tmp_path / "dist" / "esm"
    existing.mkdir(parents=True)
    cfg = make_build_cfg(tmp_path, formats=["esm", "cjs"])
    runner = FakeToolchainRunner(tsc_returncode=1, tsc_emits=False)

    # --- execute ---
    with pytest.raises(CompileError):
        mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    assert existing.exists()
    assert not (tmp_path / "dist" / "cjs").exists()


def test_missing_source_fails_before_touching_outputs(tmp_path: Path) -> None:
    cfg = make_build_cfg(tmp_path, formats=["esm"])
    runner = FakeToolchainRunner()

    with pytest.raises(FileNotFoundError):
        mod_build.run_build(cfg, runner=runner)

    assert runner.commands == []
    assert not (tmp_path / "dist").exists()


def test_entry_mode_compiles_without_merging(tmp_path: Path) -> None:
    # --- setup ---
    entry = tmp_path / "main.ts"
    entry.write_text("export const main = 1;\n")
    cfg = make_build_cfg(tmp_path, formats=["cjs"], entry=entry)
    runner = FakeToolchainRunner()

    # --- execute ---
    mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    assert str(entry) in runner.tsc_calls[0]
    assert (tmp_path / "dist" / "cjs" / "main.js").exists()


def test_missing_entry_raises(tmp_path: Path) -> None:
    cfg = make_build_cfg(tmp_path, formats=["cjs"], entry=tmp_path / "nope.ts")

    with pytest.raises(FileNotFoundError, match="Entry file not found"):
        mod_build.run_build(cfg, runner=FakeToolchainRunner())


def test_run_all_builds_forces_dry_run(tmp_path: Path) -> None:
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm"])
    runner = FakeToolchainRunner()

    reports = mod_build.run_all_builds([cfg], dry_run=True, runner=runner)

    assert len(reports) == 1
    assert runner.commands == []


def test_run_build_default_runner_is_patched(
    tmp_path: Path,
    fake_toolchain: FakeToolchainRunner,
) -> None:
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm"])

    mod_build.run_build(cfg)

    assert len(fake_toolchain.tsc_calls) == 1


def test_tsc_source_maps_follow_renamed_scripts(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["esm", "browser"])
    cfg["compiler_options"] = {"sourceMap": True}

    # --- execute ---
    mod_build.run_build(cfg, runner=FakeToolchainRunner())

    # --- verify ---
    dist = tmp_path / "dist"
    assert sorted(p.name for p in (dist / "esm").iterdir()) == [
        "index.mjs",
        "index.mjs.map",
    ]
    esm = (dist / "esm" / "index.mjs").read_text()
    assert esm.rstrip().endswith("//# sourceMappingURL=index.mjs.map")
    assert sorted(p.name for p in (dist / "browser").iterdir()) == [
        "index.global.js",
        "index.global.js.map",
    ]
    browser_map = json.loads((dist / "browser" / "index.global.js.map").read_text())
    assert browser_map["from"] == "tsc"


def test_minify_replaces_tsc_source_maps(tmp_path: Path) -> None:
    # --- setup ---
    write_sources(tmp_path)
    cfg = make_build_cfg(tmp_path, formats=["cjs", "browser"], minify=True)
    cfg["compiler_options"] = {"sourceMap": True}
    runner = FakeToolchainRunner()

    # --- execute ---
    mod_build.run_build(cfg, runner=runner)

    # --- verify ---
    dist = tmp_path / "dist"
    cjs_map = json.loads((dist / "cjs" / "index.js.map").read_text())
    assert cjs_map["from"] == "uglifyjs"
    cjs = (dist / "cjs" / "index.js").read_text()
    assert cjs.count("sourceMappingURL") == 1
    assert sorted(p.name for p in (dist / "browser").iterdir()) == [
        "index.global.js",
        "index.global.js.map",
    ]
    minified = sorted(c[c.index("--compress") - 1] for c in runner.minify_calls)
    assert minified == ["index.global.js", "index.js"]
