# src/polyemit/build.py


from dataclasses import dataclass, field
from pathlib import Path

from .commands import CommandRunner, SubprocessCommandRunner
from .compiler import compile_sources, get_module_kind
from .dirs import ensure_clean, remove_created_dirs, temp_workspace
from .extensions import extension_replacer
from .merge import write_merged
from .minify import finalize_js, is_js_artifact
from .runtime import current_runtime
from .types import BuildConfig, CompileOptions, Format
from .utils import plural
from .utils_logs import log, temporary_log_level


@dataclass
class BuildReport:
    """What a single build did (or, in dry-run mode, would do)."""

    built: list[Format] = field(default_factory=list)
    skipped: list[Format] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)


# --------------------------------------------------------------------------- #
# internal helpers
# --------------------------------------------------------------------------- #


def _plan_formats(build_cfg: BuildConfig, report: BuildReport) -> list[Format]:
    """Return formats that have an output directory; record the rest as skipped."""
    active: list[Format] = []
    for fmt in build_cfg["format"]:
        if fmt in active or fmt in report.skipped:
            continue
        if build_cfg["output_dirs"].get(fmt) is None:
            msg = f"No output directory configured for format '{fmt}'; skipping."
            log("warning", msg)
            report.skipped.append(fmt)
            report.warnings.append(msg)
            continue
        active.append(fmt)
    return active


def _prepare_sources(build_cfg: BuildConfig, tmp_dir: Path) -> list[Path]:
    """Return the compiler entry files: the merged temp unit or the plain entry."""
    entry = build_cfg.get("entry")
    if entry is not None:
        if not Path(entry).exists():
            xmsg = f"Entry file not found: {entry}"
            raise FileNotFoundError(xmsg)
        return [Path(entry)]

    merged = write_merged(
        tmp_dir / build_cfg["file_name"],
        build_cfg["index_file"],
        build_cfg["other_files"],
    )
    return [merged]


def _write_artifacts(target_dir: Path, artifacts: dict[str, str]) -> list[Path]:
    written: list[Path] = []
    target_dir.mkdir(parents=True, exist_ok=True)
    for name, text in artifacts.items():
        path = target_dir / name
        path.write_text(text, encoding="utf-8")
        log("debug", f"📄 {path}")
        written.append(path)
    return written


def _is_script_map(path: Path) -> bool:
    return path.suffix == ".map" and is_js_artifact(path.with_suffix(""))


def _build_format(
    fmt: Format,
    sources: list[Path],
    build_cfg: BuildConfig,
    tmp_dir: Path,
    runner: CommandRunner,
) -> list[Path]:
    """Compile one format into its temp subdirectory, then finalize into out_dir."""
    out_dir = build_cfg["output_dirs"][fmt]
    fmt_tmp = tmp_dir / fmt

    options: CompileOptions = {
        "file_names": sources,
        "format": fmt,
        "out_dir": fmt_tmp,
        "declaration": build_cfg["declaration"] and fmt != "browser",
        "replace_extension": extension_replacer(fmt, build_cfg["package_type"]),
        "add_js_extension": build_cfg["add_js_extension"],
        "compiler_options": build_cfg["compiler_options"],
        "tsc": build_cfg["tsc"],
    }
    if options["declaration"]:
        # declarations skip the temp dir and land in their final place
        options["declaration_dir"] = build_cfg.get("declaration_dir", out_dir)

    sink = compile_sources(options, runner=runner)

    written: list[Path] = []
    for path, contents in sink:
        if not path.is_relative_to(fmt_tmp):
            written.append(path)
            continue

        if build_cfg["minify"] and _is_script_map(path):
            log("debug", f"Dropping {path.name}; the minifier writes its own map")
            continue

        target_dir = out_dir / path.parent.relative_to(fmt_tmp)
        if is_js_artifact(path):
            artifacts = finalize_js(
                contents,
                path.name,
                fmt,
                minify=build_cfg["minify"],
                runner=runner,
                minifier=build_cfg["minifier"],
            )
        else:
            artifacts = {path.name: contents}
        written += _write_artifacts(target_dir, artifacts)

    return written


def _log_dry_run(build_cfg: BuildConfig, formats: list[Format]) -> None:
    if "entry" in build_cfg:
        log("info", f"🧪 (dry-run) Would compile entry {build_cfg['entry']}")
    else:
        others = len(build_cfg["other_files"])
        log(
            "info",
            f"🧪 (dry-run) Would merge {build_cfg['index_file']['path']}"
            f" + {others} other file{plural(others)} → {build_cfg['file_name']}",
        )
    for fmt in formats:
        out_dir = build_cfg["output_dirs"][fmt]
        action = "compile + minify" if build_cfg["minify"] else "compile"
        log(
            "info",
            f"🧪 (dry-run) Would {action} {fmt} (module={get_module_kind(fmt)})"
            f" → {out_dir}",
        )


# --------------------------------------------------------------------------- #
# public API
# --------------------------------------------------------------------------- #


def run_build(
    build_cfg: BuildConfig,
    *,
    runner: CommandRunner | None = None,
) -> BuildReport:
    """Execute a single build: merge → compile per format → minify → write.

    The temp workspace is always removed. If any step fails, output
    directories created by this build are removed as well and the error
    is re-raised.
    """
    runner = runner or SubprocessCommandRunner()
    report = BuildReport()
    formats = _plan_formats(build_cfg, report)

    if not formats:
        log("warning", "No buildable formats; nothing to do.")
        return report

    if build_cfg.get("dry_run", False):
        _log_dry_run(build_cfg, formats)
        report.built = formats
        return report

    created: list[Path] = []
    try:
        with temp_workspace(keep=build_cfg.get("keep_temp", False)) as tmp_dir:
            sources = _prepare_sources(build_cfg, tmp_dir)

            # each distinct output dir is cleaned once, even when shared
            for out_dir in dict.fromkeys(build_cfg["output_dirs"][f] for f in formats):
                if ensure_clean(out_dir):
                    created.append(out_dir)

            for fmt in formats:
                out_dir = build_cfg["output_dirs"][fmt]
                log("info", f"⚙️  Building {fmt} → {out_dir}")
                report.written += _build_format(
                    fmt, sources, build_cfg, tmp_dir, runner
                )
                report.built.append(fmt)
    except Exception:
        log("debug", "Build failed; removing partially created output directories")
        remove_created_dirs(created)
        raise

    log(
        "info",
        f"✅ Build completed ({', '.join(report.built)}):"
        f" {len(report.written)} file{plural(report.written)} written\n",
    )
    return report


def run_all_builds(
    resolved_builds: list[BuildConfig],
    *,
    dry_run: bool,
    runner: CommandRunner | None = None,
) -> list[BuildReport]:
    log("trace", f"[run_all_builds] Resolved builds: {resolved_builds}")

    reports: list[BuildReport] = []
    for i, build_cfg in enumerate(resolved_builds, 1):
        build_cfg["dry_run"] = dry_run
        level = build_cfg.get("log_level") or current_runtime["log_level"]
        with temporary_log_level(level):
            log("info", f"▶️  Build {i}/{len(resolved_builds)}")
            reports.append(run_build(build_cfg, runner=runner))

    log("info", "🎉 All builds complete.")
    return reports
