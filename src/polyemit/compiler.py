# src/polyemit/compiler.py

"""Format-aware invocation of the TypeScript compiler.

tsc always writes into a private scratch directory. Every emitted file is
then buffered in an OutputSink under its final (possibly renamed) path, and
only once the whole run has been collected is the sink flushed to disk.

A project tsconfig.json is never consulted: every option comes from the
build config, and source maps are renamed together with their scripts.
"""

import re
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from .commands import (
    CommandError,
    CommandResult,
    CommandRunner,
    SubprocessCommandRunner,
)
from .constants import (
    DEFAULT_TSC_COMMAND,
    OWNED_COMPILER_OPTIONS,
    TSC_EXIT_DIAGNOSTICS_OUTPUTS_GENERATED,
)
from .dirs import temp_workspace
from .extensions import add_js_extension
from .meta import PROGRAM_SCRIPT
from .types import CompileOptions, Format
from .utils import plural
from .utils_logs import log

MODULE_KINDS: dict[str, str] = {
    "esm": "ESNext",
    "cjs": "CommonJS",
    "browser": "ES2015",
}

SOURCE_SUFFIXES = (".ts", ".mts", ".cts")

# tsc ends each script with a pointer to its map when sourceMap is on
_SOURCE_MAP_URL_RE = re.compile(
    r"^//# sourceMappingURL=(\S+)[ \t]*$", re.MULTILINE
)

# raised by newer tsc when a tsconfig.json sits beside explicit file arguments
_TSC_IGNORED_CONFIG_CODE = "TS5112"


class CompileError(CommandError):
    """Raised when tsc fails or emits nothing."""


class OutputSink:
    """In-memory mapping of output path → content, written out by flush()."""

    def __init__(self) -> None:
        self._files: dict[Path, str] = {}

    def add(self, path: Path | str, contents: str) -> None:
        self._files[Path(path)] = contents

    @property
    def paths(self) -> list[Path]:
        return list(self._files)

    def get(self, path: Path | str) -> str | None:
        return self._files.get(Path(path))

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[tuple[Path, str]]:
        return iter(self._files.items())

    def flush(self) -> list[Path]:
        """Write every buffered file, creating parent directories as needed."""
        written: list[Path] = []
        for path, contents in self._files.items():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents, encoding="utf-8")
            log("trace", f"[SINK] wrote {path}")
            written.append(path)
        return written


def get_module_kind(fmt: Format) -> str:
    """Return the tsc --module value for a format."""
    try:
        return MODULE_KINDS[fmt]
    except KeyError:
        xmsg = f"Unknown format: {fmt!r} (expected one of {', '.join(MODULE_KINDS)})"
        raise ValueError(xmsg) from None


def check_compiler_options(compiler_options: dict[str, Any]) -> None:
    owned = sorted(OWNED_COMPILER_OPTIONS & compiler_options.keys())
    if owned:
        xmsg = (
            f"compiler_options may not set {', '.join(owned)}:"
            f" {PROGRAM_SCRIPT} controls these per format"
        )
        raise ValueError(xmsg)


def _render_option(key: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, bool):
        return [f"--{key}", "true" if value else "false"]
    if isinstance(value, (list, tuple)):
        return [f"--{key}", ",".join(str(v) for v in value)]
    return [f"--{key}", str(value)]


def build_tsc_command(
    options: CompileOptions,
    *,
    out_dir: Path,
    declaration_dir: Path | None,
) -> list[str]:
    """Return the full tsc command line for one compile run."""
    fmt = options["format"]
    declaration = bool(options.get("declaration")) and fmt != "browser"

    command = [*options.get("tsc", list(DEFAULT_TSC_COMMAND))]
    command += [str(f) for f in options["file_names"]]
    command += [
        "--module",
        get_module_kind(fmt),
        "--outDir",
        str(out_dir),
        "--allowJs",
        "--jsx",
        "react",
    ]
    if declaration:
        command.append("--declaration")
        if declaration_dir is not None:
            command += ["--declarationDir", str(declaration_dir)]

    for key, value in (options.get("compiler_options") or {}).items():
        command += _render_option(key, value)
    return command


def _map_to_target(
    emitted: Path,
    scratch_out: Path,
    scratch_decl: Path,
    options: CompileOptions,
) -> Path:
    if emitted.is_relative_to(scratch_decl):
        base = options.get("declaration_dir", options["out_dir"])
        return Path(base) / emitted.relative_to(scratch_decl)
    return Path(options["out_dir"]) / emitted.relative_to(scratch_out)


def _rename(target: str, replace: Callable[[str], str] | None) -> str:
    """Apply the rename hook; a map follows its script (a.js.map → a.mjs.map)."""
    if replace is None:
        return target
    if target.endswith(".map"):
        return f"{replace(target[:-4])}.map"
    return replace(target)


def _relink_source_map(contents: str, target: str) -> str:
    """Point a renamed script's sourceMappingURL comment at its renamed map."""

    def _fix(match: re.Match[str]) -> str:
        url = match.group(1)
        if url.startswith("data:"):
            return match.group(0)
        head, sep, _ = url.rpartition("/")
        return f"//# sourceMappingURL={head}{sep}{Path(target).name}.map"

    return _SOURCE_MAP_URL_RE.sub(_fix, contents)


def compile_sources(
    options: CompileOptions,
    *,
    runner: CommandRunner | None = None,
    sink: OutputSink | None = None,
) -> OutputSink:
    """Compile options["file_names"] for one format and write the results.

    Declarations are emitted only when requested and never for browser.
    Returns the flushed sink (final path → content).
    """
    runner = runner or SubprocessCommandRunner()
    sink = sink if sink is not None else OutputSink()
    fmt = options["format"]
    check_compiler_options(options.get("compiler_options") or {})
    replace = options.get("replace_extension")

    with temp_workspace(prefix=f"{PROGRAM_SCRIPT}-tsc-") as scratch:
        scratch_out = scratch / "out"
        scratch_decl = scratch / "decl"
        command = build_tsc_command(
            options,
            out_dir=scratch_out,
            declaration_dir=scratch_decl if "declaration_dir" in options else None,
        )
        log("debug", f"🔨 tsc ({fmt}, module={get_module_kind(fmt)})")
        result = runner.run(command, check=False)
        if _refused_explicit_files(result):
            log("debug", "tsc wants tsconfig.json; retrying with --ignoreConfig")
            command.append("--ignoreConfig")
            result = runner.run(command, check=False)
        emitted = sorted(p for p in scratch.rglob("*") if p.is_file())
        _check_tsc_result(result, emitted)

        for path in emitted:
            target = str(_map_to_target(path, scratch_out, scratch_decl, options))
            target = _rename(target, replace)
            contents = path.read_text(encoding="utf-8")
            if target.endswith(".map"):
                sink.add(target, contents)
                continue
            if options.get("add_js_extension") and not target.endswith(SOURCE_SUFFIXES):
                contents = add_js_extension(contents)
            sink.add(target, _relink_source_map(contents, target))

    written = sink.flush()
    log("debug", f"📦 {fmt}: emitted {len(written)} file{plural(written)}")
    return sink


def _refused_explicit_files(result: CommandResult) -> bool:
    output = f"{result.stdout}\n{result.stderr}"
    return result.returncode != 0 and _TSC_IGNORED_CONFIG_CODE in output


def _check_tsc_result(result: CommandResult, emitted: list[Path]) -> None:
    diagnostics = "\n".join(
        s for s in (result.stdout.strip(), result.stderr.strip()) if s
    )
    if result.returncode == 0 and emitted:
        return
    if result.returncode == TSC_EXIT_DIAGNOSTICS_OUTPUTS_GENERATED and emitted:
        log("warning", f"tsc reported diagnostics:\n{diagnostics}")
        return
    if result.returncode == 0:
        result = CommandResult(
            command=result.command,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr or "tsc produced no output files",
        )
    raise CompileError(result)
