# src/polyemit/minify.py

"""Minify emitted JavaScript with uglify-js and attach source maps."""

import re
from dataclasses import dataclass
from pathlib import Path

from .commands import CommandError, CommandRunner, SubprocessCommandRunner
from .constants import DEFAULT_MINIFIER_COMMAND
from .dirs import temp_workspace
from .merge import remove_exports
from .meta import PROGRAM_SCRIPT
from .types import Format
from .utils_logs import log

JS_SUFFIXES = (".js", ".mjs", ".cjs")

_SOURCE_MAP_COMMENT_RE = re.compile(r"\n?//# sourceMappingURL=\S*\s*$")


class MinifyError(CommandError):
    """Raised when the minifier fails."""


@dataclass
class MinifyResult:
    code: str
    map: str | None = None


def is_js_artifact(file_name: str | Path) -> bool:
    """True for compiled JavaScript, False for declarations, maps and sources."""
    return str(file_name).endswith(JS_SUFFIXES)


def minify_code(
    code: str,
    file_name: str,
    *,
    runner: CommandRunner | None = None,
    minifier: list[str] | None = None,
    keep_fnames: bool = True,
    source_map: bool = True,
) -> MinifyResult:
    """Run uglifyjs over code; function names are never mangled by default."""
    runner = runner or SubprocessCommandRunner()
    command = [*(minifier or DEFAULT_MINIFIER_COMMAND)]

    with temp_workspace(prefix=f"{PROGRAM_SCRIPT}-min-") as scratch:
        name = Path(file_name).name
        src = scratch / name
        out = scratch / "out" / name
        out.parent.mkdir()
        src.write_text(code, encoding="utf-8")

        command += [name, "--compress", "--mangle"]
        if keep_fnames:
            command.append("--keep-fnames")
        if source_map:
            command.append("--source-map")
        command += ["-o", str(out.relative_to(scratch))]

        try:
            runner.run(command, cwd=scratch)
        except CommandError as e:
            raise MinifyError(e.result) from e

        minified = out.read_text(encoding="utf-8")
        map_file = out.with_name(f"{name}.map")
        map_text = map_file.read_text(encoding="utf-8") if map_file.exists() else None

    # we add our own comment pointing at the sibling map
    minified = _SOURCE_MAP_COMMENT_RE.sub("", minified).strip()
    return MinifyResult(code=minified, map=map_text)


def finalize_js(
    code: str,
    file_name: str,
    fmt: Format,
    *,
    minify: bool,
    runner: CommandRunner | None = None,
    minifier: list[str] | None = None,
) -> dict[str, str]:
    """Produce the final artifacts for one emitted JS file.

    Returns a mapping of file name → text: the script itself, plus a
    `<file>.map` sibling when minification produced a source map.
    """
    name = Path(file_name).name
    if fmt == "browser":
        # a global script has no export statements
        code = remove_exports(code)

    if not minify:
        return {name: code}

    result = minify_code(code, name, runner=runner, minifier=minifier)
    log("debug", f"🗜️  Minified {name}: {len(code)} → {len(result.code)} chars")
    if result.map is None:
        return {name: result.code}

    text = f"{result.code}\n//# sourceMappingURL={name}.map"
    return {name: text, f"{name}.map": result.map}
