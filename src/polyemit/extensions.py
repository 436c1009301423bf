# src/polyemit/extensions.py

"""Output file naming per module format and host package type."""

import json
import re
from collections.abc import Callable
from pathlib import Path

from .types import Format, PackageType
from .utils_logs import log

# from "./util", import("./a"), require('./lib/b')
_RELATIVE_IMPORT_RE = re.compile(
    r"""(\b(?:from|import|require)\s*\(?\s*)(["'])(\./[^"'\n]+?)\2"""
)


def read_package_type(manifest_path: Path | str) -> PackageType:
    """Return the default module interpretation declared by package.json.

    A missing manifest or a missing/"commonjs" `type` field means "commonjs";
    anything else means "module".
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        log("debug", f"No package manifest at {manifest_path}; assuming commonjs")
        return "commonjs"

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        xmsg = f"Invalid JSON in {manifest_path}: {e.msg} (line {e.lineno})"
        raise ValueError(xmsg) from e

    pkg_type = data.get("type") if isinstance(data, dict) else None
    return "commonjs" if not pkg_type or pkg_type == "commonjs" else "module"


def _swap_suffix(file_name: str, mapping: dict[str, str]) -> str:
    for old, new in mapping.items():
        if file_name.endswith(old):
            return file_name[: -len(old)] + new
    return file_name


def replace_file_extension(
    file_name: str,
    fmt: Format,
    package_type: PackageType,
) -> str:
    """Rewrite an emitted file name so the runtime reads it in `fmt`.

    - esm in a commonjs package: .ts → .mts, .js → .mjs
    - cjs in a module package:   .ts → .cts, .js → .cjs
    - browser: always the last three characters become .global.js
    """
    if fmt == "esm":
        if package_type == "commonjs":
            return _swap_suffix(file_name, {".ts": ".mts", ".js": ".mjs"})
        return file_name
    if fmt == "cjs":
        if package_type == "module":
            return _swap_suffix(file_name, {".ts": ".cts", ".js": ".cjs"})
        return file_name
    if fmt == "browser":
        # NOTE: assumes a ".js" suffix; other names come out malformed
        return f"{file_name[:-3]}.global.js"

    xmsg = f"Unknown format: {fmt!r}"
    raise ValueError(xmsg)


def extension_replacer(fmt: Format, package_type: PackageType) -> Callable[[str], str]:
    """Bind format and package type into a one-argument rename hook."""

    def _replace(file_name: str) -> str:
        return replace_file_extension(file_name, fmt, package_type)

    return _replace


def add_js_extension(code: str) -> str:
    """Append `.js` to quoted relative specifiers ("./x") that lack an extension."""

    def _fix(match: re.Match[str]) -> str:
        lead, quote, specifier = match.group(1), match.group(2), match.group(3)
        if Path(specifier).suffix:
            return match.group(0)
        return f"{lead}{quote}{specifier}.js{quote}"

    return _RELATIVE_IMPORT_RE.sub(_fix, code)
