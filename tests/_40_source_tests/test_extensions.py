# tests/_40_source_tests/test_extensions.py
"""Tests for polyemit.extensions (output naming per format)."""

import json
from pathlib import Path

import pytest

import polyemit.extensions as mod_ext


@pytest.mark.parametrize(
    ("file_name", "fmt", "package_type", "expected"),
    [
        ("foo.ts", "esm", "commonjs", "foo.mts"),
        ("foo.ts", "esm", "module", "foo.ts"),
        ("foo.js", "esm", "commonjs", "foo.mjs"),
        ("foo.d.ts", "esm", "commonjs", "foo.d.mts"),
        ("foo.js", "esm", "module", "foo.js"),
        ("foo.js", "cjs", "commonjs", "foo.js"),
        ("foo.js", "cjs", "module", "foo.cjs"),
        ("foo.d.ts", "cjs", "module", "foo.d.cts"),
        ("foo.js", "browser", "commonjs", "foo.global.js"),
        ("foo.js", "browser", "module", "foo.global.js"),
    ],
)
def test_replace_file_extension(
    file_name: str, fmt: str, package_type: str, expected: str
) -> None:
    assert (
        mod_ext.replace_file_extension(file_name, fmt, package_type)  # type: ignore[arg-type]
        == expected
    )


def test_replace_file_extension_keeps_directories() -> None:
    assert (
        mod_ext.replace_file_extension("/out/esm/lib/foo.js", "esm", "commonjs")
        == "/out/esm/lib/foo.mjs"
    )


def test_browser_rename_assumes_three_char_suffix() -> None:
    """Names without a `.js` suffix come out malformed, by contract."""
    assert mod_ext.replace_file_extension("foo.ts", "browser", "commonjs") == (
        "foo.global.js"
    )
    assert mod_ext.replace_file_extension("foo.d.ts", "browser", "commonjs") == (
        "foo.d.global.js"
    )


def test_replace_file_extension_unknown_format() -> None:
    with pytest.raises(ValueError, match="Unknown format"):
        mod_ext.replace_file_extension("foo.js", "umd", "commonjs")  # type: ignore[arg-type]


def test_extension_replacer_binds_format() -> None:
    replace = mod_ext.extension_replacer("cjs", "module")
    assert replace("index.js") == "index.cjs"


# ---------------------------------------------------------------------------
# package.json
# ---------------------------------------------------------------------------


def test_read_package_type_missing_manifest(tmp_path: Path) -> None:
    assert mod_ext.read_package_type(tmp_path / "package.json") == "commonjs"


@pytest.mark.parametrize(
    ("manifest", "expected"),
    [
        ({"name": "x"}, "commonjs"),
        ({"type": "commonjs"}, "commonjs"),
        ({"type": "module"}, "module"),
    ],
)
def test_read_package_type(
    tmp_path: Path, manifest: dict[str, str], expected: str
) -> None:
    path = tmp_path / "package.json"
    path.write_text(json.dumps(manifest))
    assert mod_ext.read_package_type(path) == expected


def test_read_package_type_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text("{ not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        mod_ext.read_package_type(path)


# ---------------------------------------------------------------------------
# add_js_extension
# ---------------------------------------------------------------------------


def test_add_js_extension_rewrites_relative_specifiers() -> None:
    # --- setup ---
    code = (
        'import { a } from "./a";\n'
        "export * from './lib/b';\n"
        'const c = require("./c");\n'
        'const d = await import("./d");\n'
    )

    # --- execute ---
    out = mod_ext.add_js_extension(code)

    # --- verify ---
    assert 'from "./a.js"' in out
    assert "from './lib/b.js'" in out
    assert 'require("./c.js")' in out
    assert 'import("./d.js")' in out


def test_add_js_extension_leaves_other_specifiers() -> None:
    code = (
        'import x from "react";\n'
        'import y from "./data.json";\n'
        'import z from "./already.js";\n'
    )
    assert mod_ext.add_js_extension(code) == code
