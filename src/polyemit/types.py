# src/polyemit/types.py
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal, TypedDict

from typing_extensions import NotRequired

Format = Literal["esm", "cjs", "browser"]
PackageType = Literal["commonjs", "module"]

FORMATS: tuple[Format, ...] = ("esm", "cjs", "browser")


# --- merge inputs ------------------------------------------------------------


class IndexFile(TypedDict):
    path: Path | str  # placed last in the merged output
    lines: NotRequired[int]  # leading lines to drop


class OtherFile(TypedDict):
    path: Path | str
    lines: NotRequired[int]
    remove_export: NotRequired[bool]


class OutputDirs(TypedDict, total=False):
    esm: Path
    cjs: Path
    browser: Path


# --- raw (user-facing) config ------------------------------------------------


class IndexFileInput(TypedDict, total=False):
    path: str
    lines: int


class OtherFileInput(TypedDict, total=False):
    path: str
    lines: int
    remove_export: bool


class OutputDirsInput(TypedDict, total=False):
    esm: str
    cjs: str
    browser: str


class BuildConfigInput(TypedDict, total=False):
    format: list[str]
    output_dirs: OutputDirsInput
    index_file: IndexFileInput | str
    other_files: list[OtherFileInput | str]
    entry: str
    file_name: str

    declaration: bool
    declaration_dir: str
    minify: bool
    add_js_extension: bool
    compiler_options: dict[str, Any]
    package_type: str

    # optional per-build override
    strict_config: bool
    log_level: str
    keep_temp: bool
    tsc: list[str] | str
    minifier: list[str] | str


class RootConfigInput(TypedDict, total=False):
    builds: list[BuildConfigInput]

    # Defaults that cascade into each build
    log_level: str
    package_type: str
    tsc: list[str] | str
    minifier: list[str] | str

    # runtime behavior
    strict_config: bool


# --- resolved config ---------------------------------------------------------


class MetaBuildConfig(TypedDict):
    # sources of parameters
    cli_base: Path
    config_base: Path


class BuildConfig(TypedDict):
    format: list[Format]
    output_dirs: OutputDirs
    index_file: NotRequired[IndexFile]
    other_files: list[OtherFile]
    entry: NotRequired[Path]
    file_name: str

    declaration: bool
    declaration_dir: NotRequired[Path]
    minify: bool
    add_js_extension: bool
    compiler_options: dict[str, Any]
    package_type: PackageType

    log_level: str
    keep_temp: bool
    tsc: list[str]
    minifier: list[str]

    # runtime flag (CLI only, not persisted in normal configs)
    dry_run: bool

    # global provenance (optional, for audit/debug)
    __meta__: MetaBuildConfig


class RootConfig(TypedDict):
    builds: list[BuildConfig]

    # runtime behavior
    log_level: str
    strict_config: bool


# --- compiler ----------------------------------------------------------------


class CompileOptions(TypedDict):
    file_names: list[Path]
    format: Format
    out_dir: Path
    declaration: NotRequired[bool]
    declaration_dir: NotRequired[Path]
    replace_extension: NotRequired[Callable[[str], str]]
    add_js_extension: NotRequired[bool]
    compiler_options: NotRequired[dict[str, Any]]
    tsc: NotRequired[list[str]]


class Runtime(TypedDict):
    log_level: str
    use_color: bool
