# src/polyemit/config_resolve.py


import argparse
import os
from pathlib import Path
from typing import Any

from .config import determine_log_level
from .constants import (
    DEFAULT_ADD_JS_EXTENSION,
    DEFAULT_DECLARATION,
    DEFAULT_ENV_MINIFIER,
    DEFAULT_ENV_TSC,
    DEFAULT_FORMATS,
    DEFAULT_MERGED_FILE_NAME,
    DEFAULT_MINIFIER_COMMAND,
    DEFAULT_MINIFY,
    DEFAULT_PACKAGE_MANIFEST,
    DEFAULT_TSC_COMMAND,
)
from .extensions import read_package_type
from .meta import PROGRAM_ENV
from .runtime import current_runtime
from .types import (
    FORMATS,
    BuildConfig,
    BuildConfigInput,
    Format,
    IndexFile,
    MetaBuildConfig,
    OtherFile,
    OutputDirs,
    PackageType,
    RootConfig,
    RootConfigInput,
)
from .utils import split_command
from .utils_logs import log
from .utils_types import cast_hint

# --------------------------------------------------------------------------- #
# helpers
# --------------------------------------------------------------------------- #


def _resolve_path(raw: Path | str, base: Path) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else (base / path)


def _pick(
    args: argparse.Namespace,
    arg_name: str,
    cfg: dict[str, Any],
    key: str,
    default: Any,
) -> Any:
    """CLI value (if given) → build config → default."""
    cli_val = getattr(args, arg_name, None)
    if cli_val is not None:
        return cli_val
    return cfg.get(key, default)


def _resolve_formats(args: argparse.Namespace, cfg: dict[str, Any]) -> list[Format]:
    raw: list[str] = getattr(args, "format", None) or cfg.get("format") or list(
        DEFAULT_FORMATS
    )
    formats: list[Format] = []
    for fmt in raw:
        if fmt not in FORMATS:
            xmsg = f"Unknown format: {fmt!r} (expected one of {', '.join(FORMATS)})"
            raise ValueError(xmsg)
        if fmt not in formats:
            formats.append(cast_hint(Format, fmt))  # type: ignore[arg-type]
    return formats


def _resolve_output_dirs(
    args: argparse.Namespace,
    cfg: dict[str, Any],
    config_dir: Path,
    cwd: Path,
) -> OutputDirs:
    out_dirs: OutputDirs = {}
    for fmt, raw in (cfg.get("output_dirs") or {}).items():
        if raw:
            out_dirs[fmt] = _resolve_path(raw, config_dir)  # type: ignore[literal-required]

    # --out fills every format, --out-<fmt> overrides one format
    shared_out = getattr(args, "out", None)
    for fmt in FORMATS:
        cli_dir = getattr(args, f"out_{fmt}", None) or shared_out
        if cli_dir:
            out_dirs[fmt] = _resolve_path(cli_dir, cwd)
    return out_dirs


def _as_index_file(raw: str | dict[str, Any], base: Path) -> IndexFile:
    if isinstance(raw, str):
        return {"path": _resolve_path(raw, base)}
    entry: IndexFile = {"path": _resolve_path(raw["path"], base)}
    if raw.get("lines"):
        entry["lines"] = int(raw["lines"])
    return entry


def _as_other_file(raw: str | dict[str, Any], base: Path) -> OtherFile:
    if isinstance(raw, str):
        return {"path": _resolve_path(raw, base)}
    entry: OtherFile = {"path": _resolve_path(raw["path"], base)}
    if raw.get("lines"):
        entry["lines"] = int(raw["lines"])
    if raw.get("remove_export"):
        entry["remove_export"] = True
    return entry


def _resolve_tool(
    env_key: str,
    build_val: Any,
    root_val: Any,
    default: tuple[str, ...],
) -> list[str]:
    """Tool command from env → build → root → default."""
    env_val = os.getenv(f"{PROGRAM_ENV}_{env_key}")
    for candidate in (env_val, build_val, root_val):
        if candidate:
            return split_command(candidate)
    return list(default)


def _resolve_package_type(
    build_val: Any,
    root_val: Any,
    config_dir: Path,
) -> PackageType:
    explicit = build_val or root_val
    if explicit:
        return cast_hint(PackageType, explicit)  # type: ignore[arg-type]
    return read_package_type(config_dir / DEFAULT_PACKAGE_MANIFEST)


# --------------------------------------------------------------------------- #
# main per-build resolver
# --------------------------------------------------------------------------- #


def resolve_build_config(  # noqa: PLR0912
    build_cfg: BuildConfigInput,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
    root_cfg: RootConfigInput | None = None,
) -> BuildConfig:
    """Resolve a single raw build into a ready-to-run BuildConfig.

    Applies CLI overrides, resolves paths (config values against the config
    directory, CLI values against cwd), fills defaults and attaches provenance.
    """
    cfg: dict[str, Any] = dict(build_cfg)
    root: dict[str, Any] = dict(root_cfg or {})

    meta: MetaBuildConfig = {"cli_base": cwd, "config_base": config_dir}

    resolved: dict[str, Any] = {
        "format": _resolve_formats(args, cfg),
        "output_dirs": _resolve_output_dirs(args, cfg, config_dir, cwd),
        "file_name": _pick(
            args, "file_name", cfg, "file_name", DEFAULT_MERGED_FILE_NAME
        ),
        "declaration": _pick(
            args, "declaration", cfg, "declaration", DEFAULT_DECLARATION
        ),
        "minify": _pick(args, "minify", cfg, "minify", DEFAULT_MINIFY),
        "add_js_extension": _pick(
            args, "add_js_extension", cfg, "add_js_extension", DEFAULT_ADD_JS_EXTENSION
        ),
        "keep_temp": bool(
            getattr(args, "keep_temp", False) or cfg.get("keep_temp", False)
        ),
        "compiler_options": dict(cfg.get("compiler_options") or {}),
        "dry_run": bool(getattr(args, "dry_run", False)),
    }

    # ------------------------------
    # Merge inputs / entry
    # ------------------------------
    cli_index = getattr(args, "index", None)
    cli_entry = getattr(args, "entry", None)
    if cli_index:
        resolved["index_file"] = _as_index_file(cli_index, cwd)
    elif cli_entry:
        resolved["entry"] = _resolve_path(cli_entry, cwd)
    elif "index_file" in cfg:
        resolved["index_file"] = _as_index_file(cfg["index_file"], config_dir)
    elif "entry" in cfg:
        resolved["entry"] = _resolve_path(cfg["entry"], config_dir)
    else:
        xmsg = "No index file or entry given (set `index_file` or `entry`)."
        raise ValueError(xmsg)

    cli_others = getattr(args, "other", None)
    if cli_others:
        resolved["other_files"] = [_as_other_file(o, cwd) for o in cli_others]
    else:
        resolved["other_files"] = [
            _as_other_file(o, config_dir) for o in cfg.get("other_files") or []
        ]
    if "entry" in resolved and resolved["other_files"]:
        log("warning", "`other_files` are ignored when compiling an `entry` directly.")

    if cfg.get("declaration_dir"):
        resolved["declaration_dir"] = _resolve_path(cfg["declaration_dir"], config_dir)

    # ------------------------------
    # Host package / tools
    # ------------------------------
    resolved["package_type"] = _resolve_package_type(
        cfg.get("package_type"), root.get("package_type"), config_dir
    )
    resolved["tsc"] = _resolve_tool(
        DEFAULT_ENV_TSC, cfg.get("tsc"), root.get("tsc"), DEFAULT_TSC_COMMAND
    )
    resolved["minifier"] = _resolve_tool(
        DEFAULT_ENV_MINIFIER,
        cfg.get("minifier"),
        root.get("minifier"),
        DEFAULT_MINIFIER_COMMAND,
    )

    resolved["log_level"] = determine_log_level(
        args, root.get("log_level"), cfg.get("log_level")
    )
    resolved["__meta__"] = meta

    log(
        "trace",
        f"[RESOLVE] formats={resolved['format']}"
        f" package_type={resolved['package_type']}",
    )
    return cast_hint(BuildConfig, resolved)


# --------------------------------------------------------------------------- #
# root-level resolver
# --------------------------------------------------------------------------- #


def resolve_config(
    root_input: RootConfigInput,
    args: argparse.Namespace,
    config_dir: Path,
    cwd: Path,
) -> RootConfig:
    """Fully resolve a loaded root config into a ready-to-run RootConfig."""
    root_cfg = cast_hint(RootConfigInput, dict(root_input))

    log_level = determine_log_level(args, root_cfg.get("log_level"), None)
    current_runtime["log_level"] = log_level

    resolved_builds = [
        resolve_build_config(b, args, config_dir, cwd, root_cfg)
        for b in root_cfg.get("builds", [])
    ]

    return {
        "builds": resolved_builds,
        "strict_config": root_cfg.get("strict_config", False),
        "log_level": log_level,
    }
