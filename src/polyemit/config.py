# src/polyemit/config.py


import argparse
import os
import sys
import traceback
from pathlib import Path
from typing import Any, cast

from .config_validate import validate_config
from .constants import DEFAULT_ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL
from .meta import PROGRAM_ENV, PROGRAM_SCRIPT
from .runtime import current_runtime
from .types import BuildConfigInput, RootConfigInput
from .utils import load_jsonc, plural, remove_path_in_error_message
from .utils_logs import log
from .utils_schema import ValidationSummary
from .utils_types import cast_hint, schema_from_typeddict


def can_run_configless(args: argparse.Namespace) -> bool:
    """Without a config file we need at least an index file or an entry."""
    return bool(getattr(args, "index", None) or getattr(args, "entry", None))


def determine_log_level(
    args: argparse.Namespace,
    root_log_level: str | None = None,
    build_log_level: str | None = None,
) -> str:
    """Resolve log level from CLI → env → build config → root config → default."""
    if getattr(args, "log_level", None):
        return cast_hint(str, args.log_level)

    env_log_level = os.getenv(f"{PROGRAM_ENV}_{DEFAULT_ENV_LOG_LEVEL}") or os.getenv(
        DEFAULT_ENV_LOG_LEVEL,
    )
    if env_log_level:
        return env_log_level

    if build_log_level:
        return build_log_level

    if root_log_level:
        return root_log_level

    return DEFAULT_LOG_LEVEL


def find_config(
    args: argparse.Namespace,
    cwd: Path,
    *,
    missing_level: str = "error",
) -> Path | None:
    """Locate a configuration file.

    Search order:
      1. Explicit path from CLI (--config)
      2. Default candidates in the current working directory:
         .{PROGRAM_SCRIPT}.py, .{PROGRAM_SCRIPT}.jsonc, .{PROGRAM_SCRIPT}.json

    Returns the first matching path, or None if no config was found.
    """
    if getattr(args, "config", None):
        config = Path(args.config).expanduser().resolve()
        if not config.exists():
            xmsg = f"Specified config file not found: {config}"
            raise FileNotFoundError(xmsg)
        if config.is_dir():
            xmsg = f"Specified config path is a directory, not a file: {config}"
            raise ValueError(xmsg)
        return config

    candidates: list[Path] = [
        cwd / f".{PROGRAM_SCRIPT}.py",
        cwd / f".{PROGRAM_SCRIPT}.jsonc",
        cwd / f".{PROGRAM_SCRIPT}.json",
    ]
    found = [p for p in candidates if p.exists()]

    if not found:
        # expected absence: soft failure
        log(missing_level, f"No config file found in {cwd}")
        return None

    if len(found) > 1:
        names = ", ".join(p.name for p in found)
        log(
            "warning",
            f"Multiple config files detected ({names}); using {found[0].name}.",
        )
    return found[0]


def _load_python_config(config_path: Path) -> dict[str, Any] | list[Any] | None:
    config_globals: dict[str, Any] = {}

    # Allow local imports in Python configs (e.g. from ./helpers import foo)
    parent_dir = str(config_path.parent)
    added_to_sys_path = parent_dir not in sys.path
    if added_to_sys_path:
        sys.path.insert(0, parent_dir)

    try:
        source = config_path.read_text(encoding="utf-8")
        exec(compile(source, str(config_path), "exec"), config_globals)  # noqa: S102
        log("trace", f"[EXEC] globals after exec: {list(config_globals.keys())}")
    except Exception as e:
        tb = traceback.format_exc()
        xmsg = (
            f"Error while executing Python config: {config_path.name}\n"
            f"{type(e).__name__}: {e}\n{tb}"
        )
        raise RuntimeError(xmsg) from e
    finally:
        if added_to_sys_path and sys.path[0] == parent_dir:
            sys.path.pop(0)

    for key in ("config", "builds"):
        if key in config_globals:
            result = config_globals[key]
            if not isinstance(result, (dict, list, type(None))):
                xmsg = (
                    f"{key} in {config_path.name} must be a dict, list, or None"
                    f", not {type(result).__name__}"
                )
                raise TypeError(xmsg)
            return cast("dict[str, Any] | list[Any] | None", result)

    xmsg = f"{config_path.name} did not define `config` or `builds`"
    raise ValueError(xmsg)


def load_config(config_path: Path) -> dict[str, Any] | list[Any] | None:
    """Load configuration data from a file.

    Supports:
      - Python configs: .py files exporting either `config` or `builds`
      - JSON/JSONC configs: .json, .jsonc files

    Returns the raw object (dict, list, or None for intentionally empty configs).
    """
    if config_path.suffix == ".py":
        return _load_python_config(config_path)

    try:
        return load_jsonc(config_path)
    except ValueError as e:
        clean_msg = remove_path_in_error_message(str(e), config_path)
        xmsg = (
            f"Error while loading configuration file '{config_path.name}': {clean_msg}"
        )
        raise ValueError(xmsg) from e


def _hoist_single_build(raw_config: dict[str, Any]) -> dict[str, Any]:
    # Flat single-build config: keys valid at both levels move up to the root,
    # everything else stays on the build.
    build = dict(raw_config)
    root_keys = set(schema_from_typeddict(RootConfigInput))
    build_keys = set(schema_from_typeddict(BuildConfigInput))

    root: dict[str, Any] = {}
    for k in root_keys & build_keys:
        if k in build:
            root[k] = build.pop(k)
    root["builds"] = [build]
    return root


def parse_config(
    raw_config: dict[str, Any] | list[Any] | None,
) -> dict[str, Any] | None:
    """Normalize user config into canonical root shape (no filesystem work).

    Accepted forms:
      - [] / {} / None               → no config
      - [{...}, {...}]               → multi-build list
      - {"builds": [...]}            → multi-build config with root keys
      - {"build": {...}}             → single build with root keys
      - {...}                        → flat single build

    Unknown keys are preserved for the validation phase.
    """
    if not raw_config:
        return None

    if isinstance(raw_config, list):
        if all(isinstance(x, dict) for x in raw_config):
            return {"builds": [dict(b) for b in raw_config]}
        xmsg = "Invalid list config: every element must be a build object."
        raise TypeError(xmsg)

    if not isinstance(raw_config, dict):  # pyright: ignore[reportUnnecessaryIsInstance]
        xmsg = (
            f"Invalid top-level value: {type(raw_config).__name__} "
            "(expected object or list of objects)"
        )
        raise TypeError(xmsg)

    builds_val = raw_config.get("builds")
    build_val = raw_config.get("build")

    if isinstance(builds_val, list):
        return dict(raw_config)

    if isinstance(build_val, list) and "builds" not in raw_config:
        log("warning", "Config key 'build' was a list; treating as 'builds'.")
        root = dict(raw_config)
        root["builds"] = root.pop("build")
        return root

    if isinstance(builds_val, dict):
        log("warning", "Config key 'builds' was a dict; treating as 'build'.")
        root = dict(raw_config)
        root["builds"] = [builds_val]
        return root

    if isinstance(build_val, dict):
        root = dict(raw_config)
        root["builds"] = [dict(root.pop("build"))]
        return root

    return _hoist_single_build(raw_config)


def _validation_summary(
    summary: ValidationSummary,
    config_path: Path,
) -> None:
    """Report a validation summary: a headline, then one bulleted block per bucket."""
    mode = "strict mode" if summary.strict else "lenient mode"
    buckets = [
        ("error", "error", "Errors", summary.errors),
        (
            "error",
            "strict warning",
            "Strict warnings (treated as errors)",
            summary.strict_warnings,
        ),
        ("warning", "normal warning", "Warnings (non-fatal)", summary.warnings),
    ]

    counts = [
        f"{len(msgs)} {label}{plural(msgs)}" for _, label, _, msgs in buckets if msgs
    ]
    counts_msg = f"\nFound {', '.join(counts)}." if counts else ""

    name = config_path.name
    if not summary.valid:
        headline = ("error", f"Failed to validate configuration file {name}")
    elif counts:
        headline = ("warning", f"Validated configuration file {name}")
    else:
        log("debug", f"Validated {name} ({mode}) successfully.")
        return

    suffix = " with warnings" if summary.valid else ""
    log(headline[0], f"{headline[1]} ({mode}){suffix}.{counts_msg}")
    for level, _, title, msgs in buckets:
        if msgs:
            log(level, f"\n{title}:\n  • " + "\n  • ".join(msgs))


def load_and_validate_config(
    args: argparse.Namespace,
) -> tuple[Path, RootConfigInput] | None:
    """Find, load, parse, and validate the user's configuration.

    Also determines the effective log level (from CLI/env/config/default)
    early, so logging can initialize as soon as possible.

    Returns (config_path, root_cfg) if a config file was found and valid,
    or None if no config was found.
    """
    current_runtime["log_level"] = determine_log_level(args)

    cwd = Path.cwd().resolve()
    missing_level = "debug" if can_run_configless(args) else "error"
    config_path = find_config(args, cwd, missing_level=missing_level)
    if config_path is None:
        return None

    raw_config = load_config(config_path)
    if raw_config is None:
        return None

    # Early peek for a root log_level before parsing
    if isinstance(raw_config, dict):
        raw_log_level = raw_config.get("log_level")
        if isinstance(raw_log_level, str) and raw_log_level:
            current_runtime["log_level"] = determine_log_level(args, raw_log_level)

    try:
        parsed_cfg = parse_config(raw_config)
    except TypeError as e:
        xmsg = f"Could not parse config {config_path.name}: {e}"
        raise TypeError(xmsg) from e
    if parsed_cfg is None:
        return None

    validation_result = validate_config(parsed_cfg)
    _validation_summary(validation_result, config_path)
    if not validation_result.valid:
        xmsg = f"Configuration file {config_path.name} contains validation errors."
        exception = ValueError(xmsg)
        exception.silent = True  # type: ignore[attr-defined]
        exception.data = validation_result  # type: ignore[attr-defined]
        raise exception

    return config_path, cast_hint(RootConfigInput, parsed_cfg)
