# src/polyemit/config_validate.py


from typing import Any

from .constants import DEFAULT_STRICT_CONFIG, OWNED_COMPILER_OPTIONS
from .types import (
    FORMATS,
    BuildConfigInput,
    IndexFileInput,
    OtherFileInput,
    RootConfigInput,
)
from .utils_logs import LEVEL_ORDER
from .utils_schema import (
    SchemaErrorAggregator,
    ValidationSummary,
    collect_msg,
    flush_schema_aggregators,
    validate_typed_dict,
    warn_keys_once,
)
from .utils_types import cast_hint

# --- constants ------------------------------------------------------

DRYRUN_KEYS = {"dry-run", "dry_run", "dryrun", "no-op", "no_op", "noop"}
DRYRUN_MSG = (
    "Ignored config key(s) {keys} {ctx}: this tool has no config option for it. "
    "Use the CLI flag '--dry-run' instead."
)

PACKAGE_TYPES = ("commonjs", "module")


# ---------------------------------------------------------------------------
# value checks the type schema cannot express
# ---------------------------------------------------------------------------


def _check_choice(
    cfg: dict[str, Any],
    key: str,
    choices: tuple[str, ...] | list[str],
    context: str,
    summary: ValidationSummary,
) -> None:
    val = cfg.get(key)
    if isinstance(val, str) and val not in choices:
        collect_msg(
            True,
            f"{context}: `{key}` must be one of {', '.join(choices)}, got {val!r}",
            summary,
            is_error=True,
        )


def _check_merge_file(
    strict: bool,
    entry: Any,
    schema: type[Any],
    context: str,
    summary: ValidationSummary,
) -> None:
    if isinstance(entry, str):
        return
    if not validate_typed_dict(strict, context, entry, schema, summary=summary):
        return
    if "path" not in entry:
        collect_msg(True, f"{context}: missing `path`", summary, is_error=True)
    lines = entry.get("lines")
    if isinstance(lines, int) and lines < 0:
        collect_msg(
            True, f"{context}: `lines` must not be negative", summary, is_error=True
        )


def _check_build_values(
    strict: bool,
    b: dict[str, Any],
    context: str,
    summary: ValidationSummary,
) -> None:
    formats = b.get("format")
    if isinstance(formats, list):
        if not formats:
            collect_msg(
                True, f"{context}: `format` must not be empty", summary, is_error=True
            )
        bad = [f for f in formats if isinstance(f, str) and f not in FORMATS]
        if bad:
            collect_msg(
                True,
                f"{context}: unknown format{'s' if len(bad) > 1 else ''}"
                f" {', '.join(repr(f) for f in bad)}"
                f" (expected {', '.join(FORMATS)})",
                summary,
                is_error=True,
            )

    if "index_file" in b and "entry" in b:
        collect_msg(
            True,
            f"{context}: set either `index_file` or `entry`, not both",
            summary,
            is_error=True,
        )

    if "index_file" in b:
        _check_merge_file(
            strict, b["index_file"], IndexFileInput, f"{context}.index_file", summary
        )
    others = b.get("other_files")
    if others is not None and not isinstance(others, list):
        collect_msg(
            True,
            f"{context}: key `other_files` expected a list,"
            f" got {type(others).__name__}",
            summary,
            is_error=True,
        )
    elif isinstance(others, list):
        for i, other in enumerate(others):
            _check_merge_file(
                strict, other, OtherFileInput, f"{context}.other_files[{i}]", summary
            )

    compiler_options = b.get("compiler_options")
    if isinstance(compiler_options, dict):
        owned = sorted(OWNED_COMPILER_OPTIONS & compiler_options.keys())
        if owned:
            collect_msg(
                True,
                f"{context}: compiler_options may not set {', '.join(owned)}",
                summary,
                is_error=True,
            )


# ---------------------------------------------------------------------------
# main validator
# ---------------------------------------------------------------------------


def validate_config(
    parsed_cfg: dict[str, Any], *, strict: bool | None = None
) -> ValidationSummary:
    """Validate a normalized config.

    strict=True  →  warnings become fatal, but still listed separately
    strict=False →  warnings remain non-fatal

    The `strict_config` key in the root config (and optionally in each build)
    controls strictness unless `strict` is passed explicitly.
    """
    summary = ValidationSummary(strict=DEFAULT_STRICT_CONFIG)
    agg: SchemaErrorAggregator = {}

    def set_valid_and_return() -> ValidationSummary:
        flush_schema_aggregators(summary, agg)
        summary.valid = not summary.errors and not summary.strict_warnings
        return summary

    root_strict = summary.strict if strict is None else strict
    strict_from_root: Any = parsed_cfg.get("strict_config")
    if strict is None and isinstance(strict_from_root, bool):
        root_strict = strict_from_root
    summary.strict = root_strict

    # --- root level ---
    context = "in top-level configuration"
    _, prewarn_root = warn_keys_once(
        root_strict,
        "dry-run",
        DRYRUN_KEYS,
        parsed_cfg,
        context,
        DRYRUN_MSG,
        summary,
        agg=agg,
    )
    validate_typed_dict(
        root_strict,
        context,
        parsed_cfg,
        RootConfigInput,
        summary=summary,
        prewarn=prewarn_root,
        ignore_keys={"builds"},
    )
    _check_choice(parsed_cfg, "package_type", PACKAGE_TYPES, context, summary)
    _check_choice(parsed_cfg, "log_level", LEVEL_ORDER, context, summary)

    # --- builds ---
    builds_raw: Any = parsed_cfg.get("builds", [])
    if not isinstance(builds_raw, list):
        collect_msg(True, "`builds` must be a list of builds.", summary, is_error=True)
        return set_valid_and_return()

    if not builds_raw:
        collect_msg(False, "No `builds` defined; nothing to build.", summary)
        return set_valid_and_return()

    for i, b in enumerate(cast_hint(list[Any], builds_raw)):
        context = f"in build #{i + 1}"
        if not isinstance(b, dict):
            collect_msg(
                True,
                f"Build #{i + 1} must be an object"
                " with named keys (not a list or value)",
                summary,
                is_error=True,
            )
            continue

        build_strict = root_strict
        strict_from_build: Any = b.get("strict_config")
        if strict is None and isinstance(strict_from_build, bool):
            build_strict = strict_from_build

        _, prewarn_build = warn_keys_once(
            build_strict,
            "dry-run",
            DRYRUN_KEYS,
            b,
            context,
            DRYRUN_MSG,
            summary,
            agg=agg,
        )
        validate_typed_dict(
            build_strict,
            context,
            b,
            BuildConfigInput,
            summary=summary,
            prewarn=prewarn_build,
            # merge file entries are checked with their own schemas below
            ignore_keys={"index_file", "other_files"},
        )
        _check_choice(b, "package_type", PACKAGE_TYPES, context, summary)
        _check_choice(b, "log_level", LEVEL_ORDER, context, summary)
        _check_build_values(build_strict, b, context, summary)

    return set_valid_and_return()
