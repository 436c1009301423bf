# src/polyemit/utils_schema.py
from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches
from typing import Any, Literal, TypedDict, get_args, get_origin

from .constants import DEFAULT_HINT_CUTOFF
from .utils import plural
from .utils_types import (
    cast_hint,
    is_typeddict_class,
    safe_isinstance,
    schema_from_typeddict,
)

# --- types ----------------------------------------------------------

# Aggregator structure:
# {
#   "strict_warnings": {
#       "dry-run": {"msg": DRYRUN_MSG, "contexts": ["in build #1", "in build #3"]},
#   },
#   "warnings": { ... }
# }


class _SchErrAggEntry(TypedDict):
    msg: str
    contexts: list[str]


# severity, tag
SchemaErrorAggregator = dict[str, dict[str, _SchErrAggEntry]]


@dataclass
class ValidationSummary:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    strict_warnings: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    strict: bool = False  # strictness somewhere in our config?


AGG_STRICT_WARN = "strict_warnings"
AGG_WARN = "warnings"


# --- helpers --------------------------------------------------------


def collect_msg(
    strict: bool,
    msg: str,
    summary: ValidationSummary,  # modified in function, not returned
    *,
    is_error: bool = False,
) -> None:
    """Route a message to the appropriate bucket.

    Errors are always fatal. Warnings escalate to strict_warnings in strict mode.
    """
    if is_error:
        summary.errors.append(msg)
    elif strict:
        summary.strict_warnings.append(msg)
    else:
        summary.warnings.append(msg)


def flush_schema_aggregators(
    summary: ValidationSummary,
    agg: SchemaErrorAggregator,
) -> None:
    def _clean_context(ctx: str) -> str:
        ctx = ctx.strip()
        for prefix in ("in ", "on "):
            if ctx.lower().startswith(prefix):
                return ctx[len(prefix) :].strip()
        return ctx

    def _flush_one(bucket: dict[str, _SchErrAggEntry], strict: bool) -> None:
        for tag, entry in bucket.items():
            contexts = [_clean_context(c) for c in entry["contexts"]]
            rendered = entry["msg"].format(keys=tag, ctx=f"in {', '.join(contexts)}")
            collect_msg(strict, rendered, summary)
        bucket.clear()

    strict_bucket = agg.get(AGG_STRICT_WARN, {})
    warn_bucket = agg.get(AGG_WARN, {})

    if strict_bucket:
        summary.valid = False
        _flush_one(strict_bucket, True)
    if warn_bucket:
        _flush_one(warn_bucket, False)


def _infer_type_label(expected_type: Any) -> str:
    """Return a readable label for messages (e.g. 'list[str]', 'OtherFileInput')."""
    origin = get_origin(expected_type)
    args = get_args(expected_type)
    if origin is list and args:
        return f"list[{_infer_type_label(args[0])}]"
    if origin is Literal:
        return " | ".join(repr(a) for a in args)
    if isinstance(expected_type, type):
        return expected_type.__name__
    if args:
        return " | ".join(_infer_type_label(a) for a in args)
    return str(expected_type)


# ---------------------------------------------------------------------------
# granular schema validator helpers
# ---------------------------------------------------------------------------


def _validate_scalar_value(
    context: str,
    key: str,
    val: Any,
    expected_type: Any,
    *,
    summary: ValidationSummary,  # modified in function, not returned
) -> bool:
    """Validate a single non-container value against its expected type."""
    if safe_isinstance(val, expected_type):
        return True

    collect_msg(
        True,
        f"{context}: key `{key}` expected {_infer_type_label(expected_type)},"
        f" got {type(val).__name__}",
        summary,
        is_error=True,
    )
    return False


def _validate_list_value(
    strict: bool,
    context: str,
    key: str,
    val: Any,
    subtype: Any,
    *,
    summary: ValidationSummary,  # modified in function, not returned
) -> bool:
    """Validate a homogeneous list value, delegating to scalar/TypedDict validators."""
    if not isinstance(val, list):
        collect_msg(
            strict,
            f"{context}: key `{key}` expected list[{_infer_type_label(subtype)}],"
            f" got {type(val).__name__}",
            summary,
            is_error=True,
        )
        return False

    valid = True
    for i, item in enumerate(cast_hint(list[Any], val)):
        if is_typeddict_class(subtype):
            valid &= validate_typed_dict(
                strict,
                f"{context}.{key}[{i}]",
                item,
                subtype,
                summary=summary,
            )
        else:
            valid &= _validate_scalar_value(
                context, f"{key}[{i}]", item, subtype, summary=summary
            )
    return valid


def validate_typed_dict(
    strict: bool,
    context: str,
    val: Any,
    typedict_cls: type[Any],
    *,
    summary: ValidationSummary,  # modified in function, not returned
    prewarn: set[str] | None = None,
    ignore_keys: set[str] | None = None,
) -> bool:
    """Validate a dict against a TypedDict schema recursively.

    Missing keys are fine (every input schema is total=False); unknown keys
    are warnings, or strict warnings when `strict` is set.
    """
    prewarn = prewarn or set()
    ignore_keys = ignore_keys or set()

    if not isinstance(val, dict):
        collect_msg(
            strict,
            f"{context}: expected an object with named keys for"
            f" {typedict_cls.__name__}, got {type(val).__name__}",
            summary,
            is_error=True,
        )
        return False

    schema = schema_from_typeddict(typedict_cls)
    valid = True

    for key, expected_type in schema.items():
        if key not in val or key in prewarn or key in ignore_keys:
            continue

        inner_val = val[key]
        if get_origin(expected_type) is list:
            args = get_args(expected_type)
            valid &= _validate_list_value(
                strict,
                context,
                key,
                inner_val,
                args[0] if args else Any,
                summary=summary,
            )
        elif is_typeddict_class(expected_type):
            valid &= validate_typed_dict(
                strict,
                f"{context}.{key}",
                inner_val,
                expected_type,
                summary=summary,
            )
        else:
            valid &= _validate_scalar_value(
                context, key, inner_val, expected_type, summary=summary
            )

    # --- Unknown keys ---
    unknown = [k for k in val if k not in schema and k not in prewarn]
    if unknown:
        joined = ", ".join(f"`{u}`" for u in unknown)
        msg = f"Unknown key{plural(unknown)} {joined} {context}."

        hints: list[str] = []
        for k in unknown:
            close = get_close_matches(k, schema.keys(), n=1, cutoff=DEFAULT_HINT_CUTOFF)
            if close:
                hints.append(f"'{k}' → '{close[0]}'")
        if hints:
            msg += "\nHint: did you mean " + ", ".join(hints) + "?"

        collect_msg(strict, msg, summary)
        if strict:
            valid = False

    return valid


def warn_keys_once(
    strict_config: bool,
    tag: str,
    bad_keys: set[str],
    cfg: dict[str, Any],
    context: str,
    msg: str,
    summary: ValidationSummary,  # modified in function, not returned
    *,
    agg: SchemaErrorAggregator | None,
) -> tuple[bool, set[str]]:
    """Warn once for known bad keys (e.g. dry-run, root-only).

    With an aggregator, contexts are collected and rendered together by
    flush_schema_aggregators(). Returns (valid, found_keys).
    """
    bad_keys_lower = {k.lower(): k for k in bad_keys}
    cfg_keys_lower = {k.lower(): k for k in cfg}
    found_lower = bad_keys_lower.keys() & cfg_keys_lower.keys()

    if not found_lower:
        return True, set()

    found = {cfg_keys_lower[k] for k in found_lower}

    if agg is not None:
        severity = AGG_STRICT_WARN if strict_config else AGG_WARN
        bucket = agg.setdefault(severity, {})
        entry = bucket.setdefault(tag, {"msg": msg, "contexts": []})
        entry["contexts"].append(context)
    else:
        collect_msg(
            strict_config,
            msg.format(keys=", ".join(sorted(found)), ctx=context),
            summary,
        )

    return not strict_config, found
