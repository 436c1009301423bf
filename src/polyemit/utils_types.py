# src/polyemit/utils_types.py


from types import UnionType
from typing import (
    Any,
    Literal,
    TypeVar,
    Union,
    cast,
    get_args,
    get_origin,
    get_type_hints,
)


T = TypeVar("T")


def cast_hint(_typ: type[T], value: Any) -> T:
    """Explicit cast that documents intent but is purely for type hinting.

    A drop-in replacement for `typing.cast`, meant for places where:
      - You want to silence mypy's redundant-cast warnings.
      - You want to signal "this narrowing is intentional."

    This function performs *no runtime checks*.
    """
    return cast("T", value)


def schema_from_typeddict(td: type[Any]) -> dict[str, Any]:
    """Extract field names and their annotated types from a TypedDict."""
    return get_type_hints(td, include_extras=True)


def is_typeddict_class(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and hasattr(tp, "__annotations__")
        and hasattr(tp, "__total__")
    )


def _isinstance_generics(  # noqa: PLR0911
    value: Any,
    origin: Any,
    args: tuple[Any, ...],
) -> bool:
    # Outer container check
    if not isinstance(value, origin):
        return False

    if not args:
        return True

    # list[str]
    if origin is list and isinstance(value, list):
        subtype = args[0]
        items = cast_hint(list[Any], value)
        return all(safe_isinstance(v, subtype) for v in items)

    # dict[str, int]
    if origin is dict and isinstance(value, dict):
        key_t, val_t = args if len(args) == 2 else (Any, Any)  # noqa: PLR2004
        dct = cast_hint(dict[Any, Any], value)
        return all(
            safe_isinstance(k, key_t) and safe_isinstance(v, val_t)
            for k, v in dct.items()
        )

    # tuple[str, ...]
    if origin is tuple and isinstance(value, tuple):
        tup = cast_hint(tuple[Any, ...], value)
        if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
            return all(safe_isinstance(v, args[0]) for v in tup)
        if len(args) == len(tup):
            return all(safe_isinstance(v, t) for v, t in zip(tup, args, strict=True))
        return False

    return True  # e.g., other typing origins like set[], Iterable[]


def safe_isinstance(value: Any, expected_type: Any) -> bool:  # noqa: PLR0911
    """Like isinstance(), but safe for TypedDicts and typing generics.

    Handles:
      - typing.Union, Optional, Any
      - Literal values
      - TypedDict subclasses
      - list[...] / dict[...] with inner types
    """
    if expected_type is Any:
        return True

    origin = get_origin(expected_type)
    args = get_args(expected_type)

    if origin is Literal:
        return value in args

    if origin in {Union, UnionType}:
        return any(safe_isinstance(value, t) for t in args)

    # TypedDict-like → plain dict at runtime
    if is_typeddict_class(expected_type):
        return isinstance(value, dict)

    if origin:
        return _isinstance_generics(value, origin, args)

    try:
        return isinstance(value, expected_type)
    except TypeError:
        # Non-type or strange typing construct
        return False
