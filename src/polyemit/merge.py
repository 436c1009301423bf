# src/polyemit/merge.py

"""Merge several source files into one compilation unit.

The index file always comes last; auxiliary files are prepended in order.
"""

import re
from pathlib import Path

from .types import IndexFile, OtherFile
from .utils_logs import log

EXPORT_RE = re.compile(r"export\s+")


def strip_leading_lines(text: str, lines: int | None) -> str:
    """Drop the first `lines` lines of text (no-op for None or 0)."""
    if not lines:
        return text
    return "\n".join(text.split("\n")[lines:])


def remove_exports(text: str) -> str:
    """Remove every `export` keyword (followed by whitespace) from text."""
    return EXPORT_RE.sub("", text)


def _read_source(path: Path | str) -> str:
    return Path(path).read_text(encoding="utf-8")


def merge_files(
    index_file: IndexFile,
    other_files: list[OtherFile] | None = None,
) -> str:
    """Return the merged source text: other files first, index file last.

    Raises FileNotFoundError if any input is missing.
    """
    index_code = strip_leading_lines(
        _read_source(index_file["path"]), index_file.get("lines")
    )

    other_codes: list[str] = []
    for other in other_files or []:
        code = strip_leading_lines(_read_source(other["path"]), other.get("lines"))
        if other.get("remove_export", False):
            code = remove_exports(code)
        log("trace", f"[MERGE] + {other['path']} ({len(code)} chars)")
        other_codes.append(code)

    merged = "\n".join([*other_codes, index_code]) if other_codes else index_code
    return merged.strip()


def write_merged(
    out_path: Path | str,
    index_file: IndexFile,
    other_files: list[OtherFile] | None = None,
) -> Path:
    """Merge inputs and write the result to out_path (parents created)."""
    out_path = Path(out_path)
    text = merge_files(index_file, other_files)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text, encoding="utf-8")
    log(
        "debug",
        f"📝 Merged {1 + len(other_files or [])} file(s) → {out_path.name}",
    )
    return out_path
