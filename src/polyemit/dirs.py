# src/polyemit/dirs.py

"""Output and temp directory lifecycle."""

import shutil
import tempfile
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from .meta import PROGRAM_SCRIPT
from .utils_logs import log


def clean_dir(directory: Path | str) -> None:
    """Delete every file directly inside directory (subdirectories are kept)."""
    directory = Path(directory)
    for child in directory.iterdir():
        if child.is_file() or child.is_symlink():
            child.unlink()
            log("trace", f"[CLEAN] removed {child}")


def ensure_clean(directory: Path | str) -> bool:
    """Empty an existing directory, or create it.

    Returns True if the directory had to be created.
    """
    directory = Path(directory)
    if directory.exists():
        if not directory.is_dir():
            xmsg = f"Output path exists and is not a directory: {directory}"
            raise NotADirectoryError(xmsg)
        clean_dir(directory)
        log("debug", f"🧹 Cleaned {directory}")
        return False

    directory.mkdir(parents=True, exist_ok=True)
    log("debug", f"📁 Created {directory}")
    return True


@contextmanager
def temp_workspace(
    prefix: str = f"{PROGRAM_SCRIPT}-",
    *,
    keep: bool = False,
) -> Iterator[Path]:
    """Yield a fresh process-unique temp directory, removed on exit.

    The directory is removed on the failure path too, unless `keep` is set.
    """
    tmp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    log("trace", f"[TEMP] created {tmp_dir}")
    try:
        yield tmp_dir
    finally:
        if keep:
            log("info", f"🗂️  Keeping temp directory: {tmp_dir}")
        else:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            log("trace", f"[TEMP] removed {tmp_dir}")


def remove_created_dirs(directories: Iterable[Path]) -> None:
    """Best-effort removal of output directories created by a failed build."""
    for directory in directories:
        if directory.exists():
            shutil.rmtree(directory, ignore_errors=True)
            log("debug", f"↩️  Removed partially built {directory}")
