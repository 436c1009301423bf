# tests/utils/__init__.py

from .buildconfig import (
    make_build_cfg,
    make_build_input,
    make_meta,
    write_sources,
)
from .summary import make_summary
from .fake_toolchain import FakeToolchainRunner
from .patch_everywhere import patch_everywhere

__all__ = [
    "FakeToolchainRunner",
    "make_build_cfg",
    "make_build_input",
    "make_meta",
    "make_summary",
    "patch_everywhere",
    "write_sources",
]
