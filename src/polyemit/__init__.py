# src/polyemit/__init__.py

"""Polyemit: build one TypeScript codebase as ESM, CommonJS and a browser global.

Full developer API
==================
This package re-exports all non-private symbols from its submodules,
making it suitable for programmatic use or custom build scripts.
Anything prefixed with "_" is considered internal and may change.

Highlights:
    - main()              → CLI entrypoint
    - run_build()         → Execute one resolved build
    - compile_sources()   → Run tsc for a single format
    - merge_files()       → Concatenate sources into one compilation unit
    - resolve_config()    → Merge CLI args with config files
"""

from .actions import (
    get_metadata,
    run_selftest,
)
from .build import (
    BuildReport,
    run_all_builds,
    run_build,
)
from .cli import (
    main,
)
from .commands import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from .compiler import (
    CompileError,
    OutputSink,
    build_tsc_command,
    compile_sources,
    get_module_kind,
)
from .config import (
    find_config,
    load_and_validate_config,
    load_config,
    parse_config,
)
from .config_resolve import resolve_build_config, resolve_config
from .config_validate import validate_config
from .constants import (
    DEFAULT_ENV_LOG_LEVEL,
    DEFAULT_FORMATS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MERGED_FILE_NAME,
    DEFAULT_MINIFIER_COMMAND,
    DEFAULT_STRICT_CONFIG,
    DEFAULT_TSC_COMMAND,
)
from .dirs import (
    clean_dir,
    ensure_clean,
    temp_workspace,
)
from .extensions import (
    add_js_extension,
    extension_replacer,
    read_package_type,
    replace_file_extension,
)
from .merge import (
    merge_files,
    remove_exports,
    write_merged,
)
from .meta import (
    PROGRAM_DISPLAY,
    PROGRAM_ENV,
    PROGRAM_PACKAGE,
    PROGRAM_SCRIPT,
    Metadata,
)
from .minify import (
    MinifyError,
    MinifyResult,
    finalize_js,
    minify_code,
)
from .runtime import current_runtime
from .types import (
    FORMATS,
    BuildConfig,
    BuildConfigInput,
    CompileOptions,
    Format,
    IndexFile,
    MetaBuildConfig,
    OtherFile,
    OutputDirs,
    PackageType,
    RootConfig,
    RootConfigInput,
    Runtime,
)
from .utils import (
    load_jsonc,
    should_use_color,
)
from .utils_logs import (
    LEVEL_ORDER,
    RESET,
    colorize,
    log,
)
from .utils_types import (
    safe_isinstance,
    schema_from_typeddict,
)


__all__ = [  # noqa: RUF022
    # --- CLI / Actions ---
    "get_metadata",  # version info
    "main",
    "run_selftest",
    #
    # --- Build Engine ---
    "BuildReport",
    "run_all_builds",
    "run_build",
    #
    # --- Toolchain ---
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "CompileError",
    "MinifyError",
    "MinifyResult",
    "OutputSink",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "build_tsc_command",
    "compile_sources",
    "finalize_js",
    "get_module_kind",
    "minify_code",
    #
    # --- Sources / Outputs ---
    "add_js_extension",
    "clean_dir",
    "ensure_clean",
    "extension_replacer",
    "merge_files",
    "read_package_type",
    "remove_exports",
    "replace_file_extension",
    "temp_workspace",
    "write_merged",
    #
    # --- Config Handling ---
    "find_config",
    "load_and_validate_config",
    "load_config",
    "parse_config",
    "resolve_build_config",
    "resolve_config",
    "validate_config",
    #
    # --- Constants / Metadata / Runtime ---
    "DEFAULT_ENV_LOG_LEVEL",
    "DEFAULT_FORMATS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MERGED_FILE_NAME",
    "DEFAULT_MINIFIER_COMMAND",
    "DEFAULT_STRICT_CONFIG",
    "DEFAULT_TSC_COMMAND",
    "Metadata",
    "PROGRAM_DISPLAY",
    "PROGRAM_ENV",
    "PROGRAM_PACKAGE",
    "PROGRAM_SCRIPT",
    "current_runtime",
    #
    # --- utils ---
    "LEVEL_ORDER",
    "RESET",
    "colorize",
    "load_jsonc",
    "log",
    "safe_isinstance",
    "schema_from_typeddict",
    "should_use_color",
    #
    # --- Types ---
    "FORMATS",
    "BuildConfig",
    "BuildConfigInput",
    "CompileOptions",
    "Format",
    "IndexFile",
    "MetaBuildConfig",
    "OtherFile",
    "OutputDirs",
    "PackageType",
    "RootConfig",
    "RootConfigInput",
    "Runtime",
]
