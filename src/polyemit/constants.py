# src/polyemit/constants.py
"""
Central constants used across the project.
"""

# --- env keys ---
DEFAULT_ENV_LOG_LEVEL: str = "LOG_LEVEL"
DEFAULT_ENV_TSC: str = "TSC"
DEFAULT_ENV_MINIFIER: str = "UGLIFYJS"

# --- config defaults ---
DEFAULT_STRICT_CONFIG: bool = True
DEFAULT_LOG_LEVEL: str = "info"
DEFAULT_FORMATS: tuple[str, ...] = ("esm", "cjs")
DEFAULT_MERGED_FILE_NAME: str = "index.ts"
DEFAULT_DECLARATION: bool = False
DEFAULT_MINIFY: bool = False
DEFAULT_ADD_JS_EXTENSION: bool = False
DEFAULT_HINT_CUTOFF: float = 0.6

# --- external tools ---
DEFAULT_TSC_COMMAND: tuple[str, ...] = ("npx", "--no-install", "tsc")
DEFAULT_MINIFIER_COMMAND: tuple[str, ...] = ("npx", "--no-install", "uglifyjs")
DEFAULT_PACKAGE_MANIFEST: str = "package.json"

# --- compiler ---
# tsc exit status: outputs were generated despite diagnostics
TSC_EXIT_DIAGNOSTICS_OUTPUTS_GENERATED: int = 2
OWNED_COMPILER_OPTIONS: frozenset[str] = frozenset(
    {"module", "outDir", "declaration", "declarationDir", "allowJs"}
)
