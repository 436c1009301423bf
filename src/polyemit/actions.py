# src/polyemit/actions.py
import re
import subprocess
from contextlib import suppress
from pathlib import Path

from .build import run_build
from .commands import CommandError, CommandRunner
from .constants import DEFAULT_MINIFIER_COMMAND, DEFAULT_TSC_COMMAND
from .dirs import temp_workspace
from .meta import PROGRAM_DISPLAY, PROGRAM_SCRIPT, Metadata
from .types import BuildConfig
from .utils_logs import get_logger


def get_metadata() -> Metadata:
    """Return (version, commit) for this tool.

    Version comes from pyproject.toml, commit from git; either may be "unknown".
    """
    logger = get_logger()
    version = "unknown"
    commit = "unknown"

    root = Path(__file__).resolve().parents[2]
    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        logger.trace("trying to read metadata from %s", pyproject)
        text = pyproject.read_text(encoding="utf-8")
        match = re.search(r'(?m)^\s*version\s*=\s*["\']([^"\']+)["\']', text)
        if match:
            version = match.group(1)

    with suppress(Exception):
        logger.trace("trying to get commit from git")
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],  # noqa: S607
            cwd=root,
            capture_output=True,
            text=True,
            check=True,
        )
        commit = result.stdout.strip() or "unknown"

    logger.trace("got package version %s with commit %s", version, commit)
    return Metadata(version, commit)


def run_selftest(
    *,
    tsc: list[str] | None = None,
    minifier: list[str] | None = None,
    runner: CommandRunner | None = None,
) -> bool:
    """Build a tiny module in every format to check the toolchain end to end."""
    logger = get_logger()
    logger.info("🧪 Running self-test...")

    try:
        with temp_workspace(prefix=f"{PROGRAM_SCRIPT}-selftest-") as tmp_dir:
            src = tmp_dir / "src"
            src.mkdir()
            (src / "helpers.ts").write_text(
                'export const name = "polyemit";\n', encoding="utf-8"
            )
            (src / "index.ts").write_text(
                "export const greet = () => `hello ${name}`;\n", encoding="utf-8"
            )
            out = tmp_dir / "out"

            build_cfg: BuildConfig = {
                "format": ["esm", "cjs", "browser"],
                "output_dirs": {
                    "esm": out / "esm",
                    "cjs": out / "cjs",
                    "browser": out / "browser",
                },
                "index_file": {"path": src / "index.ts"},
                "other_files": [{"path": src / "helpers.ts", "remove_export": True}],
                "file_name": "index.ts",
                "declaration": True,
                "minify": True,
                "add_js_extension": False,
                "compiler_options": {},
                "package_type": "commonjs",
                "log_level": "info",
                "keep_temp": False,
                "tsc": tsc or list(DEFAULT_TSC_COMMAND),
                "minifier": minifier or list(DEFAULT_MINIFIER_COMMAND),
                "dry_run": False,
                "__meta__": {"cli_base": tmp_dir, "config_base": tmp_dir},
            }
            logger.debug("[SELFTEST] using temp dir: %s", tmp_dir)

            for dry_run in (True, False):
                build_cfg["dry_run"] = dry_run
                run_build(build_cfg, runner=runner)

            expected = [
                out / "esm" / "index.mjs",
                out / "esm" / "index.d.mts",
                out / "cjs" / "index.js",
                out / "cjs" / "index.js.map",
                out / "browser" / "index.global.js",
            ]
            missing = [p.relative_to(out) for p in expected if not p.exists()]
            if missing or "greet" not in expected[2].read_text(encoding="utf-8"):
                logger.error(
                    "Self-test failed: missing or invalid output: %s",
                    ", ".join(str(m) for m in missing) or "index.js",
                )
                return False

    except CommandError as e:
        logger.error("Self-test failed: toolchain error.\n%s", e)  # noqa: TRY400
        return False
    except PermissionError:
        logger.error("Self-test failed: insufficient permissions.")  # noqa: TRY400
        return False
    except Exception:
        # unexpected bug: show traceback
        logger.exception(
            "Unexpected self-test failure. "
            "Please report this issue with the following traceback:"
        )
        return False

    logger.info("✅ Self-test passed: %s is working correctly.", PROGRAM_DISPLAY)
    return True
