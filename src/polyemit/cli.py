# src/polyemit/cli.py

import argparse
import platform
import sys
from difflib import get_close_matches
from pathlib import Path

from .actions import get_metadata, run_selftest
from .build import run_all_builds
from .config import can_run_configless, load_and_validate_config
from .config_resolve import resolve_config
from .constants import DEFAULT_FORMATS, DEFAULT_HINT_CUTOFF
from .meta import DESCRIPTION, PROGRAM_DISPLAY, PROGRAM_SCRIPT
from .runtime import current_runtime
from .types import FORMATS, RootConfigInput
from .utils import get_sys_version_info, safe_log, should_use_color
from .utils_logs import LEVEL_ORDER, get_logger, log, set_log_level


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


class HintingArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        known_opts: list[str] = []
        for action in self._actions:
            known_opts.extend([s for s in action.option_strings if s])

        hint_lines: list[str] = []
        # e.g. "unrecognized arguments: --minfy ..."
        if "unrecognized arguments:" in message:
            bad = message.split("unrecognized arguments:", 1)[1].strip()
            bad_args = [tok for tok in bad.split() if tok.startswith("-")]
            for arg in bad_args:
                close = get_close_matches(
                    arg, known_opts, n=1, cutoff=DEFAULT_HINT_CUTOFF
                )
                if close:
                    hint_lines.append(f"Hint: did you mean {close[0]}?")

        self.print_usage(sys.stderr)
        full = f"{self.prog}: error: {message}"
        if hint_lines:
            full += "\n" + "\n".join(hint_lines)
        self.exit(2, full + "\n")


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser."""
    parser = HintingArgumentParser(prog=PROGRAM_SCRIPT, description=DESCRIPTION)

    # --- Inputs ---
    parser.add_argument(
        "index",
        nargs="?",
        metavar="INDEX",
        help="Index file; merged last (shorthand for config `index_file`).",
    )
    parser.add_argument(
        "--entry",
        help="Compile this entry file directly instead of merging.",
    )
    parser.add_argument(
        "--other",
        action="append",
        metavar="FILE",
        help="Auxiliary file merged before the index file (repeatable).",
    )
    parser.add_argument(
        "--file-name",
        help="Name of the merged temp unit (default: index.ts).",
    )

    # --- Formats and outputs ---
    parser.add_argument(
        "-f",
        "--format",
        nargs="+",
        choices=FORMATS,
        help=f"Module formats to build (default: {' '.join(DEFAULT_FORMATS)}).",
    )
    parser.add_argument("-o", "--out", help="Output directory for every format.")
    for fmt in FORMATS:
        parser.add_argument(
            f"--out-{fmt}",
            metavar="DIR",
            help=f"Output directory for the {fmt} build.",
        )

    # --- Build behavior ---
    parser.add_argument(
        "--declaration",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit declaration files (never for browser).",
    )
    parser.add_argument(
        "--minify",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Minify emitted JavaScript and write source maps.",
    )
    parser.add_argument(
        "--add-js-extension",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Append .js to extensionless relative imports in emitted code.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be built without running tools or writing files.",
    )
    parser.add_argument(
        "--keep-temp",
        action="store_true",
        help="Keep the temp workspace for inspection.",
    )
    parser.add_argument("-c", "--config", help="Path to build config file.")

    # --- Color ---
    color = parser.add_mutually_exclusive_group()
    color.add_argument(
        "--no-color",
        dest="use_color",
        action="store_const",
        const=False,
        help="Disable ANSI color output.",
    )
    color.add_argument(
        "--color",
        dest="use_color",
        action="store_const",
        const=True,
        help="Force-enable ANSI color output (overrides auto-detect).",
    )
    color.set_defaults(use_color=None)

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LEVEL_ORDER,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    parser.add_argument(
        "--selftest",
        action="store_true",
        help="Build a tiny module with the real toolchain to verify the setup.",
    )
    return parser


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:  # noqa: C901, PLR0911
    try:
        parser = _setup_parser()
        args = parser.parse_args(argv)

        # --- Early runtime init (CLI + env + defaults) ---
        if args.log_level:
            set_log_level(args.log_level)
        current_runtime["use_color"] = (
            args.use_color if args.use_color is not None else should_use_color()
        )
        logger = get_logger()
        logger.trace("[BOOT] log-level initialized: %s", current_runtime["log_level"])
        logger.debug(
            "Runtime: Python %s (%s)\n    %s",
            platform.python_version(),
            platform.python_implementation(),
            sys.version.replace("\n", " "),
        )

        if args.version:
            meta = get_metadata()
            logger.info("%s %s (%s)", PROGRAM_DISPLAY, meta.version, meta.commit)
            return 0

        if get_sys_version_info() < (3, 10):
            logger.error("%s requires Python 3.10 or newer.", PROGRAM_DISPLAY)
            return 1

        if args.selftest:
            return 0 if run_selftest() else 1

        if args.index and args.entry:
            parser.error("INDEX and --entry are mutually exclusive.")

        # --- Load configuration ---
        config_path: Path | None = None
        root_cfg: RootConfigInput | None = None
        config_result = load_and_validate_config(args)
        if config_result is not None:
            config_path, root_cfg = config_result

        cwd = Path.cwd().resolve()
        config_dir = config_path.parent if config_path else cwd

        if root_cfg is None and not can_run_configless(args):
            log(
                "error",
                f"No build config found (.{PROGRAM_SCRIPT}.json)"
                " and no index file or --entry given.",
            )
            return 1

        if root_cfg is None:
            log("info", "No config file found; using CLI-only mode.")
            root_cfg = {"builds": [{}]}

        resolved_root = resolve_config(root_cfg, args, config_dir, cwd)
        resolved_builds = resolved_root["builds"]

        if args.dry_run:
            log(
                "info",
                "🧪 Dry-run mode: no tools will run and no files will be written.\n",
            )

        if config_path:
            log("info", f"🔧 Using config: {config_path.name}")
        log("info", f"📁 Config root: {config_dir}")
        log("info", f"🔧 Running {len(resolved_builds)} build(s)\n")

        run_all_builds(resolved_builds, dry_run=args.dry_run)

    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        # controlled termination
        if not getattr(e, "silent", False):
            try:
                get_logger().error_if_not_debug(str(e))
            except Exception:  # noqa: BLE001
                safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1)

    except Exception as e:  # noqa: BLE001
        # unexpected internal error
        try:
            get_logger().critical_if_not_debug("Unexpected internal error: %s", e)
        except Exception:  # noqa: BLE001
            safe_log(f"[FATAL] Logging failed while reporting: {e}")
        return getattr(e, "code", 1)

    else:
        return 0
