# src/polyemit/commands.py

"""Running the external toolchain (tsc, uglifyjs) as subprocesses."""

import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from .utils_logs import log


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


class CommandError(RuntimeError):
    """Raised when a command fails or cannot be started."""

    def __init__(self, result: CommandResult) -> None:
        streams = (result.stdout.strip(), result.stderr.strip())
        output = "\n".join(s for s in streams if s)
        msg = (
            f"Command failed with exit code {result.returncode}:"
            f" {format_command(result.command)}"
        )
        if output:
            msg += f"\n{output}"
        super().__init__(msg)
        self.result = result


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        raise NotImplementedError


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        merged_env: dict[str, str] | None = None
        if env is not None:
            merged_env = os.environ.copy()
            merged_env.update(env)

        log("debug", f"$ {format_command(command)}")
        try:
            process = subprocess.run(  # noqa: S603
                [str(c) for c in command],
                cwd=str(cwd) if cwd else None,
                env=merged_env,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            # executable missing: report like any other failed command
            result = CommandResult(
                command=command, returncode=127, stdout="", stderr=str(e)
            )
            raise CommandError(result) from e

        result = CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
        if check and process.returncode != 0:
            raise CommandError(result)
        return result


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self) -> None:
        self.commands: list[dict[str, object]] = []

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        self.commands.append(
            {
                "command": [str(c) for c in command],
                "cwd": str(cwd) if cwd else None,
                "env": dict(env) if env else {},
            }
        )
        return CommandResult(command=command, returncode=0, stdout="", stderr="")
