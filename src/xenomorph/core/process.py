"""
External tool execution.

Every native packaging tool (dpkg-deb, rpm, cpio, pkgtrans, patch, ...) is run
through run_command so command lines are logged uniformly and failures carry
the captured stderr.
"""

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from xenomorph.core.config import Config, Verbosity
from xenomorph.core.errors import ExternalToolFailure

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: bytes
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


def command_exists(binary: str) -> bool:
    """Return True if a binary is available in PATH."""
    return shutil.which(binary) is not None


def format_cmdline(cmd: list[str | os.PathLike]) -> str:
    return " ".join(shlex.quote(str(part)) for part in cmd)


def run_command(
    cmd: list[str | os.PathLike],
    config: Config,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    input: bytes | None = None,
    check: bool = True,
) -> CommandResult:
    """
    Run a command to completion and capture its output.

    Args:
        cmd: Program and arguments.
        config: Run configuration; controls how much is logged.
        cwd: Working directory for the command.
        env: Extra environment variables layered over the current environment.
        input: Bytes fed to the command's stdin.
        check: Raise ExternalToolFailure on a non-zero exit status.

    Returns:
        CommandResult with raw stdout bytes and decoded stderr.
    """
    argv = [str(part) for part in cmd]
    cmdline = format_cmdline(argv)
    level = logging.INFO if config.verbose else logging.DEBUG
    logger.log(level, f"\t{cmdline}")

    process_env = None
    if env:
        process_env = os.environ.copy()
        process_env.update(env)

    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd) if cwd else None,
            env=process_env,
            input=input,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ExternalToolFailure(argv[0], cmdline, None) from exc

    result = CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr.decode("utf-8", errors="replace"),
    )

    if config.verbosity >= Verbosity.VERY_VERBOSE and result.stdout:
        logger.debug(result.text.rstrip("\n"))

    if check and not result.success:
        raise ExternalToolFailure(argv[0], cmdline, result.returncode, result.stderr)

    return result
