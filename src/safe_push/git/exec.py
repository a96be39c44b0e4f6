"""Command runners for git and gh invocations."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from safe_push.errors import CommandError, VcsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution.

    ``returncode`` is None when the process could not be started at all.
    """

    argv: tuple[str, ...]
    cwd: Path
    returncode: int | None
    stdout: str
    stderr: str

    @property
    def command(self) -> str:
        return " ".join(self.argv)

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        parts = [self.stdout.strip(), self.stderr.strip()]
        return "\n".join(part for part in parts if part)


def _error_for(result: ExecResult, error_cls: type[CommandError]) -> CommandError:
    detail = (result.stderr or result.stdout).strip()
    if result.returncode is None:
        message = f"command could not be started: {result.command}"
    else:
        message = f"command failed ({result.returncode}): {result.command}"
    if detail:
        message = f"{message}\n{detail}"
    return error_cls(message, command=result.command, exit_code=result.returncode)


def run_command(
    argv: list[str],
    *,
    cwd: Path,
    check: bool = True,
    error_cls: type[CommandError] = CommandError,
) -> ExecResult:
    """Run command and return structured result.

    Output is fully captured before returning, success or not. With
    ``check`` a non-zero exit (or a spawn failure) raises ``error_cls``.
    """
    logger.debug("exec: %s (cwd=%s)", " ".join(argv), cwd)
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        result = ExecResult(argv=tuple(argv), cwd=cwd, returncode=None, stdout="", stderr=str(exc))
    else:
        result = ExecResult(
            argv=tuple(argv),
            cwd=cwd,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
    if check and result.returncode != 0:
        raise _error_for(result, error_cls)
    return result


def run_git(
    args: list[str],
    *,
    repo_root: Path,
    check: bool = True,
) -> ExecResult:
    """Run git command rooted at repo, raising VcsError on failure."""
    return run_command(["git", *args], cwd=repo_root, check=check, error_cls=VcsError)
