"""Hosting provider (GitHub via gh) queries."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from safe_push.errors import HostingError
from safe_push.git.exec import run_command

if TYPE_CHECKING:
    from pathlib import Path

VISIBILITY_ARGS: tuple[str, ...] = ("repo", "view", "--json", "visibility", "--jq", ".visibility")


def _gh_executable() -> str | None:
    return shutil.which("gh")


def repository_visibility(repo_root: Path) -> str:
    """Return the repository visibility token (``public``/``private``/``internal``).

    Raises:
        HostingError: gh is missing, unauthenticated, exits non-zero or
            returns nothing. Callers must not treat this as "allowed".
    """
    gh_path = _gh_executable()
    if gh_path is None:
        raise HostingError(
            "gh CLI not found on PATH",
            command=" ".join(["gh", *VISIBILITY_ARGS]),
            exit_code=None,
        )

    result = run_command([gh_path, *VISIBILITY_ARGS], cwd=repo_root, error_cls=HostingError)
    visibility = result.stdout.strip().lower()
    if not visibility:
        raise HostingError(
            f"command returned no visibility: {result.command}",
            command=result.command,
            exit_code=result.returncode,
        )
    return visibility
