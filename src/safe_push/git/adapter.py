"""Read-only git queries and the git push mutation."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from safe_push.errors import VcsError
from safe_push.git.exec import run_git
from safe_push.types import DEFAULT_REMOTE, PushOutcome

if TYPE_CHECKING:
    from pathlib import Path

EMAIL_OVERRIDE_ENV = "SAFE_PUSH_EMAIL"
DEFAULT_BASE_BRANCHES: tuple[str, ...] = ("main", "master")
UPSTREAM_FLAGS = frozenset({"-u", "--set-upstream"})


def current_branch(repo_root: Path) -> str:
    """Return the symbolic name of HEAD (``HEAD`` when detached)."""
    return run_git(["rev-parse", "--abbrev-ref", "HEAD"], repo_root=repo_root).stdout.strip()


def ref_exists(repo_root: Path, ref: str) -> bool:
    return run_git(["rev-parse", "--verify", "--quiet", ref], repo_root=repo_root, check=False).returncode == 0


def branch_has_upstream(repo_root: Path, remote: str, branch: str) -> bool:
    """Return True when ``remote/branch`` exists locally as a remote-tracking ref."""
    return ref_exists(repo_root, f"{remote}/{branch}")


def is_new_branch(repo_root: Path, remote: str = DEFAULT_REMOTE) -> bool:
    """Return True when the current branch has no counterpart on ``remote``."""
    return not branch_has_upstream(repo_root, remote, current_branch(repo_root))


def last_commit_author_email(repo_root: Path) -> str:
    return run_git(["log", "-1", "--format=%ae"], repo_root=repo_root).stdout.strip()


def local_identity_email(repo_root: Path, env: Mapping[str, str] | None = None) -> str:
    """Resolve the pushing identity: SAFE_PUSH_EMAIL first, then git config."""
    environ = os.environ if env is None else env
    override = environ.get(EMAIL_OVERRIDE_ENV, "").strip()
    if override:
        return override
    return run_git(["config", "user.email"], repo_root=repo_root).stdout.strip()


def diff_base(
    repo_root: Path,
    remote: str = DEFAULT_REMOTE,
    *,
    branch: str | None = None,
    has_upstream: bool | None = None,
) -> str | None:
    """Pick the ref to diff HEAD against, or None when the remote has no baseline."""
    if branch is None:
        branch = current_branch(repo_root)
    if has_upstream is None:
        has_upstream = branch_has_upstream(repo_root, remote, branch)
    if has_upstream:
        return f"{remote}/{branch}"
    for candidate in DEFAULT_BASE_BRANCHES:
        ref = f"{remote}/{candidate}"
        if ref_exists(repo_root, ref):
            return ref
    return None


def changed_files(
    repo_root: Path,
    remote: str = DEFAULT_REMOTE,
    *,
    branch: str | None = None,
    has_upstream: bool | None = None,
) -> list[str]:
    """List paths changed between the remote baseline and HEAD."""
    base = diff_base(repo_root, remote, branch=branch, has_upstream=has_upstream)
    if base is None:
        return []
    output = run_git(
        ["-c", "core.quotePath=false", "diff", "--name-only", "-z", base, "HEAD"],
        repo_root=repo_root,
    ).stdout
    return [path for path in output.split("\0") if path]


def has_explicit_refspec(args: Sequence[str]) -> bool:
    return any(not arg.startswith("-") for arg in args)


def build_push_args(
    args: Sequence[str],
    *,
    remote: str,
    branch: str,
    is_new: bool,
) -> list[str]:
    """Build the git argv (without ``git``) for a push.

    Caller-supplied remote/refspec tokens are passed through untouched.
    Otherwise the remote and current branch are filled in and ``-u`` is
    added once when the branch is new or upstream tracking was requested.
    """
    if has_explicit_refspec(args):
        return ["push", *args]

    push_args = ["push"]
    if is_new or any(arg in UPSTREAM_FLAGS for arg in args):
        push_args.append("-u")
    push_args.extend([remote, branch])
    push_args.extend(arg for arg in args if arg not in UPSTREAM_FLAGS)
    return push_args


def push(repo_root: Path, args: Sequence[str] = (), remote: str = DEFAULT_REMOTE) -> PushOutcome:
    """Run git push. Failures are reported in the outcome, never raised."""
    push_args = ["push", *args]
    if not has_explicit_refspec(args):
        try:
            branch = current_branch(repo_root)
            is_new = not branch_has_upstream(repo_root, remote, branch)
        except VcsError as exc:
            return PushOutcome(succeeded=False, message=str(exc))
        push_args = build_push_args(args, remote=remote, branch=branch, is_new=is_new)

    result = run_git(push_args, repo_root=repo_root, check=False)
    if result.returncode == 0:
        return PushOutcome(succeeded=True, message=result.output, argv=result.argv)

    message = result.output
    if not message:
        message = f"git push exited with code {result.returncode}"
    return PushOutcome(succeeded=False, message=message, argv=result.argv)


def is_repository(repo_root: Path) -> bool:
    try:
        run_git(["rev-parse", "--git-dir"], repo_root=repo_root)
    except VcsError:
        return False
    return True


def has_commits(repo_root: Path) -> bool:
    try:
        run_git(["rev-parse", "--verify", "--quiet", "HEAD"], repo_root=repo_root)
    except VcsError:
        return False
    return True
