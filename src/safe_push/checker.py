"""Push safety decision engine.

A push is allowed when no protected path changed AND (the branch is new on
the remote OR the last commit is the pusher's own). When a visibility policy
is configured it is evaluated as an independent gate on top of that rule.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from safe_push import hosting
from safe_push.errors import HostingError
from safe_push.git import adapter as git
from safe_push.matcher import find_protected_files
from safe_push.types import (
    DEFAULT_REMOTE,
    Policy,
    RepositorySnapshot,
    Verdict,
    Visibility,
    VisibilityFact,
)

if TYPE_CHECKING:
    from pathlib import Path

VISIBILITY_CHECK_FAILED = (
    "Failed to check repository visibility. Ensure 'gh' CLI is installed and authenticated."
)


@dataclass(frozen=True)
class VisibilityGate:
    """Visibility gate result: the fact, a human reason and any lookup error."""

    fact: VisibilityFact
    reason: str
    error: str | None = None

    @property
    def blocked(self) -> bool:
        return not self.fact.allowed


def collect_snapshot(
    repo_root: Path,
    remote: str = DEFAULT_REMOTE,
    env: Mapping[str, str] | None = None,
) -> RepositorySnapshot:
    """Gather live repository facts. Raises VcsError when a query fails."""
    branch = git.current_branch(repo_root)
    has_upstream = git.branch_has_upstream(repo_root, remote, branch)
    author = git.last_commit_author_email(repo_root)
    local = git.local_identity_email(repo_root, env)
    files = git.changed_files(repo_root, remote, branch=branch, has_upstream=has_upstream)
    return RepositorySnapshot(
        current_branch=branch,
        is_new_branch=not has_upstream,
        changed_files=tuple(files),
        last_commit_author_email=author,
        local_identity_email=local,
    )


def evaluate(snapshot: RepositorySnapshot, policy: Policy) -> Verdict:
    """Apply the path/author rule to a snapshot. Pure."""
    protected = tuple(find_protected_files(snapshot.changed_files, policy.protected_paths))
    is_own = snapshot.last_commit_author_email.lower() == snapshot.local_identity_email.lower()

    def verdict(allowed: bool, reason: str) -> Verdict:
        return Verdict(
            allowed=allowed,
            reason=reason,
            snapshot=snapshot,
            protected_files=protected,
            is_own_last_commit=is_own,
        )

    if protected:
        return verdict(False, f"Protected files changed: {', '.join(protected)}")
    if snapshot.is_new_branch:
        return verdict(True, "New branch - no prior history to protect")
    if is_own:
        return verdict(True, "Last commit is yours")
    return verdict(False, f"Last commit is by someone else ({snapshot.last_commit_author_email})")


def check_push(
    repo_root: Path,
    policy: Policy,
    remote: str = DEFAULT_REMOTE,
    env: Mapping[str, str] | None = None,
) -> Verdict:
    """Collect facts from the repository and evaluate them."""
    return evaluate(collect_snapshot(repo_root, remote, env), policy)


def evaluate_visibility(visibility: str, allowed: Sequence[Visibility]) -> VisibilityGate:
    """Compare a provider visibility token with the allowed set. Pure."""
    parsed = Visibility.parse(visibility)
    allowed_values = [item.value for item in allowed]
    if parsed is not Visibility.UNKNOWN and parsed in allowed:
        return VisibilityGate(
            fact=VisibilityFact(visibility=parsed, checked=True, allowed=True),
            reason=f"Repository visibility '{parsed.value}' is allowed",
        )
    return VisibilityGate(
        fact=VisibilityFact(visibility=parsed, checked=True, allowed=False),
        reason=(
            f"Repository visibility '{visibility}' is not in allowed list: "
            f"{', '.join(allowed_values)}"
        ),
    )


def check_visibility(repo_root: Path, policy: Policy) -> VisibilityGate | None:
    """Run the visibility gate, or return None when no visibility policy is set.

    A lookup failure is reported as an UNKNOWN, blocked gate.
    """
    if not policy.visibility_gate_enabled:
        return None
    assert policy.allowed_visibilities is not None
    try:
        visibility = hosting.repository_visibility(repo_root)
    except HostingError as exc:
        return VisibilityGate(
            fact=VisibilityFact(visibility=Visibility.UNKNOWN, checked=True, allowed=False),
            reason=VISIBILITY_CHECK_FAILED,
            error=str(exc),
        )
    return evaluate_visibility(visibility, policy.allowed_visibilities)


def apply_visibility(verdict: Verdict, gate: VisibilityGate | None) -> Verdict:
    """Fold the visibility gate into a verdict; a blocked gate always wins."""
    if gate is None:
        return verdict
    if gate.blocked:
        return dataclasses.replace(verdict, allowed=False, reason=gate.reason, visibility=gate.fact)
    return dataclasses.replace(verdict, visibility=gate.fact)
