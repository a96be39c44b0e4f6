"""Action orchestrator shared by the CLI and the tool surface.

Runs the fixed sequence repo check -> commit check -> visibility gate ->
force or rule -> prompt -> dry-run or push, and returns a PushResult. No
printing and no process exit happen here; surfaces render the result and
the outermost boundary maps it to an exit code.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from safe_push import checker
from safe_push.config import load_policy
from safe_push.errors import ConfigError, VcsError
from safe_push.git import adapter as git
from safe_push.telemetry import TraceContext
from safe_push.types import DEFAULT_REMOTE, OnBlocked, Policy, PushOutcome, Verdict

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]
PolicyLoader = Callable[[], Policy]
VerdictListener = Callable[[Verdict], None]

CONFIRM_MESSAGE = "Push is blocked due to protected path changes. Push anyway?"
FORCE_HINT = (
    'This repository is configured with onBlocked: "prompt". Interactive confirmation is '
    "not available here; re-run with force to bypass this check."
)


class ResultKind(str, Enum):
    """Terminal states of one invocation."""

    ALLOWED = "allowed"
    BLOCKED = "blocked"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class PushRequest:
    """Caller-supplied flags for one push invocation."""

    force: bool = False
    dry_run: bool = False
    args: tuple[str, ...] = ()
    remote: str = DEFAULT_REMOTE


@dataclass(frozen=True)
class PushResult:
    """Discriminated outcome of the orchestrator."""

    kind: ResultKind
    message: str
    verdict: Verdict | None = None
    outcome: PushOutcome | None = None
    hint: str | None = None
    detail: str | None = None
    forced: bool = False

    @property
    def exit_code(self) -> int:
        return 0 if self.kind in (ResultKind.ALLOWED, ResultKind.SUCCEEDED) else 1

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _preflight(repo_root: Path, trace: TraceContext) -> PushResult | None:
    with trace.span("git.preflight", repo_root=str(repo_root)) as span:
        if not git.is_repository(repo_root):
            span.set_attribute("result", "not-a-repository")
            return PushResult(kind=ResultKind.FAILED, message="Not a git repository")
        if not git.has_commits(repo_root):
            span.set_attribute("result", "no-commits")
            return PushResult(kind=ResultKind.FAILED, message="No commits found")
    return None


def _load(policy_loader: PolicyLoader) -> Policy | PushResult:
    try:
        return policy_loader()
    except ConfigError as exc:
        where = f" ({exc.path})" if exc.path else ""
        return PushResult(kind=ResultKind.FAILED, message=f"Failed to load config{where}: {exc}")


def _visibility_gate(repo_root: Path, policy: Policy, trace: TraceContext) -> checker.VisibilityGate | None:
    with trace.span("gh.visibility", enabled=policy.visibility_gate_enabled) as span:
        gate = checker.check_visibility(repo_root, policy)
        if gate is not None:
            span.set_attribute("visibility", gate.fact.visibility.value)
            span.set_attribute("allowed", gate.fact.allowed)
    return gate


def _finish(
    request: PushRequest,
    *,
    repo_root: Path,
    trace: TraceContext,
    verdict: Verdict | None,
    label: str,
    forced: bool = False,
) -> PushResult:
    suffix = f" ({label})" if label else ""
    if request.dry_run:
        message = f"Dry run: would push{suffix}"
        if verdict is not None and not forced:
            message = f"{message}\nReason: {verdict.reason}\nBranch: {verdict.snapshot.current_branch}"
        return PushResult(kind=ResultKind.ALLOWED, message=message, verdict=verdict, forced=forced)

    with trace.span("git.push", args=" ".join(request.args), remote=request.remote) as span:
        outcome = git.push(repo_root, request.args, request.remote)
        span.set_attribute("succeeded", outcome.succeeded)

    if outcome.succeeded:
        return PushResult(
            kind=ResultKind.SUCCEEDED,
            message=f"Push successful{suffix}",
            verdict=verdict,
            outcome=outcome,
            forced=forced,
        )
    return PushResult(
        kind=ResultKind.FAILED,
        message=f"Push failed: {outcome.message}",
        verdict=verdict,
        outcome=outcome,
        forced=forced,
    )


def run_push(
    request: PushRequest,
    *,
    repo_root: Path,
    policy_loader: PolicyLoader = load_policy,
    confirm: Confirm | None = None,
    on_verdict: VerdictListener | None = None,
    trace: TraceContext | None = None,
) -> PushResult:
    """Decide and (unless dry-run) execute one push.

    ``confirm`` is only provided by interactive surfaces; without it a
    promptable block returns a hint to re-run with force instead of waiting.
    """
    trace = trace or TraceContext.disabled()
    with trace.span("safe_push.push", force=request.force, dry_run=request.dry_run) as root:
        failed = _preflight(repo_root, trace)
        if failed is not None:
            return failed

        loaded = _load(policy_loader)
        if isinstance(loaded, PushResult):
            return loaded
        policy = loaded

        gate = _visibility_gate(repo_root, policy, trace)
        if gate is not None and gate.blocked:
            root.set_attribute("result", "visibility-blocked")
            return PushResult(kind=ResultKind.BLOCKED, message=gate.reason, detail=gate.error)

        if request.force:
            logger.debug("safety checks bypassed with force")
            root.set_attribute("result", "forced")
            label = "checks bypassed with force" if request.dry_run else "force"
            return _finish(request, repo_root=repo_root, trace=trace, verdict=None, label=label, forced=True)

        try:
            with trace.span("checker.check_push", remote=request.remote):
                verdict = checker.apply_visibility(
                    checker.check_push(repo_root, policy, request.remote), gate
                )
        except VcsError as exc:
            root.set_attribute("result", "vcs-error")
            return PushResult(kind=ResultKind.FAILED, message=f"Push failed: {exc}")

        root.set_attribute("allowed", verdict.allowed)
        if on_verdict is not None:
            on_verdict(verdict)

        if verdict.allowed:
            return _finish(request, repo_root=repo_root, trace=trace, verdict=verdict, label="")

        blocked = PushResult(kind=ResultKind.BLOCKED, message=f"Push blocked: {verdict.reason}", verdict=verdict)
        if policy.on_blocked is not OnBlocked.PROMPT or not verdict.has_protected_changes:
            return blocked

        if confirm is None:
            return PushResult(
                kind=ResultKind.BLOCKED,
                message=blocked.message,
                verdict=verdict,
                hint=FORCE_HINT,
            )

        if not confirm(CONFIRM_MESSAGE):
            root.set_attribute("result", "declined")
            return PushResult(kind=ResultKind.BLOCKED, message="Push cancelled by user", verdict=verdict)

        root.set_attribute("result", "confirmed")
        return _finish(request, repo_root=repo_root, trace=trace, verdict=verdict, label="user confirmed")


def run_check(
    *,
    repo_root: Path,
    policy_loader: PolicyLoader = load_policy,
    remote: str = DEFAULT_REMOTE,
    trace: TraceContext | None = None,
) -> PushResult:
    """Evaluate without pushing. The visibility gate is merged into the verdict."""
    trace = trace or TraceContext.disabled()
    with trace.span("safe_push.check", remote=remote):
        failed = _preflight(repo_root, trace)
        if failed is not None:
            return failed

        loaded = _load(policy_loader)
        if isinstance(loaded, PushResult):
            return loaded
        policy = loaded

        try:
            with trace.span("checker.check_push", remote=remote):
                verdict = checker.check_push(repo_root, policy, remote)
        except VcsError as exc:
            return PushResult(kind=ResultKind.FAILED, message=f"Check failed: {exc}")

        gate = _visibility_gate(repo_root, policy, trace)
        verdict = checker.apply_visibility(verdict, gate)
        kind = ResultKind.ALLOWED if verdict.allowed else ResultKind.BLOCKED
        detail = gate.error if gate is not None else None
        return PushResult(kind=kind, message=verdict.reason, verdict=verdict, detail=detail)
