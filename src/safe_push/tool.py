"""Non-interactive tool surface.

Agents and other automated callers send one request ``{force?, dryRun?,
args?}`` and receive ``{content: [{type: "text", text}], isError}``. This
surface can never prompt: a promptable block is answered with an
instruction to re-run with ``force``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from safe_push import orchestrator
from safe_push.config import load_policy
from safe_push.orchestrator import PolicyLoader, PushRequest, PushResult, ResultKind
from safe_push.render import verdict_text
from safe_push.schemas.validator import get_schema, validate_data
from safe_push.telemetry import TraceContext

logger = logging.getLogger(__name__)

TOOL_NAME = "push"
TOOL_DESCRIPTION = (
    "Run safety checks and execute git push. Checks protected paths, branch ownership, "
    "and repository visibility before pushing."
)
TOOL_INPUT_SCHEMA = "tool_input"
GIT_ROOT_ENV = "SAFE_PUSH_GIT_ROOT"


def tool_definition() -> dict[str, Any]:
    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "inputSchema": get_schema(TOOL_INPUT_SCHEMA),
    }


def _response(text: str, *, is_error: bool) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def resolve_repo_root(env: Mapping[str, str] | None = None, default: Path | None = None) -> Path:
    """SAFE_PUSH_GIT_ROOT when set, else ``default``, else the current directory."""
    environ = os.environ if env is None else env
    git_root = environ.get(GIT_ROOT_ENV, "").strip()
    if git_root:
        return Path(git_root).resolve()
    return default or Path.cwd()


def render_result(result: PushResult) -> dict[str, Any]:
    """Map an orchestrator result to a tool response."""
    if result.kind is ResultKind.SUCCEEDED:
        output = result.outcome.message if result.outcome is not None else ""
        text = f"{result.message}\n{output}" if output else result.message
        return _response(text, is_error=False)

    if result.kind is ResultKind.ALLOWED:
        return _response(result.message, is_error=False)

    if result.kind is ResultKind.BLOCKED and result.verdict is not None:
        text = f"{result.message}\n\n{verdict_text(result.verdict)}"
        if result.hint:
            text = f"{text}\n\n{result.hint}"
        return _response(text, is_error=True)

    if result.kind is ResultKind.BLOCKED:
        text = f"Blocked: {result.message}"
    else:
        text = f"Error: {result.message}"
    if result.detail:
        text = f"{text}\n{result.detail}"
    return _response(text, is_error=True)


def handle_push_tool(
    arguments: Mapping[str, Any] | None,
    *,
    env: Mapping[str, str] | None = None,
    repo_root: Path | None = None,
    policy_loader: PolicyLoader = load_policy,
    trace: TraceContext | None = None,
) -> dict[str, Any]:
    """Run one push tool call and return the response payload."""
    payload = dict(arguments or {})
    issues = validate_data(payload, TOOL_INPUT_SCHEMA)
    if issues:
        return _response(f"Invalid arguments: {', '.join(issues)}", is_error=True)

    request = PushRequest(
        force=bool(payload.get("force", False)),
        dry_run=bool(payload.get("dryRun", False)),
        args=tuple(payload.get("args") or ()),
    )
    try:
        result = orchestrator.run_push(
            request,
            repo_root=resolve_repo_root(env, repo_root),
            policy_loader=policy_loader,
            confirm=None,
            trace=trace,
        )
    except Exception as exc:
        logger.exception("push tool failed")
        return _response(f"Unexpected error: {exc}", is_error=True)
    return render_result(result)
