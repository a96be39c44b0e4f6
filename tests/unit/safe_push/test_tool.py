"""Non-interactive tool surface tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from safe_push import hosting, orchestrator
from safe_push.orchestrator import FORCE_HINT, PushResult, ResultKind
from safe_push.tool import (
    TOOL_NAME,
    handle_push_tool,
    render_result,
    resolve_repo_root,
    tool_definition,
)
from safe_push.types import OnBlocked, Policy, PushOutcome, Visibility


def _text(response: dict) -> str:
    assert len(response["content"]) == 1
    assert response["content"][0]["type"] == "text"
    return response["content"][0]["text"]


def test_tool_definition_advertises_input_schema() -> None:
    definition = tool_definition()

    assert definition["name"] == TOOL_NAME == "push"
    assert set(definition["inputSchema"]["properties"]) == {"force", "dryRun", "args"}


@pytest.mark.parametrize(
    "arguments",
    [{"force": "yes"}, {"args": "--no-verify"}, {"dry_run": True}],
    ids=["non-bool-force", "args-not-array", "unknown-key"],
)
def test_invalid_arguments_are_rejected(arguments: dict, tmp_path: Path) -> None:
    response = handle_push_tool(arguments, repo_root=tmp_path)

    assert response["isError"] is True
    assert _text(response).startswith("Invalid arguments:")


def test_resolve_repo_root_prefers_env(tmp_path: Path) -> None:
    env = {"SAFE_PUSH_GIT_ROOT": str(tmp_path / "elsewhere")}

    assert resolve_repo_root(env, default=Path("/ignored")) == (tmp_path / "elsewhere").resolve()
    assert resolve_repo_root({}, default=tmp_path) == tmp_path
    assert resolve_repo_root({"SAFE_PUSH_GIT_ROOT": "  "}) == Path.cwd()


def test_not_a_repository_is_an_error(tmp_path: Path) -> None:
    empty = tmp_path / "plain"
    empty.mkdir()

    response = handle_push_tool({}, repo_root=empty)

    assert response["isError"] is True
    assert _text(response) == "Error: Not a git repository"


def test_env_root_is_used(tmp_path: Path, repo_with_origin: Path, git, commit_file) -> None:
    git(repo_with_origin, "checkout", "-b", "feature")
    commit_file(repo_with_origin, "notes.txt")
    plain = tmp_path / "plain"
    plain.mkdir()

    response = handle_push_tool(
        {"dryRun": True},
        env={"SAFE_PUSH_GIT_ROOT": str(repo_with_origin)},
        repo_root=plain,
    )

    assert response["isError"] is False
    assert _text(response).startswith("Dry run: would push")
    assert "Branch: feature" in _text(response)


def test_prompt_policy_answers_with_force_hint(repo_with_origin: Path, git, commit_file) -> None:
    git(repo_with_origin, "checkout", "-b", "feature")
    commit_file(repo_with_origin, ".github/workflows/ci.yml")

    response = handle_push_tool(
        {},
        repo_root=repo_with_origin,
        policy_loader=lambda: Policy(on_blocked=OnBlocked.PROMPT),
    )

    text = _text(response)
    assert response["isError"] is True
    assert text.startswith("Push blocked: Protected files changed")
    assert "Details:" in text
    assert "- Protected files: .github/workflows/ci.yml" in text
    assert text.endswith(FORCE_HINT)
    assert git(repo_with_origin, "ls-remote", "--heads", "origin", "feature") == ""


def test_force_dry_run_bypasses_rules(repo_with_origin: Path, git, commit_file) -> None:
    git(repo_with_origin, "checkout", "-b", "feature")
    commit_file(repo_with_origin, ".github/workflows/ci.yml")

    response = handle_push_tool({"force": True, "dryRun": True}, repo_root=repo_with_origin)

    assert response["isError"] is False
    assert _text(response) == "Dry run: would push (checks bypassed with force)"
    assert git(repo_with_origin, "ls-remote", "--heads", "origin", "feature") == ""


def test_allowed_push_reaches_origin(repo_with_origin: Path, git, commit_file) -> None:
    git(repo_with_origin, "checkout", "-b", "feature")
    commit_file(repo_with_origin, "src/app.py")

    response = handle_push_tool({}, repo_root=repo_with_origin)

    assert response["isError"] is False
    assert _text(response).startswith("Push successful")
    assert "feature" in git(repo_with_origin, "ls-remote", "--heads", "origin", "feature")
    assert git(repo_with_origin, "rev-parse", "--abbrev-ref", "feature@{upstream}") == "origin/feature"


def test_visibility_block_is_reported(
    monkeypatch: pytest.MonkeyPatch, repo_with_origin: Path, git, commit_file
) -> None:
    git(repo_with_origin, "checkout", "-b", "feature")
    commit_file(repo_with_origin, "src/app.py")
    monkeypatch.setattr(hosting, "repository_visibility", lambda _root: "public")

    response = handle_push_tool(
        {"force": True},
        repo_root=repo_with_origin,
        policy_loader=lambda: Policy(allowed_visibilities=(Visibility.PRIVATE,)),
    )

    assert response["isError"] is True
    assert _text(response).startswith("Blocked: Repository visibility 'public'")


def test_unexpected_exception_becomes_error_response(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def _boom(*_args, **_kwargs):
        raise ValueError("kaboom")

    monkeypatch.setattr(orchestrator, "run_push", _boom)

    response = handle_push_tool({}, repo_root=tmp_path)

    assert response["isError"] is True
    assert _text(response) == "Unexpected error: kaboom"


def test_render_succeeded_appends_git_output() -> None:
    result = PushResult(
        kind=ResultKind.SUCCEEDED,
        message="Push successful (force)",
        outcome=PushOutcome(succeeded=True, message="Everything up-to-date"),
    )

    response = render_result(result)

    assert response == {
        "content": [{"type": "text", "text": "Push successful (force)\nEverything up-to-date"}],
        "isError": False,
    }


def test_render_failure_includes_detail() -> None:
    result = PushResult(kind=ResultKind.FAILED, message="Push failed: rejected", detail="hint: fetch first")

    assert _text(render_result(result)) == "Error: Push failed: rejected\nhint: fetch first"
