"""Hosting adapter tests with a stubbed gh runner."""

from __future__ import annotations

from pathlib import Path

import pytest

from safe_push import hosting
from safe_push.errors import HostingError
from safe_push.git.exec import ExecResult


class _GhStub:
    def __init__(self, result: ExecResult):
        self.result = result
        self.calls: list[list[str]] = []

    def __call__(self, argv: list[str], *, cwd: Path, check: bool = True, error_cls=None) -> ExecResult:
        _ = cwd
        self.calls.append(argv)
        if check and self.result.returncode != 0:
            raise error_cls("gh failed", command=" ".join(argv), exit_code=self.result.returncode)
        return self.result


def _result(stdout: str = "", code: int | None = 0) -> ExecResult:
    return ExecResult(argv=("gh",), cwd=Path("/repo"), returncode=code, stdout=stdout, stderr="")


def test_visibility_is_lower_cased(monkeypatch: pytest.MonkeyPatch) -> None:
    stub = _GhStub(_result("PRIVATE\n"))
    monkeypatch.setattr(hosting, "_gh_executable", lambda: "/usr/bin/gh")
    monkeypatch.setattr(hosting, "run_command", stub)

    assert hosting.repository_visibility(Path("/repo")) == "private"
    assert stub.calls == [["/usr/bin/gh", "repo", "view", "--json", "visibility", "--jq", ".visibility"]]


def test_missing_gh_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(hosting, "_gh_executable", lambda: None)

    with pytest.raises(HostingError) as excinfo:
        hosting.repository_visibility(Path("/repo"))

    assert excinfo.value.exit_code is None
    assert excinfo.value.command.startswith("gh repo view")


def test_gh_failure_raises_hosting_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(hosting, "_gh_executable", lambda: "/usr/bin/gh")
    monkeypatch.setattr(hosting, "run_command", _GhStub(_result(code=4)))

    with pytest.raises(HostingError) as excinfo:
        hosting.repository_visibility(Path("/repo"))

    assert excinfo.value.exit_code == 4


def test_empty_output_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(hosting, "_gh_executable", lambda: "/usr/bin/gh")
    monkeypatch.setattr(hosting, "run_command", _GhStub(_result("\n")))

    with pytest.raises(HostingError, match="no visibility"):
        hosting.repository_visibility(Path("/repo"))
