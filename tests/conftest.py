"""Pytest configuration and fixtures for safe-push tests."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

TEST_EMAIL = "test@example.com"


def pytest_sessionfinish(session, exitstatus):
    """Fail the run when --cov was requested but no coverage data was collected.

    This catches tests that import from ``src/safe_push`` paths instead of
    the installed ``safe_push`` package.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    if not list(Path.cwd().glob(".coverage*")):
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'safe_push' (the package) not 'src/safe_push'.",
            returncode=1,
        )


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's git and safe-push settings out of every test."""
    global_config = tmp_path / "gitconfig"
    global_config.write_text("", encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    for name in (
        "GIT_AUTHOR_NAME",
        "GIT_AUTHOR_EMAIL",
        "GIT_COMMITTER_NAME",
        "GIT_COMMITTER_EMAIL",
        "GIT_DIR",
        "GIT_WORK_TREE",
        "SAFE_PUSH_EMAIL",
        "SAFE_PUSH_GIT_ROOT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SAFE_PUSH_CONFIG", str(tmp_path / "safe-push" / "config.yaml"))


@pytest.fixture
def git() -> Callable[..., str]:
    return run_git


@pytest.fixture
def commit_file(git: Callable[..., str]) -> Callable[..., None]:
    """Write, stage and commit a file, optionally as another author."""

    def _commit(repo: Path, relpath: str, content: str = "x\n", *, author: str | None = None) -> None:
        target = repo / relpath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        git(repo, "add", relpath)
        args = ["commit", "-m", f"update {relpath}"]
        if author is not None:
            args.append(f"--author=Other Dev <{author}>")
        git(repo, *args)

    return _commit


@pytest.fixture
def local_repo(tmp_path: Path, git: Callable[..., str]) -> Path:
    """Repository with one commit on main and no remote."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init")
    git(repo, "config", "user.email", TEST_EMAIL)
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("# test\n", encoding="utf-8")
    git(repo, "add", "README.md")
    git(repo, "commit", "-m", "initial")
    git(repo, "branch", "-M", "main")
    return repo


@pytest.fixture
def repo_with_origin(tmp_path: Path, local_repo: Path, git: Callable[..., str]) -> Path:
    """Repository whose main branch is pushed to a bare ``origin``."""
    remote = tmp_path / "origin.git"
    subprocess.run(["git", "init", "--bare", str(remote)], check=True, capture_output=True)
    git(local_repo, "remote", "add", "origin", str(remote))
    git(local_repo, "push", "-u", "origin", "main")
    return local_repo


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write the safe-push config file that SAFE_PUSH_CONFIG points at."""

    def _write(content: str) -> Path:
        path = tmp_path / "safe-push" / "config.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
