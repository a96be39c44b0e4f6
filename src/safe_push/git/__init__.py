"""Git adapter for safe-push."""

from safe_push.git.adapter import (
    branch_has_upstream,
    changed_files,
    current_branch,
    has_commits,
    is_new_branch,
    is_repository,
    last_commit_author_email,
    local_identity_email,
    push,
)

__all__ = [
    "branch_has_upstream",
    "changed_files",
    "current_branch",
    "has_commits",
    "is_new_branch",
    "is_repository",
    "last_commit_author_email",
    "local_identity_email",
    "push",
]
