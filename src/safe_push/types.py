"""Core data model for push safety decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_PROTECTED_PATHS: tuple[str, ...] = (".github/",)
DEFAULT_REMOTE = "origin"


class OnBlocked(str, Enum):
    """What to do when the path rule blocks a push."""

    ERROR = "error"
    PROMPT = "prompt"


class Visibility(str, Enum):
    """Hosting repository visibility classes."""

    PUBLIC = "public"
    PRIVATE = "private"
    INTERNAL = "internal"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> Visibility:
        """Map a provider token to a Visibility, UNKNOWN for anything else."""
        token = (value or "").strip().lower()
        for member in cls:
            if member.value == token:
                return member
        return cls.UNKNOWN


class TraceExporter(str, Enum):
    """Where recorded spans go when the trace context is released."""

    CONSOLE = "console"
    JSON = "json"
    OTLP = "otlp"


@dataclass(frozen=True)
class Policy:
    """Push policy, immutable for a single invocation."""

    protected_paths: tuple[str, ...] = DEFAULT_PROTECTED_PATHS
    on_blocked: OnBlocked = OnBlocked.ERROR
    allowed_visibilities: tuple[Visibility, ...] | None = None
    trace: TraceExporter | None = None

    @property
    def visibility_gate_enabled(self) -> bool:
        return bool(self.allowed_visibilities)


@dataclass(frozen=True)
class RepositorySnapshot:
    """Live repository facts gathered for one check."""

    current_branch: str
    is_new_branch: bool
    changed_files: tuple[str, ...]
    last_commit_author_email: str
    local_identity_email: str


@dataclass(frozen=True)
class VisibilityFact:
    """Outcome of the hosting visibility lookup."""

    visibility: Visibility
    checked: bool
    allowed: bool


@dataclass(frozen=True)
class Verdict:
    """Allow/block decision together with the evidence it was derived from."""

    allowed: bool
    reason: str
    snapshot: RepositorySnapshot
    protected_files: tuple[str, ...] = ()
    is_own_last_commit: bool = False
    visibility: VisibilityFact | None = None

    @property
    def has_protected_changes(self) -> bool:
        return bool(self.protected_files)

    def to_dict(self) -> dict[str, Any]:
        """Render the verdict in the shape consumed by JSON output."""
        details: dict[str, Any] = {
            "isNewBranch": self.snapshot.is_new_branch,
            "isOwnLastCommit": self.is_own_last_commit,
            "hasForbiddenChanges": self.has_protected_changes,
            "forbiddenFiles": list(self.protected_files),
            "currentBranch": self.snapshot.current_branch,
            "authorEmail": self.snapshot.last_commit_author_email,
            "localEmail": self.snapshot.local_identity_email,
        }
        if self.visibility is not None and self.visibility.checked:
            details["repoVisibility"] = self.visibility.visibility.value
            details["visibilityAllowed"] = self.visibility.allowed
        return {"allowed": self.allowed, "reason": self.reason, "details": details}


@dataclass(frozen=True)
class PushOutcome:
    """Result of the mutating git push call."""

    succeeded: bool
    message: str
    argv: tuple[str, ...] = field(default=())
