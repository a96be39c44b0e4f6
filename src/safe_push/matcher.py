"""Protected path matching.

Patterns ending in ``/`` name a directory: the directory itself and
everything beneath it match. Any other pattern is a glob where ``*`` matches
any run of characters (``/`` included) and ``?`` matches exactly one
character. Globs are anchored to the whole relative path. Matching is
case-sensitive and never touches the filesystem.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from functools import lru_cache

SEPARATOR = "/"


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches_pattern(path: str, pattern: str) -> bool:
    """Return True when ``path`` is covered by a single protected pattern."""
    if pattern.endswith(SEPARATOR):
        directory = pattern[: -len(SEPARATOR)]
        return path == directory or path.startswith(directory + SEPARATOR)
    return _compile_glob(pattern).fullmatch(path) is not None


def first_matching_pattern(path: str, patterns: Sequence[str]) -> str | None:
    """Return the first pattern (in configured order) that covers ``path``."""
    for pattern in patterns:
        if matches_pattern(path, pattern):
            return pattern
    return None


def matches_protected_path(path: str, patterns: Sequence[str]) -> bool:
    return first_matching_pattern(path, patterns) is not None


def find_protected_files(changed_files: Iterable[str], patterns: Sequence[str]) -> list[str]:
    """Filter changed files down to those covered by any protected pattern."""
    return [path for path in changed_files if matches_protected_path(path, patterns)]
