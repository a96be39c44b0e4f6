"""Configuration loader for safe-push.

The configuration lives at ``~/.config/safe-push/config.yaml`` (or the path
in ``SAFE_PUSH_CONFIG``). YAML comments are allowed and plain JSON is valid
too. A missing or empty file means defaults; a file that exists but cannot
be parsed or validated raises ConfigError.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml

from safe_push.errors import ConfigError
from safe_push.schemas.validator import get_schema, validate_data
from safe_push.types import DEFAULT_PROTECTED_PATHS, OnBlocked, Policy, TraceExporter, Visibility

CONFIG_ENV = "SAFE_PUSH_CONFIG"
CONFIG_SCHEMA = "config"

_LEGACY_ALIASES = {"forbiddenPaths": "protectedPaths", "onForbidden": "onBlocked"}


def get_config_path() -> Path:
    """Return the configuration file path, honouring SAFE_PUSH_CONFIG."""
    override = os.environ.get(CONFIG_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "safe-push" / "config.yaml"


def default_policy() -> Policy:
    return Policy()


def config_exists(config_path: Path | None = None) -> bool:
    return (config_path or get_config_path()).exists()


def config_schema() -> dict[str, Any]:
    return get_schema(CONFIG_SCHEMA)


def policy_from_dict(data: dict[str, Any]) -> Policy:
    """Build a Policy from an already validated config mapping."""
    normalized = dict(data)
    for legacy, key in _LEGACY_ALIASES.items():
        if legacy in normalized:
            normalized.setdefault(key, normalized[legacy])

    allowed = normalized.get("allowedVisibility")
    trace = normalized.get("trace")
    return Policy(
        protected_paths=tuple(normalized.get("protectedPaths", DEFAULT_PROTECTED_PATHS)),
        on_blocked=OnBlocked(normalized.get("onBlocked", OnBlocked.ERROR.value)),
        allowed_visibilities=tuple(Visibility(v) for v in allowed) if allowed else None,
        trace=TraceExporter(trace) if trace else None,
    )


def policy_to_dict(policy: Policy) -> dict[str, Any]:
    data: dict[str, Any] = {
        "protectedPaths": list(policy.protected_paths),
        "onBlocked": policy.on_blocked.value,
    }
    if policy.allowed_visibilities:
        data["allowedVisibility"] = [v.value for v in policy.allowed_visibilities]
    if policy.trace is not None:
        data["trace"] = policy.trace.value
    return data


def load_policy(config_path: Path | None = None) -> Policy:
    """Load the policy from disk, falling back to defaults when absent.

    Raises:
        ConfigError: If the file is unreadable, malformed or fails validation
    """
    path = config_path or get_config_path()
    if not path.exists():
        return default_policy()

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {exc}", path) from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse config file: {exc}", path) from exc

    if data is None:
        return default_policy()
    if not isinstance(data, dict):
        raise ConfigError("Invalid config: top-level value must be a mapping", path)

    issues = validate_data(data, CONFIG_SCHEMA)
    if issues:
        raise ConfigError(f"Invalid config: {', '.join(issues)}", path)

    return policy_from_dict(data)


def render_policy(policy: Policy) -> str:
    """Render a policy as commented YAML."""
    lines = [
        "# safe-push configuration",
        "",
        "# Protected paths (glob patterns; a trailing '/' protects a directory)",
        "protectedPaths:",
    ]
    lines.extend(f"  - {json.dumps(pattern)}" for pattern in policy.protected_paths)
    lines.extend(
        [
            "",
            '# Behaviour when protected files changed: "error" | "prompt"',
            f"onBlocked: {policy.on_blocked.value}",
        ]
    )
    if policy.allowed_visibilities:
        lines.extend(
            [
                "",
                '# Allowed repository visibility: "public" | "private" | "internal"',
                "allowedVisibility:",
            ]
        )
        lines.extend(f"  - {v.value}" for v in policy.allowed_visibilities)
    if policy.trace is not None:
        lines.extend(["", '# Tracing: "console" | "json" | "otlp" (omit to disable)', f"trace: {policy.trace.value}"])
    lines.append("")
    return "\n".join(lines)


def save_policy(policy: Policy, config_path: Path | None = None) -> Path:
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_policy(policy), encoding="utf-8")
    return path


def init_config(config_path: Path | None = None, force: bool = False) -> tuple[bool, Path]:
    """Write the default configuration unless one exists (or ``force``).

    Returns:
        (created, path)
    """
    path = config_path or get_config_path()
    if path.exists() and not force:
        return False, path
    save_policy(default_policy(), path)
    return True, path
