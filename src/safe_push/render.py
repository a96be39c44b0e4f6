"""Human and JSON rendering of verdicts and push results."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.text import Text

if TYPE_CHECKING:
    from safe_push.orchestrator import PushResult
    from safe_push.types import Verdict

console = Console()
err_console = Console(stderr=True)

RULE = "═" * 39


def print_success(message: str) -> None:
    console.print(f"[green]✓ {escape(message)}[/green]")


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def print_info(message: str) -> None:
    console.print(f"[cyan]{escape(message)}[/cyan]")


def verdict_json(verdict: Verdict) -> str:
    return json.dumps(verdict.to_dict(), indent=2)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def print_verdict_human(verdict: Verdict) -> None:
    """Print the verdict with its supporting evidence."""
    snapshot = verdict.snapshot
    console.print()
    console.print(RULE)
    if verdict.allowed:
        console.print(Text("✓ Push ALLOWED", style="bold green"))
    else:
        console.print(Text("✗ Push BLOCKED", style="bold red"))
    console.print(RULE)
    console.print()
    console.print(f"[bold]Reason:[/bold] {escape(verdict.reason)}")
    console.print()
    console.print("[bold]Details:[/bold]")
    rows = [
        ("Branch", snapshot.current_branch),
        ("New branch", _yes_no(snapshot.is_new_branch)),
        ("Last commit author", snapshot.last_commit_author_email),
        ("Local user email", snapshot.local_identity_email),
        ("Own last commit", _yes_no(verdict.is_own_last_commit)),
        ("Protected changes", _yes_no(verdict.has_protected_changes)),
    ]
    if verdict.visibility is not None and verdict.visibility.checked:
        rows.append(("Repo visibility", verdict.visibility.visibility.value))
        rows.append(("Visibility allowed", _yes_no(verdict.visibility.allowed)))
    for label, value in rows:
        console.print(f"  {label + ':':<21}{escape(value)}")

    if verdict.protected_files:
        console.print()
        console.print("[bold]Protected files changed:[/bold]")
        for path in verdict.protected_files:
            console.print(f"  - {escape(path)}")
    console.print()


def verdict_text(verdict: Verdict) -> str:
    """Plain-text evidence block for non-interactive responses."""
    snapshot = verdict.snapshot
    lines = [
        "Details:",
        f"- Branch: {snapshot.current_branch}",
        f"- New branch: {str(snapshot.is_new_branch).lower()}",
        f"- Own last commit: {str(verdict.is_own_last_commit).lower()}",
        f"- Author: {snapshot.last_commit_author_email}",
        f"- Local: {snapshot.local_identity_email}",
    ]
    if verdict.protected_files:
        lines.append(f"- Protected files: {', '.join(verdict.protected_files)}")
    if verdict.visibility is not None and verdict.visibility.checked:
        lines.append(f"- Visibility: {verdict.visibility.visibility.value}")
    return "\n".join(lines)


def print_push_result(result: PushResult) -> None:
    """Print the terminal line for a push invocation."""
    if result.ok:
        print_success(result.message)
        if result.outcome is not None and result.outcome.message:
            console.print(Text(result.outcome.message, style="dim"))
        return
    print_error(result.message)
    if result.detail:
        err_console.print(Text(f"  {result.detail}", style="dim"))
    if result.hint:
        err_console.print(f"[yellow]{escape(result.hint)}[/yellow]")


def prompt_confirm(message: str) -> bool:
    """Ask a y/N question on the terminal. Anything but y/yes, or EOF, declines."""
    try:
        answer = console.input(escape(f"{message} [y/N]: "))
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}
