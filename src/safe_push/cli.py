"""safe-push CLI - check and push with protected-path and ownership rails."""

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.logging import RichHandler

from safe_push import __version__
from safe_push.config import (
    config_exists,
    config_schema,
    get_config_path,
    init_config,
    load_policy,
    policy_to_dict,
)
from safe_push.errors import ConfigError
from safe_push.orchestrator import PushRequest, run_check, run_push
from safe_push.render import (
    console,
    err_console,
    print_error,
    print_info,
    print_push_result,
    print_success,
    print_verdict_human,
    print_warning,
    prompt_confirm,
    verdict_json,
)
from safe_push.telemetry import TraceContext
from safe_push.tool import handle_push_tool, tool_definition
from safe_push.types import DEFAULT_REMOTE, TraceExporter

cli = typer.Typer(
    name="safe-push",
    help="Git push safety checker - blocks pushes that touch protected paths",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage configuration", no_args_is_help=True)
cli.add_typer(config_app, name="config")


@dataclass(frozen=True)
class AppState:
    """Options shared by every command of one invocation."""

    repo_root: Path
    trace: TraceExporter | None


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@cli.callback()
def _cli_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show safe-push version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
    trace: TraceExporter | None = typer.Option(
        None,
        "--trace",
        help="Record spans for this invocation and export them (console|json|otlp).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    repo_root: Path = typer.Option(
        Path("."),
        "--repo-root",
        help="Repository to check (default: current directory).",
    ),
) -> None:
    """Git push safety checker."""
    _configure_logging(verbose)
    ctx.obj = AppState(repo_root=repo_root.resolve(), trace=trace)


def _state(ctx: typer.Context) -> AppState:
    state = ctx.find_object(AppState)
    if state is None:
        state = AppState(repo_root=Path.cwd(), trace=None)
    return state


def _configured_trace() -> TraceExporter | None:
    # Config problems are reported by the orchestrator, not here.
    try:
        return load_policy().trace
    except ConfigError:
        return None


def _open_trace(ctx: typer.Context) -> TraceContext:
    """Acquire the trace context; click releases it when the command ends."""
    exporter = _state(ctx).trace or _configured_trace()
    return ctx.with_resource(TraceContext(exporter))


@cli.command()
def check(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output result as JSON"),
    remote: str = typer.Option(DEFAULT_REMOTE, "--remote", help="Remote to compare against"),
) -> None:
    """Check if push is allowed."""
    state = _state(ctx)
    result = run_check(repo_root=state.repo_root, remote=remote, trace=_open_trace(ctx))

    if result.verdict is None:
        print_error(result.message)
        raise typer.Exit(result.exit_code)

    if json_output:
        typer.echo(verdict_json(result.verdict))
    else:
        print_verdict_human(result.verdict)
        if result.detail:
            print_warning(result.detail)
    raise typer.Exit(result.exit_code)


@cli.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def push(
    ctx: typer.Context,
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Bypass safety checks (the visibility gate still applies)",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be pushed without actually pushing"),
    remote: str = typer.Option(DEFAULT_REMOTE, "--remote", help="Remote used when no refspec is given"),
    git_args: list[str] | None = typer.Argument(None, help="Arguments passed through to git push"),
) -> None:
    """Check and push if allowed."""
    state = _state(ctx)
    if force:
        print_warning("Safety checks bypassed with --force (visibility gate still applies)")

    request = PushRequest(
        force=force,
        dry_run=dry_run,
        args=tuple(git_args or ()) + tuple(ctx.args),
        remote=remote,
    )
    result = run_push(
        request,
        repo_root=state.repo_root,
        confirm=prompt_confirm,
        on_verdict=print_verdict_human,
        trace=_open_trace(ctx),
    )
    print_push_result(result)
    raise typer.Exit(result.exit_code)


def _tool_error(text: str) -> dict[str, object]:
    return {"content": [{"type": "text", "text": text}], "isError": True}


@cli.command("tool")
def tool_cmd(
    ctx: typer.Context,
    schema: bool = typer.Option(False, "--schema", help="Print the tool definition and exit"),
) -> None:
    """Run one non-interactive push request (JSON on stdin, JSON on stdout)."""
    if schema:
        typer.echo(json.dumps(tool_definition(), indent=2))
        raise typer.Exit(0)

    raw = sys.stdin.read()
    try:
        arguments = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as exc:
        response = _tool_error(f"Invalid JSON request: {exc}")
    else:
        if isinstance(arguments, dict):
            response = handle_push_tool(arguments, repo_root=_state(ctx).repo_root, trace=_open_trace(ctx))
        else:
            response = _tool_error("Invalid request: expected a JSON object")

    typer.echo(json.dumps(response, indent=2))
    raise typer.Exit(1 if response["isError"] else 0)


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing configuration"),
) -> None:
    """Initialize configuration file."""
    try:
        created, path = init_config(force=force)
    except OSError as exc:
        print_error(f"Failed to initialize config: {exc}")
        raise typer.Exit(1) from exc

    if created:
        print_success(f"Configuration file created at: {path}")
    else:
        print_info(f"Configuration file already exists at: {path}")
        print_info("Use --force to overwrite")


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show current configuration."""
    path = get_config_path()
    exists = config_exists(path)
    try:
        policy = load_policy(path)
    except ConfigError as exc:
        print_error(f"Failed to load config ({exc.path}): {exc}")
        raise typer.Exit(1) from exc

    data = policy_to_dict(policy)
    if json_output:
        typer.echo(json.dumps({"path": str(path), "exists": exists, "config": data}, indent=2))
        return

    console.print()
    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Path: {path}")
    console.print(f"  Exists: {'Yes' if exists else 'No (using defaults)'}")
    console.print()
    console.print("[bold]Settings:[/bold]")
    for key, value in data.items():
        console.print(f"  {key}: {json.dumps(value)}", markup=False)
    console.print()


@config_app.command("path")
def config_path() -> None:
    """Show configuration file path."""
    typer.echo(str(get_config_path()))


@config_app.command("schema")
def config_schema_cmd() -> None:
    """Print the JSON schema for the configuration file."""
    typer.echo(json.dumps(config_schema(), indent=2))


def main() -> None:
    cli()
