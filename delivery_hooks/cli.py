"""delivery-hooks command line.

Hook commands (register these in .claude/settings.json):
    delivery-hooks pre-tool-use       # PreToolUse, matcher "Task"
    delivery-hooks pre-edit           # PreToolUse, matcher "Edit|MultiEdit"
    delivery-hooks artifact-tracker   # PostToolUse, matcher "Write"
    delivery-hooks post-task          # PostToolUse, matcher "Task"

Each reads one event from stdin, writes the hook response to stdout and
exits 0, except pre-tool-use which exits 2 to block a delegation.

Review commands:
    delivery-hooks sections docs/spec.md
    delivery-hooks artifacts list --pending
    delivery-hooks artifacts review scripts/task-2.3-helper.sh
    delivery-hooks plan
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import EXIT_FAILURE, __version__
from .config import load_settings
from .hooks import run_hook
from .manifest import ManifestEntry, load_manifest, mark_reviewed
from .plan_locator import locate_plan
from .section_guard import find_protected_sections
from .state import read_document

LOG_LEVEL_ENV_VAR = "DELIVERY_HOOKS_LOG_LEVEL"

app = typer.Typer(
    help="Process-discipline hooks for Claude Code delegation.",
    no_args_is_help=True,
    add_completion=False,
)
artifacts_app = typer.Typer(help="Review tracked transient scripts.", no_args_is_help=True)
app.add_typer(artifacts_app, name="artifacts")

console = Console(stderr=True, soft_wrap=True)
stdout_console = Console(soft_wrap=True)


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.WARNING),
        format="[delivery-hooks] %(levelname)s: %(message)s",
    )


def _run(name: str) -> None:
    """Drain stdin, run one hook, emit its response and exit with its code."""
    raw = sys.stdin.buffer.read()
    result = run_hook(name, raw, load_settings(), console)
    if result.stdout:
        sys.stdout.flush()
        sys.stdout.buffer.write(result.stdout)
        sys.stdout.buffer.flush()
    raise typer.Exit(code=result.exit_code)


@app.callback()
def main() -> None:
    configure_logging()


@app.command("pre-tool-use")
def pre_tool_use() -> None:
    """Block delegations missing quality gates, spec reference or plan path."""
    _run("pre-tool-use")


@app.command("pre-edit")
def pre_edit() -> None:
    """Warn before editing files with VERBATIM sections."""
    _run("pre-edit")


@app.command("artifact-tracker")
def artifact_tracker() -> None:
    """Track scripts created with Write."""
    _run("artifact-tracker")


@app.command("post-task")
def post_task() -> None:
    """Review checkpoint and delivery plan reminder after a delegation."""
    _run("post-task")


@app.command()
def sections(
    file: Annotated[Path, typer.Argument(help="File to scan for VERBATIM sections")],
) -> None:
    """List the VERBATIM sections of a file."""
    text = read_document(file)
    if text is None:
        console.print(f"[red]Cannot read {escape(str(file))}[/red]")
        raise typer.Exit(code=EXIT_FAILURE)

    found = find_protected_sections(text)
    if not found:
        console.print(f"[dim]No VERBATIM sections in {escape(str(file))}[/dim]")
        return

    table = Table(title=escape(str(file)))
    table.add_column("Section")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    for section in found:
        table.add_row(escape(section.name), str(section.start_line), str(section.end_line))
    stdout_console.print(table)


@artifacts_app.command("list")
def list_artifacts(
    pending: Annotated[bool, typer.Option("--pending", help="Only show unreviewed scripts")] = False,
) -> None:
    """Show tracked scripts."""
    settings = load_settings()
    manifest = load_manifest(settings.manifest_path)
    rows = [
        (path, entry)
        for path, entry in sorted(manifest.items())
        if not (pending and isinstance(entry, ManifestEntry) and entry.reviewed)
    ]
    if not rows:
        console.print("[dim]No tracked scripts[/dim]")
        return

    table = Table(title="Transient artifacts")
    table.add_column("Path")
    table.add_column("Task")
    table.add_column("Created")
    table.add_column("Reviewed")
    for path, entry in rows:
        if not isinstance(entry, ManifestEntry):
            table.add_row(escape(path), "[red]invalid entry[/red]", "", "")
            continue
        table.add_row(
            escape(path),
            escape(entry.inferred_task),
            entry.created.strftime("%Y-%m-%d %H:%M"),
            "yes" if entry.reviewed else "no",
        )
    stdout_console.print(table)


@artifacts_app.command("review")
def review_artifacts(
    paths: Annotated[list[str], typer.Argument(help="Manifest paths, exactly as tracked")],
) -> None:
    """Mark tracked scripts as reviewed."""
    updated, unknown = mark_reviewed(paths, load_settings())
    for path in updated:
        console.print(f"[green]Reviewed[/green] {escape(path)}")
    for path in unknown:
        console.print(f"[red]Not tracked[/red] {escape(path)}")
    if unknown:
        raise typer.Exit(code=EXIT_FAILURE)


@app.command()
def plan() -> None:
    """Show the active delivery plan and its task counts."""
    result = locate_plan(load_settings())
    if result is None:
        console.print("[dim]No delivery plan found[/dim]")
        raise typer.Exit(code=EXIT_FAILURE)

    status = "[yellow]incomplete[/yellow]" if result.has_incomplete_tasks else "[green]complete[/green]"
    stdout_console.print(f"{escape(result.path)}: {status}")
    stdout_console.print(
        f"  pending {result.pending}, in progress {result.in_progress}, done {result.done}",
        highlight=False,
    )


@app.command()
def version() -> None:
    """Print the package version."""
    stdout_console.print(__version__, highlight=False)


if __name__ == "__main__":
    app()
