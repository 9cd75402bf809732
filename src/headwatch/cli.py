"""
headwatch command line.

A thin host around the head watcher: `status` inspects once, `watch`
prints notifications until interrupted.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from headwatch import __version__
from headwatch.exceptions import GitNotFoundError, HeadwatchError
from headwatch.logging_config import logger, setup_logging
from headwatch.schemas import HeadChangedEvent
from headwatch.watcher import create_head_watcher, inspect_directory, run_head_watcher

app = typer.Typer(help="Track the current repository head and report changes.")
console = Console()


def _version_callback(value: bool):
    if value:
        typer.echo(f"headwatch {__version__}")
        raise typer.Exit()


@app.callback()
def global_options(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging on stderr",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    headwatch: repository head watcher.
    """
    if verbose:
        setup_logging(level="DEBUG", suppress_console=False, force=True)


@app.command("status")
def status_cmd(
    directory: Path = typer.Argument(
        Path("."),
        help="Directory to inspect",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
):
    """
    Show the repository and head owning DIRECTORY.

    Exits with code 1 when DIRECTORY is not inside a repository.
    """
    state = asyncio.run(inspect_directory(directory.resolve()))

    if json_output:
        payload = None
        if state is not None:
            payload = {**state.model_dump(), "detached": state.detached}
        typer.echo(json.dumps(payload, indent=2))
        if state is None:
            raise typer.Exit(code=1)
        return

    if state is None:
        console.print(f"[yellow]⚠[/yellow] {directory} is not inside a repository")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Repository: {state.repo_root_id}")
    console.print(f"  Head: {state.normalized_head or '(none)'}")
    console.print(f"  Detached: {'yes' if state.detached else 'no'}")


@app.command("watch")
def watch_cmd(
    directory: Optional[Path] = typer.Argument(
        None,
        help="Directory to watch (default: current directory)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print one JSON object per notification",
    ),
):
    """
    Watch the repository head of DIRECTORY and print every change.

    Runs until interrupted with Ctrl-C.
    """
    try:
        watcher = create_head_watcher()
    except GitNotFoundError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    # Update follows its HeadChanged; an Update on its own means the repository was left.
    # The watcher stores the new head only after both have been delivered.
    current = {"head": None, "announced": False}

    def on_head_changed(event: HeadChangedEvent):
        current["head"] = event.head
        current["announced"] = True
        if json_output:
            typer.echo(json.dumps({"event": "HeadChanged", **event.model_dump()}))
            return
        marker = "detached " if event.detached else ""
        if event.init:
            console.print(f"[cyan]●[/cyan] {marker}head [bold]{event.head}[/bold] ({event.repo_root_id})")
        else:
            console.print(f"[green]→[/green] {event.old_head} → {marker}[bold]{event.head}[/bold]")

    def on_update():
        left_repository = not current["announced"]
        current["announced"] = False
        if left_repository:
            current["head"] = None
        if json_output:
            typer.echo(json.dumps({"event": "Update", "head": current["head"]}))
        elif left_repository:
            console.print("[yellow]⚠[/yellow] Not inside a repository")

    target = directory.resolve() if directory is not None else None
    try:
        asyncio.run(
            run_head_watcher(
                target,
                on_head_changed=on_head_changed,
                on_update=on_update,
                watcher=watcher,
            )
        )
    except KeyboardInterrupt:
        logger.debug("Interrupted")
    except HeadwatchError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
