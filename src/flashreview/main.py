"""CLI entry point for flashreview.

Provides four subcommands:
  - review: Open the interactive review TUI
  - list: Print the signed-in user's cards, newest first
  - add: Create a card
  - delete: Delete a card by id (after confirmation)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from flashreview.config import AppConfig, load_config
from flashreview.controller import ReviewSessionController
from flashreview.schemas import DeleteOutcome
from flashreview.session import StaticAuthService, Unauthenticated, open_session
from flashreview.store import CardValidationError, JsonFileFlashcardStore, StoreError

app = typer.Typer(
    name="flashreview",
    help="Create and review question/answer flashcards.",
    no_args_is_help=True,
)

console = Console()

_LOG_FMT = "%(name)s %(levelname)s: %(message)s"

_OUTCOME_STYLES = {
    DeleteOutcome.COMPLETED: "green",
    DeleteOutcome.REJECTED_GONE: "yellow",
    DeleteOutcome.DENIED_BUSY: "yellow",
    DeleteOutcome.REJECTED_NOT_OWNER: "red",
    DeleteOutcome.REJECTED_DELETE_FAILED: "red",
}


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FMT)


def _load_config_or_exit(config_path: str | None) -> AppConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


def _open_controller(config: AppConfig) -> ReviewSessionController:
    """Build a controller for the configured user and store, or exit."""
    try:
        session = open_session(StaticAuthService.from_config(config))
        store = JsonFileFlashcardStore(Path(config.store_path).expanduser())
    except Unauthenticated as e:
        console.print(
            f"[red]Error:[/red] {e}. "
            "Set user.id in the config file or FLASHREVIEW_USER_ID."
        )
        raise typer.Exit(code=1) from e
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    return ReviewSessionController(session, store)


@app.command()
def review(
    config_path: str | None = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug logging"
    ),
) -> None:
    """Open the interactive review TUI."""
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path)

    from flashreview.tui import launch_review

    try:
        launch_review(config)
    except (Unauthenticated, StoreError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command(name="list")
def list_cards(
    config_path: str | None = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug logging"
    ),
) -> None:
    """List your flashcards, newest first."""
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path)
    controller = _open_controller(config)

    try:
        asyncio.run(controller.start())
    except StoreError as e:
        console.print(f"[red]Error:[/red] Failed to fetch flashcards: {e}")
        raise typer.Exit(code=1) from e

    projection = controller.projection()
    if projection.is_empty:
        console.print("No flashcards found.")
        return

    table = Table(title="Flashcards")
    table.add_column("#", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Question", style="bold")
    table.add_column("Answer")
    for idx, entry in enumerate(projection.side_list, start=1):
        table.add_row(
            str(idx),
            entry.id,
            entry.question,
            entry.answer_preview(config.list_preview_chars),
        )
    console.print(table)


@app.command()
def add(
    question: str = typer.Option(..., "--question", "-q", help="Card question"),
    answer: str = typer.Option(..., "--answer", "-a", help="Card answer"),
    config_path: str | None = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug logging"
    ),
) -> None:
    """Create a flashcard."""
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path)
    controller = _open_controller(config)

    try:
        record = asyncio.run(controller.create_card(question, answer))
    except CardValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e
    except StoreError as e:
        console.print(f"[red]Error saving flashcard:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Flashcard created:[/green] {record.id}")


@app.command()
def delete(
    record_id: str = typer.Argument(..., help="Id of the card to delete"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Delete without asking for confirmation"
    ),
    config_path: str | None = typer.Option(
        None, "--config", help="Path to config YAML file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Enable debug logging"
    ),
) -> None:
    """Delete a flashcard you own."""
    _setup_logging(verbose)
    config = _load_config_or_exit(config_path)
    controller = _open_controller(config)

    if not yes and not typer.confirm(
        "Are you sure you want to delete this flashcard? "
        "This action cannot be undone."
    ):
        console.print("Delete cancelled.")
        raise typer.Exit(code=0)

    result = asyncio.run(controller.on_request_delete(record_id))
    style = _OUTCOME_STYLES[result.outcome]
    console.print(f"[{style}]{result.message}[/{style}]")
    if result.outcome in (
        DeleteOutcome.REJECTED_NOT_OWNER,
        DeleteOutcome.REJECTED_DELETE_FAILED,
    ):
        raise typer.Exit(code=1)
