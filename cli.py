#!/usr/bin/env python3
"""
Notekeeper Developer CLI.

Drives a NotesProvider against the configured document store, the same way
the mobile UI does. Use --action to select what to run.

Usage:
    python cli.py --help
    python cli.py --action info
    python cli.py --action config
    python cli.py --action list --owner user-1
    python cli.py --action watch --owner user-1 --verbose
    python cli.py --action add --owner user-1 --text "Buy milk"
    python cli.py --action update --owner user-1 --note-id <id> --text "Buy oat milk"
    python cli.py --action delete --owner user-1 --note-id <id>
"""

import asyncio
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.mobile.core.logging import get_logger, setup_logging

DONE_MESSAGES = {"add": "added", "update": "updated", "delete": "deleted"}


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _require(value: str | None, option: str, action: str) -> str:
    if not value:
        raise click.UsageError(f"{option} is required for --action {action}.")
    return value


@click.command()
@click.option(
    "--action", "-a",
    type=click.Choice(["info", "config", "list", "watch", "add", "update", "delete"]),
    default="info",
    help="What to run.",
)
@click.option(
    "--owner", "-o",
    default=None,
    help="Owner (user) identifier whose notes are used.",
)
@click.option(
    "--note-id", "-n",
    default=None,
    help="Note identifier (update, delete).",
)
@click.option(
    "--text", "-t",
    default=None,
    help="Note text (add, update).",
)
@click.option(
    "--seconds",
    default=None,
    type=float,
    help="Stop watching after this many seconds (default: until Ctrl+C).",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
def main(
    action: str,
    owner: str | None,
    note_id: str | None,
    text: str | None,
    seconds: float | None,
    verbose: bool,
    debug: bool,
) -> None:
    """
    Notekeeper Developer CLI.

    Use --action to select what to run. Note actions go through the same
    NotesProvider the app uses, so failures are reported exactly as the UI
    would show them.

    \b
    Examples:
        python cli.py --action info
        python cli.py --action list --owner user-1
        python cli.py --action watch --owner user-1 --seconds 30
        python cli.py --action add --owner user-1 --text "Buy milk"
        python cli.py --action delete --owner user-1 --note-id 3f2a...
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"action": action, "log_level": log_level})

    if action == "info":
        show_info(logger)
        return
    if action == "config":
        show_config(logger)
        return

    owner = _require(owner, "--owner", action)
    if action in ("update", "delete"):
        note_id = _require(note_id, "--note-id", action)
    if action in ("add", "update"):
        text = _require(text, "--text", action)

    try:
        ok = asyncio.run(run_notes_action(logger, action, owner, note_id, text, seconds))
    except KeyboardInterrupt:
        logger.info("Stopped", extra={"action": action})
        return
    if not ok:
        sys.exit(1)


def _echo_notes(notes) -> None:
    if not notes:
        click.echo("No notes.")
        return
    for note in notes:
        stamp = note.updated_at.strftime("%Y-%m-%d %H:%M")
        click.echo(f"{note.id}  {stamp}  {note.text}")


def _echo_error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


async def run_notes_action(
    logger,
    action: str,
    owner: str,
    note_id: str | None,
    text: str | None,
    seconds: float | None,
) -> bool:
    """
    Run one note action through a NotesProvider.

    Returns:
        True if the action succeeded
    """
    from modules.mobile.core.dependencies import close_document_store, create_notes_provider

    provider = create_notes_provider()
    try:
        if action == "list":
            await provider.fetch_notes(owner)
            if provider.error_message:
                _echo_error(provider.error_message)
                return False
            _echo_notes(provider.notes)
            return True

        if action == "watch":
            return await _watch(logger, provider, owner, seconds)

        if action == "add":
            ok = await provider.add_note(text, owner)
        elif action == "update":
            ok = await provider.update_note(note_id, text, owner)
        else:
            ok = await provider.delete_note(note_id, owner)

        if ok:
            click.echo(f"Note {DONE_MESSAGES[action]}.")
        else:
            _echo_error(provider.error_message)
        return ok
    finally:
        provider.dispose()
        await close_document_store()


async def _watch(logger, provider, owner: str, seconds: float | None) -> bool:
    """Print the owner's notes every time the live view changes."""

    def render() -> None:
        state = provider.state
        if state.is_loading:
            click.echo("Loading...")
            return
        if state.error_message:
            _echo_error(state.error_message)
        click.echo(f"--- {len(state.notes)} note(s) ---")
        _echo_notes(state.notes)

    provider.add_listener(render)
    provider.start_listening_to_notes(owner)

    logger.info("Watching notes", extra={"owner_id": owner, "seconds": seconds})
    click.echo(f"Watching notes for {owner}. Press Ctrl+C to stop\n")

    if seconds is None:
        await asyncio.Event().wait()
    else:
        await asyncio.sleep(seconds)
    return not provider.error_message


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:\n")

    try:
        from modules.mobile.core.config import get_app_config

        app_config = get_app_config()

        sections = {
            "Application Settings": app_config.application,
            "Logging Settings": app_config.logging,
            "Store Settings": app_config.store,
        }
        for title, section in sections.items():
            click.echo(f"{title} (from YAML):")
            click.echo("-" * 40)
            for key, value in section.model_dump().items():
                if isinstance(value, dict):
                    click.echo(f"  {key}:")
                    for k, v in value.items():
                        click.echo(f"    {k}: {v}")
                else:
                    click.echo(f"  {key}: {value}")
            click.echo()

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def show_info(logger) -> None:
    """Display application information."""
    click.echo("Notekeeper Notes Core")
    click.echo("=" * 40)

    try:
        from modules.mobile.core.config import get_app_config
        app_config = get_app_config()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
        click.echo(f"Store backend: {app_config.store.backend}")
    except Exception as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load config/settings configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    click.echo()
    click.echo("Actions (--action):")
    click.echo("  list     Fetch an owner's notes once")
    click.echo("  watch    Follow an owner's notes live")
    click.echo("  add      Create a note")
    click.echo("  update   Replace a note's text")
    click.echo("  delete   Delete a note")
    click.echo("  config   Display configuration")
    click.echo("  info     Show this information")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")
    click.echo()
    click.echo("The memory backend keeps notes for the lifetime of one process;")
    click.echo("set backend: redis in config/settings/store.yaml to share notes.")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
