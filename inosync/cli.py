"""
Command-line interface for InoSync.

Uses Typer to expose the sync run, the feed URL builder and an offline
renderer for saved feed files.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from .config import Config
from .errors import FeedError
from .logging_config import setup_structured_logging
from .note import generate_note
from .rss import build_feed_url, parse_feed
from .sync import run_sync

app = typer.Typer(add_completion=False)
console = Console()


@app.command()
def sync(
    force: bool = typer.Option(
        False, "--force", help="Bypass feed caches and overwrite existing notes."
    ),
    settings_file: Path | None = typer.Option(
        None, "--settings", "-s", help="Settings JSON file (default: inosync.json)."
    ),
    offline: bool = typer.Option(
        False, "--offline", help="Write placeholder items instead of fetching."
    ),
    vault: Path | None = typer.Option(None, "--vault", help="Vault root directory."),
):
    """Fetch every configured tag and write new notes into the vault."""
    settings = Config(str(settings_file) if settings_file else None).load_settings()
    if offline:
        settings.offline = True
    if vault is not None:
        settings.vault_path = str(vault)

    setup_structured_logging(settings.log_level)

    report = run_sync(settings, force=force)

    for entry in reversed(report.logs):
        style = {"success": "green", "error": "red"}.get(entry.status, "cyan")
        line = entry.message if not entry.details else f"{entry.message} ({entry.details})"
        console.print(line, style=style, markup=False, highlight=False)

    if not report.success:
        raise typer.Exit(code=1)


@app.command()
def url(
    tag: str = typer.Argument(..., help="Tag name."),
    user_id: str | None = typer.Option(
        None, "--user-id", "-u", help="Inoreader user ID (default: from settings)."
    ),
    force: bool = typer.Option(False, "--force", help="Add a cache-busting parameter."),
    settings_file: Path | None = typer.Option(None, "--settings", "-s"),
):
    """Print the public feed URL of a tag."""
    if not user_id:
        user_id = Config(str(settings_file) if settings_file else None).load_settings().user_id
    if not user_id:
        console.print("User ID is required to fetch feeds.", style="red")
        raise typer.Exit(code=2)

    typer.echo(build_feed_url(user_id, tag, force_bust=force))


@app.command()
def render(
    feed_file: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    template: Path | None = typer.Option(
        None, "--template", "-t", exists=True, readable=True, help="Note template file."
    ),
    output: Path | None = typer.Option(
        None, "--out", "-o", help="Write notes into this directory instead of printing."
    ),
):
    """Render the items of a saved feed file as notes."""
    template_text = template.read_text(encoding="utf-8") if template else None
    try:
        items = parse_feed(feed_file.read_text(encoding="utf-8"))
    except FeedError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=1)

    if output is not None:
        output.mkdir(parents=True, exist_ok=True)

    for item in items:
        note = generate_note(item, template_text)
        if output is None:
            typer.echo(note.document_text)
        else:
            (output / note.file_name).write_text(note.document_text, encoding="utf-8")
            console.print(f"Wrote {note.file_name}", markup=False)


if __name__ == "__main__":
    app()
