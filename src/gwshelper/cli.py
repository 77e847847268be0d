"""
Command line entry point.

`gwshelper demo` walks through the whole library against a real account:
create a doc, edit it, file a copy in a new folder, set up a meeting with
the copy attached, then tidy up.  It leaves the folder, the copies and the
event behind so the results can be inspected.
"""
from datetime import datetime, timedelta
from pathlib import Path
from typing import Annotated, Optional
import logging

from dotenv import load_dotenv
import typer

from . import calendar, drive
from .access import gws
from .config import AuthConfig
from .docs import GoogleDocument
from .errors import GWSHelperError

logger = logging.getLogger(__name__)

app = typer.Typer(help="Helpers for Google Docs, Drive and Calendar", no_args_is_help=True)


@app.callback()
def main(ctx: typer.Context,
         config: Annotated[Optional[Path], typer.Option(help="JSON or TOML auth config file")] = None,
         credentials: Annotated[Optional[Path], typer.Option(help="OAuth client secrets or service account key")] = None,
         token: Annotated[Optional[Path], typer.Option(help="OAuth token cache file")] = None,
         service_account: Annotated[bool, typer.Option("--service-account", help="Authenticate as a service account")] = False,
         verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # googleapiclient is very chatty at debug
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    load_dotenv()
    try:
        cfg = AuthConfig.from_file(config) if config else AuthConfig.from_env()
    except GWSHelperError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if credentials:
        cfg.credentials_file = credentials
    if token:
        cfg.token_file = token
    if service_account:
        cfg.use_service_account = True
    cfg.apply(gws)
    ctx.obj = cfg


@app.command()
def auth():
    """Authenticate and show the granted scopes."""
    try:
        connected = gws.connect()
    except GWSHelperError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if not connected:
        typer.echo("Not connected, check the credentials file", err=True)
        raise typer.Exit(1)
    for scope in gws.session_scopes:
        typer.echo(scope)


@app.command()
def export(document_id: Annotated[str, typer.Argument(help="Google Doc ID")]):
    """Print a document as plain text."""
    try:
        typer.echo(drive.export_text(document_id))
    except GWSHelperError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def demo(ctx: typer.Context,
         attendee: Annotated[str, typer.Option(help="Email to invite and share the copy with")],
         title: Annotated[str, typer.Option(help="Title of the document to create")] = "Sample Document",
         folder_name: Annotated[str, typer.Option(help="Name of the folder to create")] = "Sample Folder"):
    """Run the end-to-end workflow across Docs, Drive and Calendar."""
    cfg: AuthConfig = ctx.obj
    try:
        _demo(cfg, attendee, title, folder_name)
    except GWSHelperError as e:
        logger.error("demo failed: %s", e)
        raise typer.Exit(1)


def _demo(cfg: AuthConfig, attendee: str, title: str, folder_name: str) -> None:
    doc = GoogleDocument.create(title)
    typer.echo(f"Created document with ID: {doc.id}")

    doc.add_text("Hello, World!")
    typer.echo("Added text to the document.")

    folder = drive.create_folder(folder_name)
    typer.echo(f"Created folder with ID: {folder.id}")

    filed = drive.copy_to_folder(doc.id, folder.id)
    typer.echo(f"Copied document to folder with ID: {filed.id}")

    start = datetime.now()
    event = calendar.create_meeting("Meeting", "Virtual", "Discuss project updates",
                                    start, start + timedelta(hours=1), cfg.timezone)
    typer.echo(f"Created event with ID: {event.id} ({event.meet_link or 'no Meet link yet'})")

    calendar.add_attendees(event.id, [attendee])
    typer.echo("Added attendees to the event.")

    calendar.attach_file(event.id, filed.id)
    typer.echo("Attached file to the event.")

    copied = doc.copy("Copy of Document")
    typer.echo(f"Copied document ID: {copied.id}")

    typer.echo(f"Document content:\n{doc.export_text()}")

    copied.add_table(3, 3)
    typer.echo("Added table to the document.")

    copied.add_text_to_table_cell(0, 1, 1, "Cell Text")
    typer.echo("Added text to table cell.")

    copied.set_table_cell_color(0, 1, 1, (1.0, 0.0, 0.0))
    typer.echo("Set color to table cell.")

    # link back to the original just before the copy's final newline
    end_index = copied.end_index()
    copied.insert_text_with_link(doc.url, doc.url, end_index - 1)
    typer.echo(f"Inserted link to original document. View the copy here: {copied.url}")

    drive.add_permission(copied.id, attendee, "reader")
    typer.echo(f"Added {attendee} as reader.")

    drive.remove_permission(copied.id, attendee)
    typer.echo(f"Removed {attendee}'s permission.")

    drive.rename(folder.id, "New folder name")
    typer.echo("Folder renamed successfully.")

    drive.delete(doc.id)
    typer.echo("Original document deleted successfully.")


if __name__ == "__main__":
    app()
