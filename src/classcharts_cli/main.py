"""CLI entry point for the classcharts tool.

This module is the composition root of the application.  It is the only
place that imports concrete implementations (ClassChartsClient,
FileCredentialStore).  All other layers depend solely on abstractions.
"""

import csv
import io
import json
import logging
import re
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from enum import Enum

# Ensure UTF-8 output on Windows where stdout may default to cp1252.
# reconfigure() is a no-op when encoding is already utf-8.
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import requests
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from classcharts.auth.credentials import FileCredentialStore
from classcharts.auth.interfaces import STALENESS_WINDOW
from classcharts.core.config import ClientConfig
from classcharts.core.exceptions import (
    ApiError,
    AuthenticationRequiredError,
    ClassChartsError,
)
from classcharts.providers.classcharts.client import ClassChartsClient
from classcharts.services.student_service import StudentService

app = typer.Typer()
auth_app = typer.Typer(help="Manage the ClassCharts session.")

app.add_typer(auth_app, name="auth")

console = Console(legacy_windows=False)


# ---------------------------------------------------------------------------
# Output format
# ---------------------------------------------------------------------------


class OutputFormat(str, Enum):
    """Supported output formats for resource commands."""

    table = "table"
    json = "json"
    csv = "csv"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_store() -> FileCredentialStore:
    """Return the credential store shared by every command."""
    return FileCredentialStore()


def _get_service() -> StudentService:
    """Build and return a StudentService backed by the ClassCharts client.

    Returns:
        A :class:`~classcharts.services.student_service.StudentService`
        instance whose session is persisted between invocations.
    """
    client = ClassChartsClient(config=ClientConfig.from_env(), store=_get_store())
    return StudentService(client)


def _fail(message: str) -> None:
    """Print *message* in red and exit with status 1."""
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _report(error: Exception) -> None:
    """Translate a library or transport error into a CLI failure."""
    if isinstance(error, AuthenticationRequiredError):
        console.print("[yellow]Not logged in.[/yellow]")
        console.print("Run [bold]classcharts auth login[/bold] first.")
        raise typer.Exit(1)
    if isinstance(error, ApiError) and error.expired:
        console.print(f"[red]✗ Session expired:[/red] {error.message}")
        console.print("Run [bold]classcharts auth login[/bold] to renew.")
        raise typer.Exit(1)
    if isinstance(error, ApiError):
        _fail(f"ClassCharts error: {error.message}")
    if isinstance(error, requests.RequestException):
        _fail(f"Request failed: {error}")
    _fail(str(error))


def _strip_html(html: str | None) -> str:
    """Strip HTML tags; ``<br>`` becomes a newline."""
    if not html:
        return ""
    text = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    return text.strip()


def _to_csv(rows: list[dict], fieldnames: list[str]) -> str:
    """Serialise a list of dicts to a CSV string.

    Args:
        rows: List of dictionaries to serialise.
        fieldnames: Ordered column names.  Extra keys in ``rows`` are ignored.

    Returns:
        A CSV-formatted string including a header row.
    """
    buf = io.StringIO()
    writer = csv.DictWriter(
        buf, fieldnames=fieldnames, extrasaction="ignore"
    )
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log requests and session renewals."
    ),
):
    """Command-line client for the ClassCharts student API."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True))],
        )


# ---------------------------------------------------------------------------
# auth commands
# ---------------------------------------------------------------------------


@auth_app.command()
def login(
    code: str = typer.Option(
        ..., prompt="ClassCharts access code", hide_input=True
    ),
    dob: str = typer.Option(
        ..., prompt="Date of birth (YYYY-MM-DD)"
    ),
):
    """Log in with an access code and date of birth."""
    service = _get_service()
    try:
        service.login(code, dob)
    except (ClassChartsError, requests.RequestException) as e:
        _report(e)
    finally:
        service.close()
    console.print(
        f"[green]✓ Logged in. Session saved to:[/green] {_get_store().path}"
    )


@auth_app.command()
def status():
    """Show the stored session and whether it needs renewal."""
    store = _get_store()
    credential = store.get()
    if credential is None:
        console.print("[yellow]No session stored.[/yellow]")
        console.print("Run [bold]classcharts auth login[/bold].")
        raise typer.Exit(1)

    age = datetime.now(timezone.utc) - credential.granted_at
    state = (
        "[yellow]will be renewed on next request[/yellow]"
        if credential.requires_refresh
        else "[green]fresh[/green]"
    )
    granted = credential.granted_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"[green]✓ Session[/green]  {store.path}")
    console.print(f"  Granted : {granted}")
    console.print(
        f"  Age     : {int(age.total_seconds())}s "
        f"(renewal after {int(STALENESS_WINDOW.total_seconds())}s, {state})"
    )


@auth_app.command()
def clear():
    """Remove the locally saved session."""
    try:
        removed = _get_store().clear()
    except ClassChartsError as e:
        _report(e)
    if removed:
        console.print("[green]✓ Session removed.[/green]")
    else:
        console.print("[yellow]No saved session found.[/yellow]")


# ---------------------------------------------------------------------------
# resource commands
# ---------------------------------------------------------------------------


@app.command()
def announcements(
    output: OutputFormat = typer.Option(
        OutputFormat.table, "--output", "-o", help="Output format."
    ),
):
    """List school announcements."""
    service = _get_service()
    try:
        items = service.get_announcements()
    except (ClassChartsError, requests.RequestException) as e:
        _report(e)
    finally:
        service.close()

    if output == OutputFormat.json:
        print(json.dumps([asdict(a) for a in items], indent=2))
    elif output == OutputFormat.csv:
        print(
            _to_csv(
                [asdict(a) for a in items],
                ["id", "title", "description"],
            ),
            end="",
        )
    else:
        if not items:
            console.print("[yellow]No announcements.[/yellow]")
            return
        table = Table(title="Announcements")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Title", style="bold")
        table.add_column("Description")
        for a in items:
            table.add_row(str(a.id), a.title, _strip_html(a.description))
        console.print(table)


@app.command()
def student(
    output: OutputFormat = typer.Option(
        OutputFormat.table, "--output", "-o", help="Output format."
    ),
):
    """Show the logged-in student's profile."""
    service = _get_service()
    try:
        profile = service.get_student()
    except (ClassChartsError, requests.RequestException) as e:
        _report(e)
    finally:
        service.close()

    if output == OutputFormat.json:
        print(json.dumps(asdict(profile), indent=2))
    elif output == OutputFormat.csv:
        fields = list(asdict(profile))
        print(_to_csv([asdict(profile)], fields), end="")
    else:
        table = Table(show_header=False, title=profile.name)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("ID", str(profile.id))
        table.add_row("First name", profile.first_name)
        table.add_row("Last name", profile.last_name)
        table.add_row("Behaviour", "shown" if profile.display_behaviour else "hidden")
        table.add_row(
            "Detentions", "shown" if profile.display_detentions else "hidden"
        )
        console.print(table)


if __name__ == "__main__":
    app()
