"""CLI entry point for ticketboard.

Commands:
- serve: run the REST API with uvicorn
- db: bootstrap and check the server database
- tickets / users: work with tickets through the data-access service,
  which falls back to the local store when the API is unreachable
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import click

from ticketboard import __version__
from ticketboard.api.models import TicketResponse
from ticketboard.board import (
    COLUMNS,
    TicketBoard,
    TicketFilter,
    TicketForm,
    TicketFormError,
    format_date,
    format_date_only,
    format_file_size,
)
from ticketboard.client import TicketService
from ticketboard.config import DATABASE_URL_VARIABLES, ConfigError, Settings, load_settings
from ticketboard.logging import sanitize_for_log
from ticketboard.store import TicketStore, connect_database
from ticketboard.store.models import TicketPriority, TicketStatus, TicketType
from ticketboard.store.seed import seed_demo_data

STATUS_CHOICES = [s.value for s in TicketStatus]
PRIORITY_CHOICES = [p.value for p in TicketPriority]
TYPE_CHOICES = [t.value for t in TicketType]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity.

    Args:
        verbose: Whether to enable debug logging.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _settings(ctx: click.Context) -> Settings:
    settings: Settings = ctx.obj["settings"]
    return settings


def _service(ctx: click.Context) -> TicketService:
    service = TicketService.from_settings(_settings(ctx))
    ctx.call_on_close(service.close)
    return service


def _board(ctx: click.Context) -> TicketBoard:
    board = TicketBoard(_service(ctx))
    board.load()
    return board


def _echo_ticket_line(ticket: TicketResponse) -> None:
    assignee = ticket.assignee.name if ticket.assignee else "Unassigned"
    click.echo(f"  {ticket.id}  [{ticket.priority}] {ticket.title} ({assignee})")


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """ticketboard - a ticket tracker with a REST API and local fallback."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


# --- serve ---


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8000, show_default=True, type=int, help="Bind port")
@click.option("--log-dir", type=click.Path(path_type=Path), default=None, help="Log directory")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, log_dir: Path | None) -> None:
    """Run the REST API server."""
    import uvicorn

    from ticketboard.api import create_app
    from ticketboard.logging import setup_logging as setup_file_logging

    setup_file_logging(log_dir=log_dir)
    app = create_app(settings=_settings(ctx))
    uvicorn.run(app, host=host, port=port)


# --- db ---


@main.group()
def db() -> None:
    """Server database maintenance."""


def _connect_store(ctx: click.Context) -> TicketStore:
    database = connect_database(_settings(ctx))
    if database is None:
        click.echo(
            "Error: no usable database. Set one of: " + ", ".join(DATABASE_URL_VARIABLES),
            err=True,
        )
        sys.exit(1)
    ctx.call_on_close(database.close)
    return TicketStore(database)


@db.command("setup")
@click.pass_context
def db_setup(ctx: click.Context) -> None:
    """Create tables and seed the demo data."""
    store = _connect_store(ctx)
    result = seed_demo_data(store)
    click.echo("Database setup completed")
    click.echo(f"  Users: {result.users}")
    click.echo(f"  Tickets created: {result.tickets}")


@db.command("status")
@click.pass_context
def db_status(ctx: click.Context) -> None:
    """Check which variables are set and whether the database answers."""
    settings = _settings(ctx)
    for name in DATABASE_URL_VARIABLES:
        is_set = bool(os.environ.get(name, "").strip())
        click.echo(f"  {name}: {'set' if is_set else 'not set'}")

    if settings.database_url is None:
        click.echo("Database not configured", err=True)
        sys.exit(1)

    click.echo(f"  URL: {sanitize_for_log(settings.database_url)}")
    store = _connect_store(ctx)
    if not store.database.ping():
        click.echo("Database test failed", err=True)
        sys.exit(1)
    click.echo(f"Database connected ({store.count_users()} users)")


# --- tickets ---


@main.group()
def tickets() -> None:
    """List, show, create, move and delete tickets."""


@tickets.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=None, help="Only one column")
@click.option("--assignee", default=None, help="Assignee user ID")
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=None)
@click.option("--search", default="", help="Text in title, description or labels")
@click.pass_context
def tickets_list(
    ctx: click.Context,
    status: str | None,
    assignee: str | None,
    priority: str | None,
    search: str,
) -> None:
    """Show the board, column by column."""
    board = _board(ctx)
    ticket_filter = TicketFilter(
        search=search,
        assignee_id=assignee,
        priority=TicketPriority(priority) if priority else None,
    )
    columns = board.columns(ticket_filter)
    for column in COLUMNS:
        if status is not None and column != status:
            continue
        stats = board.column_stats(column, ticket_filter)
        click.echo(f"{column} ({stats.count}/{stats.total})")
        for ticket in columns[column]:
            _echo_ticket_line(ticket)


@tickets.command("show")
@click.argument("ticket_id")
@click.pass_context
def tickets_show(ctx: click.Context, ticket_id: str) -> None:
    """Show one ticket in full."""
    ticket = _service(ctx).get_ticket(ticket_id)
    if ticket is None:
        click.echo(f"Ticket not found: {ticket_id}", err=True)
        sys.exit(1)

    click.echo(f"{ticket.title}  ({ticket.type}, {ticket.priority}, {ticket.status})")
    click.echo(f"  ID: {ticket.id}  version {ticket.version}")
    click.echo(f"  Reporter: {ticket.reporter.name}")
    click.echo(f"  Assignee: {ticket.assignee.name if ticket.assignee else 'Unassigned'}")
    click.echo(f"  Created: {format_date(ticket.created_at)}")
    click.echo(f"  Updated: {format_date(ticket.updated_at)}")
    if ticket.due_date is not None:
        click.echo(f"  Due: {format_date_only(ticket.due_date)}")
    if ticket.labels:
        click.echo(f"  Labels: {', '.join(ticket.labels)}")
    click.echo("")
    click.echo(ticket.description)
    if ticket.attachments:
        click.echo("\nAttachments:")
        for attachment in ticket.attachments:
            click.echo(
                f"  {attachment.id}  {attachment.name} ({format_file_size(attachment.size)})"
            )


@tickets.command("create")
@click.option("--title", required=True)
@click.option("--description", required=True)
@click.option(
    "--priority", type=click.Choice(PRIORITY_CHOICES), default=TicketPriority.MEDIUM.value
)
@click.option(
    "--type", "ticket_type", type=click.Choice(TYPE_CHOICES), default=TicketType.TASK.value
)
@click.option("--assignee", default="", help="Assignee user ID")
@click.option("--label", "labels", multiple=True, help="Label (repeatable)")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="YYYY-MM-DD")
@click.pass_context
def tickets_create(
    ctx: click.Context,
    title: str,
    description: str,
    priority: str,
    ticket_type: str,
    assignee: str,
    labels: tuple[str, ...],
    due: datetime | None,
) -> None:
    """Create a ticket in the To Do column."""
    form = TicketForm(
        title=title,
        description=description,
        priority=TicketPriority(priority),
        type=TicketType(ticket_type),
        assignee_id=assignee,
        due_date=due,
    )
    for label in labels:
        form.add_label(label)

    try:
        ticket = TicketBoard(_service(ctx)).create_ticket(form)
    except TicketFormError as e:
        for name, message in e.errors.items():
            click.echo(f"  {name}: {message}", err=True)
        sys.exit(1)
    click.echo(f"Created ticket {ticket.id}")


@tickets.command("move")
@click.argument("ticket_id")
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@click.pass_context
def tickets_move(ctx: click.Context, ticket_id: str, status: str) -> None:
    """Move a ticket to another column."""
    board = _board(ctx)
    ticket = board.get(ticket_id)
    if ticket is None:
        click.echo(f"Ticket not found: {ticket_id}", err=True)
        sys.exit(1)
    if ticket.status == status:
        click.echo(f"Ticket already in {status}")
        return
    if not board.drop(ticket_id, TicketStatus(status)):
        click.echo("Failed to update ticket status", err=True)
        sys.exit(1)
    click.echo(f"Moved ticket {ticket_id} to {status}")


@tickets.command("delete")
@click.argument("ticket_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def tickets_delete(ctx: click.Context, ticket_id: str, yes: bool) -> None:
    """Delete a ticket. This cannot be undone."""
    if not yes:
        click.confirm(f"Delete ticket {ticket_id}?", abort=True)
    if not _service(ctx).delete_ticket(ticket_id):
        click.echo(f"Ticket not found: {ticket_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted ticket {ticket_id}")


@tickets.command("attach")
@click.argument("ticket_id")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def tickets_attach(ctx: click.Context, ticket_id: str, path: Path) -> None:
    """Record a file as an attachment of a ticket."""
    ticket = _service(ctx).add_attachment(ticket_id, path)
    if ticket is None:
        click.echo(f"Ticket not found: {ticket_id}", err=True)
        sys.exit(1)
    click.echo(f"Attached {path.name} to ticket {ticket_id}")


@tickets.command("detach")
@click.argument("ticket_id")
@click.argument("attachment_id")
@click.pass_context
def tickets_detach(ctx: click.Context, ticket_id: str, attachment_id: str) -> None:
    """Remove an attachment from a ticket."""
    ticket = _service(ctx).remove_attachment(ticket_id, attachment_id)
    if ticket is None:
        click.echo(f"Ticket not found: {ticket_id}", err=True)
        sys.exit(1)
    click.echo(f"Removed attachment {attachment_id}")


# --- users ---


@main.group()
def users() -> None:
    """Users that can report and be assigned tickets."""


@users.command("list")
@click.pass_context
def users_list(ctx: click.Context) -> None:
    """List users."""
    for user in _service(ctx).list_users():
        click.echo(f"  {user.id}  {user.name} <{user.email}>")


if __name__ == "__main__":
    main()
