"""Ticket board - columns, filters, forms and optimistic status changes."""

from ticketboard.board.board import COLUMNS, ColumnStats, StatusChange, TicketBoard
from ticketboard.board.filters import TicketFilter
from ticketboard.board.formatting import (
    INVALID_DATE,
    format_date,
    format_date_only,
    format_file_size,
)
from ticketboard.board.forms import TicketForm, TicketFormError

__all__ = [
    "COLUMNS",
    "INVALID_DATE",
    "ColumnStats",
    "StatusChange",
    "TicketBoard",
    "TicketFilter",
    "TicketForm",
    "TicketFormError",
    "format_date",
    "format_date_only",
    "format_file_size",
]
