"""Ticket store - relational persistence for users, tickets, labels and attachments."""

from ticketboard.store.database import Database, connect_database
from ticketboard.store.exceptions import (
    AttachmentNotFoundError,
    StoreError,
    StoreUnavailableError,
    TicketNotFoundError,
    TicketVersionConflictError,
    UserExistsError,
    UserNotFoundError,
)
from ticketboard.store.models import (
    Attachment,
    Label,
    Ticket,
    TicketPriority,
    TicketStatus,
    TicketType,
    User,
)
from ticketboard.store.store import UNSET, TicketStore

__all__ = [
    "UNSET",
    "Attachment",
    "AttachmentNotFoundError",
    "Database",
    "Label",
    "StoreError",
    "StoreUnavailableError",
    "Ticket",
    "TicketNotFoundError",
    "TicketPriority",
    "TicketStatus",
    "TicketStore",
    "TicketType",
    "TicketVersionConflictError",
    "User",
    "UserExistsError",
    "UserNotFoundError",
    "connect_database",
]
