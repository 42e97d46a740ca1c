"""Ticket client - remote API access with a local fallback store."""

from ticketboard.client.api_client import TicketApiClient
from ticketboard.client.exceptions import ClientError, TicketApiError
from ticketboard.client.local_store import (
    DEFAULT_USERS,
    TICKETS_KEY,
    USERS_KEY,
    LocalStore,
    parse_date,
)
from ticketboard.client.service import TicketService

__all__ = [
    "DEFAULT_USERS",
    "TICKETS_KEY",
    "USERS_KEY",
    "ClientError",
    "LocalStore",
    "TicketApiClient",
    "TicketApiError",
    "TicketService",
    "parse_date",
]
