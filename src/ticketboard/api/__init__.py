"""REST API for ticketboard."""

from ticketboard.api.app import API_PREFIX, create_app
from ticketboard.api.models import (
    APIResponse,
    AttachmentCreate,
    AttachmentResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
    UserCreate,
    UserResponse,
)

__all__ = [
    "API_PREFIX",
    "APIResponse",
    "AttachmentCreate",
    "AttachmentResponse",
    "TicketCreate",
    "TicketResponse",
    "TicketUpdate",
    "UserCreate",
    "UserResponse",
    "create_app",
]
