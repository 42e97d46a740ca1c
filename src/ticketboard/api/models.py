"""Pydantic models for the REST API.

These are the serialization boundary for every entity: the server builds
them from ORM rows, the client parses responses (and its local cache) into
them. Nothing outside the store sees the ORM classes.
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ticketboard.store.models import TicketPriority, TicketStatus, TicketType

T = TypeVar("T")


def _as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    ``code`` carries the raw database error code on failures that have one.
    """

    data: T | None = None
    error: str | None = None
    code: str | None = None


# User models


class UserCreate(BaseModel):
    """Request model for creating a user."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    avatar: str | None = Field(default=None, max_length=500)


class UserResponse(BaseModel):
    """Response model for a user."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    avatar: str | None = None


def user_to_response(user: Any) -> UserResponse:
    """Convert a User model to UserResponse."""
    return UserResponse.model_validate(user)


# Attachment models


class AttachmentCreate(BaseModel):
    """Request model for recording an attachment."""

    name: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)
    type: str = Field(default="application/octet-stream", max_length=255)
    url: str = Field(..., min_length=1)


class AttachmentResponse(BaseModel):
    """Response model for an attachment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    size: int
    type: str
    url: str
    uploaded_at: datetime

    @field_validator("uploaded_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime | None:
        return _as_utc(value)


# Ticket models


class TicketCreate(BaseModel):
    """Request model for creating a ticket."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    priority: TicketPriority = TicketPriority.MEDIUM
    type: TicketType = TicketType.TASK
    assignee_id: str | None = None
    due_date: datetime | None = None
    labels: list[str] = Field(default_factory=list)


class TicketUpdate(BaseModel):
    """Request model for updating a ticket (partial update).

    Only fields present in the request body are applied; an explicit
    ``"assignee_id": null`` clears the assignee. ``version``, when sent,
    must match the stored version or the update is rejected.
    """

    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    type: TicketType | None = None
    assignee_id: str | None = None
    due_date: datetime | None = None
    labels: list[str] | None = None
    version: int | None = Field(default=None, ge=1)


class TicketResponse(BaseModel):
    """Response model for a ticket with its related rows."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    type: TicketType
    assignee: UserResponse | None = None
    reporter: UserResponse
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None = None
    labels: list[str] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    version: int = 1

    @field_validator("created_at", "updated_at", "due_date")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @field_validator("labels", mode="before")
    @classmethod
    def label_names(cls, value: Any) -> Any:
        """Accept ORM Label rows as well as plain names."""
        if value is None:
            return []
        return [getattr(label, "name", label) for label in value]


def ticket_to_response(ticket: Any) -> TicketResponse:
    """Convert a Ticket model to TicketResponse."""
    return TicketResponse.model_validate(ticket)


# Maintenance models


class DatabaseStatusResponse(BaseModel):
    """Response model for the connection smoke test."""

    configured: bool
    connected: bool
    variables: dict[str, bool]
    user_count: int | None = None


class SetupResponse(BaseModel):
    """Response model for schema bootstrap."""

    message: str
    users: int
    tickets: int
