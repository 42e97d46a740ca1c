"""TicketService - one data-access API over the remote API and the local cache."""

from __future__ import annotations

import logging
import mimetypes
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import httpx

from ticketboard.api.models import (
    AttachmentCreate,
    AttachmentResponse,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
    UserResponse,
)
from ticketboard.client.api_client import TicketApiClient
from ticketboard.client.exceptions import TicketApiError
from ticketboard.client.local_store import LocalStore
from ticketboard.store.models import SYSTEM_USER_EMAIL, SYSTEM_USER_NAME, TicketStatus

if TYPE_CHECKING:
    from ticketboard.config import Settings

logger = logging.getLogger("ticketboard.client.service")

T = TypeVar("T")

# Failures that send an operation to the local store. ValueError covers
# undecodable bodies and payloads that fail response validation.
REMOTE_ERRORS = (httpx.HTTPError, TicketApiError, ValueError)


def clean_labels(labels: list[str]) -> list[str]:
    """Strip label names, dropping blanks and duplicates in first-seen order."""
    names = (label.strip() for label in labels)
    return list(dict.fromkeys(name for name in names if name))


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(UTC)


class TicketService:
    """Data-access service with automatic local fallback.

    Every operation tries the remote API first. On a transport error, a
    non-2xx answer or a body that is not a valid API response it logs a
    warning and runs the equivalent operation on the local store once; the
    remote is not retried within the call.
    Successful remote calls rewrite the local cache with a full snapshot.
    Writes made while falling back are not replayed to the server: the
    next successful remote read overwrites them.
    """

    def __init__(self, local_store: LocalStore, api_client: TicketApiClient | None = None) -> None:
        """Initialize the service.

        Args:
            local_store: Fallback store and cache
            api_client: Remote API client; None runs in local-only mode
        """
        self.local_store = local_store
        self.api_client = api_client

    @classmethod
    def from_settings(cls, settings: Settings) -> TicketService:
        """Build a service from resolved settings."""
        api_client = (
            TicketApiClient(settings.api_url, timeout=settings.api_timeout)
            if settings.api_url
            else None
        )
        return cls(LocalStore(settings.cache_dir), api_client)

    @property
    def is_remote(self) -> bool:
        """Whether a remote API is configured."""
        return self.api_client is not None

    def close(self) -> None:
        """Close the remote client, if any."""
        if self.api_client is not None:
            self.api_client.close()

    def _with_fallback(
        self,
        operation: str,
        remote_call: Callable[[TicketApiClient], T],
        fallback_call: Callable[[], T],
    ) -> T:
        if self.api_client is None:
            return fallback_call()
        try:
            return remote_call(self.api_client)
        except REMOTE_ERRORS as e:
            logger.warning("API call %s failed, falling back to local storage: %s", operation, e)
            return fallback_call()

    # --- Cache helpers ---

    def _cache_ticket(self, ticket: TicketResponse) -> None:
        tickets = self.local_store.load_tickets()
        for index, cached in enumerate(tickets):
            if cached.id == ticket.id:
                tickets[index] = ticket
                break
        else:
            tickets.append(ticket)
        self.local_store.save_tickets(tickets)

    def _uncache_ticket(self, ticket_id: str) -> bool:
        tickets = self.local_store.load_tickets()
        remaining = [t for t in tickets if t.id != ticket_id]
        if len(remaining) == len(tickets):
            return False
        self.local_store.save_tickets(remaining)
        return True

    def _local_reporter(self, users: list[UserResponse]) -> UserResponse:
        """First cached user, or a system user persisted into the user cache."""
        if users:
            return users[0]
        system_user = UserResponse(id=_new_id(), name=SYSTEM_USER_NAME, email=SYSTEM_USER_EMAIL)
        self.local_store.save_users([system_user])
        return system_user

    # --- Tickets ---

    def list_tickets(self) -> list[TicketResponse]:
        """All tickets; the cached list when the API is unavailable."""

        def remote(api: TicketApiClient) -> list[TicketResponse]:
            tickets = api.list_tickets()
            self.local_store.save_tickets(tickets)
            return tickets

        return self._with_fallback("list_tickets", remote, self.local_store.load_tickets)

    def get_ticket(self, ticket_id: str) -> TicketResponse | None:
        """One ticket by ID, or None if it is not found anywhere."""

        def remote(api: TicketApiClient) -> TicketResponse:
            ticket = api.get_ticket(ticket_id)
            self._cache_ticket(ticket)
            return ticket

        def local() -> TicketResponse | None:
            return next((t for t in self.local_store.load_tickets() if t.id == ticket_id), None)

        return self._with_fallback("get_ticket", remote, local)

    def create_ticket(self, data: TicketCreate) -> TicketResponse:
        """Create a ticket in the To Do column."""

        def remote(api: TicketApiClient) -> TicketResponse:
            ticket = api.create_ticket(data)
            self._cache_ticket(ticket)
            return ticket

        def local() -> TicketResponse:
            users = self.local_store.load_users()
            now = _now()
            ticket = TicketResponse(
                id=_new_id(),
                title=data.title,
                description=data.description,
                status=TicketStatus.TO_DO,
                priority=data.priority,
                type=data.type,
                assignee=next((u for u in users if u.id == data.assignee_id), None),
                reporter=self._local_reporter(users),
                created_at=now,
                updated_at=now,
                due_date=data.due_date,
                labels=clean_labels(data.labels),
                attachments=[],
            )
            tickets = self.local_store.load_tickets()
            tickets.append(ticket)
            self.local_store.save_tickets(tickets)
            return ticket

        return self._with_fallback("create_ticket", remote, local)

    def update_ticket(self, ticket_id: str, data: TicketUpdate) -> TicketResponse | None:
        """Apply a partial update; None if the ticket is not found locally."""

        def remote(api: TicketApiClient) -> TicketResponse:
            ticket = api.update_ticket(ticket_id, data)
            self._cache_ticket(ticket)
            return ticket

        def local() -> TicketResponse | None:
            tickets = self.local_store.load_tickets()
            index = next((i for i, t in enumerate(tickets) if t.id == ticket_id), None)
            if index is None:
                return None

            current = tickets[index]
            changes = data.model_dump(exclude_unset=True, exclude={"assignee_id", "version"})
            changes = {key: value for key, value in changes.items() if value not in (None, "")}
            if "labels" in changes:
                changes["labels"] = clean_labels(changes["labels"])
            if "assignee_id" in data.model_fields_set:
                if not data.assignee_id:
                    changes["assignee"] = None
                else:
                    users = self.local_store.load_users()
                    assignee = next((u for u in users if u.id == data.assignee_id), None)
                    if assignee is not None:
                        changes["assignee"] = assignee
            changes["updated_at"] = _now()
            changes["version"] = current.version + 1

            updated = TicketResponse.model_validate({**current.model_dump(), **changes})
            tickets[index] = updated
            self.local_store.save_tickets(tickets)
            return updated

        return self._with_fallback("update_ticket", remote, local)

    def delete_ticket(self, ticket_id: str) -> bool:
        """Delete a ticket; False if it is not found locally."""

        def remote(api: TicketApiClient) -> bool:
            api.delete_ticket(ticket_id)
            self._uncache_ticket(ticket_id)
            return True

        return self._with_fallback(
            "delete_ticket", remote, lambda: self._uncache_ticket(ticket_id)
        )

    # --- Derived queries ---

    def tickets_by_status(self, status: TicketStatus) -> list[TicketResponse]:
        """Tickets in one column."""
        return [t for t in self.list_tickets() if t.status == status]

    def tickets_by_assignee(self, assignee_id: str) -> list[TicketResponse]:
        """Tickets assigned to one user."""
        return [
            t
            for t in self.list_tickets()
            if t.assignee is not None and t.assignee.id == assignee_id
        ]

    def search_tickets(self, query: str) -> list[TicketResponse]:
        """Case-insensitive substring search over title, description and labels."""
        needle = query.lower()
        return [
            t
            for t in self.list_tickets()
            if needle in t.title.lower()
            or needle in t.description.lower()
            or any(needle in label.lower() for label in t.labels)
        ]

    # --- Attachments ---

    def add_attachment(self, ticket_id: str, path: str | Path) -> TicketResponse | None:
        """Attach a file to a ticket; None if the ticket is not found locally.

        Only metadata is stored. The URL is a file:// URI of the source file,
        valid only as long as that file stays where it is.
        """
        path = Path(path).resolve()
        mime_type, _ = mimetypes.guess_type(path.name)
        data = AttachmentCreate(
            name=path.name,
            size=path.stat().st_size,
            type=mime_type or "application/octet-stream",
            url=path.as_uri(),
        )

        def remote(api: TicketApiClient) -> TicketResponse:
            ticket = api.add_attachment(ticket_id, data)
            self._cache_ticket(ticket)
            return ticket

        def local() -> TicketResponse | None:
            attachment = AttachmentResponse(id=_new_id(), uploaded_at=_now(), **data.model_dump())
            return self._modify_local_attachments(
                ticket_id, lambda attachments: [*attachments, attachment]
            )

        return self._with_fallback("add_attachment", remote, local)

    def remove_attachment(self, ticket_id: str, attachment_id: str) -> TicketResponse | None:
        """Remove an attachment; None if the ticket is not found locally."""

        def remote(api: TicketApiClient) -> TicketResponse:
            ticket = api.remove_attachment(ticket_id, attachment_id)
            self._cache_ticket(ticket)
            return ticket

        def local() -> TicketResponse | None:
            return self._modify_local_attachments(
                ticket_id, lambda attachments: [a for a in attachments if a.id != attachment_id]
            )

        return self._with_fallback("remove_attachment", remote, local)

    def _modify_local_attachments(
        self,
        ticket_id: str,
        change: Callable[[list[AttachmentResponse]], list[AttachmentResponse]],
    ) -> TicketResponse | None:
        tickets = self.local_store.load_tickets()
        index = next((i for i, t in enumerate(tickets) if t.id == ticket_id), None)
        if index is None:
            return None
        current = tickets[index]
        updated = current.model_copy(
            update={
                "attachments": change(list(current.attachments)),
                "updated_at": _now(),
                "version": current.version + 1,
            }
        )
        tickets[index] = updated
        self.local_store.save_tickets(tickets)
        return updated

    # --- Users ---

    def list_users(self) -> list[UserResponse]:
        """All users; the cached (or demo) users when the API is unavailable."""

        def remote(api: TicketApiClient) -> list[UserResponse]:
            users = api.list_users()
            self.local_store.save_users(users)
            return users

        return self._with_fallback("list_users", remote, self.local_store.load_users)
