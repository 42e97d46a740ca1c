"""TicketBoard - in-memory board state with optimistic status changes."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ticketboard.api.models import TicketCreate, TicketResponse, TicketUpdate, UserResponse
from ticketboard.board.filters import TicketFilter
from ticketboard.board.forms import TicketForm
from ticketboard.store.models import TicketStatus

if TYPE_CHECKING:
    from ticketboard.client import TicketService

logger = logging.getLogger("ticketboard.board")

# Display order of the board columns
COLUMNS: tuple[TicketStatus, ...] = (
    TicketStatus.TO_DO,
    TicketStatus.IN_PROGRESS,
    TicketStatus.IN_REVIEW,
    TicketStatus.DONE,
)


@dataclass(frozen=True)
class StatusChange:
    """An optimistic status change awaiting the server's answer.

    Attributes:
        ticket_id: Ticket being moved.
        previous: Status shown before the change; restored on failure.
        target: Status applied optimistically.
        token: In-flight token; only the latest token per ticket may settle.
    """

    ticket_id: str
    previous: TicketStatus
    target: TicketStatus
    token: int


@dataclass(frozen=True)
class ColumnStats:
    """Ticket count of a column (after filtering) against the board total."""

    count: int
    total: int


class TicketBoard:
    """Tickets grouped by status column.

    Status changes are optimistic: the new status is shown at once and the
    update is sent afterwards. A failed update reverts the ticket to the
    status it had before the change. Each change takes a per-ticket token;
    when a newer change on the same ticket has started, the older one's
    completion (success or revert) is ignored, so the last intent wins.
    """

    def __init__(self, service: TicketService) -> None:
        """Initialize the board.

        Args:
            service: Data-access service used for every read and write.
        """
        self.service = service
        self._tickets: list[TicketResponse] = []
        self._users: list[UserResponse] = []
        self._in_flight: dict[str, int] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def tickets(self) -> list[TicketResponse]:
        with self._lock:
            return list(self._tickets)

    @property
    def users(self) -> list[UserResponse]:
        with self._lock:
            return list(self._users)

    def load(self) -> None:
        """Reload tickets and users from the service."""
        tickets = self.service.list_tickets()
        users = self.service.list_users()
        with self._lock:
            self._tickets = tickets
            self._users = users
            self._in_flight.clear()
        logger.info("Loaded %d tickets and %d users", len(tickets), len(users))

    def get(self, ticket_id: str) -> TicketResponse | None:
        with self._lock:
            return self._find(ticket_id)

    def _find(self, ticket_id: str) -> TicketResponse | None:
        return next((t for t in self._tickets if t.id == ticket_id), None)

    def _replace(self, ticket: TicketResponse) -> None:
        self._tickets = [ticket if t.id == ticket.id else t for t in self._tickets]

    # --- Views ---

    def visible_tickets(self, ticket_filter: TicketFilter | None = None) -> list[TicketResponse]:
        """Tickets passing the filter, recomputed from the full set."""
        tickets = self.tickets
        return ticket_filter.apply(tickets) if ticket_filter is not None else tickets

    def columns(
        self, ticket_filter: TicketFilter | None = None
    ) -> dict[TicketStatus, list[TicketResponse]]:
        """Filtered tickets grouped by status, in column display order."""
        grouped: dict[TicketStatus, list[TicketResponse]] = {status: [] for status in COLUMNS}
        for ticket in self.visible_tickets(ticket_filter):
            grouped[ticket.status].append(ticket)
        return grouped

    def column_stats(
        self, status: TicketStatus, ticket_filter: TicketFilter | None = None
    ) -> ColumnStats:
        visible = self.columns(ticket_filter)[status]
        return ColumnStats(count=len(visible), total=len(self.tickets))

    # --- Status changes ---

    def begin_status_change(self, ticket_id: str, target: TicketStatus) -> StatusChange | None:
        """Apply a status optimistically and take an in-flight token.

        Returns:
            The pending change, or None if the ticket is unknown or already in ``target``.
        """
        with self._lock:
            ticket = self._find(ticket_id)
            if ticket is None or ticket.status == target:
                return None
            token = next(self._tokens)
            self._in_flight[ticket_id] = token
            self._replace(ticket.model_copy(update={"status": target}))
            return StatusChange(ticket_id, ticket.status, target, token)

    def settle_status_change(self, change: StatusChange, result: TicketResponse | None) -> bool:
        """Reconcile a pending change with the update's outcome.

        Args:
            change: The change returned by begin_status_change.
            result: The updated ticket, or None if the update failed.

        Returns:
            False if the change was superseded by a newer one and ignored.
        """
        with self._lock:
            if self._in_flight.get(change.ticket_id) != change.token:
                logger.debug(
                    "Ignoring stale status change %d for ticket %s", change.token, change.ticket_id
                )
                return False
            del self._in_flight[change.ticket_id]

            ticket = self._find(change.ticket_id)
            if ticket is None:
                return True
            if result is None:
                logger.warning(
                    "Reverting ticket %s from %s to %s",
                    change.ticket_id,
                    change.target,
                    change.previous,
                )
                self._replace(ticket.model_copy(update={"status": change.previous}))
            else:
                self._replace(result)
            return True

    def change_status(self, ticket_id: str, target: TicketStatus) -> bool:
        """Move a ticket to another status with an optimistic update.

        Returns:
            True if the update went through, False on no-op or failure.
        """
        change = self.begin_status_change(ticket_id, target)
        if change is None:
            return False

        result: TicketResponse | None
        try:
            result = self.service.update_ticket(ticket_id, TicketUpdate(status=target))
        except Exception as e:
            logger.exception("Error updating ticket status %s: %s", ticket_id, e)
            result = None

        self.settle_status_change(change, result)
        return result is not None

    def drop(self, ticket_id: str, column: TicketStatus | None) -> bool:
        """Finish a drag: dropping outside a column or onto the current one does nothing."""
        if column is None:
            return False
        return self.change_status(ticket_id, column)

    # --- Create / edit / delete ---

    def create_ticket(self, form: TicketForm) -> TicketResponse:
        """Validate the form and create the ticket.

        Raises:
            TicketFormError: If the form is invalid; no service call is made.
        """
        ticket = self.service.create_ticket(form.to_create())
        with self._lock:
            self._tickets.append(ticket)
        return ticket

    def save_ticket(self, ticket_id: str, form: TicketForm) -> TicketResponse | None:
        """Validate the edit form and save it; None if the ticket no longer exists.

        Raises:
            TicketFormError: If the form is invalid; no service call is made.
        """
        updated = self.service.update_ticket(ticket_id, form.to_update())
        if updated is not None:
            with self._lock:
                self._replace(updated)
        return updated

    def duplicate_ticket(self, ticket_id: str) -> TicketResponse | None:
        """Create a copy titled "<title> (Copy)"; None if the ticket is unknown."""
        original = self.get(ticket_id)
        if original is None:
            return None
        copy = self.service.create_ticket(
            TicketCreate(
                title=f"{original.title} (Copy)",
                description=original.description,
                priority=original.priority,
                type=original.type,
                assignee_id=original.assignee.id if original.assignee else None,
                due_date=original.due_date,
                labels=list(original.labels),
            )
        )
        with self._lock:
            self._tickets.append(copy)
        return copy

    def delete_ticket(self, ticket_id: str) -> bool:
        """Delete a ticket through the service and drop it from the board."""
        deleted = self.service.delete_ticket(ticket_id)
        if deleted:
            with self._lock:
                self._tickets = [t for t in self._tickets if t.id != ticket_id]
                self._in_flight.pop(ticket_id, None)
        return deleted
