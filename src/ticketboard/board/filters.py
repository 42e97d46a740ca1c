"""Client-side ticket filtering."""

from __future__ import annotations

from dataclasses import dataclass

from ticketboard.api.models import TicketResponse
from ticketboard.store.models import TicketPriority


@dataclass(frozen=True)
class TicketFilter:
    """Conjunctive filter over the in-memory ticket set.

    Empty criteria match everything.

    Attributes:
        search: Case-insensitive substring of title, description or any label.
        assignee_id: Exact assignee ID.
        priority: Exact priority.
    """

    search: str = ""
    assignee_id: str | None = None
    priority: TicketPriority | None = None

    @property
    def is_empty(self) -> bool:
        return not self.search and self.assignee_id is None and self.priority is None

    def matches(self, ticket: TicketResponse) -> bool:
        """Whether a ticket passes every criterion."""
        if self.search:
            needle = self.search.lower()
            if not (
                needle in ticket.title.lower()
                or needle in ticket.description.lower()
                or any(needle in label.lower() for label in ticket.labels)
            ):
                return False
        if self.assignee_id is not None:
            if ticket.assignee is None or ticket.assignee.id != self.assignee_id:
                return False
        if self.priority is not None and ticket.priority != self.priority:
            return False
        return True

    def apply(self, tickets: list[TicketResponse]) -> list[TicketResponse]:
        """Tickets that match, in their original order."""
        return [ticket for ticket in tickets if self.matches(ticket)]
