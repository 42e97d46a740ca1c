"""Create and edit forms for tickets.

Forms validate locally: an invalid submission never reaches the service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ticketboard.api.models import TicketCreate, TicketResponse, TicketUpdate
from ticketboard.store.models import TicketPriority, TicketStatus, TicketType


class TicketFormError(ValueError):
    """Form submission failed validation.

    Attributes:
        errors: Field name -> message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{name}: {message}" for name, message in errors.items()))
        self.errors = errors


@dataclass
class TicketForm:
    """Editable ticket fields, used by both the create and the detail-edit form."""

    title: str = ""
    description: str = ""
    priority: TicketPriority = TicketPriority.MEDIUM
    type: TicketType = TicketType.TASK
    status: TicketStatus | None = None
    assignee_id: str = ""
    due_date: datetime | None = None
    labels: list[str] = field(default_factory=list)

    @classmethod
    def from_ticket(cls, ticket: TicketResponse) -> TicketForm:
        """Pre-fill an edit form from a ticket."""
        return cls(
            title=ticket.title,
            description=ticket.description,
            priority=ticket.priority,
            type=ticket.type,
            status=ticket.status,
            assignee_id=ticket.assignee.id if ticket.assignee else "",
            due_date=ticket.due_date,
            labels=list(ticket.labels),
        )

    def add_label(self, name: str) -> bool:
        """Add a trimmed label; blanks and duplicates are ignored.

        Returns:
            True if the label was added.
        """
        name = name.strip()
        if not name or name in self.labels:
            return False
        self.labels.append(name)
        return True

    def remove_label(self, name: str) -> None:
        self.labels = [label for label in self.labels if label != name]

    def validate(self) -> dict[str, str]:
        """Field errors; empty when the form can be submitted."""
        errors: dict[str, str] = {}
        if not self.title.strip():
            errors["title"] = "Title is required"
        if not self.description.strip():
            errors["description"] = "Description is required"
        return errors

    def _check(self) -> None:
        errors = self.validate()
        if errors:
            raise TicketFormError(errors)

    def to_create(self) -> TicketCreate:
        """Build the create payload.

        Raises:
            TicketFormError: If the form is invalid.
        """
        self._check()
        return TicketCreate(
            title=self.title.strip(),
            description=self.description.strip(),
            priority=self.priority,
            type=self.type,
            assignee_id=self.assignee_id or None,
            due_date=self.due_date,
            labels=list(self.labels),
        )

    def to_update(self, version: int | None = None) -> TicketUpdate:
        """Build the update payload; labels are always sent so removals persist.

        Raises:
            TicketFormError: If the form is invalid.
        """
        self._check()
        fields: dict[str, object] = {
            "title": self.title.strip(),
            "description": self.description.strip(),
            "priority": self.priority,
            "type": self.type,
            "assignee_id": self.assignee_id or None,
            "labels": list(self.labels),
        }
        if self.status is not None:
            fields["status"] = self.status
        if self.due_date is not None:
            fields["due_date"] = self.due_date
        if version is not None:
            fields["version"] = version
        return TicketUpdate.model_validate(fields)
