"""Custom exceptions for the ticket store."""


class StoreError(Exception):
    """Base exception for ticket store errors."""


class StoreUnavailableError(StoreError):
    """No database is configured or reachable."""


class TicketNotFoundError(StoreError):
    """Ticket with given ID does not exist."""


class UserNotFoundError(StoreError):
    """User with given ID does not exist."""


class UserExistsError(StoreError):
    """User with given email already exists."""


class AttachmentNotFoundError(StoreError):
    """Attachment with given ID does not exist on the ticket."""


class TicketVersionConflictError(StoreError):
    """Ticket was modified since the version the caller last saw."""

    def __init__(self, ticket_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Ticket '{ticket_id}' is at version {actual}, update expected version {expected}"
        )
        self.ticket_id = ticket_id
        self.expected = expected
        self.actual = actual
