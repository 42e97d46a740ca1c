"""TicketStore - Main API for ticket store operations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ticketboard.store.database import Database
from ticketboard.store.exceptions import (
    AttachmentNotFoundError,
    TicketNotFoundError,
    TicketVersionConflictError,
    UserExistsError,
    UserNotFoundError,
)
from ticketboard.store.models import (
    SYSTEM_USER_EMAIL,
    SYSTEM_USER_NAME,
    Attachment,
    Label,
    Ticket,
    TicketPriority,
    TicketStatus,
    TicketType,
    User,
    utcnow,
)

logger = logging.getLogger("ticketboard.store")


class _Unset:
    """Marker for 'argument not provided' where None is a meaningful value."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def _ticket_query() -> Any:
    """Select tickets with every related row loaded eagerly."""
    return select(Ticket).options(
        selectinload(Ticket.assignee),
        selectinload(Ticket.reporter),
        selectinload(Ticket.labels),
        selectinload(Ticket.attachments),
    )


def _unique_labels(labels: list[str]) -> list[str]:
    """Strip names and drop blanks and duplicates, keeping first occurrence order."""
    seen: dict[str, None] = {}
    for label in labels:
        name = label.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


class TicketStore:
    """Main API for ticket store operations.

    Provides CRUD operations for Users, Tickets, Labels and Attachments.
    Every ticket returned has its assignee, reporter, labels and
    attachments loaded.
    """

    def __init__(self, database: Database) -> None:
        """Initialize the store on an injected Database.

        Creates tables if they don't exist.

        Args:
            database: Connection manager owned by the caller
        """
        self._db = database
        self._db.create_tables()

    @property
    def database(self) -> Database:
        """The underlying Database."""
        return self._db

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- User Operations ---

    def create_user(self, name: str, email: str, avatar: str | None = None) -> User:
        """Create a new user.

        Args:
            name: Display name
            email: Unique email address
            avatar: Optional avatar URL

        Returns:
            Created User with generated ID

        Raises:
            UserExistsError: If a user with the same email already exists
        """
        session = self._db.get_session()
        try:
            user = User(name=name, email=email, avatar=avatar)
            session.add(user)
            session.commit()
            return user
        except IntegrityError as e:
            session.rollback()
            raise UserExistsError(f"User with email '{email}' already exists") from e
        finally:
            session.close()

    def upsert_user(self, name: str, email: str, avatar: str | None = None) -> User:
        """Return the user with this email, creating it if missing."""
        session = self._db.get_session()
        try:
            user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if user is None:
                user = User(name=name, email=email, avatar=avatar)
                session.add(user)
                session.commit()
            return user
        finally:
            session.close()

    def get_user(self, user_id: str) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        session = self._db.get_session()
        try:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")
            return user
        finally:
            session.close()

    def list_users(self) -> list[User]:
        """List all users, ordered by name."""
        session = self._db.get_session()
        try:
            result = session.execute(select(User).order_by(User.name))
            return list(result.scalars().all())
        finally:
            session.close()

    def count_users(self) -> int:
        """Number of users in the store."""
        session = self._db.get_session()
        try:
            return int(session.execute(select(func.count(User.id))).scalar_one())
        finally:
            session.close()

    def _default_reporter(self, session: Session) -> User:
        """Earliest-created user, or a persisted system user when there is none."""
        stmt = select(User).order_by(User.created_at, User.name).limit(1)
        reporter = session.execute(stmt).scalar_one_or_none()
        if reporter is not None:
            return reporter

        stmt = select(User).where(User.email == SYSTEM_USER_EMAIL)
        reporter = session.execute(stmt).scalar_one_or_none()
        if reporter is None:
            reporter = User(name=SYSTEM_USER_NAME, email=SYSTEM_USER_EMAIL)
            session.add(reporter)
            session.commit()
            logger.info("Created default reporter %s", reporter.id)
        return reporter

    # --- Ticket Operations ---

    def _load_ticket(self, session: Session, ticket_id: str) -> Ticket:
        stmt = _ticket_query().where(Ticket.id == ticket_id)
        stmt = stmt.execution_options(populate_existing=True)
        ticket = session.execute(stmt).scalar_one_or_none()
        if ticket is None:
            raise TicketNotFoundError(f"Ticket with id '{ticket_id}' not found")
        return ticket

    def _check_user(self, session: Session, user_id: str) -> None:
        if session.get(User, user_id) is None:
            raise UserNotFoundError(f"User with id '{user_id}' not found")

    def create_ticket(
        self,
        title: str,
        description: str,
        priority: TicketPriority = TicketPriority.MEDIUM,
        type: TicketType = TicketType.TASK,
        assignee_id: str | None = None,
        due_date: datetime | None = None,
        labels: list[str] | None = None,
        reporter_id: str | None = None,
    ) -> Ticket:
        """Create a new ticket in the To Do column.

        The ticket row and its labels are written in separate commits, so a
        failure while inserting labels leaves the ticket without them.

        Args:
            title: Ticket title
            description: Ticket description
            priority: Ticket priority
            type: Ticket type
            assignee_id: Assigned user (optional)
            due_date: Due date (optional)
            labels: Label names (optional)
            reporter_id: Reporting user; defaults to the first user or a system user

        Returns:
            Created Ticket with related rows loaded

        Raises:
            UserNotFoundError: If the assignee or reporter doesn't exist
        """
        session = self._db.get_session()
        try:
            if reporter_id is None:
                reporter_id = self._default_reporter(session).id
            else:
                self._check_user(session, reporter_id)
            if assignee_id:
                self._check_user(session, assignee_id)

            ticket = Ticket(
                title=title,
                description=description,
                reporter_id=reporter_id,
                priority=TicketPriority(priority).value,
                type=TicketType(type).value,
                assignee_id=assignee_id or None,
                due_date=due_date,
            )
            session.add(ticket)
            session.commit()

            names = _unique_labels(labels or [])
            if names:
                session.add_all(Label(name=name, ticket_id=ticket.id) for name in names)
                session.commit()

            return self._load_ticket(session, ticket.id)
        finally:
            session.close()

    def get_ticket(self, ticket_id: str) -> Ticket:
        """Get ticket by ID.

        Raises:
            TicketNotFoundError: If ticket doesn't exist
        """
        session = self._db.get_session()
        try:
            return self._load_ticket(session, ticket_id)
        finally:
            session.close()

    def list_tickets(self, status: TicketStatus | None = None) -> list[Ticket]:
        """List tickets, most recently created first.

        Args:
            status: Filter by status (optional)
        """
        session = self._db.get_session()
        try:
            stmt = _ticket_query()
            if status is not None:
                stmt = stmt.where(Ticket.status == status.value)
            stmt = stmt.order_by(Ticket.created_at.desc())
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def count_tickets(self) -> int:
        """Number of tickets in the store."""
        session = self._db.get_session()
        try:
            return int(session.execute(select(func.count(Ticket.id))).scalar_one())
        finally:
            session.close()

    def update_ticket(
        self,
        ticket_id: str,
        title: str | None = None,
        description: str | None = None,
        status: TicketStatus | None = None,
        priority: TicketPriority | None = None,
        type: TicketType | None = None,
        assignee_id: str | None = UNSET,
        due_date: datetime | None = None,
        labels: list[str] | None = None,
        expected_version: int | None = None,
    ) -> Ticket:
        """Update ticket fields. Only provided fields are updated.

        Labels are replaced as a whole: names missing from ``labels`` are
        deleted, new names are created. ``assignee_id=None`` (or "") clears
        the assignee; leaving it unset keeps the current one. Without
        ``expected_version`` the last write wins.

        Returns:
            The updated Ticket

        Raises:
            TicketNotFoundError: If ticket doesn't exist
            UserNotFoundError: If the new assignee doesn't exist
            TicketVersionConflictError: If expected_version doesn't match
        """
        session = self._db.get_session()
        try:
            ticket = self._load_ticket(session, ticket_id)

            if expected_version is not None and expected_version != ticket.version:
                raise TicketVersionConflictError(ticket_id, expected_version, ticket.version)

            if title:
                ticket.title = title
            if description:
                ticket.description = description
            if status is not None:
                ticket.status = TicketStatus(status).value
            if priority is not None:
                ticket.priority = TicketPriority(priority).value
            if type is not None:
                ticket.type = TicketType(type).value
            if assignee_id is not UNSET:
                if assignee_id:
                    self._check_user(session, assignee_id)
                ticket.assignee_id = assignee_id or None
            if due_date is not None:
                ticket.due_date = due_date
            if labels is not None:
                names = _unique_labels(labels)
                for label in list(ticket.labels):
                    if label.name not in names:
                        ticket.labels.remove(label)
                existing = set(ticket.label_names)
                for name in names:
                    if name not in existing:
                        ticket.labels.append(Label(name=name))

            ticket.version += 1
            ticket.updated_at = utcnow()
            session.commit()
            return self._load_ticket(session, ticket_id)
        finally:
            session.close()

    def delete_ticket(self, ticket_id: str) -> None:
        """Delete a ticket with its labels and attachments.

        Raises:
            TicketNotFoundError: If ticket doesn't exist
        """
        session = self._db.get_session()
        try:
            ticket = self._load_ticket(session, ticket_id)
            session.delete(ticket)
            session.commit()
        finally:
            session.close()

    # --- Attachment Operations ---

    def add_attachment(
        self,
        ticket_id: str,
        name: str,
        size: int,
        type: str,
        url: str,
    ) -> Ticket:
        """Record attachment metadata on a ticket.

        Returns:
            The updated Ticket

        Raises:
            TicketNotFoundError: If ticket doesn't exist
        """
        session = self._db.get_session()
        try:
            ticket = self._load_ticket(session, ticket_id)
            ticket.attachments.append(
                Attachment(name=name, size=size, type=type, url=url, ticket_id=ticket_id)
            )
            ticket.version += 1
            ticket.updated_at = utcnow()
            session.commit()
            return self._load_ticket(session, ticket_id)
        finally:
            session.close()

    def remove_attachment(self, ticket_id: str, attachment_id: str) -> Ticket:
        """Remove an attachment from a ticket.

        Returns:
            The updated Ticket

        Raises:
            TicketNotFoundError: If ticket doesn't exist
            AttachmentNotFoundError: If the ticket has no such attachment
        """
        session = self._db.get_session()
        try:
            ticket = self._load_ticket(session, ticket_id)
            attachment = next((a for a in ticket.attachments if a.id == attachment_id), None)
            if attachment is None:
                raise AttachmentNotFoundError(
                    f"Attachment '{attachment_id}' not found on ticket '{ticket_id}'"
                )
            ticket.attachments.remove(attachment)
            ticket.version += 1
            ticket.updated_at = utcnow()
            session.commit()
            return self._load_ticket(session, ticket_id)
        finally:
            session.close()
