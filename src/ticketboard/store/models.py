"""SQLAlchemy models for the ticket store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class TicketStatus(StrEnum):
    """Board column a ticket sits in. Any status may move to any other."""

    TO_DO = "To Do"
    IN_PROGRESS = "In Progress"
    IN_REVIEW = "In Review"
    DONE = "Done"


class TicketPriority(StrEnum):
    """Ticket priority."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TicketType(StrEnum):
    """Kind of work a ticket tracks."""

    BUG = "Bug"
    FEATURE = "Feature"
    TASK = "Task"
    EPIC = "Epic"
    STORY = "Story"


SYSTEM_USER_NAME = "System User"
SYSTEM_USER_EMAIL = "system@example.com"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """User model - reporters and assignees of tickets."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __init__(
        self,
        name: str,
        email: str,
        id: str | None = None,
        avatar: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.email = email
        self.avatar = avatar

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, name={self.name!r}, email={self.email!r})>"


class Ticket(Base):
    """Ticket model - a unit of tracked work."""

    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    assignee_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reporter_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # Relationships
    assignee: Mapped[User | None] = relationship("User", foreign_keys=[assignee_id])
    reporter: Mapped[User] = relationship("User", foreign_keys=[reporter_id])
    labels: Mapped[list[Label]] = relationship(
        "Label",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="Label.name",
    )
    attachments: Mapped[list[Attachment]] = relationship(
        "Attachment",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="Attachment.uploaded_at",
    )

    def __init__(
        self,
        title: str,
        description: str,
        reporter_id: str,
        id: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        type: str | None = None,
        assignee_id: str | None = None,
        due_date: datetime | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.title = title
        self.description = description
        self.reporter_id = reporter_id
        self.status = status if status is not None else TicketStatus.TO_DO.value
        self.priority = priority if priority is not None else TicketPriority.MEDIUM.value
        self.type = type if type is not None else TicketType.TASK.value
        self.assignee_id = assignee_id
        self.due_date = due_date
        self.version = 1

    @property
    def ticket_status(self) -> TicketStatus:
        """Get status as TicketStatus enum."""
        return TicketStatus(self.status)

    @ticket_status.setter
    def ticket_status(self, value: TicketStatus) -> None:
        """Set status from TicketStatus enum."""
        self.status = value.value

    @property
    def label_names(self) -> list[str]:
        """Names of the ticket's labels."""
        return [label.name for label in self.labels]

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id!r}, title={self.title!r}, status={self.status!r})>"


class Label(Base):
    """Label model - a free-text tag owned by one ticket."""

    __tablename__ = "labels"
    __table_args__ = (UniqueConstraint("name", "ticket_id", name="uq_labels_name_ticket"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    ticket_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )

    ticket: Mapped[Ticket] = relationship("Ticket", back_populates="labels")

    def __init__(self, name: str, ticket_id: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.name = name
        if ticket_id is not None:
            self.ticket_id = ticket_id

    def __repr__(self) -> str:
        return f"<Label(name={self.name!r}, ticket_id={self.ticket_id!r})>"


class Attachment(Base):
    """Attachment model - file metadata; the file itself lives elsewhere."""

    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ticket_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False
    )

    ticket: Mapped[Ticket] = relationship("Ticket", back_populates="attachments")

    def __init__(
        self,
        name: str,
        size: int,
        type: str,
        url: str,
        ticket_id: str,
        id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.size = size
        self.type = type
        self.url = url
        self.ticket_id = ticket_id

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id!r}, name={self.name!r}, ticket_id={self.ticket_id!r})>"
