"""Demo users and tickets used to bootstrap an empty store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from ticketboard.store.models import TicketPriority, TicketStatus, TicketType, utcnow
from ticketboard.store.store import TicketStore

logger = logging.getLogger("ticketboard.store.seed")

# (name, email)
DEMO_USERS: list[tuple[str, str]] = [
    ("John Doe", "john@example.com"),
    ("Jane Smith", "jane@example.com"),
    ("Mike Johnson", "mike@example.com"),
    ("Sarah Wilson", "sarah@example.com"),
]


@dataclass
class DemoTicket:
    """A seeded ticket; users are referenced by index into DEMO_USERS."""

    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    type: TicketType
    assignee: int
    reporter: int
    labels: list[str] = field(default_factory=list)
    due_in_days: int | None = None


DEMO_TICKETS: list[DemoTicket] = [
    DemoTicket(
        title="Fix login bug",
        description=(
            "Users are unable to log in with their credentials. "
            "Need to investigate the authentication flow."
        ),
        status=TicketStatus.TO_DO,
        priority=TicketPriority.HIGH,
        type=TicketType.BUG,
        assignee=0,
        reporter=1,
        labels=["authentication", "critical"],
        due_in_days=7,
    ),
    DemoTicket(
        title="Add dark mode",
        description="Implement dark mode toggle for better user experience.",
        status=TicketStatus.IN_PROGRESS,
        priority=TicketPriority.MEDIUM,
        type=TicketType.FEATURE,
        assignee=2,
        reporter=0,
        labels=["ui", "enhancement"],
    ),
    DemoTicket(
        title="Update documentation",
        description="Update API documentation to reflect recent changes.",
        status=TicketStatus.DONE,
        priority=TicketPriority.LOW,
        type=TicketType.TASK,
        assignee=3,
        reporter=1,
        labels=["documentation"],
    ),
]


@dataclass
class SeedResult:
    """Counts of rows written by seed_demo_data."""

    users: int
    tickets: int


def seed_demo_data(store: TicketStore) -> SeedResult:
    """Upsert the demo users and, if the store has no tickets, the demo tickets.

    Safe to run repeatedly.

    Args:
        store: Target store

    Returns:
        SeedResult with the number of users ensured and tickets created
    """
    users = [store.upsert_user(name=name, email=email) for name, email in DEMO_USERS]

    created = 0
    if store.count_tickets() == 0:
        for demo in DEMO_TICKETS:
            ticket = store.create_ticket(
                title=demo.title,
                description=demo.description,
                priority=demo.priority,
                type=demo.type,
                assignee_id=users[demo.assignee].id,
                reporter_id=users[demo.reporter].id,
                labels=demo.labels,
                due_date=(
                    utcnow() + timedelta(days=demo.due_in_days)
                    if demo.due_in_days is not None
                    else None
                ),
            )
            if demo.status != TicketStatus.TO_DO:
                store.update_ticket(ticket.id, status=demo.status)
            created += 1

    logger.info("Seeded %d users and %d tickets", len(users), created)
    return SeedResult(users=len(users), tickets=created)
