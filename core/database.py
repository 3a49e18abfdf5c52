# ABOUTME: SQLModel Habit table, SQLite session factory and habit streak rules.
# ABOUTME: get_session yields a session; list_habits seeds the default habits on first use.

import os
from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlmodel import Field, Session, SQLModel, create_engine, select

_db_path = os.environ.get("HABITS_DB_PATH", "habits.db")

DEFAULT_HABITS: list[tuple[str, int]] = [
    ("Reusable Bottle", 3),
    ("Composting", 12),
    ("Cold Wash Only", 0),
]


class Habit(SQLModel, table=True):
    """Tracked eco habit with today's completion flag and a running streak."""

    __tablename__ = "habits"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    completed: bool = False
    streak: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_engine = create_engine(
    f"sqlite:///{_db_path}",
    connect_args={"check_same_thread": False},
)


def init_db() -> None:
    """Create all tables if they do not exist."""
    SQLModel.metadata.create_all(_engine)


@contextmanager
def get_session():
    """Yield an SQLite session for the default engine."""
    init_db()
    with Session(_engine) as session:
        yield session


def toggle_habit(habit: Habit) -> Habit:
    """Flip completion; completing extends the streak, un-completing shrinks it (never below 0)."""
    habit.completed = not habit.completed
    if habit.completed:
        habit.streak += 1
    else:
        habit.streak = max(0, habit.streak - 1)
    return habit


def list_habits(session: Session) -> list[Habit]:
    """Return habits oldest first, seeding DEFAULT_HABITS into an empty table."""
    habits = list(session.exec(select(Habit).order_by(Habit.created_at)))
    if habits:
        return habits
    for name, streak in DEFAULT_HABITS:
        session.add(Habit(name=name, streak=streak))
    session.commit()
    return list(session.exec(select(Habit).order_by(Habit.created_at)))
