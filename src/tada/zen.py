"""Automatic rescheduling of overdue tasks."""

from __future__ import annotations

import datetime as dt
import random
from typing import Iterable

from . import dates, metrics
from .models import Importance, Task, TshirtSize, Urgency
from .todotxt import set_tag_value

CALENDAR_BOUND_CONTEXTS = ("work", "school")

ZEN_QUOTES = (
    "The nearer a man comes to a calm mind, the closer he is to strength.",
    "A samurai must remain calm at all times even in the face of danger.",
    "Those who are free of resentful thoughts surely find peace.",
    "You are the sky. Everything else is just the weather.",
    "The pursuit, even of the best things, ought to be calm and tranquil.",
    "We think a happy life consists in tranquility of mind.",
    "I never lose; either win or learn.",
    "The noonday quiet holds the hill.",
    "No snowflake ever falls in the wrong place.",
    "When you reach the top of the mountain, keep climbing.",
)


def is_overdue(task: Task, today: dt.date) -> bool:
    due = task.due_date
    return not task.completed and due is not None and due < today


def tier(
    task: Task,
    *,
    small: TshirtSize = TshirtSize.SMALL,
    important: Importance = Importance.B,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> int:
    """1 for small and important tasks, 2 for exactly one of those, 3 for neither."""
    hits = int(metrics.is_small(task, small, size_policy)) + int(metrics.is_important(task, important))
    return 3 - hits


def tier_date(rank: int, today: dt.date) -> dt.date:
    if rank == 1:
        return dates.soon(today)
    if rank == 2:
        return dates.end_of_next_week(today)
    return dates.end_of_next_month(today)


def adjust_for_calendar(task: Task, day: dt.date) -> dt.date:
    """Work and school tasks never fall due on a weekend."""
    if any(task.has_context(name) for name in CALENDAR_BOUND_CONTEXTS):
        return dates.skip_weekend(day)
    return day


def with_urgency(task: Task, urgency: Urgency, today: dt.date) -> Task:
    """Set the ``due:`` tag so the task lands in the given urgency tier."""
    due = dates.date_for_urgency(urgency, today)
    if due is None:
        return task
    if urgency > Urgency.TODAY:
        due = adjust_for_calendar(task, due)
    return set_tag_value(task, "due", due.isoformat())


def reschedule(
    tasks: Iterable[Task],
    today: dt.date,
    *,
    small: TshirtSize = TshirtSize.SMALL,
    important: Importance = Importance.B,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[tuple[Task, Task]]:
    """Return ``(before, after)`` pairs for every overdue task given a new due date."""
    changes: list[tuple[Task, Task]] = []
    for task in tasks:
        if not is_overdue(task, today):
            continue
        rank = tier(task, small=small, important=important, size_policy=size_policy)
        due = adjust_for_calendar(task, tier_date(rank, today))
        changes.append((task, set_tag_value(task, "due", due.isoformat())))
    return changes


def zen_quote(rng: random.Random | None = None) -> str:
    chooser = rng if rng is not None else random
    return chooser.choice(ZEN_QUOTES)
