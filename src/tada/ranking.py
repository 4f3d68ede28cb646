"""Sort orders and grouping for task listings."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Callable, Iterable

from . import metrics
from .models import Importance, Task, TodoValidationError, Urgency


class SortOrder(str, Enum):
    SMART = "smart"
    URGENCY = "urgency"
    IMPORTANCE = "importance"
    SIZE = "size"
    ALPHA = "alpha"
    DUE = "due"
    ORIG = "orig"

    @classmethod
    def parse(cls, text: str) -> "SortOrder":
        key = text.strip().lower()
        found = SORT_ALIASES.get(key)
        if found is None:
            allowed = ", ".join(order.value for order in cls)
            raise TodoValidationError(f"Invalid sort order '{text}'. Expected one of: {allowed}")
        return found


SORT_ALIASES: dict[str, SortOrder] = {
    "smart": SortOrder.SMART,
    "urgency": SortOrder.URGENCY,
    "urgent": SortOrder.URGENCY,
    "urg": SortOrder.URGENCY,
    "importance": SortOrder.IMPORTANCE,
    "important": SortOrder.IMPORTANCE,
    "import": SortOrder.IMPORTANCE,
    "imp": SortOrder.IMPORTANCE,
    "size": SortOrder.SIZE,
    "tshirt": SortOrder.SIZE,
    "tshirtsize": SortOrder.SIZE,
    "quick": SortOrder.SIZE,
    "alpha": SortOrder.ALPHA,
    "alphabet": SortOrder.ALPHA,
    "alphabetical": SortOrder.ALPHA,
    "due": SortOrder.DUE,
    "due-date": SortOrder.DUE,
    "duedate": SortOrder.DUE,
    "orig": SortOrder.ORIG,
    "original": SortOrder.ORIG,
}


class GroupBy(str, Enum):
    IMPORTANCE = "importance"
    URGENCY = "urgency"
    SIZE = "size"


def smart_key(task: Task, today: dt.date, size_policy: str = metrics.DEFAULT_SIZE_POLICY) -> tuple[int, ...]:
    """Eisenhower-style key: important-and-urgent first, then either, then neither."""
    important = metrics.is_important(task, Importance.B)
    urgent = metrics.is_urgent(task, today, Urgency.SOON)
    quadrant = 2 - int(important) - int(urgent)
    return (
        quadrant,
        int(metrics.urgency(task, today)),
        int(metrics.importance(task)),
        int(metrics.size(task, size_policy)),
        task.line_index,
    )


def sort_key(
    order: SortOrder,
    today: dt.date,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> Callable[[Task], Any]:
    if order is SortOrder.SMART:
        return lambda task: smart_key(task, today, size_policy)
    if order is SortOrder.URGENCY:
        return lambda task: metrics.urgency_key(task, today)
    if order is SortOrder.IMPORTANCE:
        return metrics.importance
    if order is SortOrder.SIZE:
        return lambda task: metrics.size(task, size_policy)
    if order is SortOrder.ALPHA:
        return lambda task: task.description.casefold()
    if order is SortOrder.DUE:
        return lambda task: (task.due_date is None, task.due_date or dt.date.min)
    return lambda task: task.line_index


def order(
    tasks: Iterable[Task],
    key: SortOrder,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[Task]:
    """Stable sort; ties keep their incoming order."""
    return sorted(tasks, key=sort_key(key, today, size_policy))


def _bucket(by: GroupBy, today: dt.date, size_policy: str) -> Callable[[Task], Any]:
    if by is GroupBy.IMPORTANCE:
        return metrics.importance
    if by is GroupBy.URGENCY:
        return lambda task: metrics.urgency(task, today)
    return lambda task: metrics.size(task, size_policy)


def group(
    tasks: Iterable[Task],
    by: GroupBy,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[tuple[str, list[Task]]]:
    """Partition an already sorted sequence into labelled buckets in tier order."""
    tier_of = _bucket(by, today, size_policy)
    buckets: dict[Any, list[Task]] = {}
    for task in tasks:
        buckets.setdefault(tier_of(task), []).append(task)
    return [(tier.label, buckets[tier]) for tier in sorted(buckets)]
