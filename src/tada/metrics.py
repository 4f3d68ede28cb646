"""Derived task metrics: importance, urgency and t-shirt size."""

from __future__ import annotations

import datetime as dt
import math
from typing import Any

from . import dates
from .models import Importance, Task, TodoValidationError, TshirtSize, Urgency

SIZE_POLICIES = {
    "unspecified": TshirtSize.UNSPECIFIED,
    "small": TshirtSize.SMALL,
    "medium": TshirtSize.MEDIUM,
    "large": TshirtSize.LARGE,
}
DEFAULT_SIZE_POLICY = "unspecified"


def size_for_policy(policy: str) -> TshirtSize:
    try:
        return SIZE_POLICIES[policy]
    except KeyError:
        allowed = ", ".join(SIZE_POLICIES)
        raise TodoValidationError(f"Unknown size policy '{policy}'. Expected one of: {allowed}") from None


def importance(task: Task) -> Importance:
    return Importance.from_priority(task.priority)


def size(task: Task, policy: str = DEFAULT_SIZE_POLICY) -> TshirtSize:
    found = task.size
    if found is None:
        return size_for_policy(policy)
    return found


def urgency(task: Task, today: dt.date) -> Urgency:
    due = task.due_date
    if due is None:
        return Urgency.NONE
    if due < today:
        return Urgency.OVERDUE
    if due == today:
        return Urgency.TODAY
    if due <= dates.soon(today):
        return Urgency.SOON
    if due <= dates.end_of_week(today):
        return Urgency.THIS_WEEK
    if due <= dates.end_of_next_week(today):
        return Urgency.NEXT_WEEK
    if due <= dates.end_of_next_month(today):
        return Urgency.NEXT_MONTH
    return Urgency.LATER


def urgency_key(task: Task, today: dt.date) -> float:
    """Days until due; smaller is more urgent and tasks without a due date sort last."""
    due = task.due_date
    if due is None:
        return math.inf
    return float((due - today).days)


def is_active(task: Task, today: dt.date) -> bool:
    start = task.start_date
    return start is None or start <= today


def is_important(task: Task, threshold: Importance = Importance.B) -> bool:
    return importance(task) <= threshold


def is_urgent(task: Task, today: dt.date, threshold: Urgency = Urgency.SOON) -> bool:
    return urgency(task, today) <= threshold


def is_small(
    task: Task,
    threshold: TshirtSize = TshirtSize.SMALL,
    policy: str = DEFAULT_SIZE_POLICY,
) -> bool:
    return size(task, policy) <= threshold


def metrics_for(task: Task, today: dt.date, policy: str = DEFAULT_SIZE_POLICY) -> dict[str, Any]:
    imp = importance(task)
    urg = urgency(task, today)
    tshirt = size(task, policy)
    return {
        "importance": imp.name if imp is not Importance.NONE else None,
        "importance_label": imp.label,
        "urgency": urg.name.lower(),
        "urgency_label": urg.label,
        "size": tshirt.name.lower(),
        "size_label": tshirt.label,
        "active": is_active(task, today),
    }
