"""Search terms for find, done, pull and remove."""

from __future__ import annotations

from typing import Iterable, Sequence

from .models import Task, TshirtSize


def _matches_context(task: Task, name: str) -> bool:
    if task.has_context(name):
        return True
    wanted = TshirtSize.from_context(name)
    return wanted is not None and task.size is wanted


def matches(task: Task, term: str) -> bool:
    """Return whether a single term selects the task.

    ``#N`` selects by line number, ``@name`` by context, ``+name`` by project
    and anything else by case-insensitive substring of the description.
    """
    if term.startswith("#") and term[1:].isdigit():
        return task.line_number == int(term[1:])
    if term.startswith("@") and len(term) > 1:
        return _matches_context(task, term[1:])
    if term.startswith("+") and len(term) > 1:
        return task.has_project(term[1:])
    return term.casefold() in task.description.casefold()


def matches_all(task: Task, terms: Sequence[str]) -> bool:
    return all(matches(task, term) for term in terms)


def select(tasks: Iterable[Task], terms: Sequence[str]) -> list[Task]:
    return [task for task in tasks if matches_all(task, terms)]
