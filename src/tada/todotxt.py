"""Parsing and serialization of todo.txt lines."""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
import re
from typing import Iterable

from .models import Line, LineKind, Task, parse_iso_date

BLANK_RE = re.compile(r"^\s*$")
COMMENT_RE = re.compile(r"^\s*#")
COMPLETED_RE = re.compile(r"^x\s+")
PRIORITY_RE = re.compile(r"^\(([A-Z])\)(?:\s+|$)")
LEADING_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:\s+|$)")


def _take_date(rest: str) -> tuple[dt.date | None, str]:
    match = LEADING_DATE_RE.match(rest)
    if match is None:
        return None, rest
    value = parse_iso_date(match.group(1))
    if value is None:
        return None, rest
    return value, rest[match.end() :]


def _take_dates(rest: str, limit: int) -> tuple[list[dt.date], str]:
    dates: list[dt.date] = []
    while len(dates) < limit:
        value, rest = _take_date(rest)
        if value is None:
            break
        dates.append(value)
    return dates, rest


def is_skipped(text: str) -> bool:
    return bool(BLANK_RE.match(text) or COMMENT_RE.match(text))


def parse_task(text: str, index: int = 0) -> Task | None:
    """Parse one line into a Task, or None for blank and comment lines.

    A completed line may carry up to two leading dates, before or after the
    priority: with two, the first is the completion date and the second the
    creation date; a lone date is the completion date. An open task takes a
    single leading date after its priority as the creation date.
    """
    if is_skipped(text):
        return None

    rest = text.strip()
    completed = False
    match = COMPLETED_RE.match(rest)
    if match is not None:
        completed = True
        rest = rest[match.end() :]

    dates: list[dt.date] = []
    if completed:
        dates, rest = _take_dates(rest, 2)

    priority: str | None = None
    match = PRIORITY_RE.match(rest)
    if match is not None:
        priority = match.group(1)
        rest = rest[match.end() :]

    if completed:
        more, rest = _take_dates(rest, 2 - len(dates))
        dates.extend(more)
        completion_date = dates[0] if dates else None
        creation_date = dates[1] if len(dates) > 1 else None
    else:
        completion_date = None
        creation_date, rest = _take_date(rest)

    return Task(
        description=rest.strip(),
        completed=completed,
        priority=priority,
        completion_date=completion_date,
        creation_date=creation_date,
        line_index=index,
    )


def serialize_task(task: Task) -> str:
    parts: list[str] = []
    if task.completed:
        parts.append("x")
    if task.priority:
        parts.append(f"({task.priority})")
    if task.completed and task.completion_date is not None:
        parts.append(task.completion_date.isoformat())
    if task.creation_date is not None:
        parts.append(task.creation_date.isoformat())
    if task.description:
        parts.append(task.description)
    return " ".join(parts)


def parse_line(text: str, index: int) -> Line:
    text = text.rstrip("\r\n")
    if BLANK_RE.match(text):
        return Line(kind=LineKind.BLANK, text=text, index=index)
    if COMMENT_RE.match(text):
        return Line(kind=LineKind.COMMENT, text=text, index=index)
    return Line(kind=LineKind.TASK, text=text, index=index, task=parse_task(text, index))


def parse_lines(text: str) -> list[Line]:
    return [parse_line(raw, index) for index, raw in enumerate(text.splitlines())]


def line_for_task(task: Task, index: int | None = None) -> Line:
    position = task.line_index if index is None else index
    return Line(
        kind=LineKind.TASK,
        text=serialize_task(task),
        index=position,
        task=replace(task, line_index=position),
    )


def serialize_lines(lines: Iterable[Line]) -> str:
    return "".join(f"{line.text}\n" for line in lines)


def tasks_of(lines: Iterable[Line]) -> list[Task]:
    return [line.task for line in lines if line.kind is LineKind.TASK and line.task is not None]


def set_tag_value(task: Task, key: str, value: str) -> Task:
    """Return a copy whose ``key:`` tag holds ``value``, appending one if absent.

    The last occurrence is rewritten, since that is the one ``key_values`` reads.
    """
    tokens = task.description.split(" ")
    prefix = f"{key}:"
    for position in range(len(tokens) - 1, -1, -1):
        token = tokens[position]
        if token.startswith(prefix) and ":" not in token[len(prefix) :]:
            tokens[position] = f"{prefix}{value}"
            return replace(task, description=" ".join(tokens))
    description = f"{task.description} {prefix}{value}".strip()
    return replace(task, description=description)


def replace_tag_value(task: Task, key: str, value: str) -> Task:
    """Like set_tag_value but leaves the task alone when it has no such tag."""
    if key not in task.key_values:
        return task
    return set_tag_value(task, key, value)
