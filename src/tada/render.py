"""Renderers for task listings, headings and notices."""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
import json
from typing import Iterable, Sequence

from . import metrics
from .models import Importance, Task, TodoValidationError

MIN_WIDTH = 48
DEFAULT_WIDTH = 100
UNKNOWN_DATE = "????-??-??"
NO_DATE = " " * len(UNKNOWN_DATE)

Sections = Sequence[tuple[str | None, Sequence[Task]]]


@dataclass(slots=True)
class LineOptions:
    width: int = DEFAULT_WIDTH
    show_finished: bool = False
    show_created: bool = False
    show_lines: bool = False
    number_digits: int = 1

    def __post_init__(self) -> None:
        if self.width < MIN_WIDTH:
            raise TodoValidationError(f"max width must be at least {MIN_WIDTH}")


def digits_for(line_count: int) -> int:
    return len(str(max(line_count, 1)))


def _truncate(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width == 1:
        return "…"
    return f"{value[: width - 1]}…"


def _priority_style(task: Task) -> str:
    return {
        Importance.A: "bold red",
        Importance.B: "bold yellow",
        Importance.C: "bold green",
        Importance.NONE: "",
    }.get(metrics.importance(task), "bold")


def _prefix_parts(task: Task, options: LineOptions) -> list[str]:
    parts = ["x " if task.completed else "  "]
    parts.append(f"({task.priority}) " if task.priority else "(?) ")
    if options.show_finished:
        if task.completed and task.completion_date is not None:
            parts.append(f"{task.completion_date.isoformat()} ")
        elif task.completed:
            parts.append(f"{UNKNOWN_DATE} ")
        else:
            parts.append(f"{NO_DATE} ")
    if options.show_created:
        created = task.creation_date.isoformat() if task.creation_date else UNKNOWN_DATE
        parts.append(f"{created} ")
    if options.show_lines:
        parts.append(f"#{task.line_number:0{options.number_digits}d} ")
    return parts


def render_task_plain(task: Task, options: LineOptions) -> str:
    prefix = "".join(_prefix_parts(task, options))
    return prefix + _truncate(task.description, options.width - len(prefix))


def render_task_rich(task: Task, options: LineOptions, today: dt.date):
    from rich.text import Text

    parts = _prefix_parts(task, options)
    prefix_len = sum(len(part) for part in parts)
    text = Text(parts[0])
    if task.priority:
        text.append("(")
        text.append(task.priority, style=_priority_style(task))
        text.append(") ")
    else:
        text.append(parts[1])
    for part in parts[2:]:
        text.append(part)
    text.append(_truncate(task.description, options.width - prefix_len))
    if task.completed or not metrics.is_active(task, today):
        text.stylize("dim")
    return text


def render_heading_plain(label: str) -> str:
    return f"# {label}"


def render_heading_rich(label: str):
    from rich.text import Text

    return Text(f"# {label}", style="bold bright_white")


def render_notice_rich(message: str):
    from rich.text import Text

    return Text(message, style="magenta")


def render_listing_plain(sections: Sections, options: LineOptions) -> str:
    lines: list[str] = []
    for label, tasks in sections:
        if label is not None:
            lines.append(render_heading_plain(label))
        lines.extend(render_task_plain(task, options) for task in tasks)
        if label is not None:
            lines.append("")
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def render_listing_rich(sections: Sections, options: LineOptions, today: dt.date):
    from rich.console import Group
    from rich.text import Text

    renderables = []
    for label, tasks in sections:
        if label is not None:
            renderables.append(render_heading_rich(label))
        renderables.extend(render_task_rich(task, options, today) for task in tasks)
        if label is not None:
            renderables.append(Text(""))

    if renderables and isinstance(renderables[-1], Text) and not renderables[-1].plain:
        renderables.pop()

    return Group(*renderables)


def _task_payload(task: Task, today: dt.date, size_policy: str) -> dict[str, object]:
    def iso(value: dt.date | None) -> str | None:
        return value.isoformat() if value else None

    item: dict[str, object] = {
        "line": task.line_number,
        "completed": task.completed,
        "priority": task.priority,
        "completion_date": iso(task.completion_date),
        "creation_date": iso(task.creation_date),
        "due_date": iso(task.due_date),
        "start_date": iso(task.start_date),
        "description": task.description,
        "projects": task.projects,
        "contexts": task.contexts,
        "tags": task.key_values,
    }
    item.update(metrics.metrics_for(task, today, size_policy))
    return item


def render_tasks_json(
    sections: Sections | Iterable[Task],
    today: dt.date,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> str:
    """Flat list of tasks; grouped input gains a ``group`` field per task."""
    payload = []
    for entry in sections:
        if isinstance(entry, Task):
            payload.append(_task_payload(entry, today, size_policy))
            continue
        label, tasks = entry
        for task in tasks:
            item = _task_payload(task, today, size_policy)
            if label is not None:
                item["group"] = label
            payload.append(item)
    return json.dumps(payload, indent=2)
