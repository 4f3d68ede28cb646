"""Pure operations behind each tada command."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import datetime as dt
import logging
from typing import Callable, Sequence

from . import metrics, ranking, search, zen as zen_rules
from .commands import Add, Archive, Done, Find, Pull, Remove, Show, Tidy, Top, Zen
from .dates import parse_natural_date
from .models import ChangeSet, Line, LineKind, Task, TodoValidationError
from .todotxt import line_for_task, parse_task, set_tag_value, tasks_of

log = logging.getLogger(__name__)

Approve = Callable[[Task], bool]
Warn = Callable[[str], None]

HOUSEKEEPING_THRESHOLD = 9
LONG_DESCRIPTION = 120
SHORT_DESCRIPTION = 30


@dataclass(slots=True)
class Outcome:
    lines: list[Line]
    changes: ChangeSet = field(default_factory=ChangeSet)
    done_lines: list[Line] = field(default_factory=list)


def _approved(approve: Approve | None, task: Task) -> bool:
    return approve is None or approve(task)


def _emit(warn: Warn | None, message: str) -> None:
    if warn is not None:
        warn(message)


def _require_terms(terms: Sequence[str]) -> None:
    if not terms:
        raise TodoValidationError("At least one search term is required")


def show(
    lines: Sequence[Line],
    command: Show,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[tuple[str | None, list[Task]]]:
    ordered = ranking.order(tasks_of(lines), command.sort, today, size_policy=size_policy)
    if command.group_by is None:
        return [(None, ordered)]
    return list(ranking.group(ordered, command.group_by, today, size_policy=size_policy))


def top(
    lines: Sequence[Line],
    command: Top,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[Task]:
    """The first ``count`` open, startable tasks by the selection order."""
    if command.count < 0:
        raise TodoValidationError("count must be zero or more")
    candidates = [
        task for task in tasks_of(lines) if not task.completed and metrics.is_active(task, today)
    ]
    picked = ranking.order(candidates, command.selection, today, size_policy=size_policy)[: command.count]
    if command.sort is None:
        return picked
    return ranking.order(picked, command.sort, today, size_policy=size_policy)


def find(
    lines: Sequence[Line],
    command: Find,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> list[Task]:
    found = search.select(tasks_of(lines), command.terms)
    return ranking.order(found, command.sort, today, size_policy=size_policy)


def fixup(task: Task, today: dt.date, warn: Warn | None = None) -> Task:
    """Rewrite natural-language ``due:``/``start:`` values and hint at missing fields."""
    if not task.priority:
        _emit(warn, "Hint: a task can be given an importance by prefixing it with a parenthesized capital letter, like `(A)`.")

    for slot in ("due", "start"):
        given = task.key_values.get(slot)
        if given is None:
            if slot == "due":
                _emit(warn, "Hint: a task can be given a due date by including `due:YYYY-MM-DD`.")
            continue
        if getattr(task, f"{slot}_date") is not None:
            continue
        parsed = parse_natural_date(given, today)
        if parsed is None:
            _emit(warn, f"Notice: {slot} date `{given}` should be in YYYY-MM-DD format.")
            continue
        task = set_tag_value(task, slot, parsed.isoformat())
        _emit(warn, f"Notice: {slot} date `{given}` changed to `{parsed.isoformat()}`.")

    if task.size is None:
        _emit(warn, "Hint: a task can be given a size by including `@S`, `@M`, or `@L`.")

    if len(task.description) > LONG_DESCRIPTION:
        _emit(warn, "Hint: long descriptions can make a task list slower to skim read.")
    elif len(task.description) < SHORT_DESCRIPTION:
        _emit(warn, "Hint: short descriptions can make it hard to remember what a task means!")
    return task


def add(
    lines: Sequence[Line],
    command: Add,
    today: dt.date,
    *,
    warn: Warn | None = None,
) -> Outcome:
    task = parse_task(command.text, len(lines))
    if task is None:
        raise TodoValidationError("Task text must not be blank or a comment")

    if command.add_date and task.creation_date is None:
        task = replace(task, creation_date=today)
    if command.due is not None:
        task = zen_rules.with_urgency(task, command.due, today)
    if command.fixup:
        task = fixup(task, today, warn)

    line = line_for_task(task, len(lines))
    log.debug("Adding task at line %d", line.index + 1)
    return Outcome(lines=[*lines, line], changes=ChangeSet(added=[line.task]))


def _rewrite(
    lines: Sequence[Line],
    pick: Callable[[Task], bool],
    change: Callable[[Task], Task | None],
    approve: Approve | None,
) -> Outcome:
    """Apply ``change`` to every picked and approved task; None replaces the line with a blank."""
    out: list[Line] = []
    changes = ChangeSet()
    for line in lines:
        task = line.task
        if line.kind is not LineKind.TASK or task is None or not pick(task) or not _approved(approve, task):
            out.append(line)
            continue
        updated = change(task)
        if updated is None:
            out.append(Line.blank(line.index))
            changes.removed.append(task)
        else:
            out.append(line_for_task(updated, line.index))
            changes.modified.append((task, updated))
    return Outcome(lines=out, changes=changes)


def done(
    lines: Sequence[Line],
    command: Done,
    today: dt.date,
    *,
    approve: Approve | None = None,
    warn: Warn | None = None,
) -> Outcome:
    """Mark matching open tasks finished.

    Without a completion date the creation date is dropped too: a finished
    line with one date reads that date as its completion date.
    """
    _require_terms(command.terms)

    def mark(task: Task) -> Task:
        if not command.add_date:
            if task.creation_date is not None:
                _emit(
                    warn,
                    f"Notice: creation date `{task.creation_date.isoformat()}` dropped from #{task.line_number}; "
                    "finished tasks only keep it alongside a completion date.",
                )
            return replace(task, completed=True, creation_date=None)
        return replace(
            task,
            completed=True,
            completion_date=today,
            creation_date=task.creation_date or today,
        )

    outcome = _rewrite(
        lines,
        lambda task: not task.completed and search.matches_all(task, command.terms),
        mark,
        approve,
    )
    log.debug("Marked %d tasks complete", outcome.changes.count)
    return outcome


def pull(
    lines: Sequence[Line],
    command: Pull,
    today: dt.date,
    *,
    approve: Approve | None = None,
) -> Outcome:
    _require_terms(command.terms)

    def bring_forward(task: Task) -> Task:
        task = zen_rules.with_urgency(task, command.urgency, today)
        if "start" in task.key_values:
            task = set_tag_value(task, "start", today.isoformat())
        return task

    outcome = _rewrite(
        lines,
        lambda task: not task.completed and search.matches_all(task, command.terms),
        bring_forward,
        approve,
    )
    log.debug("Rescheduled %d tasks", outcome.changes.count)
    return outcome


def remove(
    lines: Sequence[Line],
    command: Remove,
    today: dt.date,
    *,
    approve: Approve | None = None,
) -> Outcome:
    _require_terms(command.terms)
    outcome = _rewrite(
        lines,
        lambda task: search.matches_all(task, command.terms),
        lambda task: None,
        approve,
    )
    log.debug("Removed %d tasks", outcome.changes.count)
    return outcome


def archive(lines: Sequence[Line], command: Archive, today: dt.date) -> Outcome:
    """Move finished tasks to ``done_lines``; their slots become blank lines."""
    out: list[Line] = []
    moved: list[Line] = []
    changes = ChangeSet()
    for line in lines:
        task = line.task
        if line.kind is LineKind.TASK and task is not None and task.completed:
            moved.append(line)
            changes.removed.append(task)
            out.append(Line.blank(line.index))
        else:
            out.append(line)
    log.debug("Archiving %d finished tasks", len(moved))
    return Outcome(lines=out, changes=changes, done_lines=moved)


def tidy(
    lines: Sequence[Line],
    command: Tidy,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> Outcome:
    """Drop blank and comment lines, sort, and renumber. Tasks are rewritten in canonical form."""
    ordered = ranking.order(tasks_of(lines), command.sort, today, size_policy=size_policy)
    raw_text = {line.index: line.text for line in lines if line.kind is LineKind.TASK}
    out: list[Line] = []
    changes = ChangeSet()
    for position, task in enumerate(ordered):
        line = line_for_task(task, position)
        out.append(line)
        if position != task.line_index or line.text != raw_text[task.line_index]:
            changes.modified.append((task, line.task))
    log.debug("Tidied %d lines into %d", len(lines), len(out))
    return Outcome(lines=out, changes=changes)


def zen(
    lines: Sequence[Line],
    command: Zen,
    today: dt.date,
    *,
    size_policy: str = metrics.DEFAULT_SIZE_POLICY,
) -> Outcome:
    moves = {
        before.line_index: after
        for before, after in zen_rules.reschedule(tasks_of(lines), today, size_policy=size_policy)
    }
    out: list[Line] = []
    changes = ChangeSet()
    for line in lines:
        after = moves.get(line.index) if line.kind is LineKind.TASK else None
        if after is None or line.task is None:
            out.append(line)
            continue
        out.append(line_for_task(after, line.index))
        changes.modified.append((line.task, after))
    log.debug("Zen rescheduled %d tasks", changes.count)
    return Outcome(lines=out, changes=changes)


def housekeeping_notices(lines: Sequence[Line]) -> list[str]:
    notices: list[str] = []
    finished = sum(1 for task in tasks_of(lines) if task.completed)
    if finished > HOUSEKEEPING_THRESHOLD:
        notices.append(f"There are {finished} finished tasks. Consider running `tada archive`.")
    clutter = sum(1 for line in lines if line.kind is not LineKind.TASK)
    if clutter > HOUSEKEEPING_THRESHOLD:
        notices.append(f"There are {clutter} blank or comment lines. Consider running `tada tidy`.")
    return notices
