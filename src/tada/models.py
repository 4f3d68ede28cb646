"""Core task models, tiers and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from enum import Enum, IntEnum
import re

PRIORITY_RE = re.compile(r"^[A-Z]$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SMALL_RE = re.compile(r"^X*S$", re.IGNORECASE)
MEDIUM_RE = re.compile(r"^X*M$", re.IGNORECASE)
LARGE_RE = re.compile(r"^X*L$", re.IGNORECASE)
KEY_VALUE_RE = re.compile(r"^([^\s:]+):([^\s:]+)$")


def parse_iso_date(value: str | None) -> dt.date | None:
    if not value or not DATE_RE.fullmatch(value):
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        return None


class Importance(IntEnum):
    A = 0
    B = 1
    C = 2
    D = 3
    E = 4
    NONE = 5

    @classmethod
    def from_priority(cls, priority: str | None) -> "Importance":
        if not priority:
            return cls.NONE
        if priority in ("A", "B", "C", "D"):
            return cls[priority]
        return cls.E

    @property
    def label(self) -> str:
        return {
            Importance.A: "Critical",
            Importance.B: "Important",
            Importance.C: "Semi-important",
            Importance.D: "Normal",
            Importance.E: "Unimportant",
            Importance.NONE: "No priority",
        }[self]


class Urgency(IntEnum):
    OVERDUE = 0
    TODAY = 1
    SOON = 2
    THIS_WEEK = 3
    NEXT_WEEK = 4
    NEXT_MONTH = 5
    LATER = 6
    NONE = 7

    @property
    def label(self) -> str:
        return {
            Urgency.OVERDUE: "Overdue",
            Urgency.TODAY: "Today",
            Urgency.SOON: "Soon",
            Urgency.THIS_WEEK: "This week",
            Urgency.NEXT_WEEK: "Next week",
            Urgency.NEXT_MONTH: "Next month",
            Urgency.LATER: "Later",
            Urgency.NONE: "No due date",
        }[self]


class TshirtSize(IntEnum):
    SMALL = 0
    MEDIUM = 1
    LARGE = 2
    UNSPECIFIED = 3

    @classmethod
    def from_context(cls, context: str) -> "TshirtSize | None":
        if SMALL_RE.fullmatch(context):
            return cls.SMALL
        if MEDIUM_RE.fullmatch(context):
            return cls.MEDIUM
        if LARGE_RE.fullmatch(context):
            return cls.LARGE
        return None

    @property
    def label(self) -> str:
        return {
            TshirtSize.SMALL: "Small",
            TshirtSize.MEDIUM: "Medium",
            TshirtSize.LARGE: "Large",
            TshirtSize.UNSPECIFIED: "Unsized",
        }[self]


class LineKind(str, Enum):
    TASK = "task"
    BLANK = "blank"
    COMMENT = "comment"


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


@dataclass(slots=True)
class Task:
    description: str
    completed: bool = False
    priority: str | None = None
    completion_date: dt.date | None = None
    creation_date: dt.date | None = None
    line_index: int = 0

    @property
    def line_number(self) -> int:
        return self.line_index + 1

    @property
    def tokens(self) -> list[str]:
        return self.description.split()

    @property
    def projects(self) -> list[str]:
        return _unique([token[1:] for token in self.tokens if token.startswith("+") and len(token) > 1])

    @property
    def contexts(self) -> list[str]:
        return _unique([token[1:] for token in self.tokens if token.startswith("@") and len(token) > 1])

    @property
    def key_values(self) -> dict[str, str]:
        pairs: dict[str, str] = {}
        for token in self.tokens:
            match = KEY_VALUE_RE.fullmatch(token)
            if match is None or match.group(2).startswith("//"):
                continue
            pairs[match.group(1)] = match.group(2)
        return pairs

    @property
    def due_date(self) -> dt.date | None:
        return parse_iso_date(self.key_values.get("due"))

    @property
    def start_date(self) -> dt.date | None:
        return parse_iso_date(self.key_values.get("start"))

    @property
    def size(self) -> TshirtSize | None:
        found = {TshirtSize.from_context(context) for context in self.contexts}
        for size in (TshirtSize.SMALL, TshirtSize.MEDIUM, TshirtSize.LARGE):
            if size in found:
                return size
        return None

    def has_context(self, name: str) -> bool:
        wanted = name.removeprefix("@").casefold()
        return any(context.casefold() == wanted for context in self.contexts)

    def has_project(self, name: str) -> bool:
        return name.removeprefix("+") in self.projects


@dataclass(slots=True)
class Line:
    kind: LineKind
    text: str
    index: int = 0
    task: Task | None = None

    @classmethod
    def blank(cls, index: int = 0) -> "Line":
        return cls(kind=LineKind.BLANK, text="", index=index)


@dataclass(slots=True)
class ChangeSet:
    added: list[Task] = field(default_factory=list)
    removed: list[Task] = field(default_factory=list)
    modified: list[tuple[Task, Task]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    @property
    def changed(self) -> bool:
        return self.count > 0


class TodoError(Exception):
    """Base error for todo list operations."""


class TodoValidationError(TodoError):
    """Raised when options or values are invalid."""


class TodoStorageError(TodoError):
    """Raised when a todo list cannot be read or written."""
