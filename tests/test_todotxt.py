from __future__ import annotations

import datetime as dt

import pytest

from tada.models import LineKind, TshirtSize
from tada.todotxt import (
    line_for_task,
    parse_line,
    parse_lines,
    parse_task,
    replace_tag_value,
    serialize_lines,
    serialize_task,
    set_tag_value,
    tasks_of,
)


def test_parse_open_task_with_priority_and_creation_date() -> None:
    task = parse_task("(A) 2024-01-01 Call Mum +family @phone due:2024-01-05")
    assert task is not None
    assert task.completed is False
    assert task.priority == "A"
    assert task.creation_date == dt.date(2024, 1, 1)
    assert task.completion_date is None
    assert task.description == "Call Mum +family @phone due:2024-01-05"
    assert task.projects == ["family"]
    assert task.contexts == ["phone"]
    assert task.due_date == dt.date(2024, 1, 5)


def test_parse_completed_task_with_two_dates() -> None:
    task = parse_task("x 2024-02-03 2024-01-01 Write report")
    assert task is not None
    assert task.completed is True
    assert task.completion_date == dt.date(2024, 2, 3)
    assert task.creation_date == dt.date(2024, 1, 1)
    assert task.description == "Write report"


def test_parse_completed_task_with_single_date_is_completion() -> None:
    task = parse_task("x 2024-02-03 Write report")
    assert task is not None
    assert task.completion_date == dt.date(2024, 2, 3)
    assert task.creation_date is None


def test_parse_completed_task_dates_after_priority() -> None:
    task = parse_task("x (B) 2024-02-03 2024-01-01 Write report")
    assert task is not None
    assert task.priority == "B"
    assert task.completion_date == dt.date(2024, 2, 3)
    assert task.creation_date == dt.date(2024, 1, 1)


def test_parse_completed_task_dates_either_side_of_priority() -> None:
    task = parse_task("x 2024-02-03 (B) 2024-01-01 Write report")
    assert task is not None
    assert task.priority == "B"
    assert task.completion_date == dt.date(2024, 2, 3)
    assert task.creation_date == dt.date(2024, 1, 1)


def test_invalid_calendar_date_stays_in_description() -> None:
    task = parse_task("2024-02-30 impossible date")
    assert task is not None
    assert task.creation_date is None
    assert task.description == "2024-02-30 impossible date"


def test_lowercase_priority_is_description() -> None:
    task = parse_task("(a) not a priority")
    assert task is not None
    assert task.priority is None
    assert task.description == "(a) not a priority"


@pytest.mark.parametrize("text", ["", "   ", "# a comment", "   # indented comment"])
def test_blank_and_comment_lines_are_skipped(text: str) -> None:
    assert parse_task(text) is None


def test_malformed_due_kept_in_key_values() -> None:
    task = parse_task("Fix bike due:someday")
    assert task is not None
    assert task.due_date is None
    assert task.key_values["due"] == "someday"


def test_url_values_are_not_tags() -> None:
    task = parse_task("Read http://example.com/post")
    assert task is not None
    assert "http" not in task.key_values


def test_last_key_value_wins() -> None:
    task = parse_task("Thing due:2024-01-01 due:2024-02-01")
    assert task is not None
    assert task.due_date == dt.date(2024, 2, 1)


def test_size_from_contexts() -> None:
    task = parse_task("Paint fence @XXL @garden")
    assert task is not None
    assert task.size is TshirtSize.LARGE
    both = parse_task("Odd @L @s")
    assert both is not None
    assert both.size is TshirtSize.SMALL


@pytest.mark.parametrize(
    ("context", "expected"),
    [
        ("S", TshirtSize.SMALL),
        ("xs", TshirtSize.SMALL),
        ("XXXS", TshirtSize.SMALL),
        ("m", TshirtSize.MEDIUM),
        ("XXL", TshirtSize.LARGE),
        ("SM", None),
        ("XLS", None),
    ],
)
def test_size_context_synonyms(context: str, expected: TshirtSize | None) -> None:
    assert TshirtSize.from_context(context) is expected


def test_serialize_canonical_order() -> None:
    task = parse_task("x 2024-02-03 (B) 2024-01-01 Write report")
    assert task is not None
    assert serialize_task(task) == "x (B) 2024-02-03 2024-01-01 Write report"


@pytest.mark.parametrize(
    "text",
    [
        "(A) 2024-01-01 Call Mum +family @phone due:2024-01-05",
        "x 2024-02-03 2024-01-01 Write report",
        "x 2024-02-03 (C) 2024-01-01 2023-12-31 starts with a date",
        "2010-01-01 (A) priority after the date",
        "(Q) 2024-01-01 2024-02-02 second date is description",
        "plain words only",
        "x",
    ],
)
def test_round_trip(text: str) -> None:
    first = parse_task(text)
    assert first is not None
    again = parse_task(serialize_task(first))
    assert again == first


def test_parse_lines_keeps_slots() -> None:
    lines = parse_lines("first\n\n# note\nsecond\n")
    assert [line.kind for line in lines] == [LineKind.TASK, LineKind.BLANK, LineKind.COMMENT, LineKind.TASK]
    tasks = tasks_of(lines)
    assert [task.line_number for task in tasks] == [1, 4]


def test_serialize_lines_keeps_raw_text() -> None:
    text = "x  2024-01-01   spaced out\n\n# note\n"
    assert serialize_lines(parse_lines(text)) == text


def test_line_for_task_reserializes() -> None:
    line = parse_line("(A) thing", 3)
    assert line.task is not None
    rebuilt = line_for_task(line.task, 7)
    assert rebuilt.index == 7
    assert rebuilt.task is not None and rebuilt.task.line_index == 7
    assert rebuilt.text == "(A) thing"


def test_set_tag_value_replaces_or_appends() -> None:
    task = parse_task("Pay rent due:2024-01-01 @home")
    assert task is not None
    updated = set_tag_value(task, "due", "2024-02-01")
    assert updated.description == "Pay rent due:2024-02-01 @home"
    appended = set_tag_value(updated, "start", "2024-01-15")
    assert appended.description == "Pay rent due:2024-02-01 @home start:2024-01-15"


def test_replace_tag_value_ignores_missing_key() -> None:
    task = parse_task("Pay rent")
    assert task is not None
    assert replace_tag_value(task, "start", "2024-01-15") is task
