from __future__ import annotations

import datetime as dt
import json

import pytest

from tada import render
from tada.models import TodoValidationError
from tada.todotxt import parse_lines, parse_task, tasks_of

TODAY = dt.date(2024, 5, 15)


def _task(text: str, index: int = 0):
    task = parse_task(text, index)
    assert task is not None
    return task


def test_plain_line_shape() -> None:
    options = render.LineOptions(width=60)
    assert render.render_task_plain(_task("(A) call plumber"), options) == "  (A) call plumber"
    assert render.render_task_plain(_task("x water plants"), options) == "x (?) water plants"


def test_plain_line_with_dates_and_numbers() -> None:
    options = render.LineOptions(
        width=80,
        show_finished=True,
        show_created=True,
        show_lines=True,
        number_digits=render.digits_for(12),
    )
    finished = _task("x 2024-05-01 2024-04-01 buy paint", 2)
    assert render.render_task_plain(finished, options) == "x (?) 2024-05-01 2024-04-01 #03 buy paint"
    unknown = _task("x (B) mystery", 10)
    assert render.render_task_plain(unknown, options) == "x (B) ????-??-?? ????-??-?? #11 mystery"
    open_task = _task("(C) 2024-04-01 open", 0)
    assert render.render_task_plain(open_task, options) == "  (C)            2024-04-01 #01 open"


def test_plain_line_truncates_description() -> None:
    options = render.LineOptions(width=48)
    line = render.render_task_plain(_task("(A) " + "word " * 20), options)
    assert len(line) == 48
    assert line.endswith("…")


def test_width_must_be_at_least_minimum() -> None:
    with pytest.raises(TodoValidationError, match="at least 48"):
        render.LineOptions(width=47)


def test_listing_plain_with_headings() -> None:
    tasks = tasks_of(parse_lines("(A) one\n(B) two\n"))
    text = render.render_listing_plain(
        [("Critical", tasks[:1]), ("Important", tasks[1:])],
        render.LineOptions(width=60),
    )
    assert text == "# Critical\n  (A) one\n\n# Important\n  (B) two"


def test_listing_plain_without_headings() -> None:
    tasks = tasks_of(parse_lines("(A) one\ntwo\n"))
    text = render.render_listing_plain([(None, tasks)], render.LineOptions(width=60))
    assert text == "  (A) one\n  (?) two"


def test_rich_line_styles_priority_and_dims_finished() -> None:
    pytest.importorskip("rich")

    options = render.LineOptions(width=60)
    text = render.render_task_rich(_task("(A) urgent thing"), options, TODAY)
    assert text.plain == "  (A) urgent thing"
    assert any(span.style == "bold red" for span in text.spans)

    finished = render.render_task_rich(_task("x (C) old thing"), options, TODAY)
    assert any(span.style == "dim" for span in finished.spans)

    waiting = render.render_task_rich(_task("later start:2024-06-01"), options, TODAY)
    assert any(span.style == "dim" for span in waiting.spans)


def test_rich_listing_renders_headings() -> None:
    pytest.importorskip("rich")
    from rich.console import Console

    tasks = tasks_of(parse_lines("(A) one\n(B) two\n"))
    renderable = render.render_listing_rich(
        [("Critical", tasks[:1]), ("Important", tasks[1:])],
        render.LineOptions(width=60),
        TODAY,
    )
    console = Console(record=True, width=100, force_terminal=False, color_system=None)
    console.print(renderable)
    exported = console.export_text()
    assert "# Critical" in exported
    assert "  (B) two" in exported


def test_tasks_json_shape() -> None:
    tasks = tasks_of(parse_lines("# header\n(A) 2024-05-01 call +House @phone @S due:2024-05-15\n"))
    payload = json.loads(render.render_tasks_json([("Critical", tasks)], TODAY))
    assert payload == [
        {
            "line": 2,
            "completed": False,
            "priority": "A",
            "completion_date": None,
            "creation_date": "2024-05-01",
            "due_date": "2024-05-15",
            "start_date": None,
            "description": "call +House @phone @S due:2024-05-15",
            "projects": ["House"],
            "contexts": ["phone", "S"],
            "tags": {"due": "2024-05-15"},
            "importance": "A",
            "importance_label": "Critical",
            "urgency": "today",
            "urgency_label": "Today",
            "size": "small",
            "size_label": "Small",
            "active": True,
            "group": "Critical",
        }
    ]


def test_tasks_json_accepts_plain_task_list() -> None:
    tasks = tasks_of(parse_lines("thing\n"))
    payload = json.loads(render.render_tasks_json(tasks, TODAY))
    assert payload[0]["importance"] is None
    assert "group" not in payload[0]
