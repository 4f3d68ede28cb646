"""CLI entrypoint for tada."""

from __future__ import annotations

import datetime as dt
import logging
import os
import shutil
import sys
from typing import Annotated, Callable, Sequence

import click
import typer

from . import render, service, storage
from .commands import Add, Archive, Done, Find, Pull, Remove, Show, Tidy, Top, Zen
from .models import Line, Task, TodoError, TodoValidationError, Urgency
from .prompt_ui import choose_command, confirm
from .ranking import GroupBy, SortOrder
from .zen import zen_quote

LOG_FORMAT = "%(asctime)s - tada - %(levelname)s - %(message)s"
COMMAND_ALIASES = {"i": "important", "u": "urgent", "q": "quick", "rm": "remove"}
SEARCH_PREFIXES = ("+", "@", "#")
PICKER_COMMANDS = ("show", "important", "urgent", "quick", "zen", "tidy", "archive", "path")

FileOption = Annotated[
    str | None,
    typer.Option("--file", "-f", help="Todo list path or http(s) URL"),
]
DoneFileOption = Annotated[
    str | None,
    typer.Option("--done-file", help="Done list path or http(s) URL"),
]
LocalOption = Annotated[
    bool,
    typer.Option("--local", "-l", help="Use the todo list in the current directory"),
]
SortOption = Annotated[
    str | None,
    typer.Option("--sort", "-s", help="smart, urgency, importance, size, alpha, due or orig"),
]
ColourOption = Annotated[
    bool | None,
    typer.Option("--colour/--no-colour", help="Force coloured output on or off", show_default=False),
]
MaxWidthOption = Annotated[
    int | None,
    typer.Option("--max-width", help=f"Maximum line width (at least {render.MIN_WIDTH})"),
]
ShowLinesOption = Annotated[
    bool | None,
    typer.Option("--show-lines", "-L", help="Show line numbers", show_default=False),
]
ShowCreatedOption = Annotated[bool, typer.Option("--show-created", help="Show creation dates")]
ShowFinishedOption = Annotated[bool, typer.Option("--show-finished", help="Show completion dates")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print tasks as JSON")]
CountOption = Annotated[
    int | None,
    typer.Option("--number", "-n", min=0, help="Maximum number of tasks to show"),
]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Assume yes for every task")]
NoOption = Annotated[bool, typer.Option("--no", "-n", help="Assume no for every task")]
TodayOption = Annotated[bool, typer.Option("--today", "-T", help="Due today")]
SoonOption = Annotated[bool, typer.Option("--soon", "-S", help="Due overmorrow")]
NextWeekOption = Annotated[bool, typer.Option("--next-week", "-W", help="Due the end of next week")]
NextMonthOption = Annotated[bool, typer.Option("--next-month", "-M", help="Due the end of next month")]
TermsArgument = Annotated[list[str], typer.Argument(help="Search terms: #N, @context, +project or text")]

_log_handler: logging.Handler | None = None


def _today() -> dt.date:
    return dt.date.today()


def _can_interact() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _can_prompt(interactive_enabled: bool) -> bool:
    return interactive_enabled and _can_interact()


def _can_render_rich_list_output() -> bool:
    return sys.stdout.isatty()


def _terminal_width() -> int:
    columns = shutil.get_terminal_size((render.DEFAULT_WIDTH, 24)).columns
    return max(columns, render.MIN_WIDTH)


def _configure_logging(verbose: bool) -> None:
    global _log_handler

    if not verbose:
        return
    logger = logging.getLogger("tada")
    if _log_handler is None:
        _log_handler = logging.StreamHandler()
        _log_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if _log_handler not in logger.handlers:
        logger.addHandler(_log_handler)
    logger.setLevel(logging.DEBUG)


class TadaTyperGroup(typer.core.TyperGroup):
    """Resolves short aliases and treats ``+project``, ``@context`` and ``#N`` as ``find``."""

    def get_command(self, ctx: click.Context, cmd_name: str):
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: list[str]):
        if args and args[0][:1] in SEARCH_PREFIXES and super().get_command(ctx, args[0]) is None:
            return "find", self.get_command(ctx, "find"), args
        return super().resolve_command(ctx, args)


app = typer.Typer(
    cls=TadaTyperGroup,
    help="A todo.txt task manager that ranks by importance, urgency and size",
)


def _print_rich(renderable) -> None:
    from rich.console import Console

    Console(highlight=False, soft_wrap=True).print(renderable)


def _warn_config(message: str) -> None:
    typer.echo(f"Warning: {message}", err=True)


def _hint(message: str) -> None:
    typer.echo(message, err=True)


def _settings() -> storage.Settings:
    return storage.resolve_settings(warn=_warn_config)


def _run_and_handle(fn) -> None:
    try:
        fn()
    except TodoError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _exit_canceled(code: int) -> None:
    typer.echo("Canceled.")
    raise typer.Exit(code=code)


def _todo_store(file: str | None, local: bool) -> storage.ListStore:
    return storage.open_store(storage.resolve_todo_location(file, local=local))


def _done_store(done_file: str | None, local: bool) -> storage.ListStore:
    return storage.open_store(storage.resolve_done_location(done_file, local=local))


def _sort_order(raw: str | None, default: SortOrder) -> SortOrder:
    if raw is None:
        return default
    return SortOrder.parse(raw)


def _due_flag(today: bool, soon: bool, next_week: bool, next_month: bool) -> Urgency | None:
    chosen = [
        urgency
        for flag, urgency in (
            (today, Urgency.TODAY),
            (soon, Urgency.SOON),
            (next_week, Urgency.NEXT_WEEK),
            (next_month, Urgency.NEXT_MONTH),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise TodoValidationError("Choose at most one of --today, --soon, --next-week and --next-month")
    return chosen[0] if chosen else None


def _line_options(
    lines: Sequence[Line],
    settings: storage.Settings,
    *,
    max_width: int | None,
    show_lines: bool | None,
    show_created: bool = False,
    show_finished: bool = False,
) -> render.LineOptions:
    return render.LineOptions(
        width=_terminal_width() if max_width is None else max_width,
        show_finished=show_finished,
        show_created=show_created,
        show_lines=settings.show_lines if show_lines is None else show_lines,
        number_digits=render.digits_for(len(lines)),
    )


def _use_colour(colour: bool | None) -> bool:
    if colour is None:
        return _can_render_rich_list_output()
    return colour


def _print_listing(
    sections: render.Sections,
    options: render.LineOptions,
    *,
    colour: bool | None,
    as_json: bool,
    today: dt.date,
    size_policy: str,
) -> None:
    if as_json:
        typer.echo(render.render_tasks_json(sections, today, size_policy))
        return
    if not any(tasks for _, tasks in sections):
        return
    if _use_colour(colour):
        _print_rich(render.render_listing_rich(sections, options, today))
    else:
        typer.echo(render.render_listing_plain(sections, options))


def _print_notices(lines: Sequence[Line], colour: bool | None) -> None:
    notices = service.housekeeping_notices(lines)
    if not notices:
        return
    typer.echo("")
    for notice in notices:
        if _use_colour(colour):
            _print_rich(render.render_notice_rich(notice))
        else:
            typer.echo(notice)


def _approver(
    yes: bool,
    no: bool,
    *,
    question: str,
    proceeding: str,
    options: render.LineOptions,
    interactive_enabled: bool,
) -> Callable[[Task], bool]:
    if yes and no:
        raise TodoValidationError("--yes and --no cannot be combined")

    def approve(task: Task) -> bool:
        if not yes and not no and not _can_prompt(interactive_enabled):
            raise TodoValidationError("Confirmation needs an interactive terminal; pass --yes or --no")
        typer.echo(render.render_task_plain(task, options))
        if yes:
            accepted = True
        elif no:
            accepted = False
        else:
            accepted = confirm(question)
        typer.echo(proceeding if accepted else "Skipping")
        typer.echo("")
        return accepted

    return approve


def _command_choices() -> list[tuple[str, str]]:
    choices: list[tuple[str, str]] = []
    for name in PICKER_COMMANDS:
        command = _find_command(name)
        if command is None or command.callback is None:
            continue
        doc = (command.callback.__doc__ or "").strip()
        summary = doc.splitlines()[0] if doc else ""
        choices.append((name, summary))
    return choices


def _find_command(name: str):
    for command in app.registered_commands:
        if command.name == name and command.callback is not None:
            return command
    return None


def _run_command_picker(ctx: typer.Context) -> None:
    selected = choose_command(_command_choices(), title="Select a tada command")
    if not selected:
        _exit_canceled(0)
    command = _find_command(selected)
    if command is not None:
        ctx.invoke(command.callback)


@app.callback(invoke_without_command=True)
def root_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
) -> None:
    """Open an interactive command picker when no command is provided."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    settings = _settings()
    if not _can_prompt(settings.interactive_enabled):
        typer.echo(ctx.get_help())
        raise typer.Exit(code=2)

    _run_command_picker(ctx)


@app.command("show")
def show_cmd(
    sort: SortOption = None,
    by_importance: Annotated[bool, typer.Option("--importance", "-i", help="Group by importance")] = False,
    by_urgency: Annotated[bool, typer.Option("--urgency", "-u", help="Group by urgency")] = False,
    by_size: Annotated[bool, typer.Option("--size", "-z", help="Group by size")] = False,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
    show_lines: ShowLinesOption = None,
    show_created: ShowCreatedOption = False,
    show_finished: ShowFinishedOption = False,
    as_json: JsonOption = False,
) -> None:
    """Show the full todo list."""

    def _inner() -> None:
        groups = [
            group
            for flag, group in (
                (by_importance, GroupBy.IMPORTANCE),
                (by_urgency, GroupBy.URGENCY),
                (by_size, GroupBy.SIZE),
            )
            if flag
        ]
        if len(groups) > 1:
            raise TodoValidationError("Choose at most one of --importance, --urgency and --size")
        settings = _settings()
        today = _today()
        lines = storage.load_lines(_todo_store(file, local))
        command = Show(sort=_sort_order(sort, SortOrder.SMART), group_by=groups[0] if groups else None)
        sections = service.show(lines, command, today, size_policy=settings.size_policy)
        options = _line_options(
            lines,
            settings,
            max_width=max_width,
            show_lines=show_lines,
            show_created=show_created,
            show_finished=show_finished,
        )
        _print_listing(
            sections,
            options,
            colour=colour,
            as_json=as_json,
            today=today,
            size_policy=settings.size_policy,
        )
        if not as_json:
            _print_notices(lines, colour)

    _run_and_handle(_inner)


def _top(
    selection: SortOrder,
    *,
    count: int | None,
    sort: str | None,
    file: str | None,
    local: bool,
    colour: bool | None,
    max_width: int | None,
    show_lines: bool | None,
    as_json: bool,
) -> None:
    settings = _settings()
    today = _today()
    lines = storage.load_lines(_todo_store(file, local))
    command = Top(
        selection=selection,
        count=settings.default_count if count is None else count,
        sort=None if sort is None else SortOrder.parse(sort),
    )
    picked = service.top(lines, command, today, size_policy=settings.size_policy)
    options = _line_options(lines, settings, max_width=max_width, show_lines=show_lines)
    _print_listing(
        [(None, picked)],
        options,
        colour=colour,
        as_json=as_json,
        today=today,
        size_policy=settings.size_policy,
    )


@app.command("important")
def important_cmd(
    count: CountOption = None,
    sort: SortOption = None,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
    show_lines: ShowLinesOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show the most important open tasks."""
    _run_and_handle(
        lambda: _top(
            SortOrder.IMPORTANCE,
            count=count,
            sort=sort,
            file=file,
            local=local,
            colour=colour,
            max_width=max_width,
            show_lines=show_lines,
            as_json=as_json,
        )
    )


@app.command("urgent")
def urgent_cmd(
    count: CountOption = None,
    sort: SortOption = None,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
    show_lines: ShowLinesOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show the most urgent open tasks."""
    _run_and_handle(
        lambda: _top(
            SortOrder.URGENCY,
            count=count,
            sort=sort,
            file=file,
            local=local,
            colour=colour,
            max_width=max_width,
            show_lines=show_lines,
            as_json=as_json,
        )
    )


@app.command("quick")
def quick_cmd(
    count: CountOption = None,
    sort: SortOption = None,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
    show_lines: ShowLinesOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show the smallest open tasks."""
    _run_and_handle(
        lambda: _top(
            SortOrder.SIZE,
            count=count,
            sort=sort,
            file=file,
            local=local,
            colour=colour,
            max_width=max_width,
            show_lines=show_lines,
            as_json=as_json,
        )
    )


@app.command("find")
def find_cmd(
    terms: TermsArgument,
    sort: SortOption = None,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
    show_lines: ShowLinesOption = None,
    show_created: ShowCreatedOption = False,
    show_finished: ShowFinishedOption = False,
    as_json: JsonOption = False,
) -> None:
    """Find tasks matching every search term."""

    def _inner() -> None:
        settings = _settings()
        today = _today()
        lines = storage.load_lines(_todo_store(file, local))
        command = Find(terms=tuple(terms), sort=_sort_order(sort, SortOrder.SMART))
        found = service.find(lines, command, today, size_policy=settings.size_policy)
        options = _line_options(
            lines,
            settings,
            max_width=max_width,
            show_lines=show_lines,
            show_created=show_created,
            show_finished=show_finished,
        )
        _print_listing(
            [(None, found)],
            options,
            colour=colour,
            as_json=as_json,
            today=today,
            size_policy=settings.size_policy,
        )

    _run_and_handle(_inner)


@app.command("add")
def add_cmd(
    text: Annotated[list[str], typer.Argument(help="Task text (may use todo.txt features)")],
    no_date: Annotated[bool, typer.Option("--no-date", help="Don't add a creation date")] = False,
    no_fixup: Annotated[bool, typer.Option("--no-fixup", help="Don't try to fix task syntax")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", help="Quieter output")] = False,
    today_flag: TodayOption = False,
    soon_flag: SoonOption = False,
    next_week_flag: NextWeekOption = False,
    next_month_flag: NextMonthOption = False,
    file: FileOption = None,
    local: LocalOption = False,
    max_width: MaxWidthOption = None,
) -> None:
    """Add a task to the todo list."""

    def _inner() -> None:
        settings = _settings()
        command = Add(
            text=" ".join(text),
            add_date=not no_date,
            fixup=not no_fixup,
            due=_due_flag(today_flag, soon_flag, next_week_flag, next_month_flag),
        )
        store = _todo_store(file, local)
        lines = storage.load_lines(store)
        outcome = service.add(lines, command, _today(), warn=None if quiet else _hint)
        storage.save_lines(store, outcome.lines)
        if not quiet:
            options = _line_options(outcome.lines, settings, max_width=max_width, show_lines=None)
            for task in outcome.changes.added:
                typer.echo(render.render_task_plain(task, options))

    _run_and_handle(_inner)


@app.command("done")
def done_cmd(
    terms: TermsArgument,
    no_date: Annotated[bool, typer.Option("--no-date", help="Don't add a completion date")] = False,
    yes: YesOption = False,
    no: NoOption = False,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
) -> None:
    """Mark matching tasks as finished."""

    def _inner() -> None:
        settings = _settings()
        store = _todo_store(file, local)
        lines = storage.load_lines(store)
        options = _line_options(lines, settings, max_width=max_width, show_lines=None)
        approve = _approver(
            yes,
            no,
            question="Mark finished?",
            proceeding="Marking finished",
            options=options,
            interactive_enabled=settings.interactive_enabled,
        )
        outcome = service.done(
            lines,
            Done(terms=tuple(terms), add_date=not no_date),
            _today(),
            approve=approve,
            warn=_hint,
        )
        if outcome.changes.changed:
            storage.save_lines(store, outcome.lines)
            typer.echo(f"Marked {outcome.changes.count} tasks complete!")
        else:
            typer.echo("No actions taken.")
        _print_notices(outcome.lines, colour)

    _run_and_handle(_inner)


@app.command("pull")
def pull_cmd(
    terms: TermsArgument,
    today_flag: TodayOption = False,
    soon_flag: SoonOption = False,
    next_week_flag: NextWeekOption = False,
    next_month_flag: NextMonthOption = False,
    yes: YesOption = False,
    no: NoOption = False,
    file: FileOption = None,
    local: LocalOption = False,
    colour: ColourOption = None,
    max_width: MaxWidthOption = None,
) -> None:
    """Reschedule matching tasks to be due sooner."""

    def _inner() -> None:
        settings = _settings()
        urgency = _due_flag(today_flag, soon_flag, next_week_flag, next_month_flag) or Urgency.TODAY
        store = _todo_store(file, local)
        lines = storage.load_lines(store)
        options = _line_options(lines, settings, max_width=max_width, show_lines=None)
        approve = _approver(
            yes,
            no,
            question="Reschedule?",
            proceeding="Rescheduling",
            options=options,
            interactive_enabled=settings.interactive_enabled,
        )
        outcome = service.pull(lines, Pull(terms=tuple(terms), urgency=urgency), _today(), approve=approve)
        if outcome.changes.changed:
            storage.save_lines(store, outcome.lines)
            typer.echo(f"Rescheduled {outcome.changes.count} tasks!")
        else:
            typer.echo("No actions taken.")
        _print_notices(outcome.lines, colour)

    _run_and_handle(_inner)


@app.command("remove")
def remove_cmd(
    terms: TermsArgument,
    yes: YesOption = False,
    no: NoOption = False,
    file: FileOption = None,
    local: LocalOption = False,
    max_width: MaxWidthOption = None,
) -> None:
    """Remove matching tasks from the list."""

    def _inner() -> None:
        settings = _settings()
        store = _todo_store(file, local)
        lines = storage.load_lines(store)
        options = _line_options(lines, settings, max_width=max_width, show_lines=None)
        approve = _approver(
            yes,
            no,
            question="Remove?",
            proceeding="Removing",
            options=options,
            interactive_enabled=settings.interactive_enabled,
        )
        outcome = service.remove(lines, Remove(terms=tuple(terms)), _today(), approve=approve)
        if outcome.changes.changed:
            storage.save_lines(store, outcome.lines)
            typer.echo(f"Removed {outcome.changes.count} tasks!")
        else:
            typer.echo("No actions taken.")

    _run_and_handle(_inner)


@app.command("archive")
def archive_cmd(
    file: FileOption = None,
    done_file: DoneFileOption = None,
    local: LocalOption = False,
) -> None:
    """Move finished tasks to the done list."""

    def _inner() -> None:
        store = _todo_store(file, local)
        outcome = service.archive(storage.load_lines(store), Archive(), _today())
        if not outcome.done_lines:
            typer.echo(f"No complete tasks found in {store.location}")
            return
        target = _done_store(done_file, local)
        storage.append_lines(target, outcome.done_lines)
        storage.save_lines(store, outcome.lines)
        typer.echo(f"Moved {len(outcome.done_lines)} tasks to {target.location}")

    _run_and_handle(_inner)


@app.command("tidy")
def tidy_cmd(
    sort: SortOption = None,
    file: FileOption = None,
    local: LocalOption = False,
) -> None:
    """Remove blank lines and comments, then sort the list."""

    def _inner() -> None:
        settings = _settings()
        store = _todo_store(file, local)
        command = Tidy(sort=_sort_order(sort, SortOrder.ORIG))
        outcome = service.tidy(storage.load_lines(store), command, _today(), size_policy=settings.size_policy)
        storage.save_lines(store, outcome.lines)
        typer.echo(f"Tidied {len(outcome.lines)} tasks in {store.location}")

    _run_and_handle(_inner)


@app.command("zen")
def zen_cmd(
    file: FileOption = None,
    local: LocalOption = False,
) -> None:
    """Reschedule overdue tasks without asking."""

    def _inner() -> None:
        settings = _settings()
        store = _todo_store(file, local)
        outcome = service.zen(storage.load_lines(store), Zen(), _today(), size_policy=settings.size_policy)
        if outcome.changes.changed:
            storage.save_lines(store, outcome.lines)
        typer.echo(f"Rescheduled {outcome.changes.count} overdue tasks.")
        typer.echo(zen_quote())

    _run_and_handle(_inner)


@app.command("edit")
def edit_cmd(
    file: FileOption = None,
    local: LocalOption = False,
) -> None:
    """Open the todo list in your editor."""

    def _inner() -> None:
        store = _todo_store(file, local)
        if not isinstance(store, storage.LocalFileStore):
            raise TodoValidationError(f"Only local files can be edited: {store.location}")
        if not store.path.exists():
            store.save("")
        click.edit(filename=str(store.path), editor=os.environ.get("EDITOR") or "vi")

    _run_and_handle(_inner)


@app.command("path")
def path_cmd(
    file: FileOption = None,
    local: LocalOption = False,
) -> None:
    """Print the todo list location."""
    _run_and_handle(lambda: typer.echo(storage.resolve_todo_location(file, local=local)))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
