"""Prompt-based interactive helpers."""

from __future__ import annotations

import typer

from .selector_ui import SelectorUnavailableError, select_one


def _warn_selector_fallback(exc: Exception) -> None:
    message = str(exc)
    if not message:
        return
    typer.echo(f"Warning: {message}; falling back to typed prompts.", err=True)


def _safe_prompt(message: str, *, default: str = "") -> str | None:
    try:
        return typer.prompt(message, default=default)
    except (typer.Abort, KeyboardInterrupt, EOFError):
        return None


def confirm(title: str, *, default: bool = False) -> bool:
    """Ask a yes/no question; cancelling counts as no."""
    options = [("yes", "Yes"), ("no", "No")]
    default_value = "yes" if default else "no"
    try:
        selected = select_one(title, options, default_value=default_value)
    except SelectorUnavailableError as exc:
        _warn_selector_fallback(exc)
    else:
        return selected == "yes"

    prompt_label = "y/N" if not default else "Y/n"
    default_text = "y" if default else "n"
    while True:
        raw = _safe_prompt(f"{title} ({prompt_label})", default=default_text)
        if raw is None:
            return False
        raw = raw.strip().lower()
        if raw in {"y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        typer.echo("Invalid selection. Enter y or n.")


def choose_command(
    commands: list[tuple[str, str]],
    title: str = "Select command",
) -> str | None:
    if not commands:
        return None

    selector_options = [(name, f"{name:<9}  {summary}".rstrip()) for name, summary in commands]
    try:
        selected = select_one(title, selector_options, default_value=commands[0][0])
    except SelectorUnavailableError as exc:
        _warn_selector_fallback(exc)
    else:
        return selected

    typer.echo("")
    typer.echo("tada commands")
    typer.echo("=" * 48)
    typer.echo(title)
    typer.echo("-" * 48)
    for idx, (name, summary) in enumerate(commands, start=1):
        typer.echo(f"{idx:>2}. {name:<9}  {summary}")
    typer.echo(" 0. cancel")

    raw = _safe_prompt("Enter number", default="1")
    if raw is None:
        return None
    try:
        index = int(raw)
    except ValueError:
        return None
    if 1 <= index <= len(commands):
        return commands[index - 1][0]
    return None
