"""Calendar helpers relative to an explicit ``today``."""

from __future__ import annotations

import datetime as dt
import logging

from dateutil import parser as dtparser
from dateutil.relativedelta import relativedelta

from .models import Urgency

log = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
SOON_DAYS = 2
LATER_DAYS = 183


def soon(today: dt.date) -> dt.date:
    """Overmorrow."""
    return today + dt.timedelta(days=SOON_DAYS)


def end_of_week(today: dt.date) -> dt.date:
    """The Sunday closing the Monday-based week containing ``today``."""
    return today + dt.timedelta(days=6 - today.weekday())


def end_of_next_week(today: dt.date) -> dt.date:
    return end_of_week(today) + dt.timedelta(days=7)


def end_of_next_month(today: dt.date) -> dt.date:
    first_of_this_month = today.replace(day=1)
    return first_of_this_month + relativedelta(months=2) - dt.timedelta(days=1)


def later(today: dt.date) -> dt.date:
    return today + dt.timedelta(days=LATER_DAYS)


def skip_weekend(day: dt.date) -> dt.date:
    """Move a Saturday or Sunday forward to the following Monday."""
    if day.weekday() >= 5:
        return day + dt.timedelta(days=7 - day.weekday())
    return day


def next_weekday_named(today: dt.date, name: str) -> dt.date:
    target = WEEKDAYS.index(name)
    delta = (target - today.weekday()) % 7 or 7
    return today + dt.timedelta(days=delta)


def parse_natural_date(text: str, today: dt.date) -> dt.date | None:
    """Best-effort reading of ``tomorrow``, ``next friday``, ``2024/06/01`` and friends.

    Underscores count as spaces so tags such as ``due:next_week`` work.
    Returns None when nothing sensible can be made of the text.
    """
    phrase = " ".join(text.replace("_", " ").replace("-", " ").lower().split())
    if not phrase:
        return None

    keywords = {
        "today": today,
        "tomorrow": today + dt.timedelta(days=1),
        "overmorrow": soon(today),
        "soon": soon(today),
        "weekend": end_of_week(today),
        "this week": end_of_week(today),
        "end of week": end_of_week(today),
        "next week": end_of_next_week(today),
        "next month": end_of_next_month(today),
        "later": later(today),
    }
    if phrase in keywords:
        return keywords[phrase]

    words = phrase.split()
    if len(words) == 2 and words[0] in ("next", "this") and words[1] in WEEKDAYS:
        return next_weekday_named(today, words[1])
    if phrase in WEEKDAYS:
        return next_weekday_named(today, phrase)

    # Hyphens were only folded for the keyword table; dateutil wants the text as typed.
    raw = text.replace("_", " ")
    default = dt.datetime.combine(today, dt.time())
    try:
        parsed = dtparser.parse(raw, default=default)
    except (TypeError, ValueError, OverflowError, dtparser.ParserError):
        log.debug("Could not read %r as a date", text)
        return None
    return parsed.date()


def date_for_urgency(urgency: Urgency, today: dt.date) -> dt.date | None:
    """The due date that puts a task into the given urgency tier."""
    return {
        Urgency.OVERDUE: today - dt.timedelta(days=1),
        Urgency.TODAY: today,
        Urgency.SOON: soon(today),
        Urgency.THIS_WEEK: end_of_week(today),
        Urgency.NEXT_WEEK: end_of_next_week(today),
        Urgency.NEXT_MONTH: end_of_next_month(today),
        Urgency.LATER: later(today),
        Urgency.NONE: None,
    }[urgency]
