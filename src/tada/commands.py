"""Validated parameters for each tada command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .models import Urgency
from .ranking import GroupBy, SortOrder


@dataclass(frozen=True, slots=True)
class Show:
    sort: SortOrder = SortOrder.SMART
    group_by: GroupBy | None = None


@dataclass(frozen=True, slots=True)
class Top:
    """``important``, ``urgent`` and ``quick``: pick by one order, print in another."""

    selection: SortOrder
    count: int = 3
    sort: SortOrder | None = None


@dataclass(frozen=True, slots=True)
class Find:
    terms: tuple[str, ...]
    sort: SortOrder = SortOrder.SMART


@dataclass(frozen=True, slots=True)
class Add:
    text: str
    add_date: bool = True
    fixup: bool = True
    due: Urgency | None = None


@dataclass(frozen=True, slots=True)
class Done:
    terms: tuple[str, ...]
    add_date: bool = True


@dataclass(frozen=True, slots=True)
class Pull:
    terms: tuple[str, ...]
    urgency: Urgency = Urgency.TODAY


@dataclass(frozen=True, slots=True)
class Remove:
    terms: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Archive:
    pass


@dataclass(frozen=True, slots=True)
class Tidy:
    sort: SortOrder = SortOrder.ORIG


@dataclass(frozen=True, slots=True)
class Zen:
    pass


Command = Union[Show, Top, Find, Add, Done, Pull, Remove, Archive, Tidy, Zen]
