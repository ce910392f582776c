"""Time-gap grouping for thread rendering.

Everything here is a pure function of the ordered message sequence: nothing
is cached and nothing mutates the input, so the same sequence always yields
the same plan.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Generic, Protocol, TypeVar

from app.messaging.time_labels import as_utc, divider_label

DEFAULT_DIVIDER_GAP = timedelta(minutes=30)


class Timestamped(Protocol):
    sent_at: datetime


T = TypeVar("T", bound=Timestamped)


@dataclass(slots=True, frozen=True)
class ThreadEntry(Generic[T]):
    """One message in render order with its optional preceding divider."""

    item: T
    divider_label: str | None = None
    unread_boundary: bool = False


def divider_positions(timestamps: Sequence[datetime], gap: timedelta = DEFAULT_DIVIDER_GAP) -> list[bool]:
    """Flag each position that starts a new time group.

    The first position always does; any later one does when the gap to its
    immediate predecessor is strictly greater than ``gap``.
    """

    flags: list[bool] = []
    previous: datetime | None = None
    for raw in timestamps:
        current = as_utc(raw)
        flags.append(previous is None or current - previous > gap)
        previous = current
    return flags


def unread_boundary_index(from_counterpart: Sequence[bool], unread_count: int) -> int | None:
    """Index of the oldest of the trailing ``unread_count`` counterpart messages."""

    if unread_count <= 0:
        return None
    remaining = unread_count
    boundary: int | None = None
    for idx in range(len(from_counterpart) - 1, -1, -1):
        if not from_counterpart[idx]:
            continue
        boundary = idx
        remaining -= 1
        if remaining == 0:
            break
    return boundary


def group_with_dividers(
    messages: Sequence[T],
    *,
    gap: timedelta = DEFAULT_DIVIDER_GAP,
    tz: tzinfo = timezone.utc,
    unread_count: int = 0,
    is_counterpart: Callable[[T], bool] | None = None,
) -> list[ThreadEntry[T]]:
    """Build the rendering plan for an ordered message sequence."""

    flags = divider_positions([message.sent_at for message in messages], gap)
    boundary = None
    if is_counterpart is not None:
        boundary = unread_boundary_index([is_counterpart(message) for message in messages], unread_count)
    return [
        ThreadEntry(
            item=message,
            divider_label=divider_label(message.sent_at, tz) if flags[idx] else None,
            unread_boundary=idx == boundary,
        )
        for idx, message in enumerate(messages)
    ]
