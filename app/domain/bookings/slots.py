"""Slot arithmetic: availability windows minus bookings, sliced into fixed slots"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end


def day_of_week_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday, the convention availability rules are stored in"""
    return (day.weekday() + 1) % 7


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    merged: list[TimeRange] = []
    for current in sorted(ranges, key=lambda r: r.start):
        if merged and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def subtract_ranges(window: TimeRange, busy: Iterable[TimeRange]) -> list[TimeRange]:
    """Parts of ``window`` not covered by any busy range"""
    free = []
    cursor = window.start
    for block in merge_ranges(b for b in busy if b.overlaps(window)):
        if block.start > cursor:
            free.append(TimeRange(cursor, block.start))
        cursor = max(cursor, block.end)
    if cursor < window.end:
        free.append(TimeRange(cursor, window.end))
    return free


class SlotSequence:
    """Lazy, restartable sequence of bookable slots in day order.

    Each iteration walks the free windows again, so the sequence can be
    consumed more than once. An empty sequence means no capacity is left.
    """

    def __init__(
        self,
        windows: list[TimeRange],
        duration_minutes: int,
        not_before: Optional[datetime] = None,
    ):
        self.windows = sorted(windows, key=lambda w: w.start)
        self.duration = timedelta(minutes=duration_minutes)
        self.not_before = not_before

    def __iter__(self) -> Iterator[TimeRange]:
        for window in self.windows:
            cursor = window.start
            # trailing partial slots are dropped
            while cursor + self.duration <= window.end:
                if self.not_before is None or cursor > self.not_before:
                    yield TimeRange(cursor, cursor + self.duration)
                cursor += self.duration

    def starts(self) -> list[datetime]:
        return [slot.start for slot in self]


def build_slots(
    day: date,
    rule_windows: Iterable[tuple],
    booked: Iterable[TimeRange],
    duration_minutes: int,
    blocked: bool = False,
    not_before: Optional[datetime] = None,
) -> SlotSequence:
    """
    Compute the free slots of one day.

    Args:
        day: Calendar day being booked
        rule_windows: (start_time, end_time) pairs from the day's active availability rules
        booked: Time ranges of pending/confirmed bookings on that day
        duration_minutes: Slot length
        blocked: True when a blocked period covers the day
        not_before: Slots starting at or before this moment are skipped
    """
    if blocked:
        return SlotSequence([], duration_minutes, not_before)

    windows = merge_ranges(
        TimeRange(datetime.combine(day, start), datetime.combine(day, end))
        for start, end in rule_windows
        if start < end
    )
    booked = list(booked)

    free: list[TimeRange] = []
    for window in windows:
        free.extend(subtract_ranges(window, booked))
    return SlotSequence(free, duration_minutes, not_before)
