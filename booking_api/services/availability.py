"""Free-slot computation for a provider's working day."""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def weekday_name(day: date) -> str:
    """Lower-case English weekday name, matching provider schedule keys."""
    return WEEKDAYS[day.weekday()]


def to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes after midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def to_clock(minutes: int) -> str:
    """Convert minutes after midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_working_day(day_schedule: Mapping[str, Any] | None) -> bool:
    """Whether a schedule entry marks the day as available with working hours."""
    return bool(
        day_schedule
        and day_schedule.get("available")
        and day_schedule.get("start")
        and day_schedule.get("end")
    )


def _merge(intervals: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def free_windows(
    window_start: int, window_end: int, busy: Iterable[tuple[int, int]]
) -> list[tuple[int, int]]:
    """
    Subtract busy intervals from a working window.

    All intervals are half-open ``[start, end)`` in minutes.
    """
    windows = []
    cursor = window_start
    for start, end in _merge(busy):
        if end <= cursor:
            continue
        if start >= window_end:
            break
        if start > cursor:
            windows.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < window_end:
        windows.append((cursor, window_end))
    return windows


def compute_available_slots(
    day_schedule: Mapping[str, Any],
    booked: Iterable[tuple[str, str | None]],
    slot_minutes: int,
) -> list[dict[str, str]]:
    """
    Cut the free part of a working day into bookable slots.

    Args:
        day_schedule: ``{"available", "start", "end", "breaks"?}`` for the day
        booked: ``(start_time, end_time)`` of appointments holding a slot;
            a missing end time occupies one slot length
        slot_minutes: Length of each slot

    Returns:
        Slots as ``{"start_time", "end_time"}`` in chronological order
    """
    if not is_working_day(day_schedule) or slot_minutes <= 0:
        return []

    window_start = to_minutes(day_schedule["start"])
    window_end = to_minutes(day_schedule["end"])

    busy = []
    for start_time, end_time in booked:
        start = to_minutes(start_time)
        end = to_minutes(end_time) if end_time else start + slot_minutes
        busy.append((start, end))
    for pause in day_schedule.get("breaks") or []:
        busy.append((to_minutes(pause["start"]), to_minutes(pause["end"])))

    slots = []
    for start, end in free_windows(window_start, window_end, busy):
        cursor = start
        while cursor + slot_minutes <= end:
            slots.append({"start_time": to_clock(cursor), "end_time": to_clock(cursor + slot_minutes)})
            cursor += slot_minutes
    return slots
