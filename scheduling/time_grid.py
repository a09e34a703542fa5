"""
Time grid generation.

Turns a day's opening hours into the ordered list of slot start times.
Pure: no database, no clock.
"""

from datetime import time

from scheduling.errors import InvalidConfig


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def parse_hhmm(value: str) -> time:
    """
    Parse "HH:MM" into a time. Raises ValueError.

    "HH:MM:SS" is accepted only with zero seconds ("08:00:00", as databases
    render TIME values); slots start on whole minutes.
    """
    if not isinstance(value, str):
        raise ValueError("time must be a string in HH:MM format")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if seconds != 0:
        raise ValueError(f"Invalid time {value!r}, slots start on whole minutes")
    return time(int(parts[0]), int(parts[1]))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def generate_time_grid(
    open_time: time,
    close_time: time,
    slot_duration_minutes: int,
    break_start: time | None = None,
    break_end: time | None = None,
) -> list[time]:
    """
    Slot start times from open_time (inclusive) to close_time (exclusive),
    stepping by slot_duration_minutes.

    Times inside [break_start, break_end) are skipped; a slot starting exactly
    at break_end is kept. The break only applies when both ends are given.
    Returns [] when open_time >= close_time.
    """
    if not isinstance(slot_duration_minutes, int) or isinstance(slot_duration_minutes, bool):
        raise InvalidConfig("slot_duration_minutes must be an integer")
    if slot_duration_minutes <= 0:
        raise InvalidConfig("slot_duration_minutes must be greater than zero")

    open_min = time_to_minutes(open_time)
    close_min = time_to_minutes(close_time)

    has_break = break_start is not None and break_end is not None
    if has_break:
        break_start_min = time_to_minutes(break_start)
        break_end_min = time_to_minutes(break_end)

    slots: list[time] = []
    t = open_min
    while t < close_min:
        if not (has_break and break_start_min <= t < break_end_min):
            slots.append(minutes_to_time(t))
        t += slot_duration_minutes

    return slots
