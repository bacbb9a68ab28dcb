"""Worked-hours arithmetic for time entries (15 minute rounding)."""
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from crewsheet.exceptions import ValidationError

ROUNDING_MINUTES = 15


def round_time(value: datetime, direction: str) -> datetime:
    """Round to a quarter hour: ``"down"`` for clock-in, ``"up"`` for clock-out."""
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

    base = value.replace(minute=0, second=0, microsecond=0)
    minutes = value.minute
    if direction == "down":
        return base + timedelta(minutes=(minutes // ROUNDING_MINUTES) * ROUNDING_MINUTES)

    # seconds are dropped before rounding up
    return base + timedelta(minutes=-(-minutes // ROUNDING_MINUTES) * ROUNDING_MINUTES)


def entry_minutes(clock_in: datetime, clock_out: datetime) -> int:
    if clock_out < clock_in:
        raise ValidationError("Clock-out cannot be before clock-in")
    start = round_time(clock_in, "down")
    end = round_time(clock_out, "up")
    return int((end - start).total_seconds() // 60)


def worked_hours(time_entries: Iterable) -> Decimal:
    """Total rounded hours over the closed entries; open entries are skipped."""
    total = 0
    for entry in time_entries or []:
        clock_in = getattr(entry, "clock_in", None)
        clock_out = getattr(entry, "clock_out", None)
        if clock_in is None or clock_out is None:
            continue
        total += entry_minutes(clock_in, clock_out)
    return (Decimal(total) / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
