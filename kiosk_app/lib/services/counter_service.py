"""
Ticket numbering with periodic resets.

Every check-in gets four sequence numbers, one per period (day, week, month,
year). A period's counter goes back to zero the first time a check-in happens
after that period's calendar boundary: midnight, Sunday midnight, the 1st of
the month and January 1st. Boundaries are computed in the timezone of `now`.
"""
from datetime import datetime, timedelta
from typing import Dict, Tuple

from ..constants import Period
from ..models.dto import ResetStateDTO


def period_start(now: datetime, period: Period) -> datetime:
    """Return the start of the calendar period that contains `now`."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == Period.DAILY:
        return midnight
    if period == Period.WEEKLY:
        # weekday() is 0 for Monday, weeks start on Sunday
        return midnight - timedelta(days=(now.weekday() + 1) % 7)
    if period == Period.MONTHLY:
        return midnight.replace(day=1)
    if period == Period.YEARLY:
        return midnight.replace(month=1, day=1)
    raise ValueError(f"Unknown period: {period}")


def as_comparable(marker: datetime, now: datetime) -> datetime:
    # Markers without an offset are read as wall-clock time in now's zone
    if marker.tzinfo is None and now.tzinfo is not None:
        return marker.replace(tzinfo=now.tzinfo)
    if marker.tzinfo is not None and now.tzinfo is None:
        return marker.astimezone().replace(tzinfo=None)
    return marker


def apply_check_in(state: ResetStateDTO, now: datetime,
                   group_size: int = 1) -> Tuple[ResetStateDTO, Dict[Period, int]]:
    """Reset any counter whose period has rolled over, then count the check-in.

    Args:
        state: Counters as persisted after the previous check-in
        now: Wall-clock time of this check-in
        group_size: Number of people checking in together

    Returns:
        The new state and the number assigned for each period. `state` itself
        is left untouched.
    """
    if group_size < 1:
        raise ValueError(f"group_size must be at least 1, got {group_size}")

    updates = {}
    numbers = {}
    for period in Period:
        start = period_start(now, period)
        count = state.count(period)
        if as_comparable(state.last_reset(period), now) < start:
            count = 0
            updates[f"last_{period.value}_reset"] = start
        count += group_size
        updates[f"current_{period.value}_count"] = count
        numbers[period] = count

    return state.model_copy(update=updates), numbers
