"""
Weekly progress — pure functions, no DB access.
"""
from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, Mapping

from .streak import parse_timestamp, to_local


def week_bounds(now: datetime, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Sunday 00:00 and Saturday 23:59:59.999999 of the week containing now."""
    local_now = to_local(now, tz)
    days_since_sunday = (local_now.weekday() + 1) % 7
    start_day = local_now.date() - timedelta(days=days_since_sunday)
    start = datetime.combine(start_day, time.min, tzinfo=local_now.tzinfo)
    end = datetime.combine(start_day + timedelta(days=6), time.max, tzinfo=local_now.tzinfo)
    return start, end


def weekly_progress(activities: Iterable[Mapping], now: datetime, tz: tzinfo | None = None) -> dict:
    """
    Place activities into seven weekday slots, Sunday first.
    The first activity seen for a day wins; activities outside the week are ignored.
    """
    if tz is None:
        tz = now.tzinfo
    start, end = week_bounds(now, tz)
    slots: list[Mapping | None] = [None] * 7

    for activity in activities:
        moment = parse_timestamp(activity.get("date"))
        if moment is None:
            continue
        local = to_local(moment, tz)
        if not (start <= local <= end):
            continue
        slot = (local.date() - start.date()).days
        if slots[slot] is None:
            slots[slot] = activity

    return {
        "start_of_week": start,
        "end_of_week": end,
        "activities": slots,
        "completed_days": sum(1 for s in slots if s is not None),
    }
