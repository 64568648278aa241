"""
Streak tracking — pure functions, no DB access.

The streak is a count of consecutive local calendar days with at least one
activity. A streak survives until a full day passes with no activity: a user
who worked out yesterday but not yet today still has it.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Mapping, Optional

from ..errors import MissingUserContext

logger = logging.getLogger(__name__)

# Only this many recent activities are fed to the engine. Several activities
# on one day eat into the window, so longer streaks come out as a lower bound.
STREAK_LOOKBACK = 30


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    best_streak: int
    streak_day_for_latest: Optional[int] = None
    latest_activity_id: Any = None


# PostgREST trims trailing zeros from fractional seconds ("08:00:00.12345");
# fromisoformat before 3.11 only takes exactly 3 or 6 digits.
FRACTION_RE = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def _normalize_fraction(value: str) -> str:
    return FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", value, count=1)


def parse_timestamp(value: Any) -> datetime | None:
    """Coerce a stored activity date (datetime, date or ISO string) to a datetime."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(_normalize_fraction(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def to_local(moment: datetime, tz: tzinfo | None) -> datetime:
    """Express a timestamp in the bucketing zone. Naive values are taken as already local."""
    if moment.tzinfo is None:
        return moment if tz is None else moment.replace(tzinfo=tz)
    if tz is None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.astimezone(tz)


def day_bucket(moment: datetime, tz: tzinfo | None = None) -> date:
    """Local calendar day of a timestamp (midnight bucket)."""
    return to_local(moment, tz).date()


def gap_days(newer: date, older: date) -> int:
    return (newer - older).days


def _activity_moment(activity: Mapping, now: datetime) -> datetime:
    moment = parse_timestamp(activity.get("date"))
    if moment is None:
        logger.warning("Activity %s has malformed date %r; using now",
                       activity.get("id"), activity.get("date"))
        return now
    return moment


def _sort_key(moment: datetime, tz: tzinfo | None) -> datetime:
    return to_local(moment, tz).replace(tzinfo=None)


def count_streak(buckets: Iterable[date], today: date) -> int:
    """
    Walk newest-first day buckets and count the run of consecutive days.
    Returns 0 when the newest bucket is older than yesterday.
    """
    buckets = list(buckets)
    if not buckets:
        return 0

    yesterday = today - timedelta(days=1)
    if buckets[0] not in (today, yesterday):
        return 0

    streak = 0
    last_date: date | None = None
    for bucket in buckets:
        if last_date is None:
            streak = 1
            last_date = bucket
            continue

        gap = gap_days(last_date, bucket)
        if gap == 1:
            streak += 1
            last_date = bucket
        elif gap == 0:
            last_date = bucket
        else:
            break
    return streak


def recompute_streak(
    user_id: str | None,
    prior_best_streak: int,
    recent_activities: Iterable[Mapping],
    now: datetime,
    tz: tzinfo | None = None,
) -> StreakResult:
    """
    Recompute current and best streak from a user's recent activities.

    recent_activities may arrive in any order. Activities whose date is
    missing or unparseable count as happening at `now`. The caller persists
    the result on the user record and writes streak_day_for_latest onto the
    activity identified by latest_activity_id.
    """
    if not user_id:
        raise MissingUserContext("recompute_streak called without a user")

    prior_best = max(prior_best_streak or 0, 0)
    activities = list(recent_activities)
    if not activities:
        return StreakResult(current_streak=0, best_streak=prior_best)

    if tz is None:
        tz = now.tzinfo

    dated = [(_activity_moment(a, now), a) for a in activities]
    dated.sort(key=lambda pair: _sort_key(pair[0], tz), reverse=True)

    today = day_bucket(now, tz)
    current = count_streak((day_bucket(m, tz) for m, _ in dated), today)
    best = max(current, prior_best)

    return StreakResult(
        current_streak=current,
        best_streak=best,
        streak_day_for_latest=current,
        latest_activity_id=dated[0][1].get("id"),
    )
