"""
The single write path for activities and the streak state derived from them.

Reading recent activities, recomputing the streak, writing the user record
and labelling the latest activity form one critical section per user. Inside
a process a per-user lock serializes it; across processes the user record's
version column acts as a compare-and-swap and the section is retried on
conflict.
"""
import logging
import threading
import weakref
from datetime import datetime, timezone
from typing import Callable

from .config import get_settings
from .db import (
    get_user, update_user, append_activity, delete_activity,
    list_recent_activities, list_all_activities, set_streak_day,
)
from .engine.streak import StreakResult, recompute_streak
from .errors import MissingUserContext, UserNotFound, WriteConflict

logger = logging.getLogger(__name__)

# Entries disappear once no request holds the user's lock.
_locks: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def user_lock(user_id: str):
    with _locks_guard:
        lock = _locks.get(user_id)
        if lock is None:
            lock = threading.RLock()
            _locks[user_id] = lock
        return lock


UpdateBuilder = Callable[[dict, StreakResult], dict]


def _commit_streak(db, user_id: str, now: datetime, build_updates: UpdateBuilder) -> StreakResult:
    settings = get_settings()
    attempts = max(settings.streak_max_retries, 1)

    for attempt in range(1, attempts + 1):
        user = get_user(db, user_id)
        if not user:
            raise UserNotFound(user_id)

        recent = list_recent_activities(db, user_id, settings.streak_lookback)
        result = recompute_streak(user_id, user.get("best_streak") or 0, recent, now, settings.tz)

        version = user.get("version") or 0
        updates = {
            "current_streak": result.current_streak,
            "best_streak": result.best_streak,
            **build_updates(user, result),
            "version": version + 1,
        }
        if update_user(db, user_id, updates, expected_version=version) is None:
            logger.warning("Streak write conflict for %s... (attempt %d/%d)", user_id[:8], attempt, attempts)
            continue

        if result.latest_activity_id is not None:
            set_streak_day(db, result.latest_activity_id, result.streak_day_for_latest)
        return result

    raise WriteConflict(user_id, attempts)


def refresh_streak(db, user_id: str | None, now: datetime | None = None, increment_workouts: int = 1) -> StreakResult:
    """
    Recompute and store the user's streak, adding increment_workouts to
    their workout total in the same conditional write.
    """
    if not user_id:
        raise MissingUserContext("refresh_streak called without a user")
    now = now or datetime.now(timezone.utc)

    def build(user: dict, _result: StreakResult) -> dict:
        updates = {"total_workouts": (user.get("total_workouts") or 0) + increment_workouts}
        if increment_workouts:
            updates["last_workout_date"] = now
        return updates

    with user_lock(user_id):
        return _commit_streak(db, user_id, now, build)


def log_activity(db, user_id: str | None, payload: dict, now: datetime | None = None) -> tuple[dict, StreakResult]:
    """Create an activity for the user and bring their streak up to date."""
    if not user_id:
        raise MissingUserContext("log_activity called without a user")
    now = now or datetime.now(timezone.utc)

    with user_lock(user_id):
        if not get_user(db, user_id):
            raise UserNotFound(user_id)

        activity = append_activity(db, {**payload, "user_id": user_id, "date": payload.get("date") or now})
        try:
            result = refresh_streak(db, user_id, now)
        except Exception:
            # the activity only counts once the user record reflects it
            delete_activity(db, activity["id"])
            logger.warning("Rolled back activity %s for %s...", activity["id"], user_id[:8])
            raise

    if result.latest_activity_id == activity.get("id"):
        activity = {**activity, "streak_day": result.streak_day_for_latest}
    logger.info("Activity logged for %s...: %s %smin, streak %d (best %d)",
                user_id[:8], activity.get("type"), activity.get("duration"),
                result.current_streak, result.best_streak)
    return activity, result


def resync_user(db, user_id: str, now: datetime | None = None, dry_run: bool = False) -> dict:
    """
    Rebuild a user's denormalized stats from their stored activities.
    Returns the values that were (or, with dry_run, would be) written.
    """
    if not user_id:
        raise MissingUserContext("resync_user called without a user")
    now = now or datetime.now(timezone.utc)
    settings = get_settings()

    with user_lock(user_id):
        user = get_user(db, user_id)
        if not user:
            raise UserNotFound(user_id)
        activities = list_all_activities(db, user_id)
        last_workout = activities[0].get("date") if activities else None  # newest first

        def build(_user: dict, _result: StreakResult) -> dict:
            return {"total_workouts": len(activities), "last_workout_date": last_workout}

        if dry_run:
            result = recompute_streak(
                user_id, user.get("best_streak") or 0,
                activities[:settings.streak_lookback], now, settings.tz,
            )
        else:
            result = _commit_streak(db, user_id, now, build)

    return {
        "current_streak": result.current_streak,
        "best_streak": result.best_streak,
        **build(user, result),
    }
