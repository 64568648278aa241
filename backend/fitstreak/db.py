import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

from supabase import create_client, Client

from .config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_client() -> Client:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    return create_client(settings.supabase_url, settings.supabase_service_key)


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


# ── Users ─────────────────────────────────────────────────────────────────────

def get_user(db: Client, user_id: str) -> dict | None:
    res = db.table("users").select("*").eq("id", user_id).execute()
    return res.data[0] if res.data else None


def create_user(db: Client, user_id: str, username: str) -> dict:
    row = {
        "id": user_id,
        "username": username,
        "current_streak": 0,
        "best_streak": 0,
        "total_workouts": 0,
        "last_workout_date": None,
        "version": 0,
    }
    res = db.table("users").insert(row).execute()
    return res.data[0] if res.data else row


def update_user(db: Client, user_id: str, fields: dict, expected_version: Optional[int] = None) -> dict | None:
    """
    Apply a partial update. With expected_version the write only lands if the
    stored version still matches; None is returned when it does not.
    """
    query = db.table("users").update({k: _iso(v) for k, v in fields.items()}).eq("id", user_id)
    if expected_version is not None:
        query = query.eq("version", expected_version)
    res = query.execute()
    return res.data[0] if res.data else None


def delete_user(db: Client, user_id: str) -> None:
    db.table("users").delete().eq("id", user_id).execute()


# ── Activities ────────────────────────────────────────────────────────────────

def append_activity(db: Client, fields: dict) -> dict:
    row = {
        "notes": None,
        "streak_day": 0,
        "completed": True,
        **fields,
    }
    row["date"] = _iso(row.get("date") or datetime.now(timezone.utc))
    res = db.table("activities").insert(row).execute()
    return res.data[0]


def delete_activity(db: Client, activity_id: Any) -> None:
    db.table("activities").delete().eq("id", activity_id).execute()


def list_recent_activities(db: Client, user_id: str, limit: int = 10) -> list[dict]:
    res = (
        db.table("activities")
        .select("*")
        .eq("user_id", user_id)
        .order("date", desc=True)
        .limit(limit)
        .execute()
    )
    return res.data or []


def list_activities_between(db: Client, user_id: str, start: datetime, end: datetime) -> list[dict]:
    res = (
        db.table("activities")
        .select("*")
        .eq("user_id", user_id)
        .gte("date", start.isoformat())
        .lte("date", end.isoformat())
        .order("date", desc=True)
        .execute()
    )
    return res.data or []


PAGE_SIZE = 1000  # Supabase row limit per request


def list_all_activities(db: Client, user_id: str) -> list[dict]:
    """Fetch every activity for a user in pages, newest first."""
    rows: list[dict] = []
    offset = 0
    while True:
        res = (
            db.table("activities")
            .select("*")
            .eq("user_id", user_id)
            .order("date", desc=True)
            .range(offset, offset + PAGE_SIZE - 1)
            .execute()
        )
        batch = res.data or []
        rows.extend(batch)
        if len(batch) < PAGE_SIZE:
            return rows
        offset += PAGE_SIZE


def set_streak_day(db: Client, activity_id: Any, streak_day: int) -> None:
    db.table("activities").update({"streak_day": streak_day}).eq("id", activity_id).execute()


def delete_activities(db: Client, user_id: str) -> None:
    db.table("activities").delete().eq("user_id", user_id).execute()


# ── Suggestions ───────────────────────────────────────────────────────────────

def get_latest_suggestion(db: Client, user_id: str) -> dict | None:
    res = (
        db.table("suggestions")
        .select("*")
        .eq("user_id", user_id)
        .eq("used", False)
        .order("date", desc=True)
        .limit(1)
        .execute()
    )
    return res.data[0] if res.data else None


def create_suggestion(db: Client, user_id: str, suggestion: str, goals: list[str]) -> dict:
    row = {
        "user_id": user_id,
        "suggestion": suggestion,
        "goals": goals,
        "date": datetime.now(timezone.utc).isoformat(),
        "used": False,
    }
    res = db.table("suggestions").insert(row).execute()
    return res.data[0] if res.data else row


def mark_suggestion_used(db: Client, user_id: str, suggestion_id: int) -> dict | None:
    res = (
        db.table("suggestions")
        .update({"used": True})
        .eq("id", suggestion_id)
        .eq("user_id", user_id)
        .execute()
    )
    return res.data[0] if res.data else None


def delete_suggestions(db: Client, user_id: str) -> None:
    db.table("suggestions").delete().eq("user_id", user_id).execute()
