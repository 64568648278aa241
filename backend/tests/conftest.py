"""
In-memory stand-in for the Supabase-backed store functions used by the tracker.
"""
import threading
from unittest.mock import patch

import pytest


class FakeStore:
    def __init__(self):
        self.users: dict[str, dict] = {}
        self.activities: list[dict] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def add_user(self, user_id: str, **fields) -> dict:
        self.users[user_id] = {
            "id": user_id, "username": "Tester", "current_streak": 0, "best_streak": 0,
            "total_workouts": 0, "last_workout_date": None, "version": 0, **fields,
        }
        return self.users[user_id]

    def get_user(self, db, user_id):
        with self._lock:
            user = self.users.get(user_id)
            return dict(user) if user else None

    def update_user(self, db, user_id, fields, expected_version=None):
        with self._lock:
            user = self.users.get(user_id)
            if not user:
                return None
            if expected_version is not None and user.get("version", 0) != expected_version:
                return None
            user.update(fields)
            return dict(user)

    def append_activity(self, db, fields):
        with self._lock:
            row = {"id": self._next_id, "notes": None, "streak_day": 0, "completed": True, **fields}
            self._next_id += 1
            self.activities.append(row)
            return dict(row)

    def delete_activity(self, db, activity_id):
        with self._lock:
            self.activities = [a for a in self.activities if a["id"] != activity_id]

    def list_recent_activities(self, db, user_id, limit=10):
        with self._lock:
            rows = [dict(a) for a in self.activities if a["user_id"] == user_id]
        rows.sort(key=lambda a: (a["date"], a["id"]), reverse=True)
        return rows[:limit]

    def list_all_activities(self, db, user_id):
        return self.list_recent_activities(db, user_id, limit=len(self.activities))

    def set_streak_day(self, db, activity_id, streak_day):
        with self._lock:
            for a in self.activities:
                if a["id"] == activity_id:
                    a["streak_day"] = streak_day

    def activity(self, activity_id) -> dict:
        return next(a for a in self.activities if a["id"] == activity_id)


@pytest.fixture
def store():
    fake = FakeStore()
    names = [
        "get_user", "update_user", "append_activity", "delete_activity", "list_recent_activities",
        "list_all_activities", "set_streak_day",
    ]
    patches = [patch(f"fitstreak.tracker.{name}", getattr(fake, name)) for name in names]
    for p in patches:
        p.start()
    yield fake
    for p in patches:
        p.stop()
