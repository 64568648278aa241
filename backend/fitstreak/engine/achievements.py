"""
Achievement definitions and progress logic.
"""
from dataclasses import dataclass
from datetime import tzinfo
from typing import Iterable, Mapping, Optional

from .streak import parse_timestamp, to_local


@dataclass
class Achievement:
    id: str
    title: str
    category: str          # 'streak' | 'workout' | 'duration' | 'type' | 'time' | 'milestone'
    kind: str              # which counter drives this achievement
    goal: int
    points: int
    tier: str
    description: str
    match: Optional[str] = None   # activity group for 'type' and 'time' kinds


ACHIEVEMENTS: list[Achievement] = [
    # Streaks
    Achievement("streak-3",   "3-Day Streak",      "streak", "best_streak", 3,   100,   "bronze",   "Complete activities for 3 consecutive days"),
    Achievement("streak-7",   "Weekly Warrior",    "streak", "best_streak", 7,   250,   "silver",   "Complete activities for 7 consecutive days"),
    Achievement("streak-30",  "Monthly Master",    "streak", "best_streak", 30,  1000,  "gold",     "Complete activities for 30 consecutive days"),
    Achievement("streak-90",  "Quarter Champion",  "streak", "best_streak", 90,  2500,  "platinum", "Complete activities for 90 consecutive days"),
    Achievement("streak-365", "Year of Fitness",   "streak", "best_streak", 365, 10000, "diamond",  "Complete activities for 365 consecutive days"),

    # Workout counts
    Achievement("workouts-10",   "Getting Started",    "workout", "total_workouts", 10,   100,   "bronze",   "Complete 10 total workouts"),
    Achievement("workouts-50",   "Fitness Enthusiast", "workout", "total_workouts", 50,   500,   "silver",   "Complete 50 total workouts"),
    Achievement("workouts-100",  "Century Club",       "workout", "total_workouts", 100,  1000,  "gold",     "Complete 100 total workouts"),
    Achievement("workouts-500",  "Fitness Legend",     "workout", "total_workouts", 500,  5000,  "platinum", "Complete 500 total workouts"),
    Achievement("workouts-1000", "Millennium Club",    "workout", "total_workouts", 1000, 10000, "diamond",  "Complete 1000 total workouts"),

    # Duration
    Achievement("duration-60",    "Hour Power",             "duration", "longest_session", 60,    200,   "bronze",   "Complete a 60-minute workout"),
    Achievement("duration-120",   "Two-Hour Challenge",     "duration", "longest_session", 120,   500,   "silver",   "Complete a 120-minute workout"),
    Achievement("duration-1000",  "Thousand Minutes",       "duration", "total_minutes",   1000,  1000,  "gold",     "Complete 1000 total minutes of workouts"),
    Achievement("duration-10000", "Ten Thousand Minutes",   "duration", "total_minutes",   10000, 5000,  "platinum", "Complete 10000 total minutes of workouts"),
    Achievement("duration-50000", "Fifty Thousand Minutes", "duration", "total_minutes",   50000, 10000, "diamond",  "Complete 50000 total minutes of workouts"),

    # Activity types
    Achievement("type-cardio-10",   "Cardio Enthusiast", "type", "type_count", 10, 200, "bronze", "Complete 10 cardio workouts",             "cardio"),
    Achievement("type-strength-10", "Strength Builder",  "type", "type_count", 10, 200, "bronze", "Complete 10 strength training workouts",  "strength"),
    Achievement("type-yoga-10",     "Yoga Master",       "type", "type_count", 10, 200, "bronze", "Complete 10 yoga sessions",               "yoga"),
    Achievement("type-hiit-10",     "HIIT Warrior",      "type", "type_count", 10, 200, "bronze", "Complete 10 HIIT workouts",               "hiit"),
    Achievement("type-swim-10",     "Aquatic Athlete",   "type", "type_count", 10, 200, "bronze", "Complete 10 swimming sessions",           "swimming"),

    # Time of day
    Achievement("time-morning-10", "Early Bird",          "time", "time_count", 10, 200, "bronze", "Complete 10 morning workouts (5-9 AM)",    "morning"),
    Achievement("time-night-10",   "Night Owl",           "time", "time_count", 10, 200, "bronze", "Complete 10 evening workouts (8-11 PM)",   "night"),
    Achievement("time-lunch-10",   "Lunch Break Warrior", "time", "time_count", 10, 200, "bronze", "Complete 10 lunchtime workouts (12-2 PM)", "lunch"),

    # Milestones
    Achievement("milestone-first", "First Step",    "milestone", "total_workouts", 1,  50,   "bronze", "Complete your first workout"),
    Achievement("milestone-week",  "Perfect Week",  "milestone", "best_streak",    7,  500,  "silver", "Complete workouts all 7 days in a week"),
    Achievement("milestone-month", "Perfect Month", "milestone", "best_streak",    30, 2000, "gold",   "Complete workouts all 30 days in a month"),
]

ACHIEVEMENT_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

TYPE_GROUPS: dict[str, set[str]] = {
    "cardio":   {"cardio", "running", "cycling", "swimming", "hiit"},
    "strength": {"strength", "weighttraining"},
    "yoga":     {"yoga"},
    "hiit":     {"hiit"},
    "swimming": {"swimming"},
}

# [start, end) local hours
TIME_WINDOWS: dict[str, tuple[int, int]] = {
    "morning": (5, 9),
    "lunch":   (12, 14),
    "night":   (20, 23),
}


def activity_counters(activities: Iterable[Mapping], tz: tzinfo | None = None) -> dict:
    """Aggregate the activity-derived counters achievements are measured against."""
    counters = {
        "longest_session": 0,
        "total_minutes": 0,
        "types": {group: 0 for group in TYPE_GROUPS},
        "times": {window: 0 for window in TIME_WINDOWS},
    }
    for activity in activities:
        duration = activity.get("duration") or 0
        counters["longest_session"] = max(counters["longest_session"], duration)
        counters["total_minutes"] += duration

        kind = (activity.get("type") or "").lower().replace(" ", "").replace("_", "")
        for group, members in TYPE_GROUPS.items():
            if kind in members:
                counters["types"][group] += 1

        moment = parse_timestamp(activity.get("date"))
        if moment is None:
            continue
        hour = to_local(moment, tz).hour
        for window, (start, end) in TIME_WINDOWS.items():
            if start <= hour < end:
                counters["times"][window] += 1
    return counters


def get_counter_value(user: Mapping, counters: dict, achievement: Achievement) -> int:
    if achievement.kind == "type_count":
        return counters["types"].get(achievement.match, 0)
    if achievement.kind == "time_count":
        return counters["times"].get(achievement.match, 0)
    if achievement.kind in ("longest_session", "total_minutes"):
        return counters[achievement.kind]
    return user.get(achievement.kind) or 0


def evaluate_achievements(user: Mapping, activities: Iterable[Mapping], tz: tzinfo | None = None) -> list[dict]:
    counters = activity_counters(activities, tz)
    states = []
    for achievement in ACHIEVEMENTS:
        current = get_counter_value(user, counters, achievement)
        states.append({
            "id": achievement.id,
            "title": achievement.title,
            "description": achievement.description,
            "category": achievement.category,
            "tier": achievement.tier,
            "points": achievement.points,
            "goal": achievement.goal,
            "current": min(current, achievement.goal),
            "unlocked": current >= achievement.goal,
        })
    return states


def total_points(states: Iterable[Mapping]) -> int:
    return sum(s["points"] for s in states if s["unlocked"])
