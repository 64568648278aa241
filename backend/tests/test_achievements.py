from datetime import timezone

from fitstreak.engine.achievements import (
    ACHIEVEMENTS, ACHIEVEMENT_BY_ID, activity_counters, evaluate_achievements, total_points,
)

UTC = timezone.utc


def activity(type="running", duration=30, date="2026-02-27T10:00:00+00:00"):
    return {"type": type, "duration": duration, "date": date}


def by_id(states):
    return {s["id"]: s for s in states}


class TestCatalog:
    def test_ids_unique(self):
        assert len(ACHIEVEMENT_BY_ID) == len(ACHIEVEMENTS)

    def test_type_and_time_achievements_have_match(self):
        for a in ACHIEVEMENTS:
            if a.kind in ("type_count", "time_count"):
                assert a.match, a.id


class TestCounters:
    def test_duration_totals(self):
        counters = activity_counters([activity(duration=45), activity(duration=90)], UTC)
        assert counters["longest_session"] == 90
        assert counters["total_minutes"] == 135

    def test_type_groups(self):
        counters = activity_counters([
            activity("running"), activity("Weight Training"), activity("weightTraining"),
            activity("hiit"), activity("yoga"),
        ], UTC)
        assert counters["types"]["cardio"] == 2   # running + hiit
        assert counters["types"]["strength"] == 2
        assert counters["types"]["hiit"] == 1
        assert counters["types"]["yoga"] == 1

    def test_time_windows_use_local_hour(self):
        counters = activity_counters([
            activity(date="2026-02-27T06:30:00+00:00"),
            activity(date="2026-02-27T12:15:00+00:00"),
            activity(date="2026-02-27T21:00:00+00:00"),
            activity(date="2026-02-27T09:00:00+00:00"),   # window end is exclusive
            activity(date=None),
        ], UTC)
        assert counters["times"] == {"morning": 1, "lunch": 1, "night": 1}


class TestEvaluate:
    def test_new_user_has_nothing_unlocked(self):
        states = evaluate_achievements({"best_streak": 0, "total_workouts": 0}, [], UTC)
        assert len(states) == len(ACHIEVEMENTS)
        assert not any(s["unlocked"] for s in states)
        assert total_points(states) == 0

    def test_streak_measured_against_best(self):
        user = {"current_streak": 0, "best_streak": 7, "total_workouts": 7}
        states = by_id(evaluate_achievements(user, [activity() for _ in range(7)], UTC))
        assert states["streak-3"]["unlocked"]
        assert states["streak-7"]["unlocked"]
        assert states["milestone-week"]["unlocked"]
        assert not states["milestone-month"]["unlocked"]
        assert not states["streak-30"]["unlocked"]
        assert states["streak-30"]["current"] == 7
        assert states["milestone-first"]["unlocked"]

    def test_perfect_month_needs_thirty_day_best(self):
        states = by_id(evaluate_achievements({"best_streak": 30, "total_workouts": 30}, [], UTC))
        month = states["milestone-month"]
        assert month["unlocked"]
        assert month["points"] == 2000
        assert month["tier"] == "gold"
        assert states["streak-30"]["unlocked"]

    def test_current_capped_at_goal(self):
        user = {"best_streak": 0, "total_workouts": 12}
        states = by_id(evaluate_achievements(user, [activity(duration=150)], UTC))
        assert states["workouts-10"]["current"] == 10
        assert states["duration-60"]["unlocked"]
        assert states["duration-120"]["unlocked"]

    def test_points_sum_unlocked_only(self):
        user = {"best_streak": 3, "total_workouts": 1}
        states = evaluate_achievements(user, [activity(duration=10)], UTC)
        assert total_points(states) == 100 + 50
