"""
FitStreak — FastAPI backend
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .auth import build_auth
from .config import get_settings
from .db import (
    get_client, get_user, create_user, update_user, delete_user,
    list_recent_activities, list_activities_between, list_all_activities,
    delete_activities, get_latest_suggestion, create_suggestion,
    mark_suggestion_used, delete_suggestions,
)
from .engine.achievements import evaluate_achievements, total_points
from .engine.weekly import week_bounds, weekly_progress
from .errors import FitStreakError, UserNotFound
from .models import ActivityCreate, UserPatch, StreakState
from .suggestions import generate_suggestion, make_gemini_generator
from .tracker import log_activity

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

settings = get_settings()

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="FitStreak API")
app.state.limiter = limiter
app.state.auth = build_auth(settings)
app.state.generate_text = make_gemini_generator(settings.gemini_api_key, settings.gemini_model)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


@app.exception_handler(FitStreakError)
def fitstreak_error_handler(request: Request, exc: FitStreakError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.get("/health")
def health():
    try:
        db = get_client()
        db.table("users").select("id").limit(1).execute()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Auth ──────────────────────────────────────────────────────────────────────

def current_user_id(request: Request) -> str:
    return request.app.state.auth.resolve_user_id(request)


def require_user(user_id: str = Depends(current_user_id)) -> dict:
    user = get_user(get_client(), user_id)
    if not user:
        raise UserNotFound(user_id)
    return user


# ── User ──────────────────────────────────────────────────────────────────────

@app.get("/api/user")
def read_user(user_id: str = Depends(current_user_id)):
    db = get_client()
    user = get_user(db, user_id)
    if not user:
        user = create_user(db, user_id, "User")
        logger.info("User created: %s...", user_id[:8])
    return user


@app.patch("/api/user")
def patch_user(body: UserPatch, user: dict = Depends(require_user)):
    updated = update_user(get_client(), user["id"], {"username": body.username})
    if not updated:
        raise UserNotFound(user["id"])
    return updated


# ── Activities ────────────────────────────────────────────────────────────────

@app.get("/api/activities")
def read_activities(limit: int = Query(10, ge=1, le=100), user_id: str = Depends(current_user_id)):
    return list_recent_activities(get_client(), user_id, limit)


@app.get("/api/activities/weekly")
def read_weekly_activities(user_id: str = Depends(current_user_id)):
    now = datetime.now(timezone.utc)
    start, end = week_bounds(now, settings.tz)
    activities = list_activities_between(get_client(), user_id, start, end)
    return weekly_progress(activities, now, settings.tz)


@app.post("/api/activities", status_code=201)
@limiter.limit("30/minute")
def create_activity(request: Request, body: ActivityCreate, user_id: str = Depends(current_user_id)):
    activity, result = log_activity(get_client(), user_id, body.model_dump())
    return {
        "activity": activity,
        "streak": StreakState(
            current_streak=result.current_streak,
            best_streak=result.best_streak,
            streak_day=result.streak_day_for_latest,
        ),
    }


# ── Streak & achievements ─────────────────────────────────────────────────────

@app.get("/api/streak", response_model=StreakState)
def read_streak(user: dict = Depends(require_user)):
    # Stored values only; the streak is recomputed when activities are logged.
    return StreakState(
        current_streak=user.get("current_streak") or 0,
        best_streak=user.get("best_streak") or 0,
    )


@app.get("/api/achievements")
def read_achievements(user: dict = Depends(require_user)):
    activities = list_all_activities(get_client(), user["id"])
    states = evaluate_achievements(user, activities, settings.tz)
    return {
        "achievements": states,
        "unlocked": sum(1 for s in states if s["unlocked"]),
        "points": total_points(states),
    }


# ── Suggestions ───────────────────────────────────────────────────────────────

@app.get("/api/suggestions")
def read_suggestion(request: Request, user: dict = Depends(require_user)):
    existing = get_latest_suggestion(get_client(), user["id"])
    if existing:
        return existing
    return _new_suggestion(request, user)


@app.post("/api/suggestions/refresh")
@limiter.limit("10/minute")
def refresh_suggestion(request: Request, user: dict = Depends(require_user)):
    return _new_suggestion(request, user)


@app.post("/api/suggestions/{suggestion_id}/use")
def use_suggestion(suggestion_id: int, user_id: str = Depends(current_user_id)):
    updated = mark_suggestion_used(get_client(), user_id, suggestion_id)
    if not updated:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return updated


# ── Delete ────────────────────────────────────────────────────────────────────

@app.delete("/api/me", status_code=200)
def delete_me(user: dict = Depends(require_user)):
    db = get_client()
    delete_activities(db, user["id"])
    delete_suggestions(db, user["id"])
    delete_user(db, user["id"])
    logger.info("User deleted: %s...", user["id"][:8])
    return {"status": "deleted", "message": "All your data has been permanently deleted."}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _new_suggestion(request: Request, user: dict) -> dict:
    db = get_client()
    recent = list_recent_activities(db, user["id"], 5)
    generated = generate_suggestion(
        recent,
        user.get("current_streak") or 0,
        user.get("total_workouts") or 0,
        request.app.state.generate_text,
    )
    return create_suggestion(db, user["id"], generated["suggestion"], generated["goals"])
