from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ActivityCreate(BaseModel):
    type: str = Field(min_length=1, max_length=50)
    duration: int = Field(gt=0, le=24 * 60)   # minutes
    date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    completed: bool = True
    model_config = {"extra": "ignore"}

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("type must not be blank")
        return v

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, v):
        if v is None:
            return None
        return v.strip() or None


class UserPatch(BaseModel):
    username: str = Field(min_length=1, max_length=30)


class StreakState(BaseModel):
    current_streak: int = Field(ge=0)
    best_streak: int = Field(ge=0)
    streak_day: Optional[int] = None
