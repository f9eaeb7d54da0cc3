# backend/schemas.py
import re
from pydantic import BaseModel, Field, field_validator
import datetime as dt
from datetime import datetime, date
from typing import Literal, Optional, TypeVar, Generic

from stats import parse_active_days

REMINDER_TIME = re.compile(r"([01]\d|2[0-3]):[0-5]\d")

Frequency = Literal["daily", "weekly", "monthly", "custom"]

T = TypeVar('T')

class PaginatedResponse(BaseModel, Generic[T]):
    items:       list[T]
    total:       int
    page:        int
    limit:       int
    total_pages: int
    has_next:    bool
    has_prev:    bool


# ════════════════════════════════════════
# HABITS
# ════════════════════════════════════════

def _check_reminder_time(value: Optional[str]) -> Optional[str]:
    if not value:
        return ""
    if not REMINDER_TIME.fullmatch(value):
        raise ValueError("reminder_time must be HH:MM")
    return value


def _check_active_days(value) -> list[int]:
    if isinstance(value, str):
        # stored form — decode with the weekday fallback
        return parse_active_days(value)
    if not value:
        raise ValueError("active_days must contain at least one weekday")
    days = list(value)
    if any(d < 0 or d > 6 for d in days):
        raise ValueError("active_days must be weekday numbers 0-6 (0 = Sunday)")
    return sorted(set(days))


class HabitCreate(BaseModel):
    name:          str = Field(min_length=1, max_length=100)
    description:   Optional[str] = Field(default="", max_length=500)
    frequency:     Frequency = "daily"
    reminder_time: Optional[str] = ""
    active_days:   list[int] | str = [1, 2, 3, 4, 5]

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Habit name is required")
        return value

    @field_validator("reminder_time")
    @classmethod
    def valid_reminder_time(cls, value):
        return _check_reminder_time(value)

    @field_validator("active_days")
    @classmethod
    def valid_active_days(cls, value):
        return _check_active_days(value)


class HabitUpdate(BaseModel):
    name:          Optional[str] = Field(default=None, min_length=1, max_length=100)
    description:   Optional[str] = Field(default=None, max_length=500)
    frequency:     Optional[Frequency] = None
    reminder_time: Optional[str] = None
    active_days:   Optional[list[int] | str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("Habit name is required")
        return value

    @field_validator("reminder_time")
    @classmethod
    def valid_reminder_time(cls, value):
        return None if value is None else _check_reminder_time(value)

    @field_validator("active_days")
    @classmethod
    def valid_active_days(cls, value):
        return None if value is None else _check_active_days(value)


class HabitResponse(BaseModel):
    id:            int
    name:          str
    description:   Optional[str]
    frequency:     str
    reminder_time: Optional[str]
    active_days:   list[int]
    is_archived:   bool
    created_at:    datetime

    @field_validator("active_days", mode="before")
    @classmethod
    def decode_active_days(cls, value):
        return parse_active_days(value)

    class Config:
        from_attributes = True


class HabitWithStats(HabitResponse):
    streak:              int = 0
    completion_rate:     float = 0.0
    is_completed_today:  bool = False
    last_completed_date: Optional[str] = None
    status:              str = ""
    schedule:            str = ""


# ════════════════════════════════════════
# COMPLETIONS
# ════════════════════════════════════════

class CompletionToggle(BaseModel):
    date:      Optional[dt.date] = None    # defaults to today
    completed: bool = True

class CompletionResponse(BaseModel):
    id:              int
    habit_id:        int
    completion_date: date
    completed:       bool

    class Config:
        from_attributes = True


# ════════════════════════════════════════
# DASHBOARD
# ════════════════════════════════════════

class DashboardResponse(BaseModel):
    total_habits:      int
    completed_today:   int
    max_streak:        int
    needs_attention:   int
    habits:            list[HabitWithStats]
    today_completions: list[CompletionResponse]
