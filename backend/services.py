# backend/services.py
from datetime import date, datetime
from typing import Optional, Union

from models import Habit
from repository import HabitRepository
from stats import (
    compute_habit_stats, encode_active_days, format_active_days,
    habit_status, sort_by_priority, to_date_key,
)

# ════════════════════════════════════════
# HABIT SERVICES
# ════════════════════════════════════════

def _habit_record(habit: Habit) -> dict:
    return {
        "id":            habit.id,
        "name":          habit.name,
        "description":   habit.description,
        "frequency":     habit.frequency,
        "reminder_time": habit.reminder_time,
        "active_days":   habit.active_days,
        "is_archived":   habit.is_archived,
        "created_at":    habit.created_at,
    }


def _with_stats(repo: HabitRepository, habit: Habit, now: datetime):
    stats = compute_habit_stats(habit, repo.list_completions(habit.id), now)
    record = {
        **_habit_record(habit),
        **stats.as_dict(),
        "status":   habit_status(stats),
        "schedule": format_active_days(habit.active_days),
    }
    return stats, record


def get_habit_with_stats(repo: HabitRepository, habit_id: int,
                         now: Optional[datetime] = None) -> Optional[dict]:
    habit = repo.get_habit(habit_id)
    if not habit:
        return None

    _, record = _with_stats(repo, habit, now or datetime.now())
    return record


def get_all_habits_with_stats(repo: HabitRepository, now: Optional[datetime] = None,
                              include_archived: bool = False) -> list[dict]:
    now = now or datetime.now()
    return [_with_stats(repo, habit, now)[1] for habit in repo.list_habits(include_archived)]


def get_habits_with_stats(repo: HabitRepository, now: Optional[datetime] = None,
                          page: int = 1, limit: int = 20,
                          include_archived: bool = False, sort: str = "recent") -> dict:
    now    = now or datetime.now()
    total  = repo.count_habits(include_archived)
    habits = repo.list_habits_page(page, limit, include_archived)

    pairs = []
    for habit in habits:
        stats, record = _with_stats(repo, habit, now)
        pairs.append((habit, stats, record))

    if sort == "priority":
        pairs = sort_by_priority(pairs, now)

    return {
        "items":       [record for _, _, record in pairs],
        "total":       total,
        "page":        page,
        "limit":       limit,
        "total_pages": max(1, -(-total // limit)),  # ceiling division
        "has_next":    page * limit < total,
        "has_prev":    page > 1,
    }


def create_habit(repo: HabitRepository, name: str, description: str = "",
                 frequency: str = "daily", reminder_time: str = "",
                 active_days=None, now: Optional[datetime] = None) -> dict:
    habit = repo.create_habit(
        name=name,
        description=description,
        frequency=frequency,
        reminder_time=reminder_time,
        active_days=encode_active_days(active_days if active_days is not None else "[1,2,3,4,5]"),
        created_at=now,
    )
    _, record = _with_stats(repo, habit, now or datetime.now())
    return record


def update_habit(repo: HabitRepository, habit_id: int, fields: dict,
                 now: Optional[datetime] = None) -> Optional[dict]:
    if "active_days" in fields:
        fields = {**fields, "active_days": encode_active_days(fields["active_days"])}

    habit = repo.update_habit(habit_id, **fields)
    if not habit:
        return None

    _, record = _with_stats(repo, habit, now or datetime.now())
    return record


def toggle_archive(repo: HabitRepository, habit_id: int,
                   now: Optional[datetime] = None) -> Optional[dict]:
    habit = repo.set_archived(habit_id)
    if not habit:
        return None

    _, record = _with_stats(repo, habit, now or datetime.now())
    return record


# ════════════════════════════════════════
# COMPLETION SERVICES
# ════════════════════════════════════════

def toggle_completion(repo: HabitRepository, habit_id: int,
                      day: Union[date, str], completed: bool):
    # Verify the habit exists before touching completions
    if not repo.get_habit(habit_id):
        return None
    return repo.upsert_completion(habit_id, day, completed)


# ════════════════════════════════════════
# DASHBOARD SERVICE
# ════════════════════════════════════════

def get_dashboard(repo: HabitRepository, now: Optional[datetime] = None) -> dict:
    now    = now or datetime.now()
    habits = get_all_habits_with_stats(repo, now)

    return {
        "total_habits":      len(habits),
        "completed_today":   sum(1 for h in habits if h["is_completed_today"]),
        "max_streak":        max((h["streak"] for h in habits), default=0),
        "needs_attention":   sum(1 for h in habits if h["completion_rate"] < 50),
        "habits":            habits,
        "today_completions": repo.completions_for_date(to_date_key(now)),
    }
