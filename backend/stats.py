# backend/stats.py
"""
Streak / completion-rate derivation.

Everything in here is pure: callers pass in a habit, its completion rows and
the reference "now". Dates are compared as fixed-width YYYY-MM-DD strings,
which sort the same way the calendar does.
"""
import json
import logging
import math
import re
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

logger = logging.getLogger("habitflow.stats")

DateLike = Union[date, datetime, str]

DEFAULT_ACTIVE_DAYS = [1, 2, 3, 4, 5]   # Mon–Fri
DAY_NAMES           = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DATE_KEY            = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class HabitStats:
    streak:              int
    completion_rate:     float
    is_completed_today:  bool
    last_completed_date: Optional[str]

    def as_dict(self) -> dict:
        return asdict(self)


# ════════════════════════════════════════
# DATE PRIMITIVES
# ════════════════════════════════════════

def to_date_key(value: DateLike) -> str:
    if isinstance(value, str):
        # only zero-padded ISO dates keep string order equal to calendar order
        if not DATE_KEY.match(value):
            raise ValueError(f"Expected a YYYY-MM-DD date, got {value!r}")
        return value[:10]
    return value.strftime("%Y-%m-%d")


def previous_day(key: str) -> str:
    return to_date_key(date.fromisoformat(key) - timedelta(days=1))


def weekday_index(value: DateLike) -> int:
    """0 = Sunday … 6 = Saturday."""
    if isinstance(value, str):
        value = date.fromisoformat(to_date_key(value))
    return value.isoweekday() % 7


def _completed_keys(completions: Iterable) -> list[str]:
    return [to_date_key(c.completion_date) for c in completions if c.completed]


# ════════════════════════════════════════
# ACTIVE DAYS
# ════════════════════════════════════════

def parse_active_days(raw) -> list[int]:
    """
    Decodes the JSON array stored in habits.active_days.
    Anything unreadable falls back to weekdays instead of raising.
    """
    if isinstance(raw, (list, tuple, set)):
        days = list(raw)
    else:
        try:
            days = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Unreadable active_days {raw!r}, using weekdays")
            return list(DEFAULT_ACTIVE_DAYS)

    if (
        not isinstance(days, list)
        or not days
        or not all(isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6 for d in days)
    ):
        logger.warning(f"Invalid active_days {raw!r}, using weekdays")
        return list(DEFAULT_ACTIVE_DAYS)

    return sorted(set(days))


def encode_active_days(days) -> str:
    return json.dumps(parse_active_days(days), separators=(",", ":"))


def is_habit_active_on_date(habit, day: DateLike) -> bool:
    # Scheduling only — streak and rate math never look at this.
    return weekday_index(day) in parse_active_days(habit.active_days)


def format_active_days(raw) -> str:
    days = parse_active_days(raw)

    if len(days) == 7:
        return "Every day"
    if days == [1, 2, 3, 4, 5]:
        return "Weekdays"
    if days == [0, 6]:
        return "Weekends"
    return ", ".join(DAY_NAMES[d] for d in days)


# ════════════════════════════════════════
# STREAK / RATE / TODAY
# ════════════════════════════════════════

def compute_streak(completions: Iterable, now: Optional[DateLike] = None) -> int:
    """
    Counts consecutive calendar days with a completed row, walking back
    from the most recent one. The first gap ends the walk.
    `now` does not anchor the run: a streak that ended last week still
    reports its length.
    """
    keys = sorted(set(_completed_keys(completions)), reverse=True)
    if not keys:
        return 0

    streak = 1
    cursor = keys[0]

    for key in keys[1:]:
        if key == previous_day(cursor):
            streak += 1
            cursor  = key
        else:
            break  # gap found — streak is broken

    return streak


def compute_total_days(created_at: Optional[DateLike], now: datetime) -> int:
    if not created_at:
        return 0

    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    elif not isinstance(created_at, datetime):
        created_at = datetime.combine(created_at, datetime.min.time())

    if not isinstance(now, datetime):
        now = datetime.combine(now, datetime.min.time())

    # naive local calendar on both sides
    created_at = created_at.replace(tzinfo=None)
    now        = now.replace(tzinfo=None)

    diff_days = math.ceil((now - created_at).total_seconds() / 86400)
    return max(1, diff_days)


def compute_completion_rate(habit, completions: Iterable, now: Optional[datetime] = None) -> float:
    now            = now or datetime.now()
    total_days     = compute_total_days(habit.created_at, now)
    completed_days = len(_completed_keys(completions))

    # Not clamped: more completions than days means the data predates created_at.
    return (completed_days / total_days) * 100 if total_days > 0 else 0.0


def is_completed_today(completions: Iterable, now: Optional[DateLike] = None) -> bool:
    today = to_date_key(now or datetime.now())
    return any(key == today for key in _completed_keys(completions))


def last_completed_date(completions: Iterable) -> Optional[str]:
    keys = _completed_keys(completions)
    return max(keys) if keys else None


def compute_habit_stats(habit, completions: Iterable, now: Optional[datetime] = None) -> HabitStats:
    now         = now or datetime.now()
    completions = list(completions)

    return HabitStats(
        streak              = compute_streak(completions, now),
        completion_rate     = compute_completion_rate(habit, completions, now),
        is_completed_today  = is_completed_today(completions, now),
        last_completed_date = last_completed_date(completions),
    )


# ════════════════════════════════════════
# PRESENTATION HELPERS
# ════════════════════════════════════════

def habit_status(stats: HabitStats) -> str:
    if stats.is_completed_today:
        return "Completed today"
    if stats.streak == 0:
        return "Not started"
    return f"{stats.streak} day streak"


def habit_priority(habit, stats: HabitStats, now: Optional[DateLike] = None) -> float:
    """Higher score means the habit needs attention sooner."""
    now   = now or datetime.now()
    score = 0.0

    if is_habit_active_on_date(habit, now):
        score += 10
    if not stats.is_completed_today:
        score += 5

    score += min(stats.streak, 10)
    score += max(0.0, 100 - stats.completion_rate) / 10
    return score


def sort_by_priority(items: list[tuple], now: Optional[DateLike] = None) -> list[tuple]:
    """
    Sorts tuples that start with (habit, stats): anything not yet done
    today first, then by descending priority score.
    """
    now = now or datetime.now()
    return sorted(
        items,
        key=lambda pair: (pair[1].is_completed_today, -habit_priority(pair[0], pair[1], now)),
    )
