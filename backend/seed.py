# backend/seed.py
"""
Demo data: five habits created two weeks ago, each with a fortnight of
sample completions on its active days.
"""
import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from repository import HabitRepository
from stats import parse_active_days, weekday_index

logger = logging.getLogger("habitflow.seed")

DEMO_HABITS = [
    {"name": "Morning Meditation", "description": "10 minutes of mindfulness meditation",
     "frequency": "daily", "reminder_time": "07:00", "active_days": "[0,1,2,3,4,5,6]"},
    {"name": "Read 20 Pages", "description": "Read at least 20 pages of a book",
     "frequency": "daily", "reminder_time": "20:00", "active_days": "[1,2,3,4,5]"},
    {"name": "Drink Water", "description": "Drink at least 8 glasses of water",
     "frequency": "daily", "reminder_time": "", "active_days": "[0,1,2,3,4,5,6]"},
    {"name": "Exercise", "description": "30 minutes of exercise",
     "frequency": "daily", "reminder_time": "18:00", "active_days": "[1,3,5]"},
    {"name": "Journal", "description": "Write in journal before bed",
     "frequency": "daily", "reminder_time": "21:00", "active_days": "[1,2,3,4,5]"},
]

HISTORY_DAYS = 14


def _completion_probability(days_ago: int) -> float:
    # recent days are more likely to be done
    if days_ago < 3:
        return 0.8
    if days_ago < 7:
        return 0.7
    return 0.5


def seed_demo_data(repo: HabitRepository, now: Optional[datetime] = None,
                   rng: Optional[random.Random] = None) -> int:
    """Returns the number of habits created; does nothing if any habit exists."""
    if repo.count_habits(include_archived=True) > 0:
        logger.info("Database already has habits, skipping seed")
        return 0

    now        = now or datetime.now()
    rng        = rng or random.Random()
    created_at = now - timedelta(days=HISTORY_DAYS)

    for data in DEMO_HABITS:
        habit       = repo.create_habit(created_at=created_at, **data)
        active_days = parse_active_days(habit.active_days)

        for days_ago in range(HISTORY_DAYS):
            day = (now - timedelta(days=days_ago)).date()
            if weekday_index(day) not in active_days:
                continue
            repo.upsert_completion(habit.id, day, rng.random() < _completion_probability(days_ago))

    logger.info(f"Seeded {len(DEMO_HABITS)} demo habits")
    return len(DEMO_HABITS)
