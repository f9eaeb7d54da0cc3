# backend/repository.py
"""
HabitRepository — the single place where habit queries live.

Services and routes talk to this class, never to the Session directly, so
the stats engine only ever sees plain rows handed to it.
"""
import logging
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Habit, HabitCompletion

logger = logging.getLogger("habitflow.repository")

# Columns a caller may change after creation
UPDATABLE_FIELDS = ("name", "description", "frequency", "reminder_time", "active_days", "is_archived")


def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


class HabitRepository:
    """Data-access layer wrapping a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ── Habits ──────────────────────────────

    def _habit_query(self, include_archived: bool = False):
        query = self.db.query(Habit)
        if not include_archived:
            query = query.filter(Habit.is_archived == False)  # noqa: E712
        return query

    def list_habits(self, include_archived: bool = False) -> list[Habit]:
        return (
            self._habit_query(include_archived)
            .order_by(Habit.created_at.desc(), Habit.id.desc())
            .all()
        )

    def count_habits(self, include_archived: bool = False) -> int:
        return self._habit_query(include_archived).count()

    def list_habits_page(self, page: int = 1, limit: int = 20,
                         include_archived: bool = False) -> list[Habit]:
        offset = (page - 1) * limit
        return (
            self._habit_query(include_archived)
            .order_by(Habit.created_at.desc(), Habit.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_habit(self, habit_id: int) -> Optional[Habit]:
        return self.db.get(Habit, habit_id)

    def create_habit(self, name: str, description: str = "", frequency: str = "daily",
                     reminder_time: str = "", active_days: str = "[1,2,3,4,5]",
                     created_at: Optional[datetime] = None) -> Habit:
        habit = Habit(
            name=name,
            description=description or "",
            frequency=frequency,
            reminder_time=reminder_time or "",
            active_days=active_days,
            created_at=created_at or datetime.now(),
        )
        self.db.add(habit)
        self.db.commit()
        self.db.refresh(habit)
        return habit

    def update_habit(self, habit_id: int, **fields) -> Optional[Habit]:
        habit = self.get_habit(habit_id)
        if not habit:
            return None

        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS:
                raise ValueError(f"Field '{key}' cannot be updated")
            setattr(habit, key, value)

        self.db.commit()
        self.db.refresh(habit)
        return habit

    def delete_habit(self, habit_id: int) -> bool:
        habit = self.get_habit(habit_id)
        if not habit:
            return False

        self.db.delete(habit)   # completions go with it
        self.db.commit()
        return True

    def set_archived(self, habit_id: int, archived: Optional[bool] = None) -> Optional[Habit]:
        """Sets the archived flag, or flips it when `archived` is None."""
        habit = self.get_habit(habit_id)
        if not habit:
            return None

        habit.is_archived = (not habit.is_archived) if archived is None else archived
        self.db.commit()
        self.db.refresh(habit)
        return habit

    # ── Completions ─────────────────────────

    def list_completions(self, habit_id: int) -> list[HabitCompletion]:
        return (
            self.db.query(HabitCompletion)
            .filter(HabitCompletion.habit_id == habit_id)
            .order_by(HabitCompletion.completion_date.desc())
            .all()
        )

    def completions_for_date(self, day: Union[date, str]) -> list[HabitCompletion]:
        return (
            self.db.query(HabitCompletion)
            .filter(HabitCompletion.completion_date == _as_date(day))
            .order_by(HabitCompletion.habit_id)
            .all()
        )

    def completions_between(self, start: Union[date, str],
                            end: Union[date, str]) -> list[HabitCompletion]:
        return (
            self.db.query(HabitCompletion)
            .filter(
                HabitCompletion.completion_date >= _as_date(start),
                HabitCompletion.completion_date <= _as_date(end),
            )
            .order_by(HabitCompletion.completion_date, HabitCompletion.habit_id)
            .all()
        )

    def _find_completion(self, habit_id: int, day: date) -> Optional[HabitCompletion]:
        return self.db.query(HabitCompletion).filter(
            HabitCompletion.habit_id == habit_id,
            HabitCompletion.completion_date == day
        ).first()

    def upsert_completion(self, habit_id: int, day: Union[date, str],
                          completed: bool) -> HabitCompletion:
        day = _as_date(day)

        # Upsert — update if exists, create if not
        existing = self._find_completion(habit_id, day)
        if existing:
            existing.completed = completed
            self.db.commit()
            self.db.refresh(existing)
            return existing

        new_completion = HabitCompletion(habit_id=habit_id, completion_date=day, completed=completed)
        self.db.add(new_completion)
        try:
            self.db.commit()
        except IntegrityError:
            # Someone else inserted the same (habit, day) first — last write wins
            self.db.rollback()
            logger.info(f"Concurrent insert for habit {habit_id} on {day}, updating instead")
            existing = self._find_completion(habit_id, day)
            if existing is None:
                raise
            existing.completed = completed
            self.db.commit()
            self.db.refresh(existing)
            return existing

        self.db.refresh(new_completion)
        return new_completion
