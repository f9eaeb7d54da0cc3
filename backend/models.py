# backend/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean,
    DateTime, Date, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
from datetime import datetime

Base = declarative_base()


class Habit(Base):
    __tablename__ = "habits"

    id            = Column(Integer, primary_key=True, index=True)
    name          = Column(String(100), nullable=False)
    description   = Column(String(500), default="")
    frequency     = Column(String, nullable=False, default="daily")   # daily | weekly | monthly | custom
    reminder_time = Column(String, default="")                        # HH:MM, informational
    active_days   = Column(String, nullable=False, default="[1,2,3,4,5]")  # JSON array, 0 = Sunday
    is_archived   = Column(Boolean, nullable=False, default=False)
    created_at    = Column(DateTime, nullable=False, default=datetime.now)  # naive local time

    completions = relationship(
        "HabitCompletion",
        back_populates="habit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_habits_archived", "is_archived"),
    )


class HabitCompletion(Base):
    __tablename__ = "habit_completions"

    id              = Column(Integer, primary_key=True, index=True)
    habit_id        = Column(Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    completion_date = Column(Date, nullable=False)
    completed       = Column(Boolean, nullable=False, default=True)

    habit = relationship("Habit", back_populates="completions")

    # One row per habit per day
    __table_args__ = (
        UniqueConstraint("habit_id", "completion_date", name="uq_habit_completions_habit_date"),
        Index("ix_habit_completions_date", "completion_date"),
    )
