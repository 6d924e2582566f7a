"""Habit and completion-ledger models"""
from typing import Optional
from datetime import datetime, date
from uuid import UUID, uuid4
from pydantic import BaseModel, Field


class HabitCreate(BaseModel):
    """Input for creating a habit"""
    name: str = Field(min_length=1, max_length=100)
    icon: str
    goal_type: str = "check"  # check, count, duration
    goal_value: Optional[int] = Field(default=None, ge=1, le=10000)
    goal_unit: Optional[str] = Field(default=None, max_length=50)


class Habit(BaseModel):
    """A user's habit"""
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    name: str
    icon: str = ""
    goal_type: str = "check"
    goal_value: Optional[int] = None
    goal_unit: Optional[str] = None
    created_at: datetime


class HabitCompletion(BaseModel):
    """
    One entry in the append-only completion ledger

    completed_on is the calendar day of completed_at in the day-boundary
    zone; (habit_id, completed_on) is unique.
    """
    id: UUID = Field(default_factory=uuid4)
    habit_id: UUID
    user_id: str
    completed_at: datetime
    completed_on: Optional[date] = None
    xp_earned: int = 0


class HabitWithStreak(Habit):
    """Habit listing row"""
    streak: int = 0
    completed_today: bool = False
