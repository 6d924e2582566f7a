"""User progress, reporting and completion result models"""
from typing import Optional
import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from habitquest.models.habit import HabitCompletion
from habitquest.models.challenge import ChallengeEvaluation


class UserProgress(BaseModel):
    """Stored XP fields of a user"""
    user_id: str
    total_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)


class LevelInfo(BaseModel):
    """Level breakdown for an XP bar"""
    level: int
    total_xp: int
    xp_in_current_level: int
    xp_for_next_level: int
    xp_to_next_level: int
    progress_percent: float


class HeatmapDay(BaseModel):
    """Completions on one calendar day"""
    date: datetime.date
    count: int = 0


class TopStreak(BaseModel):
    """A habit ranked by current streak"""
    id: UUID
    name: str
    icon: str = ""
    streak: int


class ProgressReport(BaseModel):
    """Heatmap window plus top streaks"""
    top_streaks: list[TopStreak]
    heatmap_data: list[HeatmapDay]


class UserStats(BaseModel):
    """Account summary"""
    user_id: str
    level: int
    total_xp: int
    total_habits: int
    total_completions: int
    current_streak: int
    completed_challenges: int


class CompletionResult(BaseModel):
    """Everything a completion changed"""
    completion: HabitCompletion
    xp_earned: int
    total_xp: int
    new_level: int
    leveled_up: bool = False
    streak: int
    challenges: list[ChallengeEvaluation] = Field(default_factory=list)
    challenge_xp: int = 0
    message: Optional[str] = None
