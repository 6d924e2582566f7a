"""Pydantic models"""
from habitquest.models.habit import Habit, HabitCreate, HabitCompletion, HabitWithStreak
from habitquest.models.challenge import (
    ActiveUserChallenge,
    AvailableChallenge,
    Challenge,
    ChallengeEvaluation,
    ChallengeType,
    ChallengeView,
    UserChallenge,
    UserChallengeStatus,
)
from habitquest.models.progress import (
    CompletionResult,
    HeatmapDay,
    LevelInfo,
    ProgressReport,
    TopStreak,
    UserProgress,
    UserStats,
)

__all__ = [
    "Habit",
    "HabitCreate",
    "HabitCompletion",
    "HabitWithStreak",
    "ActiveUserChallenge",
    "AvailableChallenge",
    "Challenge",
    "ChallengeEvaluation",
    "ChallengeType",
    "ChallengeView",
    "UserChallenge",
    "UserChallengeStatus",
    "CompletionResult",
    "HeatmapDay",
    "LevelInfo",
    "ProgressReport",
    "TopStreak",
    "UserProgress",
    "UserStats",
]
