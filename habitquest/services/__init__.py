"""
Service Layer Package

Business logic services between callers (API handlers, scripts) and the
data access layer (database queries).

- HabitService: Habit CRUD, completing habits, habit listing with streaks
- ChallengeService: Challenge catalog, join/abandon, active and completed challenges
- ProgressService: Heatmap, top streaks, account stats
"""

from habitquest.services.container import ServiceContainer, get_container, init_container
from habitquest.services.habit_service import HabitService
from habitquest.services.challenge_service import ChallengeService
from habitquest.services.progress_service import ProgressService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "HabitService",
    "ChallengeService",
    "ProgressService",
]
