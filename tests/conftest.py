"""Global test fixtures and utilities for habitquest tests"""
import pytest
from datetime import datetime, date, time, timedelta, timezone
from typing import Optional
from unittest.mock import MagicMock, AsyncMock
from uuid import UUID, uuid4

from habitquest.db import queries
from habitquest.exceptions import (
    ChallengeAlreadyJoinedError,
    ConstraintViolationError,
    RecordNotFoundError,
)
from habitquest.models.challenge import (
    ActiveUserChallenge,
    Challenge,
    ChallengeType,
    UserChallenge,
    UserChallengeStatus,
)
from habitquest.models.habit import Habit, HabitCompletion
from habitquest.models.progress import UserProgress


# ============================================================================
# In-memory persistence collaborator
# ============================================================================

class InMemoryStore:
    """
    Dict-backed implementation of every habitquest.db.queries function

    Enforces the same uniqueness rules as the SQL schema:
    UNIQUE(habit_id, completed_on) and UNIQUE(user_id, challenge_id).
    """

    def __init__(self):
        self.users: dict[str, UserProgress] = {}
        self.habits: dict[UUID, Habit] = {}
        self.completions: list[HabitCompletion] = []
        self.challenges: dict[UUID, Challenge] = {}
        self.user_challenges: dict[UUID, UserChallenge] = {}

    # ---- helpers for tests ----

    def add_user(self, user_id: str, total_xp: int = 0, level: int = 1) -> UserProgress:
        self.users[user_id] = UserProgress(user_id=user_id, total_xp=total_xp, level=level)
        return self.users[user_id]

    def add_habit(self, user_id: str, name: str = "Read", created_at: Optional[datetime] = None) -> Habit:
        habit = Habit(
            user_id=user_id,
            name=name,
            icon="📚",
            created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        self.habits[habit.id] = habit
        return habit

    def add_completion(self, habit: Habit, completed_at: datetime, completed_on: Optional[date] = None) -> HabitCompletion:
        completion = HabitCompletion(
            habit_id=habit.id,
            user_id=habit.user_id,
            completed_at=completed_at,
            completed_on=completed_on or completed_at.date(),
            xp_earned=10,
        )
        self.completions.append(completion)
        return completion

    def add_challenge(
        self,
        type: ChallengeType = ChallengeType.STREAK,
        target_value: int = 7,
        xp_reward: int = 150,
        duration_days: int = 7,
        name: Optional[str] = None
    ) -> Challenge:
        challenge = Challenge(
            name=name or f"{type.value}-{target_value}",
            type=type,
            target_value=target_value,
            duration_days=duration_days,
            xp_reward=xp_reward,
        )
        self.challenges[challenge.id] = challenge
        return challenge

    def add_user_challenge(
        self,
        user_id: str,
        challenge: Challenge,
        progress: int = 0,
        status: UserChallengeStatus = UserChallengeStatus.ACTIVE,
        started_at: Optional[datetime] = None
    ) -> UserChallenge:
        user_challenge = UserChallenge(
            user_id=user_id,
            challenge_id=challenge.id,
            status=status,
            current_progress=progress,
            started_at=started_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        self.user_challenges[user_challenge.id] = user_challenge
        return user_challenge

    # ---- habits ----

    async def get_habit(self, habit_id, user_id):
        habit = self.habits.get(habit_id)
        return habit if habit and habit.user_id == user_id else None

    async def list_habits(self, user_id):
        habits = [h for h in self.habits.values() if h.user_id == user_id]
        return sorted(habits, key=lambda h: h.created_at, reverse=True)

    async def create_habit(self, habit):
        self.habits[habit.id] = habit
        return habit

    async def delete_habit(self, habit_id):
        self.habits.pop(habit_id, None)
        self.completions = [c for c in self.completions if c.habit_id != habit_id]

    async def find_completions(self, habit_id):
        rows = [c for c in self.completions if c.habit_id == habit_id]
        return sorted(rows, key=lambda c: c.completed_at, reverse=True)

    async def find_completions_in_range(self, user_id, start, end):
        rows = [
            c for c in self.completions
            if c.user_id == user_id and start <= c.completed_at <= end
        ]
        return sorted(rows, key=lambda c: c.completed_at)

    async def has_completion_on(self, habit_id, day):
        return any(c.habit_id == habit_id and c.completed_on == day for c in self.completions)

    async def create_completion(self, habit_id, user_id, now, xp, day):
        if await self.has_completion_on(habit_id, day):
            raise ConstraintViolationError(constraint="uq_habit_completion_day", operation="create_completion")
        completion = HabitCompletion(
            habit_id=habit_id,
            user_id=user_id,
            completed_at=now,
            completed_on=day,
            xp_earned=xp,
        )
        self.completions.append(completion)
        return completion

    async def count_completions(self, user_id):
        return sum(1 for c in self.completions if c.user_id == user_id)

    async def count_habits(self, user_id):
        return sum(1 for h in self.habits.values() if h.user_id == user_id)

    # ---- users ----

    async def get_user_progress(self, user_id):
        user = self.users.get(user_id)
        return user.model_copy() if user else None

    async def increment_user_xp(self, user_id, delta):
        if user_id not in self.users:
            raise RecordNotFoundError("User not found", record_type="User", record_id=user_id)
        self.users[user_id].total_xp += delta
        return self.users[user_id].total_xp

    async def set_user_level(self, user_id, level):
        user = self.users[user_id]
        user.level = max(user.level, level)

    # ---- challenges ----

    async def list_challenges(self):
        return list(self.challenges.values())

    async def get_challenge(self, challenge_id):
        return self.challenges.get(challenge_id)

    async def upsert_challenge(self, challenge):
        for existing in self.challenges.values():
            if existing.name == challenge.name:
                updated = challenge.model_copy(update={"id": existing.id})
                self.challenges[existing.id] = updated
                return
        self.challenges[challenge.id] = challenge

    async def find_user_challenges(self, user_id, status=None):
        rows = [
            ActiveUserChallenge(user_challenge=uc.model_copy(), challenge=self.challenges[uc.challenge_id])
            for uc in self.user_challenges.values()
            if uc.user_id == user_id and (status is None or uc.status == status)
        ]
        return sorted(
            rows,
            key=lambda r: r.user_challenge.completed_at or r.user_challenge.started_at,
            reverse=True,
        )

    async def find_active_user_challenges(self, user_id):
        return await self.find_user_challenges(user_id, UserChallengeStatus.ACTIVE)

    async def get_user_challenge(self, user_id, challenge_id):
        for uc in self.user_challenges.values():
            if uc.user_id == user_id and uc.challenge_id == challenge_id:
                return uc.model_copy()
        return None

    async def create_user_challenge(self, user_challenge):
        if await self.get_user_challenge(user_challenge.user_id, user_challenge.challenge_id):
            raise ChallengeAlreadyJoinedError(challenge_id=str(user_challenge.challenge_id))
        self.user_challenges[user_challenge.id] = user_challenge
        return user_challenge

    async def update_user_challenge_progress(self, user_challenge_id, progress):
        uc = self.user_challenges.get(user_challenge_id)
        if uc and uc.status == UserChallengeStatus.ACTIVE:
            uc.current_progress = max(uc.current_progress, progress)

    async def complete_user_challenge(self, user_challenge_id, progress, completed_at):
        uc = self.user_challenges.get(user_challenge_id)
        if not uc or uc.status != UserChallengeStatus.ACTIVE:
            return False
        uc.status = UserChallengeStatus.COMPLETED
        uc.current_progress = progress
        uc.completed_at = completed_at
        return True

    async def delete_user_challenge(self, user_challenge_id):
        uc = self.user_challenges.get(user_challenge_id)
        if not uc or uc.status != UserChallengeStatus.ACTIVE:
            return False
        del self.user_challenges[user_challenge_id]
        return True

    async def count_user_challenges(self, user_id, status):
        return sum(1 for uc in self.user_challenges.values() if uc.user_id == user_id and uc.status == status)


@pytest.fixture
def memory_store(monkeypatch):
    """Route every habitquest.db.queries call to a fresh InMemoryStore"""
    store = InMemoryStore()
    for name in queries.__all__:
        monkeypatch.setattr(queries, name, getattr(store, name))
    return store


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock connection whose cursor() context yields mock_db_cursor"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    conn.rollback = AsyncMock()
    return conn


@pytest.fixture
def patched_db(mock_db_connection):
    """Patch the global pool so db.connection() yields mock_db_connection"""
    from unittest.mock import patch

    with patch('habitquest.db.connection.db.connection') as mock_connection:
        mock_connection.return_value.__aenter__.return_value = mock_db_connection
        yield mock_connection


# ============================================================================
# User & Time Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def fixed_now():
    """A fixed instant: 2024-03-15 12:00 UTC"""
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def at_noon(day: date) -> datetime:
    """Noon UTC on a calendar day"""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


def days_ago(now: datetime, days: int, hour: int = 12) -> datetime:
    """Instant `days` calendar days before now, at a given UTC hour"""
    return datetime.combine(now.date() - timedelta(days=days), time(hour, 0), tzinfo=timezone.utc)
