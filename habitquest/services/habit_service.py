"""
HabitService - Habit Business Logic

Handles habit creation, deletion, listing with streaks, and the
"complete habit" operation that drives the progress engine.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from habitquest import config
from habitquest.db import queries
from habitquest.exceptions import (
    DuplicateCompletionError,
    RecordNotFoundError,
    ValidationError,
)
from habitquest.gamification.challenges import update_challenge_progress
from habitquest.gamification.streak_system import calculate_streak, get_habit_streak
from habitquest.gamification.xp_system import award_xp, calculate_level_from_xp
from habitquest.models.challenge import ChallengeEvaluation
from habitquest.models.habit import Habit, HabitCreate, HabitWithStreak
from habitquest.models.progress import CompletionResult
from habitquest.utils.datetime_helpers import TimeZoneLike, now_utc, to_local_date

logger = logging.getLogger(__name__)


class HabitService:
    """
    Service for habits and habit completions.

    Responsibilities:
    - Habit CRUD with ownership checks
    - Recording completions (one per habit per calendar day)
    - Awarding completion XP and advancing challenges
    """

    def __init__(self, db_connection, tz: TimeZoneLike = None):
        """
        Initialize HabitService.

        Args:
            db_connection: Database connection instance
            tz: Day-boundary zone (defaults to DAY_BOUNDARY_TIMEZONE)
        """
        self.db = db_connection
        self.tz = tz
        logger.debug("HabitService initialized")

    async def _get_owned_habit(self, user_id: str, habit_id: UUID, operation: str) -> Habit:
        habit = await queries.get_habit(habit_id, user_id)
        if not habit:
            raise RecordNotFoundError(
                "Habit not found",
                record_type="Habit",
                record_id=str(habit_id),
                user_id=user_id,
                operation=operation,
            )
        return habit

    async def create_habit(self, user_id: str, data: Union[HabitCreate, Dict[str, Any]]) -> Habit:
        """
        Create a habit for a user.

        Raises:
            ValidationError: data fails HabitCreate validation
        """
        if not isinstance(data, HabitCreate):
            try:
                data = HabitCreate(**data)
            except PydanticValidationError as e:
                first = e.errors()[0]
                raise ValidationError(
                    message=first["msg"],
                    field=".".join(str(part) for part in first["loc"]),
                    value=first.get("input"),
                    user_id=user_id,
                    operation="create_habit",
                    cause=e,
                ) from e

        habit = Habit(user_id=user_id, created_at=now_utc(), **data.model_dump())
        return await queries.create_habit(habit)

    async def delete_habit(self, user_id: str, habit_id: UUID) -> None:
        """Delete a habit the user owns (its completions go with it)."""
        await self._get_owned_habit(user_id, habit_id, "delete_habit")
        await queries.delete_habit(habit_id)

    async def list_habits(self, user_id: str, now: Optional[datetime] = None) -> List[HabitWithStreak]:
        """
        All of a user's habits, newest first, with current streak and
        whether each was completed today.
        """
        today = to_local_date(now or now_utc(), self.tz)
        habits = await queries.list_habits(user_id)

        result = []
        for habit in habits:
            completions = await queries.find_completions(habit.id)
            result.append(HabitWithStreak(
                **habit.model_dump(),
                streak=calculate_streak(completions, today=today, tz=self.tz),
                completed_today=any(
                    to_local_date(c.completed_at, self.tz) == today for c in completions
                ),
            ))
        return result

    async def complete_habit(
        self,
        user_id: str,
        habit_id: UUID,
        now: Optional[datetime] = None
    ) -> CompletionResult:
        """
        Record today's completion of a habit and apply its rewards.

        Order: ownership check, duplicate check, completion insert,
        completion XP, challenge evaluation. Each step reads current state
        rather than reusing earlier reads.

        Raises:
            RecordNotFoundError: habit missing or owned by someone else
            DuplicateCompletionError: already completed today (including
                ConstraintViolationError when a concurrent request won)
        """
        await self._get_owned_habit(user_id, habit_id, "complete_habit")

        now = now or now_utc()
        today = to_local_date(now, self.tz)

        if await queries.has_completion_on(habit_id, today):
            raise DuplicateCompletionError(
                habit_id=str(habit_id),
                day=today,
                user_id=user_id,
                operation="complete_habit",
            )

        xp_amount = config.XP_PER_COMPLETION
        completion = await queries.create_completion(habit_id, user_id, now, xp_amount, today)

        xp_result = await award_xp(
            user_id=user_id,
            amount=xp_amount,
            source_type="habit_completion",
            source_id=str(completion.id),
        )

        evaluations = await update_challenge_progress(user_id, habit_id, now=now, tz=self.tz)
        challenge_xp = sum(e.xp_awarded for e in evaluations)

        total_xp = xp_result["new_total_xp"]
        if challenge_xp:
            progress = await queries.get_user_progress(user_id)
            total_xp = progress.total_xp if progress else total_xp + challenge_xp
        new_level = calculate_level_from_xp(total_xp)
        leveled_up = new_level > xp_result["old_level"]

        streak = await get_habit_streak(habit_id, today=today, tz=self.tz)

        result = CompletionResult(
            completion=completion,
            xp_earned=xp_amount,
            total_xp=total_xp,
            new_level=new_level,
            leveled_up=leveled_up,
            streak=streak,
            challenges=evaluations,
            challenge_xp=challenge_xp,
            message=self._build_completion_message(xp_amount, streak, evaluations, leveled_up, new_level),
        )

        logger.info(
            f"Habit {habit_id} completed: user={user_id}, xp={xp_amount}+{challenge_xp}, "
            f"streak={streak}, level={new_level}"
        )
        return result

    @staticmethod
    def _build_completion_message(
        xp_amount: int,
        streak: int,
        evaluations: List[ChallengeEvaluation],
        leveled_up: bool,
        new_level: int
    ) -> str:
        parts = [f"+{xp_amount} XP"]
        if streak > 1:
            parts.append(f"🔥 {streak}-day streak")
        for evaluation in evaluations:
            if evaluation.completed:
                parts.append(f"🏆 {evaluation.challenge_name} completed (+{evaluation.xp_awarded} XP)")
        if leveled_up:
            parts.append(f"⬆️ Level {new_level}")
        return " | ".join(parts)
