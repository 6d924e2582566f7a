"""Habit and completion ledger database queries"""
import logging
from typing import Optional
from datetime import datetime, date
from uuid import UUID

import psycopg

from habitquest.db.connection import db
from habitquest.exceptions import wrap_database_exception
from habitquest.models.habit import Habit, HabitCompletion

logger = logging.getLogger(__name__)


# ==========================================
# Habit CRUD Operations
# ==========================================

async def get_habit(habit_id: UUID, user_id: str) -> Optional[Habit]:
    """Get habit if it exists and belongs to user"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, user_id, name, icon, goal_type, goal_value, goal_unit, created_at
                FROM habits
                WHERE id = %s AND user_id = %s
                """,
                (habit_id, user_id)
            )
            row = await cur.fetchone()
            return Habit(**row) if row else None


async def list_habits(user_id: str) -> list[Habit]:
    """Get all habits for user, newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, user_id, name, icon, goal_type, goal_value, goal_unit, created_at
                FROM habits
                WHERE user_id = %s
                ORDER BY created_at DESC
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [Habit(**row) for row in rows]


async def create_habit(habit: Habit) -> Habit:
    """Create new habit"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO habits (id, user_id, name, icon, goal_type, goal_value, goal_unit, created_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    habit.id,
                    habit.user_id,
                    habit.name,
                    habit.icon,
                    habit.goal_type,
                    habit.goal_value,
                    habit.goal_unit,
                    habit.created_at
                )
            )
            await conn.commit()
    logger.info(f"Created habit {habit.id} for user {habit.user_id}")
    return habit


async def delete_habit(habit_id: UUID) -> None:
    """Delete habit (completions cascade)"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute("DELETE FROM habits WHERE id = %s", (habit_id,))
            await conn.commit()
    logger.info(f"Deleted habit {habit_id}")


# ==========================================
# Completion Ledger
# ==========================================

async def find_completions(habit_id: UUID) -> list[HabitCompletion]:
    """Get every completion of a habit, most recent first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, habit_id, user_id, completed_at, completed_on, xp_earned
                FROM habit_completions
                WHERE habit_id = %s
                ORDER BY completed_at DESC
                """,
                (habit_id,)
            )
            rows = await cur.fetchall()
            return [HabitCompletion(**row) for row in rows]


async def find_completions_in_range(
    user_id: str,
    start: datetime,
    end: datetime
) -> list[HabitCompletion]:
    """Get a user's completions across all habits with start <= completed_at <= end"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, habit_id, user_id, completed_at, completed_on, xp_earned
                FROM habit_completions
                WHERE user_id = %s
                  AND completed_at >= %s
                  AND completed_at <= %s
                ORDER BY completed_at
                """,
                (user_id, start, end)
            )
            rows = await cur.fetchall()
            return [HabitCompletion(**row) for row in rows]


async def has_completion_on(habit_id: UUID, day: date) -> bool:
    """Check whether habit already has a completion on a calendar day"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT 1 FROM habit_completions
                WHERE habit_id = %s AND completed_on = %s
                LIMIT 1
                """,
                (habit_id, day)
            )
            return await cur.fetchone() is not None


async def create_completion(
    habit_id: UUID,
    user_id: str,
    now: datetime,
    xp: int,
    day: date
) -> HabitCompletion:
    """
    Insert a completion

    Raises:
        ConstraintViolationError: habit already has a completion on `day`
    """
    completion = HabitCompletion(
        habit_id=habit_id,
        user_id=user_id,
        completed_at=now,
        completed_on=day,
        xp_earned=xp,
    )
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO habit_completions (id, habit_id, user_id, completed_at, completed_on, xp_earned)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        completion.id,
                        completion.habit_id,
                        completion.user_id,
                        completion.completed_at,
                        completion.completed_on,
                        completion.xp_earned
                    )
                )
                await conn.commit()
    except psycopg.Error as e:
        raise wrap_database_exception(
            e,
            operation="create_completion",
            user_id=user_id,
            context={"habit_id": str(habit_id), "day": day.isoformat()}
        ) from e

    logger.debug(f"Recorded completion of habit {habit_id} on {day}")
    return completion


async def count_completions(user_id: str) -> int:
    """Total completions across all of a user's habits"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COUNT(*) AS total FROM habit_completions WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return row["total"] if row else 0


async def count_habits(user_id: str) -> int:
    """Number of habits a user owns"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COUNT(*) AS total FROM habits WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return row["total"] if row else 0
