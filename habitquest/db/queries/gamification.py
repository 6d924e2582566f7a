"""Gamification database queries"""
import logging
from typing import Optional
from datetime import datetime
from uuid import UUID

import psycopg
import psycopg.errors

from habitquest.db.connection import db
from habitquest.exceptions import (
    ChallengeAlreadyJoinedError,
    RecordNotFoundError,
    wrap_database_exception,
)
from habitquest.models.challenge import (
    ActiveUserChallenge,
    Challenge,
    UserChallenge,
    UserChallengeStatus,
)
from habitquest.models.progress import UserProgress

logger = logging.getLogger(__name__)


# ==========================================
# XP System Functions
# ==========================================

async def get_user_progress(user_id: str) -> Optional[UserProgress]:
    """Get a user's stored XP and level"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT id AS user_id, total_xp, level FROM users WHERE id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return UserProgress(**row) if row else None


async def increment_user_xp(user_id: str, delta: int) -> int:
    """
    Atomically add XP to a user

    Returns:
        New total XP
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE users
                SET total_xp = total_xp + %s
                WHERE id = %s
                RETURNING total_xp
                """,
                (delta, user_id)
            )
            row = await cur.fetchone()
            await conn.commit()

    if not row:
        raise RecordNotFoundError(
            f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            operation="increment_user_xp",
        )
    return row["total_xp"]


async def set_user_level(user_id: str, level: int) -> None:
    """
    Store a recomputed level

    GREATEST keeps a slower concurrent writer from lowering the level.
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "UPDATE users SET level = GREATEST(level, %s) WHERE id = %s",
                (level, user_id)
            )
            await conn.commit()


# ==========================================
# Challenge Catalog
# ==========================================

async def list_challenges() -> list[Challenge]:
    """Get every catalog challenge, newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, name, description, type, target_value, duration_days, xp_reward, icon, created_at
                FROM challenges
                ORDER BY created_at DESC
                """
            )
            rows = await cur.fetchall()
            return [Challenge(**row) for row in rows]


async def get_challenge(challenge_id: UUID) -> Optional[Challenge]:
    """Get one catalog challenge"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, name, description, type, target_value, duration_days, xp_reward, icon, created_at
                FROM challenges
                WHERE id = %s
                """,
                (challenge_id,)
            )
            row = await cur.fetchone()
            return Challenge(**row) if row else None


async def upsert_challenge(challenge: Challenge) -> None:
    """Insert or refresh a catalog challenge, keyed by name"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO challenges (id, name, description, type, target_value, duration_days, xp_reward, icon)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (name) DO UPDATE
                SET description = EXCLUDED.description,
                    type = EXCLUDED.type,
                    target_value = EXCLUDED.target_value,
                    duration_days = EXCLUDED.duration_days,
                    xp_reward = EXCLUDED.xp_reward,
                    icon = EXCLUDED.icon
                """,
                (
                    challenge.id,
                    challenge.name,
                    challenge.description,
                    challenge.type.value,
                    challenge.target_value,
                    challenge.duration_days,
                    challenge.xp_reward,
                    challenge.icon
                )
            )
            await conn.commit()


# ==========================================
# User Challenges
# ==========================================

def _row_to_user_challenge(row: dict) -> ActiveUserChallenge:
    """Split a joined user_challenges/challenges row"""
    return ActiveUserChallenge(
        user_challenge=UserChallenge(
            id=row["id"],
            user_id=row["user_id"],
            challenge_id=row["challenge_id"],
            status=row["status"],
            current_progress=row["current_progress"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        ),
        challenge=Challenge(
            id=row["challenge_id"],
            name=row["name"],
            description=row["description"],
            type=row["type"],
            target_value=row["target_value"],
            duration_days=row["duration_days"],
            xp_reward=row["xp_reward"],
            icon=row["icon"],
            created_at=row["challenge_created_at"],
        ),
    )


async def find_user_challenges(
    user_id: str,
    status: Optional[UserChallengeStatus] = None
) -> list[ActiveUserChallenge]:
    """
    Get a user's challenges joined with their definitions

    Active challenges are ordered by started_at, completed ones by
    completed_at, both most recent first.
    """
    query = """
        SELECT uc.id, uc.user_id, uc.challenge_id, uc.status, uc.current_progress,
               uc.started_at, uc.completed_at,
               c.name, c.description, c.type, c.target_value, c.duration_days,
               c.xp_reward, c.icon, c.created_at AS challenge_created_at
        FROM user_challenges uc
        JOIN challenges c ON c.id = uc.challenge_id
        WHERE uc.user_id = %s
    """
    params: list = [user_id]
    if status is not None:
        query += " AND uc.status = %s"
        params.append(status.value)
    query += " ORDER BY COALESCE(uc.completed_at, uc.started_at) DESC"

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            rows = await cur.fetchall()
            return [_row_to_user_challenge(row) for row in rows]


async def find_active_user_challenges(user_id: str) -> list[ActiveUserChallenge]:
    """Get the user's active challenges (completed ones are never evaluated again)"""
    return await find_user_challenges(user_id, UserChallengeStatus.ACTIVE)


async def get_user_challenge(user_id: str, challenge_id: UUID) -> Optional[UserChallenge]:
    """Get a user's membership in one challenge"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, user_id, challenge_id, status, current_progress, started_at, completed_at
                FROM user_challenges
                WHERE user_id = %s AND challenge_id = %s
                """,
                (user_id, challenge_id)
            )
            row = await cur.fetchone()
            return UserChallenge(**row) if row else None


async def create_user_challenge(user_challenge: UserChallenge) -> UserChallenge:
    """
    Join a challenge

    Raises:
        ChallengeAlreadyJoinedError: (user_id, challenge_id) already exists
    """
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO user_challenges (id, user_id, challenge_id, status, current_progress, started_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        user_challenge.id,
                        user_challenge.user_id,
                        user_challenge.challenge_id,
                        user_challenge.status.value,
                        user_challenge.current_progress,
                        user_challenge.started_at
                    )
                )
                await conn.commit()
    except psycopg.errors.UniqueViolation as e:
        raise ChallengeAlreadyJoinedError(
            challenge_id=str(user_challenge.challenge_id),
            user_id=user_challenge.user_id,
            operation="join_challenge",
            cause=e,
        ) from e
    except psycopg.Error as e:
        raise wrap_database_exception(
            e,
            operation="create_user_challenge",
            user_id=user_challenge.user_id,
            context={"challenge_id": str(user_challenge.challenge_id)}
        ) from e

    logger.info(f"User {user_challenge.user_id} joined challenge {user_challenge.challenge_id}")
    return user_challenge


async def update_user_challenge_progress(user_challenge_id: UUID, progress: int) -> None:
    """Store progress of an active challenge; never lowers it"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE user_challenges
                SET current_progress = GREATEST(current_progress, %s)
                WHERE id = %s AND status = 'active'
                """,
                (progress, user_challenge_id)
            )
            await conn.commit()


async def complete_user_challenge(
    user_challenge_id: UUID,
    progress: int,
    completed_at: datetime
) -> bool:
    """
    Transition an active challenge to completed

    Returns:
        True if this call performed the transition, False if it was
        already completed (or removed) by someone else
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE user_challenges
                SET status = 'completed',
                    current_progress = %s,
                    completed_at = %s
                WHERE id = %s AND status = 'active'
                RETURNING id
                """,
                (progress, completed_at, user_challenge_id)
            )
            row = await cur.fetchone()
            await conn.commit()
            return row is not None


async def delete_user_challenge(user_challenge_id: UUID) -> bool:
    """
    Remove an active membership

    Returns:
        True if a row was deleted, False if the challenge was completed
        (or already removed) in the meantime
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                DELETE FROM user_challenges
                WHERE id = %s AND status = 'active'
                RETURNING id
                """,
                (user_challenge_id,)
            )
            row = await cur.fetchone()
            await conn.commit()
            return row is not None


async def count_user_challenges(user_id: str, status: UserChallengeStatus) -> int:
    """Count a user's challenges in a given status"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COUNT(*) AS total FROM user_challenges WHERE user_id = %s AND status = %s",
                (user_id, status.value)
            )
            row = await cur.fetchone()
            return row["total"] if row else 0
