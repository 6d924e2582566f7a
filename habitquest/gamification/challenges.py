"""
Challenge System

Catalog challenges are seeded out-of-band and never change at runtime.
Users join a challenge (at most once), every habit completion advances
each of their active challenges, and crossing the target completes the
challenge and grants its XP reward exactly once.

Progress rules per challenge type:
- streak: best current streak of the habit just completed (never regresses)
- total_completions: +1 per completion event, any habit
- consecutive_days: +1 per completion event, any habit. Described as
  "different habits in a single day" but counted like total_completions.
"""

import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from habitquest.db import queries
from habitquest.exceptions import (
    ChallengeAlreadyCompletedError,
    ChallengeAlreadyJoinedError,
    RecordNotFoundError,
)
from habitquest.gamification.streak_system import get_habit_streak
from habitquest.gamification.xp_system import award_xp
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
from habitquest.utils.datetime_helpers import TimeZoneLike, days_between, now_utc, to_local_date

logger = logging.getLogger(__name__)


# ============================================
# Seed Challenge Library
# ============================================

CHALLENGE_LIBRARY: List[Challenge] = [
    Challenge(
        name="7-Day Streak",
        description="Complete any habit for 7 consecutive days",
        type=ChallengeType.STREAK,
        duration_days=7,
        target_value=7,
        icon="🔥",
        xp_reward=150,
    ),
    Challenge(
        name="30-Day Warrior",
        description="Complete any habit for 30 consecutive days",
        type=ChallengeType.STREAK,
        duration_days=30,
        target_value=30,
        icon="⚔️",
        xp_reward=500,
    ),
    Challenge(
        name="Century Club",
        description="Complete 100 total habit completions",
        type=ChallengeType.TOTAL_COMPLETIONS,
        duration_days=365,
        target_value=100,
        icon="💯",
        xp_reward=300,
    ),
    Challenge(
        name="Habit Master",
        description="Complete 5 different habits in a single day",
        type=ChallengeType.CONSECUTIVE_DAYS,
        duration_days=1,
        target_value=5,
        icon="👑",
        xp_reward=400,
    ),
    Challenge(
        name="Early Riser",
        description="Complete a morning habit for 14 consecutive days",
        type=ChallengeType.STREAK,
        duration_days=14,
        target_value=14,
        icon="🌅",
        xp_reward=250,
    ),
]


async def seed_challenge_library(challenges: Optional[List[Challenge]] = None) -> int:
    """
    Load the catalog into storage (idempotent, keyed by name)

    Returns:
        Number of challenges written
    """
    challenges = CHALLENGE_LIBRARY if challenges is None else challenges
    for challenge in challenges:
        await queries.upsert_challenge(challenge)
    logger.info(f"Seeded {len(challenges)} challenges")
    return len(challenges)


# ============================================
# Progress Evaluation
# ============================================

def compute_challenge_progress(
    challenge: Challenge,
    current_progress: int,
    streak: Optional[int] = None
) -> int:
    """
    New progress of a user challenge after one completion event

    Args:
        challenge: Challenge definition
        current_progress: Stored progress
        streak: Current streak of the completed habit (streak challenges only)

    Returns:
        New progress, never below current_progress
    """
    if challenge.type == ChallengeType.STREAK:
        return max(current_progress, streak or 0)
    if challenge.type in (ChallengeType.TOTAL_COMPLETIONS, ChallengeType.CONSECUTIVE_DAYS):
        return current_progress + 1
    return current_progress


async def _evaluate_user_challenge(
    user_id: str,
    habit_id: UUID,
    entry: ActiveUserChallenge,
    now: datetime,
    today: date,
    tz: TimeZoneLike
) -> ChallengeEvaluation:
    user_challenge = entry.user_challenge
    challenge = entry.challenge

    streak = None
    if challenge.type == ChallengeType.STREAK:
        streak = await get_habit_streak(habit_id, today=today, tz=tz)

    new_progress = compute_challenge_progress(challenge, user_challenge.current_progress, streak)

    evaluation = ChallengeEvaluation(
        user_challenge_id=user_challenge.id,
        challenge_id=challenge.id,
        challenge_name=challenge.name,
        old_progress=user_challenge.current_progress,
        new_progress=new_progress,
    )

    if new_progress >= challenge.target_value:
        transitioned = await queries.complete_user_challenge(user_challenge.id, new_progress, now)
        if not transitioned:
            # Another request completed it first; its reward was granted there
            logger.info(f"Challenge {challenge.name} for user {user_id} already completed, skipping reward")
            return evaluation

        evaluation.completed = True
        xp_result = await award_xp(
            user_id=user_id,
            amount=challenge.xp_reward,
            source_type="challenge",
            source_id=str(challenge.id),
            reason=f"Completed challenge '{challenge.name}'",
        )
        evaluation.xp_awarded = xp_result["xp_awarded"]
        logger.info(f"User {user_id} completed challenge '{challenge.name}' ({new_progress}/{challenge.target_value})")
    else:
        await queries.update_user_challenge_progress(user_challenge.id, new_progress)

    return evaluation


async def update_challenge_progress(
    user_id: str,
    habit_id: UUID,
    now: Optional[datetime] = None,
    tz: TimeZoneLike = None
) -> List[ChallengeEvaluation]:
    """
    Advance every active challenge of a user after a habit completion

    Each challenge is its own unit of work: a failure on one is logged and
    reported in its evaluation's `error`, and the others still proceed.

    Args:
        user_id: User ID
        habit_id: Habit just completed
        now: Completion instant (defaults to now)
        tz: Day-boundary zone override

    Returns:
        One ChallengeEvaluation per active challenge
    """
    now = now or now_utc()
    today = to_local_date(now, tz)

    active = await queries.find_active_user_challenges(user_id)
    evaluations: List[ChallengeEvaluation] = []

    for entry in active:
        try:
            evaluation = await _evaluate_user_challenge(user_id, habit_id, entry, now, today, tz)
        except Exception as e:
            logger.error(
                f"Failed to update challenge {entry.challenge.id} for user {user_id}: {e}",
                exc_info=True
            )
            evaluation = ChallengeEvaluation(
                user_challenge_id=entry.user_challenge.id,
                challenge_id=entry.challenge.id,
                challenge_name=entry.challenge.name,
                old_progress=entry.user_challenge.current_progress,
                new_progress=entry.user_challenge.current_progress,
                error=str(e),
            )
        evaluations.append(evaluation)

    return evaluations


# ============================================
# Membership
# ============================================

async def join_challenge(user_id: str, challenge_id: UUID, now: Optional[datetime] = None) -> UserChallenge:
    """
    Join a catalog challenge with progress 0

    Raises:
        RecordNotFoundError: challenge does not exist
        ChallengeAlreadyJoinedError: user already joined it (active or completed)
    """
    challenge = await queries.get_challenge(challenge_id)
    if not challenge:
        raise RecordNotFoundError(
            "Challenge not found",
            record_type="Challenge",
            record_id=str(challenge_id),
            user_id=user_id,
            operation="join_challenge",
        )

    existing = await queries.get_user_challenge(user_id, challenge_id)
    if existing:
        raise ChallengeAlreadyJoinedError(
            challenge_id=str(challenge_id),
            user_id=user_id,
            operation="join_challenge",
        )

    user_challenge = UserChallenge(
        user_id=user_id,
        challenge_id=challenge_id,
        status=UserChallengeStatus.ACTIVE,
        current_progress=0,
        started_at=now or now_utc(),
    )
    return await queries.create_user_challenge(user_challenge)


async def abandon_challenge(user_id: str, challenge_id: UUID) -> None:
    """
    Leave an active challenge

    Raises:
        RecordNotFoundError: user has not joined this challenge
        ChallengeAlreadyCompletedError: challenge is completed
    """
    user_challenge = await queries.get_user_challenge(user_id, challenge_id)
    if not user_challenge:
        raise RecordNotFoundError(
            "Challenge not found or not joined",
            record_type="Challenge",
            record_id=str(challenge_id),
            user_id=user_id,
            operation="abandon_challenge",
        )

    if user_challenge.status == UserChallengeStatus.COMPLETED:
        raise ChallengeAlreadyCompletedError(
            challenge_id=str(challenge_id),
            user_id=user_id,
            operation="abandon_challenge",
        )

    deleted = await queries.delete_user_challenge(user_challenge.id)
    if not deleted:
        # Completed by a concurrent habit completion after the read above
        raise ChallengeAlreadyCompletedError(
            challenge_id=str(challenge_id),
            user_id=user_id,
            operation="abandon_challenge",
        )
    logger.info(f"User {user_id} abandoned challenge {challenge_id}")


# ============================================
# Listings
# ============================================

async def get_available_challenges(user_id: str) -> List[AvailableChallenge]:
    """Full catalog, annotated with whether the user joined each challenge"""
    challenges = await queries.list_challenges()
    joined = {
        entry.user_challenge.challenge_id: entry.user_challenge.status
        for entry in await queries.find_user_challenges(user_id)
    }

    return [
        AvailableChallenge(
            **challenge.model_dump(),
            joined=challenge.id in joined,
            user_status=joined.get(challenge.id),
        )
        for challenge in challenges
    ]


def build_challenge_view(entry: ActiveUserChallenge, now: datetime) -> ChallengeView:
    """Attach days remaining and completion percentage"""
    days_elapsed = days_between(entry.user_challenge.started_at, now)
    days_remaining = max(0, entry.challenge.duration_days - days_elapsed)
    progress_percentage = min(
        100.0,
        entry.user_challenge.current_progress / entry.challenge.target_value * 100
    )

    return ChallengeView(
        user_challenge=entry.user_challenge,
        challenge=entry.challenge,
        days_remaining=days_remaining,
        progress_percentage=progress_percentage,
    )


async def get_active_challenges(user_id: str, now: Optional[datetime] = None) -> List[ChallengeView]:
    """User's active challenges, most recently started first"""
    now = now or now_utc()
    active = await queries.find_active_user_challenges(user_id)
    return [build_challenge_view(entry, now) for entry in active]


async def get_completed_challenges(user_id: str) -> List[ActiveUserChallenge]:
    """User's completed challenges, most recently completed first"""
    return await queries.find_user_challenges(user_id, UserChallengeStatus.COMPLETED)


def format_challenge_progress(view: ChallengeView) -> str:
    """One-line progress summary"""
    challenge = view.challenge
    return (
        f"{challenge.icon} {challenge.name}: "
        f"{view.user_challenge.current_progress}/{challenge.target_value} "
        f"({view.progress_percentage:.0f}%) - {view.days_remaining} days left"
    )
