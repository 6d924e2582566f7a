"""
XP and Leveling System

Leveling Curve:
- Flat: every level needs XP_PER_LEVEL (100) XP
- level = floor(total_xp / XP_PER_LEVEL) + 1, recomputed after every award

XP Award Rules:
- Habit completion: XP_PER_COMPLETION (10)
- Challenge completion: the challenge's xp_reward, granted once

Awarding is the only mutation; XP is never deducted and no caller can
supply a level.
"""

from typing import Dict, Optional
import logging

from habitquest import config
from habitquest.db import queries
from habitquest.exceptions import RecordNotFoundError, ValidationError
from habitquest.models.progress import LevelInfo

logger = logging.getLogger(__name__)


def calculate_level_from_xp(total_xp: int) -> int:
    """
    Level for an XP total

    Raises:
        ValidationError: total_xp is negative
    """
    if total_xp < 0:
        raise ValidationError("Total XP cannot be negative", field="total_xp", value=total_xp)
    return total_xp // config.XP_PER_LEVEL + 1


def get_level_info(total_xp: int) -> LevelInfo:
    """
    Level breakdown for an XP total

    Returns:
        LevelInfo with XP earned inside the current level and XP left to
        the next one
    """
    level = calculate_level_from_xp(total_xp)
    xp_in_current_level = total_xp - (level - 1) * config.XP_PER_LEVEL

    return LevelInfo(
        level=level,
        total_xp=total_xp,
        xp_in_current_level=xp_in_current_level,
        xp_for_next_level=config.XP_PER_LEVEL,
        xp_to_next_level=config.XP_PER_LEVEL - xp_in_current_level,
        progress_percent=round(xp_in_current_level / config.XP_PER_LEVEL * 100, 1),
    )


async def award_xp(
    user_id: str,
    amount: int,
    source_type: str,
    source_id: Optional[str] = None,
    reason: str = "Habit completed"
) -> Dict[str, any]:
    """
    Award XP to user and recompute level

    Args:
        user_id: User ID
        amount: XP to add (>= 0)
        source_type: What earned it (habit_completion, challenge)
        source_id: ID of the source record (optional)
        reason: Human-readable description

    Returns:
        {
            'xp_awarded': int,
            'new_total_xp': int,
            'old_total_xp': int,
            'leveled_up': bool,
            'new_level': int,
            'old_level': int,
            'xp_to_next_level': int
        }
    """
    if amount < 0:
        raise ValidationError(
            "XP awards cannot be negative",
            field="amount",
            value=amount,
            user_id=user_id,
            operation="award_xp",
        )

    new_total_xp = await queries.increment_user_xp(user_id, amount)
    old_total_xp = new_total_xp - amount

    old_level = calculate_level_from_xp(old_total_xp)
    level_info = get_level_info(new_total_xp)
    new_level = level_info.level

    await queries.set_user_level(user_id, new_level)

    leveled_up = new_level > old_level

    logger.info(
        f"Awarded {amount} XP to user {user_id} for {source_type}"
        f"{f' ({source_id})' if source_id else ''}: {reason}. "
        f"Total: {new_total_xp} XP, Level: {new_level}"
    )

    if leveled_up:
        logger.info(f"User {user_id} leveled up from {old_level} to {new_level}!")

    return {
        "xp_awarded": amount,
        "new_total_xp": new_total_xp,
        "old_total_xp": old_total_xp,
        "leveled_up": leveled_up,
        "new_level": new_level,
        "old_level": old_level,
        "xp_to_next_level": level_info.xp_to_next_level,
    }


async def get_user_xp(user_id: str) -> LevelInfo:
    """
    Get user's current XP and level information

    The level is derived from total XP, never read back from storage.
    """
    progress = await queries.get_user_progress(user_id)
    if progress is None:
        raise RecordNotFoundError(
            f"User {user_id} not found",
            record_type="User",
            record_id=user_id,
            operation="get_user_xp",
        )
    return get_level_info(progress.total_xp)
