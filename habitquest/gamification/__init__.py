"""
Gamification progress engine

Turns the append-only completion ledger into derived state:
- Per-habit streaks
- XP and levels
- Challenge progress and completion
- Calendar heatmap
"""

from habitquest.gamification.xp_system import award_xp, get_user_xp, calculate_level_from_xp, get_level_info
from habitquest.gamification.streak_system import calculate_streak, get_habit_streak
from habitquest.gamification.challenges import (
    update_challenge_progress,
    join_challenge,
    abandon_challenge,
    get_available_challenges,
    get_active_challenges,
    get_completed_challenges,
)
from habitquest.gamification.heatmap import generate_heatmap, get_top_streaks

__all__ = [
    "award_xp",
    "get_user_xp",
    "calculate_level_from_xp",
    "get_level_info",
    "calculate_streak",
    "get_habit_streak",
    "update_challenge_progress",
    "join_challenge",
    "abandon_challenge",
    "get_available_challenges",
    "get_active_challenges",
    "get_completed_challenges",
    "generate_heatmap",
    "get_top_streaks",
]
