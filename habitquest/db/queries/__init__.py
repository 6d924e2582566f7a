"""
Database queries - re-export all functions.

Engine code calls these through the package (queries.find_completions(...))
so tests and alternative stores can swap implementations in one place.

Module organization:
- habits.py: Habits and the completion ledger
- gamification.py: User XP/level, challenge catalog, user challenges
"""

# Habit and completion ledger operations
from habitquest.db.queries.habits import (
    get_habit,
    list_habits,
    create_habit,
    delete_habit,
    find_completions,
    find_completions_in_range,
    has_completion_on,
    create_completion,
    count_completions,
    count_habits,
)

# Gamification operations
from habitquest.db.queries.gamification import (
    get_user_progress,
    increment_user_xp,
    set_user_level,
    list_challenges,
    get_challenge,
    upsert_challenge,
    find_user_challenges,
    find_active_user_challenges,
    get_user_challenge,
    create_user_challenge,
    update_user_challenge_progress,
    complete_user_challenge,
    delete_user_challenge,
    count_user_challenges,
)

__all__ = [
    "get_habit",
    "list_habits",
    "create_habit",
    "delete_habit",
    "find_completions",
    "find_completions_in_range",
    "has_completion_on",
    "create_completion",
    "count_completions",
    "count_habits",
    "get_user_progress",
    "increment_user_xp",
    "set_user_level",
    "list_challenges",
    "get_challenge",
    "upsert_challenge",
    "find_user_challenges",
    "find_active_user_challenges",
    "get_user_challenge",
    "create_user_challenge",
    "update_user_challenge_progress",
    "complete_user_challenge",
    "delete_user_challenge",
    "count_user_challenges",
]
