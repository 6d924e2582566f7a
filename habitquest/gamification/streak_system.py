"""
Habit Streak Calculator

A streak is the number of consecutive calendar days, ending at the most
recent completion, on which a habit was completed. It is only reported
while live: if the most recent completion is older than yesterday the
streak is 0. A habit completed yesterday but not yet today still shows
its streak (one-day grace window).

Every caller (habit listing, challenge evaluation, progress reporting)
goes through calculate_streak so the rule cannot diverge.
"""

from typing import Iterable, Optional, Union
from datetime import date, datetime, timedelta
from uuid import UUID
import logging

from habitquest.db import queries
from habitquest.models.habit import HabitCompletion
from habitquest.utils.datetime_helpers import TimeZoneLike, to_local_date, today_local

logger = logging.getLogger(__name__)

CompletionLike = Union[HabitCompletion, datetime]


def _completion_day(completion: CompletionLike, tz: TimeZoneLike) -> date:
    completed_at = completion if isinstance(completion, datetime) else completion.completed_at
    return to_local_date(completed_at, tz)


def calculate_streak(
    completions: Iterable[CompletionLike],
    today: Optional[date] = None,
    tz: TimeZoneLike = None
) -> int:
    """
    Calculate current consecutive-day streak from a completion history

    Several completions on the same calendar day count as one day.

    Args:
        completions: Completion records or completion instants, most recent first
        today: Calendar day to measure against (defaults to today in tz)
        tz: Day-boundary zone override

    Returns:
        Streak length (>= 0)
    """
    days = sorted({_completion_day(c, tz) for c in completions}, reverse=True)
    if not days:
        return 0

    if today is None:
        today = today_local(tz)

    last_day = days[0]
    if (today - last_day).days > 1:
        return 0  # Streak broken

    streak = 0
    expected = last_day
    for day in days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)

    return streak


async def get_habit_streak(
    habit_id: UUID,
    today: Optional[date] = None,
    tz: TimeZoneLike = None
) -> int:
    """
    Load a habit's completions and calculate its current streak

    Args:
        habit_id: Habit UUID
        today: Calendar day to measure against (defaults to today in tz)
        tz: Day-boundary zone override

    Returns:
        Current streak
    """
    completions = await queries.find_completions(habit_id)
    streak = calculate_streak(completions, today=today, tz=tz)
    logger.debug(f"Habit {habit_id} streak: {streak} days ({len(completions)} completions)")
    return streak


def format_streak_display(streak: int) -> str:
    """Short streak label"""
    if streak == 0:
        return "No active streak"
    if streak == 1:
        return "🔥 1 day"
    return f"🔥 {streak} days"
