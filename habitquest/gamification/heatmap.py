"""
Calendar Heatmap

Dense daily completion counts over a trailing window, plus the habits with
the highest current streak among those active in that window. Everything is
recomputed from the completion ledger on each call.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence
from uuid import UUID

from habitquest import config
from habitquest.db import queries
from habitquest.gamification.streak_system import get_habit_streak
from habitquest.models.habit import Habit, HabitCompletion
from habitquest.models.progress import HeatmapDay, TopStreak
from habitquest.utils.datetime_helpers import (
    TimeZoneLike,
    iter_calendar_days,
    now_utc,
    start_of_day,
    to_local_date,
)

logger = logging.getLogger(__name__)


def window_start(today: date, weeks: Optional[int] = None) -> date:
    """First day of a trailing window of `weeks` weeks ending today"""
    weeks = config.HEATMAP_WEEKS if weeks is None else weeks
    return today - timedelta(days=weeks * 7)


def iter_heatmap(
    completions: Iterable[HabitCompletion],
    start_date: date,
    end_date: date,
    tz: TimeZoneLike = None
) -> Iterator[HeatmapDay]:
    """
    Yield one HeatmapDay per calendar day in [start_date, end_date]

    Days without completions are yielded with count 0.
    """
    buckets = Counter(to_local_date(c.completed_at, tz) for c in completions)
    for day in iter_calendar_days(start_date, end_date):
        yield HeatmapDay(date=day, count=buckets.get(day, 0))


def build_heatmap(
    completions: Iterable[HabitCompletion],
    start_date: date,
    end_date: date,
    tz: TimeZoneLike = None
) -> List[HeatmapDay]:
    """Materialized iter_heatmap"""
    return list(iter_heatmap(completions, start_date, end_date, tz))


async def generate_heatmap(
    user_id: str,
    start_date: date,
    now: Optional[datetime] = None,
    tz: TimeZoneLike = None
) -> List[HeatmapDay]:
    """
    Daily completion counts across all of a user's habits

    Args:
        user_id: User ID
        start_date: First calendar day of the window (inclusive)
        now: End of the window (inclusive, defaults to now)
        tz: Day-boundary zone override

    Returns:
        (end_day - start_date).days + 1 entries in date order
    """
    now = now or now_utc()
    completions = await queries.find_completions_in_range(user_id, start_of_day(start_date, tz), now)
    end_date = to_local_date(now, tz)

    logger.debug(f"Heatmap for user {user_id}: {len(completions)} completions from {start_date} to {end_date}")
    return build_heatmap(completions, start_date, end_date, tz)


def rank_top_streaks(
    habits: Sequence[Habit],
    streaks: Dict[UUID, int],
    limit: Optional[int] = None
) -> List[TopStreak]:
    """
    Habits with the highest streak, ties kept in the order given

    Args:
        habits: Candidate habits in query order
        streaks: Current streak per habit ID
        limit: Maximum entries (defaults to TOP_STREAKS_LIMIT)
    """
    limit = config.TOP_STREAKS_LIMIT if limit is None else limit
    ranked = sorted(habits, key=lambda habit: streaks.get(habit.id, 0), reverse=True)
    return [
        TopStreak(id=habit.id, name=habit.name, icon=habit.icon, streak=streaks.get(habit.id, 0))
        for habit in ranked[:limit]
    ]


async def get_top_streaks(
    user_id: str,
    start_date: date,
    now: Optional[datetime] = None,
    tz: TimeZoneLike = None,
    limit: Optional[int] = None
) -> List[TopStreak]:
    """
    Top habits by current streak among those completed inside the window

    Args:
        user_id: User ID
        start_date: First calendar day of the window
        now: End of the window (defaults to now)
        tz: Day-boundary zone override
        limit: Maximum entries (defaults to TOP_STREAKS_LIMIT)
    """
    now = now or now_utc()
    today = to_local_date(now, tz)

    completions = await queries.find_completions_in_range(user_id, start_of_day(start_date, tz), now)
    active_ids = {c.habit_id for c in completions}
    habits = [habit for habit in await queries.list_habits(user_id) if habit.id in active_ids]

    streaks = {}
    for habit in habits:
        streaks[habit.id] = await get_habit_streak(habit.id, today=today, tz=tz)

    return rank_top_streaks(habits, streaks, limit)
