"""
ProgressService - Progress Reporting

Read-only views over the completion ledger: heatmap with top streaks, and
the account summary. Nothing here mutates state.
"""

import logging
from datetime import datetime
from typing import Optional

from habitquest.db import queries
from habitquest.exceptions import RecordNotFoundError
from habitquest.gamification.heatmap import generate_heatmap, get_top_streaks, window_start
from habitquest.gamification.streak_system import get_habit_streak
from habitquest.gamification.xp_system import get_level_info
from habitquest.models.challenge import UserChallengeStatus
from habitquest.models.progress import ProgressReport, UserStats
from habitquest.utils.datetime_helpers import TimeZoneLike, now_utc, to_local_date

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Service for progress reporting.

    Responsibilities:
    - Calendar heatmap over a trailing window
    - Top current streaks
    - Account stats (level, XP, totals)
    """

    def __init__(self, db_connection, tz: TimeZoneLike = None):
        """
        Initialize ProgressService.

        Args:
            db_connection: Database connection instance
            tz: Day-boundary zone (defaults to DAY_BOUNDARY_TIMEZONE)
        """
        self.db = db_connection
        self.tz = tz
        logger.debug("ProgressService initialized")

    async def get_progress(
        self,
        user_id: str,
        weeks: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ProgressReport:
        """
        Heatmap and top streaks over the last `weeks` weeks.

        Args:
            user_id: User ID
            weeks: Window length (defaults to HEATMAP_WEEKS)
            now: End of the window (defaults to now)
        """
        now = now or now_utc()
        start_date = window_start(to_local_date(now, self.tz), weeks)

        top_streaks = await get_top_streaks(user_id, start_date, now=now, tz=self.tz)
        heatmap = await generate_heatmap(user_id, start_date, now=now, tz=self.tz)

        return ProgressReport(top_streaks=top_streaks, heatmap_data=heatmap)

    async def get_stats(self, user_id: str, now: Optional[datetime] = None) -> UserStats:
        """
        Account summary.

        Raises:
            RecordNotFoundError: user does not exist
        """
        progress = await queries.get_user_progress(user_id)
        if progress is None:
            raise RecordNotFoundError(
                f"User {user_id} not found",
                record_type="User",
                record_id=user_id,
                operation="get_stats",
            )

        level_info = get_level_info(progress.total_xp)
        today = to_local_date(now or now_utc(), self.tz)

        habits = await queries.list_habits(user_id)
        streaks = [await get_habit_streak(habit.id, today=today, tz=self.tz) for habit in habits]

        return UserStats(
            user_id=user_id,
            level=level_info.level,
            total_xp=progress.total_xp,
            total_habits=await queries.count_habits(user_id),
            total_completions=await queries.count_completions(user_id),
            current_streak=max(streaks, default=0),
            completed_challenges=await queries.count_user_challenges(user_id, UserChallengeStatus.COMPLETED),
        )
