"""
ChallengeService - Challenge Membership

Thin use-case layer over habitquest.gamification.challenges: catalog,
join/abandon, and the user's active and completed challenges.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from habitquest.gamification.challenges import (
    abandon_challenge,
    get_active_challenges,
    get_available_challenges,
    get_completed_challenges,
    join_challenge,
)
from habitquest.models.challenge import (
    ActiveUserChallenge,
    AvailableChallenge,
    ChallengeView,
    UserChallenge,
)
from habitquest.utils.datetime_helpers import TimeZoneLike

logger = logging.getLogger(__name__)


class ChallengeService:
    """
    Service for challenges.

    Responsibilities:
    - Listing the catalog with the user's membership
    - Joining and abandoning challenges
    - Active challenges with days remaining and percentage
    """

    def __init__(self, db_connection, tz: TimeZoneLike = None):
        """
        Initialize ChallengeService.

        Args:
            db_connection: Database connection instance
            tz: Day-boundary zone (defaults to DAY_BOUNDARY_TIMEZONE)
        """
        self.db = db_connection
        self.tz = tz
        logger.debug("ChallengeService initialized")

    async def list_available(self, user_id: str) -> List[AvailableChallenge]:
        return await get_available_challenges(user_id)

    async def list_active(self, user_id: str, now: Optional[datetime] = None) -> List[ChallengeView]:
        return await get_active_challenges(user_id, now=now)

    async def list_completed(self, user_id: str) -> List[ActiveUserChallenge]:
        return await get_completed_challenges(user_id)

    async def join(self, user_id: str, challenge_id: UUID, now: Optional[datetime] = None) -> UserChallenge:
        """
        Join a challenge.

        Raises:
            RecordNotFoundError: challenge does not exist
            ChallengeAlreadyJoinedError: already joined
        """
        return await join_challenge(user_id, challenge_id, now=now)

    async def abandon(self, user_id: str, challenge_id: UUID) -> None:
        """
        Abandon an active challenge.

        Raises:
            RecordNotFoundError: not joined
            ChallengeAlreadyCompletedError: challenge already completed
        """
        await abandon_challenge(user_id, challenge_id)
