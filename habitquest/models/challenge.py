"""Challenge catalog and membership models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4
from pydantic import BaseModel, Field


class ChallengeType(str, Enum):
    """How a challenge measures progress"""
    STREAK = "streak"                        # Best current streak of the completed habit
    TOTAL_COMPLETIONS = "total_completions"  # +1 per completion, any habit
    CONSECUTIVE_DAYS = "consecutive_days"    # +1 per completion, any habit


class UserChallengeStatus(str, Enum):
    """Membership status; completed is terminal"""
    ACTIVE = "active"
    COMPLETED = "completed"


class Challenge(BaseModel):
    """Immutable catalog entry"""
    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    type: ChallengeType
    target_value: int = Field(ge=1)
    duration_days: int = Field(ge=1)
    xp_reward: int = Field(ge=0)
    icon: str = ""
    created_at: Optional[datetime] = None


class UserChallenge(BaseModel):
    """A user's membership in a challenge"""
    id: UUID = Field(default_factory=uuid4)
    user_id: str
    challenge_id: UUID
    status: UserChallengeStatus = UserChallengeStatus.ACTIVE
    current_progress: int = 0
    started_at: datetime
    completed_at: Optional[datetime] = None


class ActiveUserChallenge(BaseModel):
    """User challenge joined to its challenge definition"""
    user_challenge: UserChallenge
    challenge: Challenge


class ChallengeView(ActiveUserChallenge):
    """User challenge with display progress"""
    days_remaining: int = 0
    progress_percentage: float = 0.0


class AvailableChallenge(Challenge):
    """Catalog entry annotated with the caller's membership"""
    joined: bool = False
    user_status: Optional[UserChallengeStatus] = None


class ChallengeEvaluation(BaseModel):
    """Outcome of evaluating one user challenge against a completion"""
    user_challenge_id: UUID
    challenge_id: UUID
    challenge_name: str
    old_progress: int
    new_progress: int
    completed: bool = False
    xp_awarded: int = 0
    error: Optional[str] = None
