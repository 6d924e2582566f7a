"""Unit tests for ChallengeService (habitquest/services/challenge_service.py)"""
import pytest
from datetime import timedelta
from unittest.mock import MagicMock

from habitquest.exceptions import ChallengeAlreadyJoinedError
from habitquest.models.challenge import ChallengeType, UserChallengeStatus
from habitquest.services.challenge_service import ChallengeService


@pytest.fixture
def challenge_service():
    return ChallengeService(MagicMock())


@pytest.mark.asyncio
async def test_join_then_list(challenge_service, memory_store, test_user_id, fixed_now):
    """Test a joined challenge shows in active and available listings"""
    challenge = memory_store.add_challenge(ChallengeType.STREAK, target_value=7, duration_days=7)

    await challenge_service.join(test_user_id, challenge.id, now=fixed_now - timedelta(days=1))

    active = await challenge_service.list_active(test_user_id, now=fixed_now)
    available = await challenge_service.list_available(test_user_id)

    assert len(active) == 1
    assert active[0].days_remaining == 6
    assert active[0].progress_percentage == 0.0
    assert available[0].joined is True
    assert available[0].user_status == UserChallengeStatus.ACTIVE


@pytest.mark.asyncio
async def test_join_twice(challenge_service, memory_store, test_user_id):
    challenge = memory_store.add_challenge()
    await challenge_service.join(test_user_id, challenge.id)

    with pytest.raises(ChallengeAlreadyJoinedError):
        await challenge_service.join(test_user_id, challenge.id)


@pytest.mark.asyncio
async def test_abandon_then_rejoin(challenge_service, memory_store, test_user_id):
    """Test abandoning frees the challenge to be joined again"""
    challenge = memory_store.add_challenge()
    await challenge_service.join(test_user_id, challenge.id)

    await challenge_service.abandon(test_user_id, challenge.id)
    assert await challenge_service.list_active(test_user_id) == []

    rejoined = await challenge_service.join(test_user_id, challenge.id)
    assert rejoined.current_progress == 0


@pytest.mark.asyncio
async def test_list_completed(challenge_service, memory_store, test_user_id):
    challenge = memory_store.add_challenge(name="Century Club")
    memory_store.add_user_challenge(test_user_id, challenge, progress=100, status=UserChallengeStatus.COMPLETED)

    completed = await challenge_service.list_completed(test_user_id)

    assert [c.challenge.name for c in completed] == ["Century Club"]
