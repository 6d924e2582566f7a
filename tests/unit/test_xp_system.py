"""Unit tests for XP and Leveling System (habitquest/gamification/xp_system.py)"""
import pytest
from unittest.mock import AsyncMock, patch

from habitquest.exceptions import RecordNotFoundError, ValidationError
from habitquest.gamification.xp_system import (
    calculate_level_from_xp,
    get_level_info,
    award_xp,
    get_user_xp,
)
from habitquest.models.progress import UserProgress


# ============================================================================
# Level Calculation Tests
# ============================================================================

@pytest.mark.parametrize(
    "total_xp,expected_level",
    [(0, 1), (1, 1), (99, 1), (100, 2), (199, 2), (250, 3), (1000, 11), (123456, 1235)],
)
def test_calculate_level_from_xp(total_xp, expected_level):
    """Test level == floor(total_xp / 100) + 1"""
    assert calculate_level_from_xp(total_xp) == expected_level


def test_level_is_monotonic():
    """Test level never drops as XP grows"""
    levels = [calculate_level_from_xp(xp) for xp in range(0, 2000, 7)]
    assert levels == sorted(levels)


def test_negative_xp_rejected():
    """Test negative totals are invalid"""
    with pytest.raises(ValidationError):
        calculate_level_from_xp(-1)


def test_get_level_info_mid_level():
    """Test XP bar breakdown"""
    info = get_level_info(250)

    assert info.level == 3
    assert info.total_xp == 250
    assert info.xp_in_current_level == 50
    assert info.xp_for_next_level == 100
    assert info.xp_to_next_level == 50
    assert info.progress_percent == 50.0


def test_get_level_info_level_boundary():
    """Test exactly on a level boundary"""
    info = get_level_info(300)

    assert info.level == 4
    assert info.xp_in_current_level == 0
    assert info.xp_to_next_level == 100


def test_level_uses_configured_xp_per_level(monkeypatch):
    """Test XP_PER_LEVEL drives the curve"""
    monkeypatch.setattr("habitquest.config.XP_PER_LEVEL", 50)
    assert calculate_level_from_xp(120) == 3


# ============================================================================
# XP Award Tests
# ============================================================================

@pytest.mark.asyncio
async def test_award_xp_increments_and_sets_level():
    """Test awarding XP stores the recomputed level"""
    user_id = "user-123"

    with patch('habitquest.gamification.xp_system.queries.increment_user_xp', AsyncMock(return_value=95)):
        with patch('habitquest.gamification.xp_system.queries.set_user_level', AsyncMock()) as mock_set_level:
            result = await award_xp(user_id, 10, source_type="habit_completion")

    assert result["xp_awarded"] == 10
    assert result["new_total_xp"] == 95
    assert result["old_total_xp"] == 85
    assert result["new_level"] == 1
    assert result["leveled_up"] is False
    mock_set_level.assert_awaited_once_with(user_id, 1)


@pytest.mark.asyncio
async def test_award_xp_level_up():
    """Test crossing 100 XP levels up"""
    with patch('habitquest.gamification.xp_system.queries.increment_user_xp', AsyncMock(return_value=105)):
        with patch('habitquest.gamification.xp_system.queries.set_user_level', AsyncMock()) as mock_set_level:
            result = await award_xp("user-123", 10, source_type="habit_completion")

    assert result["leveled_up"] is True
    assert result["old_level"] == 1
    assert result["new_level"] == 2
    assert result["xp_to_next_level"] == 95
    mock_set_level.assert_awaited_once_with("user-123", 2)


@pytest.mark.asyncio
async def test_award_xp_large_reward_skips_levels():
    """Test one big award can jump several levels"""
    with patch('habitquest.gamification.xp_system.queries.increment_user_xp', AsyncMock(return_value=560)):
        with patch('habitquest.gamification.xp_system.queries.set_user_level', AsyncMock()):
            result = await award_xp("user-123", 500, source_type="challenge")

    assert result["old_level"] == 1
    assert result["new_level"] == 6


@pytest.mark.asyncio
async def test_award_xp_rejects_negative_amount():
    """Test there is no XP deduction path"""
    with patch('habitquest.gamification.xp_system.queries.increment_user_xp', AsyncMock()) as mock_increment:
        with pytest.raises(ValidationError):
            await award_xp("user-123", -10, source_type="habit_completion")

    mock_increment.assert_not_awaited()


@pytest.mark.asyncio
async def test_award_zero_xp_is_allowed():
    """Test zero-XP challenge rewards pass through"""
    with patch('habitquest.gamification.xp_system.queries.increment_user_xp', AsyncMock(return_value=40)):
        with patch('habitquest.gamification.xp_system.queries.set_user_level', AsyncMock()):
            result = await award_xp("user-123", 0, source_type="challenge")

    assert result["new_total_xp"] == 40
    assert result["leveled_up"] is False


@pytest.mark.asyncio
async def test_get_user_xp_derives_level_from_total():
    """Test stored level is ignored in favour of total XP"""
    stale = UserProgress(user_id="user-123", total_xp=420, level=1)

    with patch('habitquest.gamification.xp_system.queries.get_user_progress', AsyncMock(return_value=stale)):
        info = await get_user_xp("user-123")

    assert info.level == 5
    assert info.xp_in_current_level == 20


@pytest.mark.asyncio
async def test_get_user_xp_unknown_user():
    """Test missing user"""
    with patch('habitquest.gamification.xp_system.queries.get_user_progress', AsyncMock(return_value=None)):
        with pytest.raises(RecordNotFoundError):
            await get_user_xp("ghost")
