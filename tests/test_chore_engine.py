"""Tests for ChoreEngine - pure logic, no HA fixtures needed.

These tests validate the ChoreEngine's pure Python functions without
requiring any Home Assistant mocking or integration setup.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from custom_components.family_economy import const
from custom_components.family_economy.data_builders import EntityValidationError
from custom_components.family_economy.engines.chore_engine import ChoreEngine

from tests.conftest import WEDNESDAY_AFTERNOON as NOW


def _chore(**overrides):
    """Assigned daily chore created at NOW."""
    chore = ChoreEngine.create(
        {const.DATA_NAME: "Make bed", const.DATA_CHORE_POINTS: 5},
        user_id="user_alex",
        now=NOW,
    )
    chore.update(overrides)
    return chore


# =============================================================================
# TEST: CREATION AND UPDATES
# =============================================================================


class TestCreate:
    """Chore creation defaults and named updates."""

    def test_create_defaults(self) -> None:
        """New chores start incomplete with last_reset at creation time."""
        chore = ChoreEngine.create({const.DATA_NAME: "Dishes"}, now=NOW)
        assert chore["id"].startswith(const.ID_PREFIX_CHORE)
        assert chore["points"] == const.DEFAULT_CHORE_POINTS
        assert chore["recurrence"] == const.RECURRENCE_DAILY
        assert chore["user_id"] is None
        assert chore["completed"] is False
        assert chore["pending_approval"] is False
        assert chore["last_reset"] == NOW.isoformat()

    def test_create_requires_name(self) -> None:
        with pytest.raises(EntityValidationError) as err:
            ChoreEngine.create({const.DATA_NAME: "   "}, now=NOW)
        assert err.value.translation_key == const.TRANS_KEY_INVALID_NAME

    def test_create_rejects_bad_recurrence(self) -> None:
        with pytest.raises(EntityValidationError):
            ChoreEngine.create(
                {const.DATA_NAME: "Dishes", const.DATA_CHORE_RECURRENCE: "hourly"}
            )

    def test_apply_update_only_touches_editable_fields(self) -> None:
        """Runtime fields in the patch are ignored."""
        chore = _chore()
        updated = ChoreEngine.apply_update(
            chore, {const.DATA_CHORE_POINTS: 10, const.DATA_CHORE_COMPLETED: True}
        )
        assert updated["points"] == 10
        assert updated["completed"] is False
        assert chore["points"] == 5

    def test_apply_update_without_editable_fields_is_noop(self) -> None:
        chore = _chore()
        assert ChoreEngine.apply_update(chore, {"user_id": "someone"}) is chore

    def test_assign_clears_completion(self) -> None:
        chore = _chore(completed=True, completed_at=NOW.isoformat())
        moved = ChoreEngine.assign(chore, "user_sam")
        assert moved["user_id"] == "user_sam"
        assert moved["completed"] is False
        assert moved["completed_at"] is None


# =============================================================================
# TEST: TRANSITIONS
# =============================================================================


class TestTransitions:
    """complete / approve / reject / reset."""

    def test_can_complete(self) -> None:
        assert ChoreEngine.can_complete(_chore())
        assert not ChoreEngine.can_complete(None)
        assert not ChoreEngine.can_complete(_chore(user_id=None))
        assert not ChoreEngine.can_complete(_chore(completed=True))

    def test_complete_with_approval(self) -> None:
        chore = _chore()
        done = ChoreEngine.complete(chore, require_approval=True, now=NOW)
        assert done["completed"] is True
        assert done["pending_approval"] is True
        assert done["completed_at"] == NOW.isoformat()
        # input untouched
        assert chore["completed"] is False

    def test_complete_without_approval(self) -> None:
        done = ChoreEngine.complete(_chore(), require_approval=False, now=NOW)
        assert done["completed"] is True
        assert done["pending_approval"] is False

    def test_complete_twice_is_noop(self) -> None:
        done = ChoreEngine.complete(_chore(), require_approval=False, now=NOW)
        assert ChoreEngine.complete(done, require_approval=False, now=NOW) is done

    def test_library_chore_cannot_complete(self) -> None:
        chore = _chore(user_id=None)
        assert ChoreEngine.complete(chore, require_approval=False, now=NOW) is chore

    def test_approve(self) -> None:
        pending = ChoreEngine.complete(_chore(), require_approval=True, now=NOW)
        approved = ChoreEngine.approve(pending)
        assert approved["completed"] is True
        assert approved["pending_approval"] is False

    def test_approve_is_idempotent(self) -> None:
        """Approving an already-approved chore returns it unchanged."""
        pending = ChoreEngine.complete(_chore(), require_approval=True, now=NOW)
        approved = ChoreEngine.approve(pending)
        assert ChoreEngine.approve(approved) is approved

    def test_reject_sends_back_to_incomplete(self) -> None:
        pending = ChoreEngine.complete(_chore(), require_approval=True, now=NOW)
        rejected = ChoreEngine.reject(pending)
        assert rejected["completed"] is False
        assert rejected["pending_approval"] is False
        assert rejected["completed_at"] is None

    def test_reject_without_pending_is_noop(self) -> None:
        chore = _chore()
        assert ChoreEngine.reject(chore) is chore

    def test_reset_for_redo(self) -> None:
        done = ChoreEngine.complete(_chore(), require_approval=False, now=NOW)
        assert ChoreEngine.reset_for_redo(done)["completed"] is False
        fresh = _chore()
        assert ChoreEngine.reset_for_redo(fresh) is fresh


# =============================================================================
# TEST: PERIOD RESET
# =============================================================================


class TestPeriodReset:
    """reset_period follows the chore's recurrence."""

    def test_daily_chore_resets_next_day(self) -> None:
        done = ChoreEngine.complete(_chore(), require_approval=False, now=NOW)
        tomorrow = NOW + timedelta(days=1)
        reset = ChoreEngine.reset_period(done, 0, tomorrow)
        assert reset["completed"] is False
        assert reset["last_reset"] == tomorrow.isoformat()

    def test_daily_chore_kept_same_day(self) -> None:
        done = ChoreEngine.complete(_chore(), require_approval=False, now=NOW)
        assert ChoreEngine.reset_period(done, 0, NOW + timedelta(hours=2)) is done

    def test_weekly_chore_survives_until_reset_day(self) -> None:
        weekly = _chore(recurrence=const.RECURRENCE_WEEKLY)
        done = ChoreEngine.complete(weekly, require_approval=False, now=NOW)
        saturday = NOW + timedelta(days=3)
        assert ChoreEngine.reset_period(done, 0, saturday) is done
        sunday = NOW + timedelta(days=4)
        assert ChoreEngine.reset_period(done, 0, sunday)["completed"] is False

    def test_missing_last_reset_always_resets(self) -> None:
        chore = _chore(last_reset=None)
        assert ChoreEngine.reset_period(chore, 0, NOW)["last_reset"] == NOW.isoformat()


# =============================================================================
# TEST: STREAKS
# =============================================================================


class TestStreaks:
    """Streak math on the first completion of each day."""

    def test_first_ever_completion(self) -> None:
        result = ChoreEngine.calculate_streak(0, 0, None, NOW)
        assert result == {
            "current_streak": 1,
            "longest_streak": 1,
            "last_active_date": "2026-01-21",
            "changed": True,
        }

    def test_continues_from_yesterday(self) -> None:
        result = ChoreEngine.calculate_streak(4, 6, "2026-01-20", NOW)
        assert result["current_streak"] == 5
        assert result["longest_streak"] == 6

    def test_new_best(self) -> None:
        result = ChoreEngine.calculate_streak(6, 6, "2026-01-20", NOW)
        assert result["longest_streak"] == 7

    def test_second_completion_today_does_not_count(self) -> None:
        result = ChoreEngine.calculate_streak(3, 5, "2026-01-21", NOW)
        assert result["changed"] is False
        assert result["current_streak"] == 3

    def test_gap_restarts_streak(self) -> None:
        result = ChoreEngine.calculate_streak(9, 9, "2026-01-18", NOW)
        assert result["current_streak"] == 1
        assert result["longest_streak"] == 9

    def test_is_streak_broken(self) -> None:
        assert not ChoreEngine.is_streak_broken(None, NOW)
        assert not ChoreEngine.is_streak_broken("2026-01-21", NOW)
        assert not ChoreEngine.is_streak_broken("2026-01-20", NOW)
        assert ChoreEngine.is_streak_broken("2026-01-19", NOW)


# =============================================================================
# TEST: QUERIES
# =============================================================================


def test_queries() -> None:
    """Ownership, library and pending filters."""
    mine = _chore()
    library = _chore(user_id=None)
    pending = ChoreEngine.complete(_chore(), require_approval=True, now=NOW)
    chores = [mine, library, pending]

    assert ChoreEngine.chores_for_user(chores, "user_alex") == [mine, pending]
    assert ChoreEngine.library_chores(chores) == [library]
    assert ChoreEngine.pending_approval(chores) == [pending]
