"""Chore Engine - Pure logic for chore state transitions and streaks.

This engine provides stateless, pure Python functions for:
- Chore creation and named field updates
- Completion, approval, rejection and period reset transitions
- Streak calculation for the chore's owner

ARCHITECTURE: Pure logic engine that calls no Home Assistant APIs (const.py
supplies the shared vocabulary, nothing else).
All functions are static methods that take an entity and return a NEW entity;
inputs are never mutated. Failed transitions return the input unchanged so
callers can detect a no-op with an identity check.
State management belongs in FamilyEconomyManager.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import CHORE_EDITABLE_FIELDS, build_chore
from ..utils.dt_utils import (
    as_local,
    dt_now_iso,
    dt_now_local,
    dt_parse,
    dt_today_iso,
    is_today,
    is_yesterday,
    needs_reset,
)

if TYPE_CHECKING:
    from ..type_defs import ChoreData, StreakUpdate


# =============================================================================
# CHORE ENGINE
# =============================================================================


class ChoreEngine:
    """Pure logic engine for chore transitions and streak math.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.

    Chore states (derived from two flags):
        incomplete:        completed=False, pending_approval=False
        awaiting approval: completed=True,  pending_approval=True
        done:              completed=True,  pending_approval=False
    """

    # =========================================================================
    # CREATION / UPDATES
    # =========================================================================

    @staticmethod
    def create(
        data: dict[str, Any],
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> ChoreData:
        """Create a new incomplete chore. ``user_id=None`` puts it in the library."""
        return build_chore(data, user_id=user_id, now=now)

    @staticmethod
    def apply_update(chore: ChoreData, changes: dict[str, Any]) -> ChoreData:
        """Apply a named update limited to the editable definition fields.

        Runtime fields (completion flags, timestamps, owner) in ``changes`` are
        ignored.
        """
        allowed = {k: v for k, v in changes.items() if k in CHORE_EDITABLE_FIELDS}
        if not allowed:
            return chore
        return build_chore(allowed, existing=chore)

    @staticmethod
    def assign(chore: ChoreData, user_id: str | None) -> ChoreData:
        """Move a chore to a user, or back to the library with None.

        Completion state is cleared so the new owner starts fresh.
        """
        updated = ChoreEngine._cleared(chore)
        updated["user_id"] = user_id
        return updated

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    @staticmethod
    def can_complete(chore: ChoreData | None) -> bool:
        """Return True when the chore exists, is assigned and is not completed."""
        if not chore:
            return False
        if chore.get(const.DATA_CHORE_USER_ID) is None:
            return False
        return not chore.get(const.DATA_CHORE_COMPLETED, False)

    @staticmethod
    def complete(
        chore: ChoreData,
        require_approval: bool,
        now: datetime | None = None,
    ) -> ChoreData:
        """Mark a chore completed, optionally awaiting parent approval."""
        if not ChoreEngine.can_complete(chore):
            return chore

        updated = copy.deepcopy(chore)
        updated["completed"] = True
        updated["pending_approval"] = bool(require_approval)
        updated["completed_at"] = dt_now_iso(now)
        return updated

    @staticmethod
    def approve(chore: ChoreData) -> ChoreData:
        """Clear ``pending_approval``. No-op unless the chore is awaiting approval."""
        if not chore.get(const.DATA_CHORE_PENDING_APPROVAL, False):
            return chore

        updated = copy.deepcopy(chore)
        updated["pending_approval"] = False
        return updated

    @staticmethod
    def reject(chore: ChoreData) -> ChoreData:
        """Send an awaiting chore back to incomplete so it can be redone."""
        if not chore.get(const.DATA_CHORE_PENDING_APPROVAL, False):
            return chore
        return ChoreEngine._cleared(chore)

    @staticmethod
    def reset_for_redo(chore: ChoreData) -> ChoreData:
        """Clear completion state regardless of approval status."""
        if not chore.get(const.DATA_CHORE_COMPLETED, False):
            return chore
        return ChoreEngine._cleared(chore)

    @staticmethod
    def reset_period(
        chore: ChoreData,
        reset_day: int,
        now: datetime | None = None,
    ) -> ChoreData:
        """Clear completion state when the chore's period has rolled over."""
        if not needs_reset(
            chore.get(const.DATA_CHORE_LAST_RESET),
            chore.get(const.DATA_CHORE_RECURRENCE, const.DEFAULT_RECURRENCE),
            reset_day,
            now,
        ):
            return chore

        updated = ChoreEngine._cleared(chore)
        updated["last_reset"] = dt_now_iso(now)
        return updated

    @staticmethod
    def _cleared(chore: ChoreData) -> ChoreData:
        updated = copy.deepcopy(chore)
        updated["completed"] = False
        updated["pending_approval"] = False
        updated["completed_at"] = None
        return updated

    # =========================================================================
    # STREAKS
    # =========================================================================

    @staticmethod
    def calculate_streak(
        current_streak: int,
        longest_streak: int,
        last_active_date: str | None,
        now: datetime | None = None,
    ) -> StreakUpdate:
        """Calculate a user's streak after completing a chore.

        Only the first completion of a calendar day changes the streak:
        continuing from yesterday adds one, any longer gap restarts at 1.

        Args:
            current_streak: Streak before this completion
            longest_streak: Best streak so far
            last_active_date: ISO date of the previous active day (or None)
            now: Moment of completion (defaults to current local time)

        Returns:
            StreakUpdate with ``changed=False`` when already active today
        """
        current = now or dt_now_local()
        today = dt_today_iso(current)

        if last_active_date and is_today(last_active_date, current):
            return {
                "current_streak": current_streak,
                "longest_streak": longest_streak,
                "last_active_date": today,
                "changed": False,
            }

        new_streak = current_streak + 1 if is_yesterday(last_active_date, current) else 1
        return {
            "current_streak": new_streak,
            "longest_streak": max(new_streak, longest_streak),
            "last_active_date": today,
            "changed": True,
        }

    @staticmethod
    def is_streak_broken(
        last_active_date: str | None, now: datetime | None = None
    ) -> bool:
        """Return True when the user was last active before yesterday."""
        parsed = dt_parse(last_active_date)
        if parsed is None:
            return False
        current = now or dt_now_local()
        cutoff = as_local(current).date() - timedelta(days=1)
        return as_local(parsed).date() < cutoff

    # =========================================================================
    # QUERIES
    # =========================================================================

    @staticmethod
    def chores_for_user(chores: list[ChoreData], user_id: str) -> list[ChoreData]:
        """Chores owned by ``user_id``."""
        return [c for c in chores if c.get(const.DATA_CHORE_USER_ID) == user_id]

    @staticmethod
    def library_chores(chores: list[ChoreData]) -> list[ChoreData]:
        """Unassigned chores."""
        return [c for c in chores if c.get(const.DATA_CHORE_USER_ID) is None]

    @staticmethod
    def pending_approval(chores: list[ChoreData]) -> list[ChoreData]:
        """Chores awaiting parent approval."""
        return [c for c in chores if c.get(const.DATA_CHORE_PENDING_APPROVAL)]
