"""Job Engine - Pure logic for job unlocks, completions and approvals.

This engine provides stateless, pure Python functions for:
- Unlock evaluation against the owner's chores in the current period
- Multi-completion accounting and completion eligibility checks
- Completion approval/rejection (per completion or all pending at once)
- Periodic reset, including auto-rejection of unresolved completions
- Lock status derivation and display helpers

ARCHITECTURE: Pure logic engine that calls no Home Assistant APIs (const.py
supplies the shared vocabulary, nothing else).
All functions are static methods that return NEW job dicts; inputs are never
mutated. Balance and ledger side effects belong in FamilyEconomyManager.

Money fields are integer cents. ``total_earned`` is always
``value_at_completion * count`` with both operands integers.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import JOB_EDITABLE_FIELDS, build_job, new_id
from ..utils.currency_utils import multiply_cents
from ..utils.dt_utils import dt_now_iso, is_current_period, needs_reset

if TYPE_CHECKING:
    from ..type_defs import (
        ChoreData,
        CompletionCheck,
        CompletionEvent,
        JobData,
        UnlockProgress,
    )


class JobEngine:
    """Pure logic engine for job state.

    All methods are static - no instance state.

    Completion status transitions are one-way:
        pending → approved
        pending → rejected
    """

    # =========================================================================
    # CREATION / UPDATES
    # =========================================================================

    @staticmethod
    def create(
        data: dict[str, Any],
        chores: list[ChoreData],
        reset_day: int,
        user_id: str | None = None,
        created_by: str | None = None,
        now: datetime | None = None,
    ) -> JobData:
        """Create a job and compute its initial lock status."""
        job = build_job(data, user_id=user_id, created_by=created_by, now=now)
        return JobEngine.update_lock_status(job, chores, reset_day, now)

    @staticmethod
    def apply_update(job: JobData, changes: dict[str, Any]) -> JobData:
        """Apply a named update limited to JOB_EDITABLE_FIELDS.

        Completions, owner, timestamps and ``is_locked`` cannot be patched;
        callers recompute the lock status afterwards.
        """
        allowed = {k: v for k, v in changes.items() if k in JOB_EDITABLE_FIELDS}
        if not allowed:
            return job
        return build_job(allowed, existing=job)

    @staticmethod
    def assign(job: JobData, user_id: str | None) -> JobData:
        """Move a job to another owner (or the library); completions are dropped."""
        updated = copy.deepcopy(job)
        updated["user_id"] = user_id
        updated["completions"] = []
        return updated

    # =========================================================================
    # UNLOCK EVALUATION
    # =========================================================================

    @staticmethod
    def count_completed_chores(
        chores: list[ChoreData],
        user_id: str | None,
        recurrence: str,
        reset_day: int,
        now: datetime | None = None,
    ) -> int:
        """Count the user's finished chores of ``recurrence`` in the current period.

        A chore counts when it is completed, no longer awaiting approval, and
        was completed inside the current period.
        """
        return sum(
            1
            for chore in chores
            if chore.get(const.DATA_CHORE_USER_ID) == user_id
            and chore.get(const.DATA_CHORE_RECURRENCE) == recurrence
            and chore.get(const.DATA_CHORE_COMPLETED)
            and not chore.get(const.DATA_CHORE_PENDING_APPROVAL)
            and is_current_period(
                chore.get(const.DATA_CHORE_COMPLETED_AT), recurrence, reset_day, now
            )
        )

    @staticmethod
    def are_all_chores_completed(
        chores: list[ChoreData],
        user_id: str | None,
        reset_day: int,
        now: datetime | None = None,
    ) -> bool:
        """Return True when every chore of the user is finished this period."""
        owned = [c for c in chores if c.get(const.DATA_CHORE_USER_ID) == user_id]
        return all(
            chore.get(const.DATA_CHORE_COMPLETED)
            and not chore.get(const.DATA_CHORE_PENDING_APPROVAL)
            and is_current_period(
                chore.get(const.DATA_CHORE_COMPLETED_AT),
                chore.get(const.DATA_CHORE_RECURRENCE, const.DEFAULT_RECURRENCE),
                reset_day,
                now,
            )
            for chore in owned
        )

    @staticmethod
    def _thresholds(job: JobData) -> tuple[int, int]:
        conditions = job.get(const.DATA_JOB_UNLOCK_CONDITIONS) or {}
        return (
            int(conditions.get(const.DATA_JOB_UNLOCK_DAILY_CHORES) or 0),
            int(conditions.get(const.DATA_JOB_UNLOCK_WEEKLY_CHORES) or 0),
        )

    @staticmethod
    def is_unlocked(
        job: JobData,
        chores: list[ChoreData],
        reset_day: int,
        now: datetime | None = None,
    ) -> bool:
        """Evaluate the job's unlock conditions.

        With ``require_all_chores`` every chore of the owner must be finished.
        Otherwise both thresholds must be met; zero thresholds always unlock.
        """
        conditions = job.get(const.DATA_JOB_UNLOCK_CONDITIONS) or {}
        user_id = job.get(const.DATA_JOB_USER_ID)

        if conditions.get(const.DATA_JOB_UNLOCK_REQUIRE_ALL):
            return JobEngine.are_all_chores_completed(chores, user_id, reset_day, now)

        daily_required, weekly_required = JobEngine._thresholds(job)
        if daily_required == 0 and weekly_required == 0:
            return True

        daily_done = JobEngine.count_completed_chores(
            chores, user_id, const.RECURRENCE_DAILY, reset_day, now
        )
        weekly_done = JobEngine.count_completed_chores(
            chores, user_id, const.RECURRENCE_WEEKLY, reset_day, now
        )
        return daily_done >= daily_required and weekly_done >= weekly_required

    @staticmethod
    def get_unlock_progress(
        job: JobData,
        chores: list[ChoreData],
        reset_day: int,
        now: datetime | None = None,
    ) -> UnlockProgress:
        """Progress toward both thresholds, with ``current`` capped at ``required``."""
        user_id = job.get(const.DATA_JOB_USER_ID)
        daily_required, weekly_required = JobEngine._thresholds(job)
        daily_done = JobEngine.count_completed_chores(
            chores, user_id, const.RECURRENCE_DAILY, reset_day, now
        )
        weekly_done = JobEngine.count_completed_chores(
            chores, user_id, const.RECURRENCE_WEEKLY, reset_day, now
        )
        return {
            "daily": {
                "current": min(daily_done, daily_required),
                "required": daily_required,
            },
            "weekly": {
                "current": min(weekly_done, weekly_required),
                "required": weekly_required,
            },
            "is_unlocked": JobEngine.is_unlocked(job, chores, reset_day, now),
        }

    @staticmethod
    def update_lock_status(
        job: JobData,
        chores: list[ChoreData],
        reset_day: int,
        now: datetime | None = None,
    ) -> JobData:
        """Recompute the cached ``is_locked`` flag."""
        locked = not JobEngine.is_unlocked(job, chores, reset_day, now)
        if job.get(const.DATA_JOB_IS_LOCKED) == locked:
            return job
        updated = copy.deepcopy(job)
        updated["is_locked"] = locked
        return updated

    # =========================================================================
    # COMPLETION ACCOUNTING
    # =========================================================================

    @staticmethod
    def get_current_period_completions(
        job: JobData, reset_day: int, now: datetime | None = None
    ) -> int:
        """Sum of ``count`` over non-rejected completions in the current period."""
        recurrence = job.get(const.DATA_JOB_RECURRENCE, const.DEFAULT_RECURRENCE)
        return sum(
            int(completion.get(const.DATA_COMPLETION_COUNT, 0))
            for completion in job.get(const.DATA_JOB_COMPLETIONS, [])
            if completion.get(const.DATA_COMPLETION_STATUS) != const.STATUS_REJECTED
            and is_current_period(
                completion.get(const.DATA_COMPLETION_TIMESTAMP),
                recurrence,
                reset_day,
                now,
            )
        )

    @staticmethod
    def can_complete(
        job: JobData | None,
        chores: list[ChoreData],
        reset_day: int,
        count: int = const.DEFAULT_COMPLETION_COUNT,
        now: datetime | None = None,
    ) -> CompletionCheck:
        """Check whether ``count`` more units of the job may be completed.

        Reasons are checked in order: missing, unassigned, invalid count,
        locked, maximum reached, already completed.
        """
        if job is None:
            return {"can_complete": False, "reason": const.REASON_NOT_FOUND}
        if job.get(const.DATA_JOB_USER_ID) is None:
            return {"can_complete": False, "reason": const.REASON_UNASSIGNED}
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            return {"can_complete": False, "reason": const.REASON_INVALID_COUNT}

        allow_multiple = job.get(const.DATA_JOB_ALLOW_MULTIPLE, False)
        if count > 1 and not allow_multiple:
            return {"can_complete": False, "reason": const.REASON_MULTIPLE_NOT_ALLOWED}

        if not JobEngine.is_unlocked(job, chores, reset_day, now):
            return {"can_complete": False, "reason": const.REASON_LOCKED}

        current = JobEngine.get_current_period_completions(job, reset_day, now)

        max_completions = job.get(const.DATA_JOB_MAX_COMPLETIONS)
        if max_completions is not None and current + count > max_completions:
            return {
                "can_complete": False,
                "reason": const.REASON_MAX_REACHED_FMT.format(max=max_completions),
            }

        if not allow_multiple and current > 0:
            return {"can_complete": False, "reason": const.REASON_ALREADY_COMPLETED}

        return {"can_complete": True, "reason": None}

    @staticmethod
    def create_completion_event(
        job: JobData,
        count: int = const.DEFAULT_COMPLETION_COUNT,
        now: datetime | None = None,
    ) -> CompletionEvent:
        """Build a completion for ``count`` units at the job's current value."""
        value = int(job.get(const.DATA_JOB_VALUE, 0))
        status = (
            const.STATUS_PENDING
            if job.get(const.DATA_JOB_REQUIRES_APPROVAL, True)
            else const.STATUS_APPROVED
        )
        return {
            "id": new_id(const.ID_PREFIX_COMPLETION),
            "timestamp": dt_now_iso(now),
            "count": count,
            "value_at_completion": value,
            "total_earned": multiply_cents(value, count),
            "status": status,  # type: ignore[typeddict-item]
            "approved_by": None,
            "approved_at": None,
        }

    @staticmethod
    def complete(
        job: JobData,
        count: int = const.DEFAULT_COMPLETION_COUNT,
        now: datetime | None = None,
    ) -> tuple[JobData, CompletionEvent]:
        """Append a completion. Callers check ``can_complete`` first."""
        completion = JobEngine.create_completion_event(job, count, now)
        updated = copy.deepcopy(job)
        updated["completions"] = [*updated.get("completions", []), completion]
        return updated, completion

    @staticmethod
    def get_pending_earnings(job: JobData) -> int:
        """Cents awaiting approval on this job."""
        return sum(
            int(c.get(const.DATA_COMPLETION_TOTAL_EARNED, 0))
            for c in job.get(const.DATA_JOB_COMPLETIONS, [])
            if c.get(const.DATA_COMPLETION_STATUS) == const.STATUS_PENDING
        )

    @staticmethod
    def get_approved_earnings(
        job: JobData, reset_day: int, now: datetime | None = None
    ) -> int:
        """Cents approved in the current period."""
        recurrence = job.get(const.DATA_JOB_RECURRENCE, const.DEFAULT_RECURRENCE)
        return sum(
            int(c.get(const.DATA_COMPLETION_TOTAL_EARNED, 0))
            for c in job.get(const.DATA_JOB_COMPLETIONS, [])
            if c.get(const.DATA_COMPLETION_STATUS) == const.STATUS_APPROVED
            and is_current_period(
                c.get(const.DATA_COMPLETION_TIMESTAMP), recurrence, reset_day, now
            )
        )

    # =========================================================================
    # APPROVAL / REJECTION
    # =========================================================================

    @staticmethod
    def _resolve(
        job: JobData,
        status: str,
        decided_by: str | None,
        now: datetime | None,
        completion_id: str | None = None,
    ) -> tuple[JobData, int, int]:
        """Move pending completions to ``status``.

        Returns the new job, the summed ``total_earned`` and the summed
        ``count`` of the completions that changed. Only one completion is
        touched when ``completion_id`` is given.
        """
        total = 0
        units = 0
        stamp = dt_now_iso(now)
        completions: list[CompletionEvent] = []

        for completion in job.get(const.DATA_JOB_COMPLETIONS, []):
            is_target = completion_id is None or completion.get(const.DATA_ID) == completion_id
            if is_target and completion.get(const.DATA_COMPLETION_STATUS) == const.STATUS_PENDING:
                resolved = copy.deepcopy(completion)
                resolved["status"] = status  # type: ignore[typeddict-item]
                resolved["approved_by"] = decided_by
                resolved["approved_at"] = stamp
                total += int(completion.get(const.DATA_COMPLETION_TOTAL_EARNED, 0))
                units += int(completion.get(const.DATA_COMPLETION_COUNT, 0))
                completions.append(resolved)
            else:
                completions.append(completion)

        if units == 0:
            return job, 0, 0

        updated = copy.deepcopy(job)
        updated["completions"] = completions
        return updated, total, units

    @staticmethod
    def approve_all_completions(
        job: JobData, approved_by: str | None, now: datetime | None = None
    ) -> tuple[JobData, int, int]:
        """Approve every pending completion.

        Returns ``(job, total_approved, total_count)``. A second call right
        after the first returns zero totals.
        """
        return JobEngine._resolve(job, const.STATUS_APPROVED, approved_by, now)

    @staticmethod
    def reject_all_completions(
        job: JobData, rejected_by: str | None, now: datetime | None = None
    ) -> tuple[JobData, int]:
        """Reject every pending completion. Returns ``(job, total_rejected)``."""
        updated, total, _units = JobEngine._resolve(
            job, const.STATUS_REJECTED, rejected_by, now
        )
        return updated, total

    @staticmethod
    def approve_completion(
        job: JobData,
        completion_id: str,
        approved_by: str | None,
        now: datetime | None = None,
    ) -> tuple[JobData, int, int]:
        """Approve a single pending completion."""
        return JobEngine._resolve(
            job, const.STATUS_APPROVED, approved_by, now, completion_id
        )

    @staticmethod
    def reject_completion(
        job: JobData,
        completion_id: str,
        rejected_by: str | None,
        now: datetime | None = None,
    ) -> tuple[JobData, int]:
        """Reject a single pending completion."""
        updated, total, _units = JobEngine._resolve(
            job, const.STATUS_REJECTED, rejected_by, now, completion_id
        )
        return updated, total

    # =========================================================================
    # RESET
    # =========================================================================

    @staticmethod
    def reset(job: JobData, now: datetime | None = None) -> JobData:
        """Clear all completions and stamp ``last_reset``."""
        updated = copy.deepcopy(job)
        updated["completions"] = []
        updated["last_reset"] = dt_now_iso(now)
        return updated

    @staticmethod
    def check_and_reset(
        job: JobData, reset_day: int, now: datetime | None = None
    ) -> tuple[JobData, int]:
        """Reset the job if its period rolled over.

        Pending completions are rejected first so the caller can take their
        sum back out of the owner's pending balance. Returns
        ``(job, total_auto_rejected)``; the job is returned unchanged when no
        reset is due.
        """
        if not needs_reset(
            job.get(const.DATA_JOB_LAST_RESET),
            job.get(const.DATA_JOB_RECURRENCE, const.DEFAULT_RECURRENCE),
            reset_day,
            now,
        ):
            return job, 0

        rejected, total_rejected = JobEngine.reject_all_completions(job, None, now)
        return JobEngine.reset(rejected, now), total_rejected

    # =========================================================================
    # QUERIES / DISPLAY
    # =========================================================================

    @staticmethod
    def get_jobs_needing_approval(jobs: list[JobData]) -> list[JobData]:
        """Jobs with at least one pending completion."""
        return [
            job
            for job in jobs
            if any(
                c.get(const.DATA_COMPLETION_STATUS) == const.STATUS_PENDING
                for c in job.get(const.DATA_JOB_COMPLETIONS, [])
            )
        ]

    @staticmethod
    def get_completion_display_text(
        job: JobData, reset_day: int, now: datetime | None = None
    ) -> str:
        """Short progress text: "✓", "2/3" or "4×"."""
        current = JobEngine.get_current_period_completions(job, reset_day, now)
        if not job.get(const.DATA_JOB_ALLOW_MULTIPLE, False):
            return "✓" if current > 0 else ""
        max_completions = job.get(const.DATA_JOB_MAX_COMPLETIONS)
        if max_completions is not None:
            return f"{current}/{max_completions}"
        return f"{current}×"
