"""Family Economy Manager - The aggregate root over one family's state.

This manager owns a single FamilyState and exposes every domain operation:
- Users (add, update, delete with cascade, switch active user)
- Chores (CRUD, library moves, complete/approve/reject, streaks, gems)
- Jobs (CRUD, completions, approvals, pending/cash balance bookkeeping)
- Templates (prototypes and fan-out)
- Money (redeem, adjust, bonus, ledger queries)
- Periodic maintenance (resets, pending reconciliation, streak expiry, locks)
- Parent gate (gesture secret)

ARCHITECTURE:
- FamilyEconomyManager = STATEFUL orchestration, no Home Assistant API calls
- Engines = STATELESS transitions; the manager swaps the returned entities in
- The host (coordinator) injects an ``event_callback`` for bus events and a
  ``change_callback`` that schedules persistence

Domain failures never raise: lookups of unknown ids return None/False and
actions return ``{"success": False, "reason": ...}``.
"""

from __future__ import annotations

from collections.abc import Callable
import copy
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import (
    EntityValidationError,
    build_default_state,
    build_user,
    normalize_snapshot,
    validate_settings,
)
from ..engines.chore_engine import ChoreEngine
from ..engines.economy_engine import EconomyEngine, InsufficientFundsError
from ..engines.job_engine import JobEngine
from ..engines.pattern_gate import PatternGate
from ..engines.template_engine import TemplateEngine
from ..utils.currency_utils import is_valid_cents_amount
from ..utils.dt_utils import dt_now_iso, dt_now_local

if TYPE_CHECKING:
    from ..type_defs import (
        ActionResult,
        ChoreData,
        ChoreTemplateData,
        CompletionCheck,
        FamilySettings,
        FamilyState,
        JobData,
        JobStatus,
        JobTemplateData,
        MaintenanceSummary,
        TransactionData,
        UnlockProgress,
        UserData,
    )

EventCallback = Callable[[str, dict[str, Any]], None]
ChangeCallback = Callable[[], None]


def _fail(reason: str, **extra: Any) -> ActionResult:
    return {"success": False, "reason": reason, **extra}


class FamilyEconomyManager:
    """Aggregate root for users, chores, jobs, templates and the ledger."""

    def __init__(
        self,
        state: dict[str, Any] | None = None,
        *,
        event_callback: EventCallback | None = None,
        change_callback: ChangeCallback | None = None,
        now_func: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize from a snapshot (tolerant) or an empty default state."""
        normalized = normalize_snapshot(state) if state is not None else None
        if state is not None and normalized is None:
            const.LOGGER.warning(
                "WARNING: Ignoring malformed family state snapshot (%s)",
                type(state).__name__,
            )
        self._data: FamilyState = normalized or build_default_state()
        self._event_callback = event_callback
        self._change_callback = change_callback
        self._now = now_func or dt_now_local
        self._gate = PatternGate(
            self._data[const.DATA_PARENT_PASSWORD],  # type: ignore[literal-required]
            on_secret_changed=self._on_secret_changed,
        )
        self._data[const.DATA_PARENT_PASSWORD] = self._gate.secret  # type: ignore[literal-required]

    @classmethod
    def from_snapshot(
        cls, snapshot: Any, **kwargs: Any
    ) -> FamilyEconomyManager:
        """Build a manager from a persisted snapshot, falling back to defaults."""
        return cls(snapshot, **kwargs)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _items(self, key: str) -> list[Any]:
        return self._data[key]  # type: ignore[literal-required]

    def _find(self, key: str, item_id: str | None) -> Any | None:
        if not item_id:
            return None
        for item in self._items(key):
            if item.get(const.DATA_ID) == item_id:
                return item
        return None

    def _put(self, key: str, item: dict[str, Any]) -> None:
        """Replace the item with the same id, or append it."""
        items = self._items(key)
        for index, existing in enumerate(items):
            if existing.get(const.DATA_ID) == item[const.DATA_ID]:
                items[index] = item
                return
        items.append(item)

    def _fire(self, event_type: str, **payload: Any) -> None:
        """Call the event hook; its failures never affect domain state."""
        if self._event_callback is None:
            return
        try:
            self._event_callback(event_type, payload)
        except Exception:  # pylint: disable=broad-exception-caught
            const.LOGGER.exception("ERROR: Event hook failed for '%s'", event_type)

    def _changed(self) -> None:
        if self._change_callback is None:
            return
        try:
            self._change_callback()
        except Exception:  # pylint: disable=broad-exception-caught
            const.LOGGER.exception("ERROR: Change listener failed")

    def _on_secret_changed(self, secret: list[int] | None) -> None:
        self._data[const.DATA_PARENT_PASSWORD] = secret  # type: ignore[literal-required]
        self._changed()

    def _refresh_locks(self, now: datetime | None = None) -> list[str]:
        """Recompute ``is_locked`` on every job. Returns ids that flipped."""
        chores = self._items(const.DATA_CHORES)
        reset_day = self.reset_day
        changed: list[str] = []
        jobs = self._items(const.DATA_JOBS)
        for index, job in enumerate(jobs):
            updated = JobEngine.update_lock_status(job, chores, reset_day, now)
            if updated is not job:
                jobs[index] = updated
                changed.append(job[const.DATA_ID])
        return changed

    def _discard_pending(self, user_id: str | None, amount: int) -> None:
        user = self.get_user(user_id)
        if user is not None and amount:
            self._put(const.DATA_USERS, EconomyEngine.discard_pending(user, amount))

    def _reject_pending_for_removal(self, job: JobData) -> JobData:
        """Reject a job's pending completions before it leaves its owner."""
        rejected, total = JobEngine.reject_all_completions(job, None, self._now())
        if total:
            self._discard_pending(job.get(const.DATA_JOB_USER_ID), total)
            const.LOGGER.debug(
                "DEBUG: Discarded %s pending cents from job %s", total, job[const.DATA_ID]  # type: ignore[literal-required]
            )
        return rejected

    @staticmethod
    def _with_default(
        data: dict[str, Any], key: str, default: Any
    ) -> dict[str, Any]:
        if key in data:
            return data
        return {**data, key: default}

    # =========================================================================
    # State properties
    # =========================================================================

    @property
    def users(self) -> list[UserData]:
        """All family members."""
        return self._items(const.DATA_USERS)

    @property
    def chores(self) -> list[ChoreData]:
        """All chores, assigned and library."""
        return self._items(const.DATA_CHORES)

    @property
    def jobs(self) -> list[JobData]:
        """All jobs, assigned and library."""
        return self._items(const.DATA_JOBS)

    @property
    def chore_templates(self) -> list[ChoreTemplateData]:
        """Chore prototypes."""
        return self._items(const.DATA_CHORE_TEMPLATES)

    @property
    def job_templates(self) -> list[JobTemplateData]:
        """Job prototypes."""
        return self._items(const.DATA_JOB_TEMPLATES)

    @property
    def transactions(self) -> list[TransactionData]:
        """The ledger in append order."""
        return self._items(const.DATA_TRANSACTIONS)

    @property
    def settings(self) -> FamilySettings:
        """Household settings."""
        return self._data[const.DATA_SETTINGS]  # type: ignore[literal-required]

    @property
    def reset_day(self) -> int:
        """Weekly reset weekday (0 = Sunday)."""
        return int(
            self.settings.get(
                const.DATA_SETTINGS_WEEKLY_RESET_DAY, const.DEFAULT_WEEKLY_RESET_DAY
            )
        )

    @property
    def recovery(self) -> dict[str, Any]:
        """Stored recovery contact (hash and hint only)."""
        return self._data[const.DATA_RECOVERY]  # type: ignore[literal-required]

    @property
    def pattern_gate(self) -> PatternGate:
        """The parent gate guarding parent-only operations."""
        return self._gate

    def get_state(self) -> FamilyState:
        """Return a deep-copied, JSON-serializable snapshot stamped with ``last_saved``."""
        self._data[const.DATA_LAST_SAVED] = dt_now_iso(self._now())  # type: ignore[literal-required]
        return copy.deepcopy(self._data)

    # =========================================================================
    # Users
    # =========================================================================

    def get_user(self, user_id: str | None) -> UserData | None:
        """Return a user by id, or None."""
        return self._find(const.DATA_USERS, user_id)

    @property
    def active_user(self) -> UserData | None:
        """The user whose view is currently selected."""
        return self.get_user(self._data[const.DATA_ACTIVE_USER_ID])  # type: ignore[literal-required]

    @property
    def parent_users(self) -> list[UserData]:
        """Users with the parent role."""
        return [u for u in self.users if u.get(const.DATA_USER_ROLE) == const.ROLE_PARENT]

    @property
    def child_users(self) -> list[UserData]:
        """Users with the child role."""
        return [u for u in self.users if u.get(const.DATA_USER_ROLE) == const.ROLE_CHILD]

    def add_user(self, data: dict[str, Any]) -> UserData | None:
        """Add a family member.

        The first user becomes active, and so does the first child added.
        """
        try:
            user = build_user(data, now=self._now())
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected new user: %s", err)
            return None

        had_children = bool(self.child_users)
        self.users.append(user)

        active_id = self._data[const.DATA_ACTIVE_USER_ID]  # type: ignore[literal-required]
        if not active_id or (
            user[const.DATA_USER_ROLE] == const.ROLE_CHILD and not had_children  # type: ignore[literal-required]
        ):
            self._data[const.DATA_ACTIVE_USER_ID] = user[const.DATA_ID]  # type: ignore[literal-required]

        const.LOGGER.info(
            "INFO: Added %s '%s' (ID: %s)",
            user[const.DATA_USER_ROLE],  # type: ignore[literal-required]
            user[const.DATA_NAME],  # type: ignore[literal-required]
            user[const.DATA_ID],  # type: ignore[literal-required]
        )
        self._fire(
            const.EVENT_USER_ADDED,
            user_id=user[const.DATA_ID],  # type: ignore[literal-required]
            name=user[const.DATA_NAME],  # type: ignore[literal-required]
            role=user[const.DATA_USER_ROLE],  # type: ignore[literal-required]
        )
        self._changed()
        return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> UserData | None:
        """Rename a user or change their role/avatar. Balances are not editable."""
        user = self.get_user(user_id)
        if user is None:
            return None
        try:
            updated = build_user(changes, existing=user)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected update for user %s: %s", user_id, err)
            return None
        self._put(const.DATA_USERS, updated)
        self._changed()
        return updated

    def delete_user(self, user_id: str) -> bool:
        """Delete a user with their chores, jobs and transactions."""
        user = self.get_user(user_id)
        if user is None:
            return False

        self._data[const.DATA_USERS] = [  # type: ignore[literal-required]
            u for u in self.users if u[const.DATA_ID] != user_id  # type: ignore[literal-required]
        ]
        for key, owner_key in (
            (const.DATA_CHORES, const.DATA_CHORE_USER_ID),
            (const.DATA_JOBS, const.DATA_JOB_USER_ID),
            (const.DATA_TRANSACTIONS, const.DATA_TXN_USER_ID),
        ):
            self._data[key] = [  # type: ignore[literal-required]
                item for item in self._items(key) if item.get(owner_key) != user_id
            ]

        if self._data[const.DATA_ACTIVE_USER_ID] == user_id:  # type: ignore[literal-required]
            children = self.child_users
            self._data[const.DATA_ACTIVE_USER_ID] = (  # type: ignore[literal-required]
                children[0][const.DATA_ID] if children else None  # type: ignore[literal-required]
            )

        const.LOGGER.info("INFO: Deleted user '%s' (ID: %s)", user.get(const.DATA_NAME), user_id)
        self._fire(const.EVENT_USER_DELETED, user_id=user_id)
        self._changed()
        return True

    def switch_user(self, user_id: str) -> bool:
        """Select the active user. Unknown ids are ignored."""
        if self.get_user(user_id) is None:
            return False
        self._data[const.DATA_ACTIVE_USER_ID] = user_id  # type: ignore[literal-required]
        self._changed()
        return True

    # =========================================================================
    # Chores
    # =========================================================================

    def get_chore(self, chore_id: str | None) -> ChoreData | None:
        """Return a chore by id, or None."""
        return self._find(const.DATA_CHORES, chore_id)

    def chores_for_user(self, user_id: str) -> list[ChoreData]:
        """Chores owned by ``user_id``."""
        return ChoreEngine.chores_for_user(self.chores, user_id)

    def add_chore(
        self, data: dict[str, Any], user_id: str | None = None
    ) -> ChoreData | None:
        """Create a chore for ``user_id``, or a library chore when None."""
        if user_id is not None and self.get_user(user_id) is None:
            return None
        now = self._now()
        try:
            chore = ChoreEngine.create(data, user_id=user_id, now=now)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected new chore: %s", err)
            return None
        self.chores.append(chore)
        self._refresh_locks(now)
        const.LOGGER.debug("DEBUG: Added chore %s for %s", chore[const.DATA_ID], user_id)  # type: ignore[literal-required]
        self._changed()
        return chore

    def update_chore(self, chore_id: str, changes: dict[str, Any]) -> ChoreData | None:
        """Apply a named update to a chore's definition fields."""
        chore = self.get_chore(chore_id)
        if chore is None:
            return None
        try:
            updated = ChoreEngine.apply_update(chore, changes)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected update for chore %s: %s", chore_id, err)
            return None
        self._put(const.DATA_CHORES, updated)
        self._refresh_locks(self._now())
        self._changed()
        return updated

    def delete_chore(self, chore_id: str) -> bool:
        """Remove a chore."""
        if self.get_chore(chore_id) is None:
            return False
        self._data[const.DATA_CHORES] = [  # type: ignore[literal-required]
            c for c in self.chores if c[const.DATA_ID] != chore_id  # type: ignore[literal-required]
        ]
        self._refresh_locks(self._now())
        self._changed()
        return True

    def assign_chore(self, chore_id: str, user_id: str | None) -> ChoreData | None:
        """Move a chore to a user, or back to the library with None."""
        chore = self.get_chore(chore_id)
        if chore is None or (user_id is not None and self.get_user(user_id) is None):
            return None
        updated = ChoreEngine.assign(chore, user_id)
        self._put(const.DATA_CHORES, updated)
        self._refresh_locks(self._now())
        self._changed()
        return updated

    def _award_chore(self, chore: ChoreData) -> int:
        user = self.get_user(chore.get(const.DATA_CHORE_USER_ID))
        points = int(chore.get(const.DATA_CHORE_POINTS) or 0)
        if user is None:
            return 0
        self._put(const.DATA_USERS, EconomyEngine.add_gems(user, points))
        return points

    def _update_streak(self, user_id: str | None, now: datetime) -> None:
        user = self.get_user(user_id)
        if user is None:
            return
        streak = ChoreEngine.calculate_streak(
            int(user.get(const.DATA_USER_CURRENT_STREAK) or 0),
            int(user.get(const.DATA_USER_LONGEST_STREAK) or 0),
            user.get(const.DATA_USER_LAST_ACTIVE_DATE),
            now,
        )
        updated = copy.deepcopy(user)
        updated["current_streak"] = streak["current_streak"]
        updated["longest_streak"] = streak["longest_streak"]
        updated["last_active_date"] = streak["last_active_date"]
        self._put(const.DATA_USERS, updated)
        if streak["changed"]:
            self._fire(
                const.EVENT_STREAK_UPDATED,
                user_id=user_id,
                current_streak=streak["current_streak"],
                longest_streak=streak["longest_streak"],
            )

    def complete_chore(self, chore_id: str) -> ActionResult:
        """Mark a chore done for its owner.

        Updates the owner's streak. Gems are awarded now when chores need no
        approval, otherwise on approval.
        """
        chore = self.get_chore(chore_id)
        if chore is None:
            return _fail(const.REASON_NOT_FOUND)
        if chore.get(const.DATA_CHORE_USER_ID) is None:
            return _fail(const.REASON_UNASSIGNED)
        if not ChoreEngine.can_complete(chore):
            return _fail(const.REASON_ALREADY_COMPLETED)

        now = self._now()
        require_approval = bool(
            self.settings.get(
                const.DATA_SETTINGS_REQUIRE_APPROVAL_CHORES,
                const.DEFAULT_REQUIRE_APPROVAL_CHORES,
            )
        )
        updated = ChoreEngine.complete(chore, require_approval, now)
        self._put(const.DATA_CHORES, updated)

        user_id = updated.get(const.DATA_CHORE_USER_ID)
        self._update_streak(user_id, now)
        gems = 0 if require_approval else self._award_chore(updated)
        self._refresh_locks(now)

        self._fire(
            const.EVENT_CHORE_COMPLETED,
            chore_id=chore_id,
            user_id=user_id,
            pending_approval=require_approval,
        )
        self._changed()
        return {"success": True, "pending_approval": require_approval, "gems_awarded": gems}

    def approve_chore(self, chore_id: str, approved_by: str | None = None) -> ActionResult:
        """Approve an awaiting chore and award its gems."""
        chore = self.get_chore(chore_id)
        if chore is None:
            return _fail(const.REASON_NOT_FOUND)
        updated = ChoreEngine.approve(chore)
        if updated is chore:
            return _fail(const.REASON_NOTHING_PENDING)

        self._put(const.DATA_CHORES, updated)
        gems = self._award_chore(updated)
        self._refresh_locks(self._now())
        self._fire(
            const.EVENT_CHORE_APPROVED,
            chore_id=chore_id,
            user_id=updated.get(const.DATA_CHORE_USER_ID),
            approved_by=approved_by,
            gems_awarded=gems,
        )
        self._changed()
        return {"success": True, "gems_awarded": gems}

    def reject_chore(self, chore_id: str, rejected_by: str | None = None) -> ActionResult:
        """Send an awaiting chore back so it can be redone."""
        chore = self.get_chore(chore_id)
        if chore is None:
            return _fail(const.REASON_NOT_FOUND)
        updated = ChoreEngine.reject(chore)
        if updated is chore:
            return _fail(const.REASON_NOTHING_PENDING)

        self._put(const.DATA_CHORES, updated)
        self._refresh_locks(self._now())
        self._fire(
            const.EVENT_CHORE_REJECTED,
            chore_id=chore_id,
            user_id=updated.get(const.DATA_CHORE_USER_ID),
            rejected_by=rejected_by,
        )
        self._changed()
        return {"success": True}

    def chores_pending_approval(self) -> list[ChoreData]:
        """Chores awaiting a parent."""
        return ChoreEngine.pending_approval(self.chores)

    # =========================================================================
    # Jobs
    # =========================================================================

    def get_job(self, job_id: str | None) -> JobData | None:
        """Return a job by id, or None."""
        return self._find(const.DATA_JOBS, job_id)

    def add_job(
        self,
        data: dict[str, Any],
        user_id: str | None = None,
        created_by: str | None = None,
    ) -> JobData | None:
        """Create a job with its lock status computed.

        ``requires_approval`` defaults to the household setting when omitted.
        """
        if user_id is not None and self.get_user(user_id) is None:
            return None
        data = self._with_default(
            data,
            const.DATA_JOB_REQUIRES_APPROVAL,
            self.settings.get(
                const.DATA_SETTINGS_REQUIRE_APPROVAL_JOBS,
                const.DEFAULT_REQUIRE_APPROVAL_JOBS,
            ),
        )
        try:
            job = JobEngine.create(
                data,
                self.chores,
                self.reset_day,
                user_id=user_id,
                created_by=created_by,
                now=self._now(),
            )
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected new job: %s", err)
            return None
        self.jobs.append(job)
        const.LOGGER.debug("DEBUG: Added job %s for %s", job[const.DATA_ID], user_id)  # type: ignore[literal-required]
        self._changed()
        return job

    def update_job(self, job_id: str, changes: dict[str, Any]) -> JobData | None:
        """Apply a named update to a job's definition fields."""
        job = self.get_job(job_id)
        if job is None:
            return None
        try:
            updated = JobEngine.apply_update(job, changes)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected update for job %s: %s", job_id, err)
            return None
        updated = JobEngine.update_lock_status(
            updated, self.chores, self.reset_day, self._now()
        )
        self._put(const.DATA_JOBS, updated)
        self._changed()
        return updated

    def delete_job(self, job_id: str) -> bool:
        """Remove a job; its pending earnings leave the owner's pending balance."""
        job = self.get_job(job_id)
        if job is None:
            return False
        self._reject_pending_for_removal(job)
        self._data[const.DATA_JOBS] = [  # type: ignore[literal-required]
            j for j in self.jobs if j[const.DATA_ID] != job_id  # type: ignore[literal-required]
        ]
        self._changed()
        return True

    def assign_job(self, job_id: str, user_id: str | None) -> JobData | None:
        """Move a job to a user, or back to the library with None."""
        job = self.get_job(job_id)
        if job is None or (user_id is not None and self.get_user(user_id) is None):
            return None
        now = self._now()
        moved = JobEngine.assign(self._reject_pending_for_removal(job), user_id)
        moved = JobEngine.update_lock_status(moved, self.chores, self.reset_day, now)
        self._put(const.DATA_JOBS, moved)
        self._changed()
        return moved

    def can_complete_job(
        self, job_id: str, count: int = const.DEFAULT_COMPLETION_COUNT
    ) -> CompletionCheck:
        """Check whether ``count`` units of the job can be completed now."""
        return JobEngine.can_complete(
            self.get_job(job_id), self.chores, self.reset_day, count, self._now()
        )

    def get_unlock_progress(self, job_id: str) -> UnlockProgress | None:
        """Progress toward the job's unlock thresholds."""
        job = self.get_job(job_id)
        if job is None:
            return None
        return JobEngine.get_unlock_progress(job, self.chores, self.reset_day, self._now())

    def get_current_period_completions(self, job_id: str) -> int:
        """Units completed (not rejected) in the current period."""
        job = self.get_job(job_id)
        if job is None:
            return 0
        return JobEngine.get_current_period_completions(job, self.reset_day, self._now())

    def jobs_needing_approval(self) -> list[JobData]:
        """Jobs with at least one pending completion."""
        return JobEngine.get_jobs_needing_approval(self.jobs)

    def pending_approvals(self) -> dict[str, list[Any]]:
        """Jobs and chores waiting for a parent, and the parents who may approve.

        Earnings are in cents.
        """
        return {
            "jobs": [
                {
                    "job_id": job[const.DATA_ID],
                    "title": job.get(const.DATA_JOB_TITLE, ""),
                    "user_id": job.get(const.DATA_JOB_USER_ID),
                    "pending_earnings": JobEngine.get_pending_earnings(job),
                }
                for job in self.jobs_needing_approval()
            ],
            "chores": [
                {
                    "chore_id": chore[const.DATA_ID],
                    "name": chore.get(const.DATA_NAME, ""),
                    "user_id": chore.get(const.DATA_CHORE_USER_ID),
                }
                for chore in self.chores_pending_approval()
            ],
            "approvers": [user.get(const.DATA_NAME) for user in self.parent_users],
        }

    def get_job_status(self, job_id: str) -> JobStatus | None:
        """Everything a dashboard shows for one job, or None when unknown."""
        job = self.get_job(job_id)
        if job is None:
            return None
        now = self._now()
        check = JobEngine.can_complete(job, self.chores, self.reset_day, 1, now)
        progress = JobEngine.get_unlock_progress(job, self.chores, self.reset_day, now)
        return {
            "job_id": job[const.DATA_ID],
            "title": job.get(const.DATA_JOB_TITLE, ""),
            "user_id": job.get(const.DATA_JOB_USER_ID),
            "value": job.get(const.DATA_JOB_VALUE, 0),
            "is_locked": not progress["is_unlocked"],
            "unlock_progress": progress,
            "can_complete": check["can_complete"],
            "reason": check["reason"],
            "current_period_completions": JobEngine.get_current_period_completions(
                job, self.reset_day, now
            ),
            "display_text": JobEngine.get_completion_display_text(
                job, self.reset_day, now
            ),
            "pending_earnings": JobEngine.get_pending_earnings(job),
            "approved_earnings": JobEngine.get_approved_earnings(job, self.reset_day, now),
        }

    def complete_job(
        self, job_id: str, count: int = const.DEFAULT_COMPLETION_COUNT
    ) -> ActionResult:
        """Record ``count`` units of work on a job.

        Jobs that need approval park the earnings in ``pending_balance``;
        otherwise the cash is credited now with an ``earn`` transaction.
        """
        job = self.get_job(job_id)
        if job is None:
            return _fail(const.REASON_NOT_FOUND)
        now = self._now()
        check = JobEngine.can_complete(job, self.chores, self.reset_day, count, now)
        if not check["can_complete"]:
            return _fail(check["reason"] or const.REASON_INVALID_DATA)

        user_id = job.get(const.DATA_JOB_USER_ID)
        user = self.get_user(user_id)
        if user is None:
            return _fail(const.REASON_NOT_FOUND)

        updated, completion = JobEngine.complete(job, count, now)
        earned = completion["total_earned"]
        pending = completion["status"] == const.STATUS_PENDING
        title = job.get(const.DATA_JOB_TITLE, "")

        if pending:
            self._put(const.DATA_USERS, EconomyEngine.add_pending(user, earned))
        else:
            self._put(const.DATA_USERS, EconomyEngine.credit_cash(user, earned))
            self.transactions.append(
                EconomyEngine.create_earn_transaction(
                    user_id, earned, job_id, title, count, now=now  # type: ignore[arg-type]
                )
            )
        self._put(const.DATA_JOBS, updated)

        self._fire(
            const.EVENT_JOB_COMPLETED,
            job_id=job_id,
            user_id=user_id,
            count=count,
            earned=earned,
            pending_approval=pending,
        )
        self._changed()
        return {
            "success": True,
            "earned": earned,
            "job_title": title,
            "pending_approval": pending,
            "completion_id": completion["id"],
        }

    def _settle_approval(
        self,
        job: JobData,
        updated: JobData,
        total: int,
        units: int,
        approved_by: str | None,
    ) -> None:
        """Move approved cents from pending to cash with one earn transaction."""
        self._put(const.DATA_JOBS, updated)
        user_id = job.get(const.DATA_JOB_USER_ID)
        user = self.get_user(user_id)
        if user is None or total <= 0:
            return
        self._put(const.DATA_USERS, EconomyEngine.release_pending(user, total))
        self.transactions.append(
            EconomyEngine.create_earn_transaction(
                user_id,  # type: ignore[arg-type]
                total,
                job[const.DATA_ID],  # type: ignore[literal-required]
                job.get(const.DATA_JOB_TITLE, ""),
                units,
                approved_by=approved_by,
                now=self._now(),
            )
        )
        self._fire(
            const.EVENT_JOB_APPROVED,
            job_id=job[const.DATA_ID],  # type: ignore[literal-required]
            user_id=user_id,
            total_approved=total,
            total_count=units,
            approved_by=approved_by,
        )

    def approve_job(self, job_id: str, approved_by: str | None = None) -> ActionResult:
        """Approve every pending completion of a job.

        A second call in a row approves nothing and reports zero totals.
        """
        job = self.get_job(job_id)
        if job is None:
            return _fail(const.REASON_NOT_FOUND, total_approved=0)
        updated, total, units = JobEngine.approve_all_completions(
            job, approved_by, self._now()
        )
        if units:
            self._settle_approval(job, updated, total, units, approved_by)
            self._changed()
        return {"success": True, "total_approved": total, "total_count": units}

    def reject_job(self, job_id: str, rejected_by: str | None = None) -> ActionResult:
        """Reject every pending completion; the money is discarded."""
        job = self.get_job(job_id)
        if job is None:
            return _fail(const.REASON_NOT_FOUND, total_rejected=0)
        updated, total = JobEngine.reject_all_completions(job, rejected_by, self._now())
        if updated is not job:
            self._put(const.DATA_JOBS, updated)
            self._discard_pending(job.get(const.DATA_JOB_USER_ID), total)
            self._fire(
                const.EVENT_JOB_REJECTED,
                job_id=job_id,
                user_id=job.get(const.DATA_JOB_USER_ID),
                total_rejected=total,
                rejected_by=rejected_by,
            )
            self._changed()
        return {"success": True, "total_rejected": total}

    def approve_completion(
        self, job_id: str, completion_id: str, approved_by: str | None = None
    ) -> ActionResult:
        """Approve a single pending completion."""
        job = self.get_job(job_id)
        if job is None:
            return _fail(const.REASON_NOT_FOUND)
        updated, total, units = JobEngine.approve_completion(
            job, completion_id, approved_by, self._now()
        )
        if not units:
            return _fail(const.REASON_NOTHING_PENDING)
        self._settle_approval(job, updated, total, units, approved_by)
        self._changed()
        return {"success": True, "total_approved": total, "total_count": units}

    def reject_completion(
        self, job_id: str, completion_id: str, rejected_by: str | None = None
    ) -> ActionResult:
        """Reject a single pending completion."""
        job = self.get_job(job_id)
        if job is None:
            return _fail(const.REASON_NOT_FOUND)
        updated, total = JobEngine.reject_completion(
            job, completion_id, rejected_by, self._now()
        )
        if updated is job:
            return _fail(const.REASON_NOTHING_PENDING)
        self._put(const.DATA_JOBS, updated)
        self._discard_pending(job.get(const.DATA_JOB_USER_ID), total)
        self._fire(
            const.EVENT_JOB_REJECTED,
            job_id=job_id,
            user_id=job.get(const.DATA_JOB_USER_ID),
            total_rejected=total,
            rejected_by=rejected_by,
        )
        self._changed()
        return {"success": True, "total_rejected": total}

    # =========================================================================
    # Templates
    # =========================================================================

    def get_template(self, template_id: str | None) -> tuple[str, dict[str, Any]] | None:
        """Return ``(kind, template)`` for a template id, or None."""
        chore_template = self._find(const.DATA_CHORE_TEMPLATES, template_id)
        if chore_template is not None:
            return const.TEMPLATE_KIND_CHORE, chore_template
        job_template = self._find(const.DATA_JOB_TEMPLATES, template_id)
        if job_template is not None:
            return const.TEMPLATE_KIND_JOB, job_template
        return None

    def add_chore_template(self, data: dict[str, Any]) -> ChoreTemplateData | None:
        """Create a chore prototype."""
        try:
            template = TemplateEngine.create_chore_template(data, now=self._now())
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected chore template: %s", err)
            return None
        self.chore_templates.append(template)
        self._changed()
        return template

    def add_job_template(self, data: dict[str, Any]) -> JobTemplateData | None:
        """Create a job prototype."""
        data = self._with_default(
            data,
            const.DATA_JOB_REQUIRES_APPROVAL,
            self.settings.get(
                const.DATA_SETTINGS_REQUIRE_APPROVAL_JOBS,
                const.DEFAULT_REQUIRE_APPROVAL_JOBS,
            ),
        )
        try:
            template = TemplateEngine.create_job_template(data, now=self._now())
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected job template: %s", err)
            return None
        self.job_templates.append(template)
        self._changed()
        return template

    def update_template(
        self, template_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Update a prototype. Instances already created are left alone."""
        found = self.get_template(template_id)
        if found is None:
            return None
        kind, template = found
        try:
            updated = TemplateEngine.update_template(template, changes, kind)
        except EntityValidationError as err:
            const.LOGGER.warning("WARNING: Rejected template update %s: %s", template_id, err)
            return None
        key = (
            const.DATA_CHORE_TEMPLATES
            if kind == const.TEMPLATE_KIND_CHORE
            else const.DATA_JOB_TEMPLATES
        )
        self._put(key, updated)
        self._changed()
        return updated

    def delete_template(self, template_id: str) -> bool:
        """Delete a prototype. Instances keep their ``template_id``."""
        found = self.get_template(template_id)
        if found is None:
            return False
        key = (
            const.DATA_CHORE_TEMPLATES
            if found[0] == const.TEMPLATE_KIND_CHORE
            else const.DATA_JOB_TEMPLATES
        )
        self._data[key] = [  # type: ignore[literal-required]
            t for t in self._items(key) if t.get(const.DATA_ID) != template_id
        ]
        self._changed()
        return True

    def _known_users(self, user_ids: str | list[str]) -> list[str]:
        ids = [user_ids] if isinstance(user_ids, str) else list(user_ids or [])
        return [user_id for user_id in ids if self.get_user(user_id) is not None]

    def apply_chore_template(
        self, template_id: str, user_ids: str | list[str]
    ) -> list[ChoreData]:
        """Create one chore per known user from a chore template."""
        template = self._find(const.DATA_CHORE_TEMPLATES, template_id)
        if template is None:
            return []
        now = self._now()
        created = TemplateEngine.apply_chore_template(
            template, self._known_users(user_ids), now
        )
        if not created:
            return []
        self.chores.extend(created)
        self._refresh_locks(now)
        self._fire(
            const.EVENT_TEMPLATE_APPLIED,
            template_id=template_id,
            kind=const.TEMPLATE_KIND_CHORE,
            created_ids=[c[const.DATA_ID] for c in created],  # type: ignore[literal-required]
        )
        self._changed()
        return created

    def apply_job_template(
        self,
        template_id: str,
        user_ids: str | list[str],
        created_by: str | None = None,
    ) -> list[JobData]:
        """Create one job per known user from a job template."""
        template = self._find(const.DATA_JOB_TEMPLATES, template_id)
        if template is None:
            return []
        created = TemplateEngine.apply_job_template(
            template,
            self._known_users(user_ids),
            created_by,
            self.chores,
            self.reset_day,
            self._now(),
        )
        if not created:
            return []
        self.jobs.extend(created)
        self._fire(
            const.EVENT_TEMPLATE_APPLIED,
            template_id=template_id,
            kind=const.TEMPLATE_KIND_JOB,
            created_ids=[j[const.DATA_ID] for j in created],  # type: ignore[literal-required]
        )
        self._changed()
        return created

    # =========================================================================
    # Money
    # =========================================================================

    def redeem_cash(
        self, user_id: str, amount: int, description: str = ""
    ) -> ActionResult:
        """Spend cash. Fails without side effects when the balance is short."""
        user = self.get_user(user_id)
        if user is None:
            return _fail(const.REASON_NOT_FOUND)
        if not is_valid_cents_amount(amount):
            return _fail(const.REASON_INVALID_AMOUNT)
        try:
            updated = EconomyEngine.debit_cash(user, amount)
        except InsufficientFundsError as err:
            const.LOGGER.debug("DEBUG: %s", err)
            return _fail(const.REASON_INSUFFICIENT_BALANCE, shortfall=err.shortfall)

        now = self._now()
        self._put(const.DATA_USERS, updated)
        self.transactions.append(
            EconomyEngine.create_redeem_transaction(user_id, amount, description, now)
        )
        balance = updated[const.DATA_USER_CASH_BALANCE]  # type: ignore[literal-required]
        self._fire(
            const.EVENT_CASH_REDEEMED,
            user_id=user_id,
            amount=amount,
            description=description,
            balance=balance,
        )
        self._changed()
        return {"success": True, "balance": balance}

    def adjust_balance(
        self,
        user_id: str,
        amount: int,
        description: str = "",
        adjusted_by: str | None = None,
    ) -> ActionResult:
        """Parent credit (positive) or debit (negative), approved immediately."""
        user = self.get_user(user_id)
        if user is None:
            return _fail(const.REASON_NOT_FOUND)
        if (
            isinstance(amount, bool)
            or not isinstance(amount, int)
            or not is_valid_cents_amount(abs(amount))
        ):
            return _fail(const.REASON_INVALID_AMOUNT)

        updated = EconomyEngine.credit_cash(user, amount)
        self._put(const.DATA_USERS, updated)
        self.transactions.append(
            EconomyEngine.create_adjust_transaction(
                user_id, amount, description, adjusted_by, self._now()
            )
        )
        balance = updated[const.DATA_USER_CASH_BALANCE]  # type: ignore[literal-required]
        self._fire(
            const.EVENT_BALANCE_ADJUSTED,
            user_id=user_id,
            amount=amount,
            adjusted_by=adjusted_by,
            balance=balance,
        )
        self._changed()
        return {"success": True, "balance": balance}

    def award_bonus(
        self,
        user_id: str,
        amount: int,
        description: str = "",
        awarded_by: str | None = None,
    ) -> ActionResult:
        """Credit a bonus reward, approved immediately."""
        user = self.get_user(user_id)
        if user is None:
            return _fail(const.REASON_NOT_FOUND)
        if not is_valid_cents_amount(amount):
            return _fail(const.REASON_INVALID_AMOUNT)

        updated = EconomyEngine.credit_cash(user, amount)
        self._put(const.DATA_USERS, updated)
        self.transactions.append(
            EconomyEngine.create_bonus_transaction(
                user_id, amount, description, awarded_by, self._now()
            )
        )
        balance = updated[const.DATA_USER_CASH_BALANCE]  # type: ignore[literal-required]
        self._fire(
            const.EVENT_BONUS_AWARDED,
            user_id=user_id,
            amount=amount,
            awarded_by=awarded_by,
            balance=balance,
        )
        self._changed()
        return {"success": True, "balance": balance}

    def transactions_for_user(self, user_id: str) -> list[TransactionData]:
        """A user's ledger entries, newest first."""
        return [
            txn
            for txn in reversed(self.transactions)
            if txn.get(const.DATA_TXN_USER_ID) == user_id
        ]

    # =========================================================================
    # Settings / parent gate
    # =========================================================================

    def update_settings(self, changes: dict[str, Any]) -> bool:
        """Merge validated settings, then run maintenance under the new rules."""
        known = {k: v for k, v in changes.items() if k in self.settings}
        if validate_settings(known):
            const.LOGGER.warning("WARNING: Rejected settings update: %s", changes)
            return False
        for key in (
            const.DATA_SETTINGS_REQUIRE_APPROVAL_JOBS,
            const.DATA_SETTINGS_REQUIRE_APPROVAL_CHORES,
        ):
            if key in known:
                known[key] = bool(known[key])
        if known:
            self.settings.update(known)  # type: ignore[typeddict-item]
            const.LOGGER.info("INFO: Settings updated: %s", sorted(known))
        self.run_maintenance()
        self._changed()
        return True

    def set_parent_pattern(self, pattern: list[int] | None) -> bool:
        """Replace the parent gesture, or clear it with None."""
        if pattern is None:
            self._gate.clear_secret()
            return True
        return self._gate.set_secret(pattern)

    def set_recovery(self, email_hash: str | None, email_hint: str | None) -> None:
        """Store the hashed recovery contact."""
        self._data[const.DATA_RECOVERY] = {  # type: ignore[literal-required]
            const.DATA_RECOVERY_EMAIL_HASH: email_hash,
            const.DATA_RECOVERY_EMAIL_HINT: email_hint,
        }
        self._changed()

    # =========================================================================
    # Maintenance
    # =========================================================================

    def run_maintenance(self, now: datetime | None = None) -> MaintenanceSummary:
        """Reset chores and jobs whose period rolled over and refresh derived state.

        Pending job completions are auto-rejected before their job resets and
        their earnings leave the owner's ``pending_balance``. Chores still
        awaiting approval are cleared without gems and reported as discarded.
        Streaks of users inactive since before yesterday drop to zero. Every
        job's lock status is recomputed last.
        """
        now = now or self._now()
        reset_day = self.reset_day
        summary: MaintenanceSummary = {
            "chores_reset": [],
            "jobs_reset": [],
            "auto_rejected": {},
            "chores_discarded": [],
            "streaks_broken": [],
            "lock_changes": [],
        }

        chores = self.chores
        for index, chore in enumerate(chores):
            reset = ChoreEngine.reset_period(chore, reset_day, now)
            if reset is chore:
                continue
            chores[index] = reset
            summary["chores_reset"].append(chore[const.DATA_ID])  # type: ignore[literal-required]
            if chore.get(const.DATA_CHORE_PENDING_APPROVAL):
                summary["chores_discarded"].append(chore[const.DATA_ID])  # type: ignore[literal-required]

        jobs = self.jobs
        for index, job in enumerate(jobs):
            reset_job, rejected = JobEngine.check_and_reset(job, reset_day, now)
            if reset_job is job:
                continue
            jobs[index] = reset_job
            summary["jobs_reset"].append(job[const.DATA_ID])  # type: ignore[literal-required]
            if rejected:
                summary["auto_rejected"][job[const.DATA_ID]] = rejected  # type: ignore[literal-required]
                self._discard_pending(job.get(const.DATA_JOB_USER_ID), rejected)

        for user in list(self.users):
            if not int(user.get(const.DATA_USER_CURRENT_STREAK) or 0):
                continue
            if ChoreEngine.is_streak_broken(
                user.get(const.DATA_USER_LAST_ACTIVE_DATE), now
            ):
                broken = copy.deepcopy(user)
                broken["current_streak"] = 0
                self._put(const.DATA_USERS, broken)
                summary["streaks_broken"].append(user[const.DATA_ID])  # type: ignore[literal-required]

        summary["lock_changes"] = self._refresh_locks(now)

        if any(summary.values()):
            const.LOGGER.info(
                "INFO: Maintenance reset %d chores and %d jobs, auto-rejected %d cents",
                len(summary["chores_reset"]),
                len(summary["jobs_reset"]),
                sum(summary["auto_rejected"].values()),
            )
            if summary["chores_reset"] or summary["jobs_reset"]:
                self._fire(const.EVENT_PERIOD_RESET, **copy.deepcopy(summary))
            self._changed()
        return summary
