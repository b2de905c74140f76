"""Type definitions for Family Economy data structures.

Entities are stored as plain JSON-serializable dicts. The TypedDicts below
describe their fixed key sets for static analysis only; runtime code keeps
using ``.get()`` with defaults because persisted snapshots may predate a field.

IMPORTANT: This file must NOT import from coordinator.py or any other package
module; it imports only ``typing`` so every layer can depend on it without cycles.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

UserId = str
ChoreId = str
JobId = str
TemplateId = str
Cents = int  # integer minor units, never floats
ISODatetime = str  # "2026-01-18T12:30:00+00:00"
ISODate = str  # "2026-01-18"

Recurrence = Literal["daily", "weekly"]
Role = Literal["parent", "child"]
TransactionType = Literal["earn", "redeem", "bonus", "adjust"]
ApprovalStatus = Literal["pending", "approved", "rejected"]


# =============================================================================
# Entities
# =============================================================================


class UserData(TypedDict):
    """A family member.

    ``pending_balance`` only moves through job completions awaiting approval.
    """

    id: UserId
    name: str
    avatar: str
    role: Role
    cash_balance: Cents
    pending_balance: Cents
    gems: int
    current_streak: int
    longest_streak: int
    last_active_date: ISODate | None
    created_at: ISODatetime


class ChoreData(TypedDict):
    """A recurring chore. ``user_id`` of None means it sits in the library."""

    id: ChoreId
    name: str
    icon: str
    points: int
    recurrence: Recurrence
    user_id: UserId | None
    completed: bool
    pending_approval: bool
    completed_at: ISODatetime | None
    last_reset: ISODatetime | None
    created_at: ISODatetime
    template_id: TemplateId | None


class UnlockConditions(TypedDict):
    """Chore thresholds that must be met in the current period."""

    daily_chores: int
    weekly_chores: int
    require_all_chores: NotRequired[bool]


class CompletionEvent(TypedDict):
    """One completion of a job (possibly representing several units)."""

    id: str
    timestamp: ISODatetime
    count: int
    value_at_completion: Cents
    total_earned: Cents
    status: ApprovalStatus
    approved_by: NotRequired[UserId | None]
    approved_at: NotRequired[ISODatetime | None]


class JobData(TypedDict):
    """A cash-paying job."""

    id: JobId
    title: str
    description: str
    icon: str
    value: Cents
    user_id: UserId | None
    recurrence: Recurrence
    is_locked: bool
    unlock_conditions: UnlockConditions
    allow_multiple_completions: bool
    max_completions_per_period: int | None
    completions: list[CompletionEvent]
    last_reset: ISODatetime | None
    requires_approval: bool
    created_at: ISODatetime
    created_by: UserId | None
    template_id: TemplateId | None


class TransactionData(TypedDict):
    """An append-only ledger entry. ``amount`` is signed cents."""

    id: str
    user_id: UserId
    type: TransactionType
    amount: Cents
    date: ISODatetime
    description: str
    job_id: NotRequired[JobId | None]
    completion_count: NotRequired[int | None]
    approved_by: NotRequired[UserId | None]
    status: ApprovalStatus


class ChoreTemplateData(TypedDict):
    """Prototype for chores."""

    id: TemplateId
    name: str
    icon: str
    points: int
    recurrence: Recurrence
    created_at: ISODatetime


class JobTemplateData(TypedDict):
    """Prototype for jobs."""

    id: TemplateId
    title: str
    description: str
    icon: str
    value: Cents
    recurrence: Recurrence
    unlock_conditions: UnlockConditions
    allow_multiple_completions: bool
    max_completions_per_period: int | None
    requires_approval: bool
    created_at: ISODatetime


class FamilySettings(TypedDict):
    """Household-wide settings."""

    weekly_reset_day: int  # 0 = Sunday ... 6 = Saturday
    require_approval_for_jobs: bool
    require_approval_for_chores: bool
    currency: str


class RecoveryData(TypedDict):
    """Stored recovery contact. The e-mail itself is never persisted."""

    email_hash: str | None
    email_hint: str | None


class FamilyState(TypedDict):
    """The aggregate root persisted as one snapshot."""

    users: list[UserData]
    jobs: list[JobData]
    chores: list[ChoreData]
    chore_templates: list[ChoreTemplateData]
    job_templates: list[JobTemplateData]
    transactions: list[TransactionData]
    settings: FamilySettings
    parent_password: list[int] | None
    active_user_id: UserId | None
    recovery: RecoveryData
    last_saved: NotRequired[ISODatetime | None]


# =============================================================================
# Result Structures
# =============================================================================


class ThresholdProgress(TypedDict):
    """Progress toward one unlock threshold (``current`` is capped)."""

    current: int
    required: int


class UnlockProgress(TypedDict):
    """Progress toward both unlock thresholds."""

    daily: ThresholdProgress
    weekly: ThresholdProgress
    is_unlocked: bool


class CompletionCheck(TypedDict):
    """Result of a completion eligibility check."""

    can_complete: bool
    reason: str | None


class JobStatus(TypedDict):
    """Read-only view of a job for sensors and the status service."""

    job_id: JobId
    title: str
    user_id: UserId | None
    value: Cents
    is_locked: bool
    unlock_progress: UnlockProgress
    can_complete: bool
    reason: str | None
    current_period_completions: int
    display_text: str
    pending_earnings: Cents
    approved_earnings: Cents


class StreakUpdate(TypedDict):
    """New streak values for a user."""

    current_streak: int
    longest_streak: int
    last_active_date: ISODate
    changed: bool


class MaintenanceSummary(TypedDict):
    """What a maintenance pass changed."""

    chores_reset: list[ChoreId]
    jobs_reset: list[JobId]
    auto_rejected: dict[JobId, Cents]
    chores_discarded: list[ChoreId]
    streaks_broken: list[UserId]
    lock_changes: list[JobId]


ActionResult = dict[str, Any]
