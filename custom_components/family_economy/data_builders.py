"""Entity lifecycle management helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Business rule validation of caller input
- Complete entity structure building (create and update)
- Snapshot normalization on load

### Build Functions
Each entity type has a ``build_<entity>()`` function that:
- Takes caller input keyed by DATA_* constants
- Generates a prefixed id for new entities
- Applies field defaults
- Preserves runtime fields of ``existing`` in update mode
- Returns a complete dict ready for storage

### Validation Functions
``validate_<entity>_data()`` returns ``{field: translation_key}`` (empty when
valid) so services and flows can report every bad field at once. Builders
raise ``EntityValidationError`` for the first bad field instead.

Consumers:
- engines/*.py (entity creation)
- managers/family_manager.py (aggregate state)
- store.py (snapshot normalization)
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any
import uuid

from . import const
from .type_defs import (
    ChoreData,
    ChoreTemplateData,
    FamilySettings,
    FamilyState,
    JobData,
    JobTemplateData,
    RecoveryData,
    TransactionData,
    UnlockConditions,
    UserData,
)
from .utils.dt_utils import dt_now_iso

# ==============================================================================
# Editable field sets (named updates may only touch these)
# ==============================================================================

USER_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {const.DATA_NAME, const.DATA_USER_AVATAR, const.DATA_USER_ROLE}
)

CHORE_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        const.DATA_NAME,
        const.DATA_ICON,
        const.DATA_CHORE_POINTS,
        const.DATA_CHORE_RECURRENCE,
    }
)

JOB_EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        const.DATA_JOB_TITLE,
        const.DATA_JOB_DESCRIPTION,
        const.DATA_ICON,
        const.DATA_JOB_VALUE,
        const.DATA_JOB_RECURRENCE,
        const.DATA_JOB_UNLOCK_CONDITIONS,
        const.DATA_JOB_ALLOW_MULTIPLE,
        const.DATA_JOB_MAX_COMPLETIONS,
        const.DATA_JOB_REQUIRES_APPROVAL,
    }
)

CHORE_TEMPLATE_FIELDS: frozenset[str] = CHORE_EDITABLE_FIELDS

JOB_TEMPLATE_FIELDS: frozenset[str] = JOB_EDITABLE_FIELDS


# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def new_id(prefix: str) -> str:
    """Return a fresh prefixed id, e.g. ``job_3f2a...``."""
    return f"{prefix}{uuid.uuid4().hex}"


def _normalize_list_field(value: Any) -> list[Any]:
    """Normalize a field that should be a list.

    Non-list values (None, dicts, strings, numbers) become an empty list.
    """
    if isinstance(value, list):
        return value
    return []


def _normalize_dict_field(value: Any) -> dict[str, Any]:
    """Normalize a field that should be a dict."""
    if isinstance(value, dict):
        return dict(value)
    return {}


def _coerce_int(
    value: Any,
    field: str,
    translation_key: str,
    minimum: int = 0,
) -> int:
    """Return ``value`` as an int >= minimum or raise EntityValidationError.

    Floats are accepted only when they hold a whole number.
    """
    if isinstance(value, bool):
        raise EntityValidationError(field, translation_key, {"value": str(value)})
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise EntityValidationError(
            field, translation_key, {"value": str(value)}
        ) from err
    if not number.is_integer() or number < minimum:
        raise EntityValidationError(field, translation_key, {"value": str(value)})
    return int(number)


def _require_name(
    user_input: dict[str, Any],
    key: str,
    existing: dict[str, Any] | None,
) -> str:
    """Return the stripped name, required on create and non-blank on update."""
    if key in user_input:
        raw = user_input[key]
    elif existing is not None:
        raw = existing.get(key, "")
    else:
        raw = ""
    name = str(raw).strip() if raw else ""
    if not name:
        raise EntityValidationError(field=key, translation_key=const.TRANS_KEY_INVALID_NAME)
    return name


def _require_choice(value: Any, options: list[str], field: str, key: str) -> str:
    if value not in options:
        raise EntityValidationError(field, key, {"value": str(value)})
    return value


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised by the build functions when caller input breaks a business rule.
    The manager converts it into a ``{success: False, reason: ...}`` result and
    services convert it into a ``ServiceValidationError``.

    Attributes:
        field: The DATA_* key that failed validation
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(f"Invalid {field}: {translation_key}")


# ==============================================================================
# USERS
# ==============================================================================


def validate_user_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate user input. Returns ``{field: translation_key}``."""
    errors: dict[str, str] = {}

    name = data.get(const.DATA_NAME, "")
    if not isinstance(name, str) or not name.strip():
        errors[const.DATA_NAME] = const.TRANS_KEY_INVALID_NAME

    role = data.get(const.DATA_USER_ROLE, const.ROLE_CHILD)
    if role not in const.ROLE_OPTIONS:
        errors[const.DATA_USER_ROLE] = const.TRANS_KEY_INVALID_ROLE

    return errors


def build_user(
    user_input: dict[str, Any],
    existing: UserData | None = None,
    now: datetime | None = None,
) -> UserData:
    """Build user data for create or update operations.

    Balances, gems and streaks are runtime fields: they start at zero on create
    and are always carried over from ``existing`` on update.

    Raises:
        EntityValidationError: If name or role is invalid
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    name = _require_name(user_input, const.DATA_NAME, existing)
    role = _require_choice(
        get_field(const.DATA_USER_ROLE, const.ROLE_CHILD),
        const.ROLE_OPTIONS,
        const.DATA_USER_ROLE,
        const.TRANS_KEY_INVALID_ROLE,
    )
    default_avatar = (
        const.DEFAULT_PARENT_AVATAR
        if role == const.ROLE_PARENT
        else const.DEFAULT_CHILD_AVATAR
    )

    if existing is None:
        return UserData(
            id=new_id(const.ID_PREFIX_USER),
            name=name,
            avatar=str(user_input.get(const.DATA_USER_AVATAR) or default_avatar),
            role=role,  # type: ignore[typeddict-item]
            cash_balance=0,
            pending_balance=0,
            gems=0,
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            created_at=dt_now_iso(now),
        )

    user = copy.deepcopy(existing)
    user[const.DATA_NAME] = name  # type: ignore[literal-required]
    user[const.DATA_USER_ROLE] = role  # type: ignore[literal-required]
    user[const.DATA_USER_AVATAR] = str(  # type: ignore[literal-required]
        get_field(const.DATA_USER_AVATAR, default_avatar) or default_avatar
    )
    return user


# ==============================================================================
# CHORES
# ==============================================================================


def validate_chore_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate chore input. Returns ``{field: translation_key}``."""
    errors: dict[str, str] = {}

    if const.DATA_NAME in data:
        name = data[const.DATA_NAME]
        if not isinstance(name, str) or not name.strip():
            errors[const.DATA_NAME] = const.TRANS_KEY_INVALID_NAME

    if const.DATA_CHORE_POINTS in data:
        try:
            _coerce_int(
                data[const.DATA_CHORE_POINTS],
                const.DATA_CHORE_POINTS,
                const.TRANS_KEY_INVALID_POINTS,
            )
        except EntityValidationError as err:
            errors[err.field] = err.translation_key

    recurrence = data.get(const.DATA_CHORE_RECURRENCE, const.DEFAULT_RECURRENCE)
    if recurrence not in const.RECURRENCE_OPTIONS:
        errors[const.DATA_CHORE_RECURRENCE] = const.TRANS_KEY_INVALID_RECURRENCE

    return errors


def build_chore(
    user_input: dict[str, Any],
    existing: ChoreData | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> ChoreData:
    """Build chore data for create or update operations.

    Create mode starts the chore incomplete with ``last_reset=now``; update mode
    only touches CHORE_EDITABLE_FIELDS and keeps completion state.

    Raises:
        EntityValidationError: If name, points or recurrence is invalid
    """

    def get_field(data_key: str, default: Any) -> Any:
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    name = _require_name(user_input, const.DATA_NAME, existing)
    points = _coerce_int(
        get_field(const.DATA_CHORE_POINTS, const.DEFAULT_CHORE_POINTS),
        const.DATA_CHORE_POINTS,
        const.TRANS_KEY_INVALID_POINTS,
    )
    recurrence = _require_choice(
        get_field(const.DATA_CHORE_RECURRENCE, const.DEFAULT_RECURRENCE),
        const.RECURRENCE_OPTIONS,
        const.DATA_CHORE_RECURRENCE,
        const.TRANS_KEY_INVALID_RECURRENCE,
    )
    icon = str(get_field(const.DATA_ICON, const.DEFAULT_CHORE_ICON) or const.DEFAULT_CHORE_ICON)

    if existing is None:
        timestamp = dt_now_iso(now)
        return ChoreData(
            id=new_id(const.ID_PREFIX_CHORE),
            name=name,
            icon=icon,
            points=points,
            recurrence=recurrence,  # type: ignore[typeddict-item]
            user_id=user_id,
            completed=False,
            pending_approval=False,
            completed_at=None,
            last_reset=timestamp,
            created_at=timestamp,
            template_id=user_input.get(const.DATA_TEMPLATE_ID),
        )

    chore = copy.deepcopy(existing)
    chore.update(  # type: ignore[typeddict-item]
        {
            const.DATA_NAME: name,
            const.DATA_ICON: icon,
            const.DATA_CHORE_POINTS: points,
            const.DATA_CHORE_RECURRENCE: recurrence,
        }
    )
    return chore


# ==============================================================================
# JOBS
# ==============================================================================


def build_unlock_conditions(raw: Any) -> UnlockConditions:
    """Normalize unlock conditions; missing thresholds default to 0.

    Raises:
        EntityValidationError: If a threshold is negative or not a whole number
    """
    data = _normalize_dict_field(raw)
    conditions = UnlockConditions(
        daily_chores=_coerce_int(
            data.get(const.DATA_JOB_UNLOCK_DAILY_CHORES) or 0,
            const.DATA_JOB_UNLOCK_CONDITIONS,
            const.TRANS_KEY_INVALID_UNLOCK_CONDITIONS,
        ),
        weekly_chores=_coerce_int(
            data.get(const.DATA_JOB_UNLOCK_WEEKLY_CHORES) or 0,
            const.DATA_JOB_UNLOCK_CONDITIONS,
            const.TRANS_KEY_INVALID_UNLOCK_CONDITIONS,
        ),
    )
    if data.get(const.DATA_JOB_UNLOCK_REQUIRE_ALL):
        conditions["require_all_chores"] = True
    return conditions


def _build_max_completions(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    return _coerce_int(
        raw,
        const.DATA_JOB_MAX_COMPLETIONS,
        const.TRANS_KEY_INVALID_MAX_COMPLETIONS,
        minimum=1,
    )


def validate_job_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate job input. Returns ``{field: translation_key}``."""
    errors: dict[str, str] = {}

    if const.DATA_JOB_TITLE in data:
        title = data[const.DATA_JOB_TITLE]
        if not isinstance(title, str) or not title.strip():
            errors[const.DATA_JOB_TITLE] = const.TRANS_KEY_INVALID_NAME

    checks = (
        (
            const.DATA_JOB_VALUE,
            lambda v: _coerce_int(v, const.DATA_JOB_VALUE, const.TRANS_KEY_INVALID_VALUE),
        ),
        (const.DATA_JOB_UNLOCK_CONDITIONS, build_unlock_conditions),
        (const.DATA_JOB_MAX_COMPLETIONS, _build_max_completions),
    )
    for key, check in checks:
        if key not in data:
            continue
        try:
            check(data[key])
        except EntityValidationError as err:
            errors[err.field] = err.translation_key

    recurrence = data.get(const.DATA_JOB_RECURRENCE, const.DEFAULT_RECURRENCE)
    if recurrence not in const.RECURRENCE_OPTIONS:
        errors[const.DATA_JOB_RECURRENCE] = const.TRANS_KEY_INVALID_RECURRENCE

    return errors


def _job_definition_fields(
    user_input: dict[str, Any], existing: dict[str, Any] | None
) -> dict[str, Any]:
    """Resolve the definition fields shared by jobs and job templates."""

    def get_field(data_key: str, default: Any) -> Any:
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    return {
        const.DATA_JOB_TITLE: _require_name(user_input, const.DATA_JOB_TITLE, existing),
        const.DATA_JOB_DESCRIPTION: str(get_field(const.DATA_JOB_DESCRIPTION, "") or ""),
        const.DATA_ICON: str(
            get_field(const.DATA_ICON, const.DEFAULT_JOB_ICON) or const.DEFAULT_JOB_ICON
        ),
        const.DATA_JOB_VALUE: _coerce_int(
            get_field(const.DATA_JOB_VALUE, const.DEFAULT_JOB_VALUE),
            const.DATA_JOB_VALUE,
            const.TRANS_KEY_INVALID_VALUE,
        ),
        const.DATA_JOB_RECURRENCE: _require_choice(
            get_field(const.DATA_JOB_RECURRENCE, const.DEFAULT_RECURRENCE),
            const.RECURRENCE_OPTIONS,
            const.DATA_JOB_RECURRENCE,
            const.TRANS_KEY_INVALID_RECURRENCE,
        ),
        const.DATA_JOB_UNLOCK_CONDITIONS: build_unlock_conditions(
            get_field(const.DATA_JOB_UNLOCK_CONDITIONS, {})
        ),
        const.DATA_JOB_ALLOW_MULTIPLE: bool(get_field(const.DATA_JOB_ALLOW_MULTIPLE, False)),
        const.DATA_JOB_MAX_COMPLETIONS: _build_max_completions(
            get_field(const.DATA_JOB_MAX_COMPLETIONS, None)
        ),
        const.DATA_JOB_REQUIRES_APPROVAL: bool(
            get_field(const.DATA_JOB_REQUIRES_APPROVAL, const.DEFAULT_REQUIRE_APPROVAL_JOBS)
        ),
    }


def build_job(
    user_input: dict[str, Any],
    existing: JobData | None = None,
    user_id: str | None = None,
    created_by: str | None = None,
    now: datetime | None = None,
) -> JobData:
    """Build job data for create or update operations.

    ``is_locked`` is left False here; the Job Engine recomputes it against the
    current chores right after the job enters the state.

    Raises:
        EntityValidationError: If any definition field is invalid
    """
    definition = _job_definition_fields(user_input, existing)

    if existing is None:
        timestamp = dt_now_iso(now)
        job: dict[str, Any] = {
            const.DATA_ID: new_id(const.ID_PREFIX_JOB),
            **definition,
            const.DATA_JOB_USER_ID: user_id,
            const.DATA_JOB_IS_LOCKED: False,
            const.DATA_JOB_COMPLETIONS: [],
            const.DATA_JOB_LAST_RESET: timestamp,
            const.DATA_CREATED_AT: timestamp,
            const.DATA_JOB_CREATED_BY: created_by,
            const.DATA_TEMPLATE_ID: user_input.get(const.DATA_TEMPLATE_ID),
        }
        return job  # type: ignore[return-value]

    updated = copy.deepcopy(existing)
    updated.update(definition)  # type: ignore[typeddict-item]
    return updated


# ==============================================================================
# TRANSACTIONS
# ==============================================================================


def build_transaction(
    user_id: str,
    txn_type: str,
    amount: int,
    description: str,
    *,
    status: str = const.STATUS_APPROVED,
    job_id: str | None = None,
    completion_count: int | None = None,
    approved_by: str | None = None,
    now: datetime | None = None,
) -> TransactionData:
    """Build an immutable ledger entry. ``amount`` is signed cents."""
    return TransactionData(
        id=new_id(const.ID_PREFIX_TXN),
        user_id=user_id,
        type=txn_type,  # type: ignore[typeddict-item]
        amount=int(amount),
        date=dt_now_iso(now),
        description=description,
        job_id=job_id,
        completion_count=completion_count,
        approved_by=approved_by,
        status=status,  # type: ignore[typeddict-item]
    )


# ==============================================================================
# TEMPLATES
# ==============================================================================


def build_chore_template(
    user_input: dict[str, Any],
    existing: ChoreTemplateData | None = None,
    now: datetime | None = None,
) -> ChoreTemplateData:
    """Build a chore prototype (no owner, no completion state)."""
    chore = build_chore(user_input, existing=existing, now=now)  # type: ignore[arg-type]
    return ChoreTemplateData(
        id=existing[const.DATA_ID] if existing else new_id(const.ID_PREFIX_CHORE_TEMPLATE),
        name=chore[const.DATA_NAME],  # type: ignore[literal-required]
        icon=chore[const.DATA_ICON],  # type: ignore[literal-required]
        points=chore[const.DATA_CHORE_POINTS],  # type: ignore[literal-required]
        recurrence=chore[const.DATA_CHORE_RECURRENCE],  # type: ignore[literal-required]
        created_at=existing[const.DATA_CREATED_AT] if existing else dt_now_iso(now),
    )


def build_job_template(
    user_input: dict[str, Any],
    existing: JobTemplateData | None = None,
    now: datetime | None = None,
) -> JobTemplateData:
    """Build a job prototype (no owner, no completions)."""
    template: dict[str, Any] = {
        const.DATA_ID: (
            existing[const.DATA_ID] if existing else new_id(const.ID_PREFIX_JOB_TEMPLATE)
        ),
        **_job_definition_fields(user_input, existing),  # type: ignore[arg-type]
        const.DATA_CREATED_AT: (
            existing[const.DATA_CREATED_AT] if existing else dt_now_iso(now)
        ),
    }
    return template  # type: ignore[return-value]


# ==============================================================================
# FAMILY STATE
# ==============================================================================


def build_default_settings() -> FamilySettings:
    """Return household settings with defaults."""
    return FamilySettings(
        weekly_reset_day=const.DEFAULT_WEEKLY_RESET_DAY,
        require_approval_for_jobs=const.DEFAULT_REQUIRE_APPROVAL_JOBS,
        require_approval_for_chores=const.DEFAULT_REQUIRE_APPROVAL_CHORES,
        currency=const.DEFAULT_CURRENCY,
    )


def build_default_state() -> FamilyState:
    """Return the canonical empty family state for fresh installations."""
    return FamilyState(
        users=[],
        jobs=[],
        chores=[],
        chore_templates=[],
        job_templates=[],
        transactions=[],
        settings=build_default_settings(),
        parent_password=None,
        active_user_id=None,
        recovery=RecoveryData(email_hash=None, email_hint=None),
        last_saved=None,
    )


def validate_settings(changes: dict[str, Any]) -> dict[str, str]:
    """Validate a settings update. Returns ``{field: translation_key}``."""
    errors: dict[str, str] = {}
    if const.DATA_SETTINGS_WEEKLY_RESET_DAY in changes:
        day = changes[const.DATA_SETTINGS_WEEKLY_RESET_DAY]
        if (
            isinstance(day, bool)
            or not isinstance(day, int)
            or not const.WEEKDAY_SUNDAY <= day <= const.WEEKDAY_SATURDAY
        ):
            errors[const.DATA_SETTINGS_WEEKLY_RESET_DAY] = (
                const.TRANS_KEY_ERROR_INVALID_RESET_DAY
            )
    return errors


def _drop_without_id(items: list[dict[str, Any]], label: str) -> list[dict[str, Any]]:
    """Keep only items that carry a non-empty string id."""
    kept = [
        item
        for item in items
        if isinstance(item.get(const.DATA_ID), str) and item[const.DATA_ID]
    ]
    if len(kept) != len(items):
        const.LOGGER.warning(
            "WARNING: Dropped %d stored %s without an id", len(items) - len(kept), label
        )
    return kept


def normalize_snapshot(raw: Any) -> FamilyState | None:
    """Coerce a loaded payload into a well-formed FamilyState.

    Returns None for payloads that are not a dict (treated as absent). Missing
    or non-list collections become empty lists, settings fall back field by
    field to defaults, and entities that are not dicts are dropped. Users,
    chores, jobs, templates and completions without a string id are dropped
    too, since every later lookup goes through the id.
    """
    if not isinstance(raw, dict):
        return None

    state = build_default_state()

    for key in const.DATA_COLLECTION_KEYS:
        items = [
            item
            for item in _normalize_list_field(raw.get(key))
            if isinstance(item, dict)
        ]
        if key != const.DATA_TRANSACTIONS:
            items = _drop_without_id(items, key)
        state[key] = copy.deepcopy(items)  # type: ignore[literal-required]

    for job in state[const.DATA_JOBS]:  # type: ignore[literal-required]
        job[const.DATA_JOB_COMPLETIONS] = _drop_without_id(
            [
                completion
                for completion in _normalize_list_field(
                    job.get(const.DATA_JOB_COMPLETIONS)
                )
                if isinstance(completion, dict)
            ],
            f"{const.DATA_JOB_COMPLETIONS} of job {job[const.DATA_ID]}",
        )
        job[const.DATA_JOB_UNLOCK_CONDITIONS] = _normalize_dict_field(
            job.get(const.DATA_JOB_UNLOCK_CONDITIONS)
        )

    settings = _normalize_dict_field(raw.get(const.DATA_SETTINGS))
    merged = dict(build_default_settings())
    merged.update(
        {
            key: value
            for key, value in settings.items()
            if key in merged and not validate_settings({key: value})
        }
    )
    state[const.DATA_SETTINGS] = merged  # type: ignore[literal-required]

    password = raw.get(const.DATA_PARENT_PASSWORD)
    if isinstance(password, list) and all(isinstance(dot, int) for dot in password):
        state[const.DATA_PARENT_PASSWORD] = list(password)  # type: ignore[literal-required]

    active = raw.get(const.DATA_ACTIVE_USER_ID)
    if isinstance(active, str):
        state[const.DATA_ACTIVE_USER_ID] = active  # type: ignore[literal-required]

    recovery = _normalize_dict_field(raw.get(const.DATA_RECOVERY))
    state[const.DATA_RECOVERY] = RecoveryData(  # type: ignore[literal-required]
        email_hash=recovery.get(const.DATA_RECOVERY_EMAIL_HASH),
        email_hint=recovery.get(const.DATA_RECOVERY_EMAIL_HINT),
    )

    last_saved = raw.get(const.DATA_LAST_SAVED)
    if isinstance(last_saved, str):
        state[const.DATA_LAST_SAVED] = last_saved  # type: ignore[literal-required]

    return state
