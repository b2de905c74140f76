# File: services.py
"""Defines custom services for the Family Economy integration.

Money fields are entered in dollars and stored in integer cents. Services that
manage the family (editing members, chores, jobs and templates, approvals and
balance changes) are parent-only: they take the parent gesture in ``pattern``
and run only once the pattern gate grants access. While no gesture is stored,
the first gated call sets it.

The ``get_*`` services only read: they return their data as the service
response and never need the gesture.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, NoReturn, Optional

from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv
import voluptuous as vol

from . import const
from .data_builders import validate_chore_data, validate_job_data, validate_user_data
from .engines.pattern_gate import GATE_OUTCOME_INVALID
from .utils.currency_utils import dollars_to_cents

if TYPE_CHECKING:
    from .coordinator import FamilyEconomyCoordinator

# --- Field validators ---

PATTERN_VALIDATOR = vol.All(cv.ensure_list, [vol.Coerce(int)])
DOLLARS_VALIDATOR = vol.All(vol.Coerce(float), vol.Range(min=0.01))
SIGNED_DOLLARS_VALIDATOR = vol.Coerce(float)

GATED_FIELDS = {
    vol.Required(const.FIELD_PATTERN): PATTERN_VALIDATOR,
    vol.Optional(const.FIELD_PARENT_ID): cv.string,
}

USER_FIELDS = {
    vol.Optional(const.FIELD_ROLE): vol.In(const.ROLE_OPTIONS),
    vol.Optional(const.FIELD_AVATAR): cv.string,
}

CHORE_FIELDS = {
    vol.Optional(const.FIELD_ICON): cv.string,
    vol.Optional(const.FIELD_POINTS): vol.All(vol.Coerce(int), vol.Range(min=0)),
    vol.Optional(const.FIELD_RECURRENCE): vol.In(const.RECURRENCE_OPTIONS),
}

JOB_FIELDS = {
    vol.Optional(const.FIELD_DESCRIPTION): cv.string,
    vol.Optional(const.FIELD_ICON): cv.string,
    vol.Optional(const.FIELD_VALUE): DOLLARS_VALIDATOR,
    vol.Optional(const.FIELD_RECURRENCE): vol.In(const.RECURRENCE_OPTIONS),
    vol.Optional(const.FIELD_DAILY_CHORES): vol.All(vol.Coerce(int), vol.Range(min=0)),
    vol.Optional(const.FIELD_WEEKLY_CHORES): vol.All(vol.Coerce(int), vol.Range(min=0)),
    vol.Optional(const.FIELD_REQUIRE_ALL_CHORES): cv.boolean,
    vol.Optional(const.FIELD_ALLOW_MULTIPLE): cv.boolean,
    vol.Optional(const.FIELD_MAX_COMPLETIONS): vol.Any(
        None, vol.All(vol.Coerce(int), vol.Range(min=1))
    ),
    vol.Optional(const.FIELD_REQUIRES_APPROVAL): cv.boolean,
}

# --- Users ---

ADD_USER_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_NAME): cv.string,
        **USER_FIELDS,
    }
)

UPDATE_USER_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_USER_ID): cv.string,
        vol.Optional(const.FIELD_NAME): cv.string,
        **USER_FIELDS,
    }
)

DELETE_USER_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_USER_ID): cv.string}
)

SWITCH_USER_SCHEMA = vol.Schema({vol.Required(const.FIELD_USER_ID): cv.string})

# --- Chores ---

ADD_CHORE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_USER_ID): cv.string,
        **CHORE_FIELDS,
    }
)

UPDATE_CHORE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_CHORE_ID): cv.string,
        vol.Optional(const.FIELD_NAME): cv.string,
        **CHORE_FIELDS,
    }
)

CHORE_ID_GATED_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_CHORE_ID): cv.string}
)

ASSIGN_CHORE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_CHORE_ID): cv.string,
        vol.Optional(const.FIELD_USER_ID): vol.Any(None, cv.string),
    }
)

COMPLETE_CHORE_SCHEMA = vol.Schema({vol.Required(const.FIELD_CHORE_ID): cv.string})

# --- Jobs ---

ADD_JOB_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_TITLE): cv.string,
        vol.Optional(const.FIELD_USER_ID): cv.string,
        **JOB_FIELDS,
    }
)

UPDATE_JOB_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_JOB_ID): cv.string,
        vol.Optional(const.FIELD_TITLE): cv.string,
        **JOB_FIELDS,
    }
)

JOB_ID_GATED_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_JOB_ID): cv.string}
)

ASSIGN_JOB_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_JOB_ID): cv.string,
        vol.Optional(const.FIELD_USER_ID): vol.Any(None, cv.string),
    }
)

COMPLETE_JOB_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_JOB_ID): cv.string,
        vol.Optional(const.FIELD_COUNT, default=const.DEFAULT_COMPLETION_COUNT): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
    }
)

COMPLETION_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_JOB_ID): cv.string,
        vol.Required(const.FIELD_COMPLETION_ID): cv.string,
    }
)

# --- Templates ---

ADD_CHORE_TEMPLATE_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_NAME): cv.string, **CHORE_FIELDS}
)

ADD_JOB_TEMPLATE_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_TITLE): cv.string, **JOB_FIELDS}
)

UPDATE_TEMPLATE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_TEMPLATE_ID): cv.string,
        vol.Optional(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_TITLE): cv.string,
        **CHORE_FIELDS,
        **JOB_FIELDS,
    }
)

DELETE_TEMPLATE_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_TEMPLATE_ID): cv.string}
)

APPLY_TEMPLATE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_TEMPLATE_ID): cv.string,
        vol.Required(const.FIELD_USER_IDS): vol.All(cv.ensure_list, [cv.string]),
    }
)

# --- Money ---

REDEEM_CASH_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_USER_ID): cv.string,
        vol.Required(const.FIELD_AMOUNT): DOLLARS_VALIDATOR,
        vol.Optional(const.FIELD_DESCRIPTION, default=""): cv.string,
    }
)

ADJUST_BALANCE_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_USER_ID): cv.string,
        vol.Required(const.FIELD_AMOUNT): SIGNED_DOLLARS_VALIDATOR,
        vol.Optional(const.FIELD_DESCRIPTION, default=""): cv.string,
    }
)

AWARD_BONUS_SCHEMA = vol.Schema(
    {
        **GATED_FIELDS,
        vol.Required(const.FIELD_USER_ID): cv.string,
        vol.Required(const.FIELD_AMOUNT): DOLLARS_VALIDATOR,
        vol.Optional(const.FIELD_DESCRIPTION, default=""): cv.string,
    }
)

# --- Maintenance & parent gate ---

RUN_MAINTENANCE_SCHEMA = vol.Schema({})

SET_PARENT_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PATTERN): PATTERN_VALIDATOR,
        vol.Required(const.FIELD_NEW_PATTERN): PATTERN_VALIDATOR,
    }
)

SET_RECOVERY_EMAIL_SCHEMA = vol.Schema(
    {**GATED_FIELDS, vol.Required(const.FIELD_EMAIL): cv.string}
)

SEND_RECOVERY_CODE_SCHEMA = vol.Schema({vol.Required(const.FIELD_EMAIL): cv.string})

VERIFY_RECOVERY_CODE_SCHEMA = vol.Schema({vol.Required(const.FIELD_CODE): cv.string})

# --- Queries (return data, change nothing) ---

GET_JOB_STATUS_SCHEMA = vol.Schema({vol.Required(const.FIELD_JOB_ID): cv.string})

GET_TRANSACTIONS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_USER_ID): cv.string,
        vol.Optional(const.FIELD_LIMIT, default=const.DEFAULT_TRANSACTIONS_LIMIT): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
    }
)

GET_PENDING_APPROVALS_SCHEMA = vol.Schema({})

# Service data keys that are not entity fields.
_CONTROL_FIELDS = frozenset(
    {
        const.FIELD_PATTERN,
        const.FIELD_PARENT_ID,
        const.FIELD_USER_ID,
        const.FIELD_CHORE_ID,
        const.FIELD_JOB_ID,
        const.FIELD_TEMPLATE_ID,
    }
)

_UNLOCK_FIELDS = {
    const.FIELD_DAILY_CHORES: const.DATA_JOB_UNLOCK_DAILY_CHORES,
    const.FIELD_WEEKLY_CHORES: const.DATA_JOB_UNLOCK_WEEKLY_CHORES,
    const.FIELD_REQUIRE_ALL_CHORES: const.DATA_JOB_UNLOCK_REQUIRE_ALL,
}


# ------------------ Helpers ------------------
def get_first_family_economy_entry(hass: HomeAssistant) -> Optional[str]:
    """Retrieve the first Family Economy config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def _get_coordinator(hass: HomeAssistant) -> Optional[FamilyEconomyCoordinator]:
    entry_id = get_first_family_economy_entry(hass)
    if not entry_id:
        const.LOGGER.warning("WARNING: %s", const.MSG_NO_ENTRY_FOUND)
        return None
    return hass.data[const.DOMAIN][entry_id][const.COORDINATOR]


def _entity_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Service data minus the control keys, with dollars converted to cents."""
    fields = {k: v for k, v in data.items() if k not in _CONTROL_FIELDS}

    if const.FIELD_VALUE in fields:
        fields[const.DATA_JOB_VALUE] = dollars_to_cents(fields.pop(const.FIELD_VALUE))

    unlock = {
        data_key: fields.pop(field)
        for field, data_key in _UNLOCK_FIELDS.items()
        if field in fields
    }
    if unlock:
        fields[const.DATA_JOB_UNLOCK_CONDITIONS] = unlock
    return fields


def _raise_invalid(errors: dict[str, str]) -> None:
    if errors:
        field, translation_key = next(iter(errors.items()))
        raise ServiceValidationError(
            translation_domain=const.DOMAIN,
            translation_key=translation_key,
            translation_placeholders={"field": field},
        )


def _raise_not_found(kind: str, item_id: Any) -> NoReturn:
    raise HomeAssistantError(
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_NOT_FOUND,
        translation_placeholders={"kind": kind, "id": str(item_id)},
    )


def _require_created(item: Any) -> None:
    """Raise when the manager refused to build an item."""
    if item is None:
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_OPERATION_FAILED,
            translation_placeholders={"reason": const.REASON_INVALID_DATA},
        )


def _check_result(result: dict[str, Any], kind: str, item_id: Any) -> dict[str, Any]:
    """Turn a failed manager result into a service error."""
    if result.get("success"):
        return result
    reason = result.get("reason") or const.REASON_INVALID_DATA
    if reason == const.REASON_NOT_FOUND:
        _raise_not_found(kind, item_id)
    raise HomeAssistantError(
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_OPERATION_FAILED,
        translation_placeholders={"reason": reason},
    )


def _run_gated(
    coordinator: FamilyEconomyCoordinator,
    call: ServiceCall,
    action: Callable[[], Any],
) -> Any:
    """Run ``action`` behind the parent pattern gate."""
    result = coordinator.family.pattern_gate.run_gated(
        call.data[const.FIELD_PATTERN], action
    )
    if not result.granted:
        const.LOGGER.warning(
            "WARNING: Parent gate refused service '%s' (%s)",
            call.service,
            result.outcome,
        )
        raise ServiceValidationError(
            translation_domain=const.DOMAIN,
            translation_key=(
                const.TRANS_KEY_INVALID_PATTERN
                if result.outcome == GATE_OUTCOME_INVALID
                else const.TRANS_KEY_PATTERN_MISMATCH
            ),
        )
    return result.action_result


# --- Setup Services ---
def async_setup_services(hass: HomeAssistant):
    """Register Family Economy services."""

    # --- Users ---
    async def handle_add_user(call: ServiceCall):
        """Handle adding a family member."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        data = _entity_fields(call.data)
        _raise_invalid(validate_user_data(data))

        user = _run_gated(coordinator, call, lambda: coordinator.family.add_user(data))
        _require_created(user)
        const.LOGGER.info("INFO: User '%s' added", user[const.DATA_NAME])
        await coordinator.async_request_refresh()

    async def handle_update_user(call: ServiceCall):
        """Handle renaming a user or changing their role/avatar."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        if coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        changes = _entity_fields(call.data)
        current_name = coordinator.family.get_user(user_id)[const.DATA_NAME]
        _raise_invalid(validate_user_data({const.DATA_NAME: current_name, **changes}))
        _run_gated(
            coordinator, call, lambda: coordinator.family.update_user(user_id, changes)
        )
        const.LOGGER.info("INFO: User '%s' updated", user_id)
        await coordinator.async_request_refresh()

    async def handle_delete_user(call: ServiceCall):
        """Handle deleting a user with their chores, jobs and transactions."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        if coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        _run_gated(coordinator, call, lambda: coordinator.family.delete_user(user_id))
        const.LOGGER.info("INFO: User '%s' deleted", user_id)
        await coordinator.async_request_refresh()

    async def handle_switch_user(call: ServiceCall):
        """Handle changing the active user."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        if not coordinator.family.switch_user(user_id):
            _raise_not_found("user", user_id)
        await coordinator.async_request_refresh()

    # --- Chores ---
    async def handle_add_chore(call: ServiceCall):
        """Handle creating a chore (a library chore when no user is given)."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data.get(const.FIELD_USER_ID)
        if user_id is not None and coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        data = _entity_fields(call.data)
        _raise_invalid(validate_chore_data(data))
        chore = _run_gated(
            coordinator, call, lambda: coordinator.family.add_chore(data, user_id)
        )
        _require_created(chore)
        const.LOGGER.info(
            "INFO: Chore '%s' added for %s", chore[const.DATA_NAME], user_id or "library"
        )
        await coordinator.async_request_refresh()

    async def handle_update_chore(call: ServiceCall):
        """Handle editing a chore's definition."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        if coordinator.family.get_chore(chore_id) is None:
            _raise_not_found("chore", chore_id)

        changes = _entity_fields(call.data)
        _raise_invalid(validate_chore_data(changes))
        _run_gated(
            coordinator, call, lambda: coordinator.family.update_chore(chore_id, changes)
        )
        await coordinator.async_request_refresh()

    async def handle_delete_chore(call: ServiceCall):
        """Handle deleting a chore."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        if coordinator.family.get_chore(chore_id) is None:
            _raise_not_found("chore", chore_id)

        _run_gated(coordinator, call, lambda: coordinator.family.delete_chore(chore_id))
        const.LOGGER.info("INFO: Chore '%s' deleted", chore_id)
        await coordinator.async_request_refresh()

    async def handle_assign_chore(call: ServiceCall):
        """Handle moving a chore to another user or back to the library."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        user_id = call.data.get(const.FIELD_USER_ID)
        if coordinator.family.get_chore(chore_id) is None:
            _raise_not_found("chore", chore_id)
        if user_id is not None and coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        _run_gated(
            coordinator, call, lambda: coordinator.family.assign_chore(chore_id, user_id)
        )
        await coordinator.async_request_refresh()

    async def handle_complete_chore(call: ServiceCall):
        """Handle a child marking a chore done."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        result = _check_result(
            coordinator.family.complete_chore(chore_id), "chore", chore_id
        )
        const.LOGGER.info(
            "INFO: Chore '%s' completed (pending approval: %s)",
            chore_id,
            result["pending_approval"],
        )
        await coordinator.async_request_refresh()

    async def handle_approve_chore(call: ServiceCall):
        """Handle approving a completed chore."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.approve_chore(
                chore_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "chore", chore_id)
        const.LOGGER.info("INFO: Chore '%s' approved", chore_id)
        await coordinator.async_request_refresh()

    async def handle_reject_chore(call: ServiceCall):
        """Handle rejecting a completed chore."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        chore_id = call.data[const.FIELD_CHORE_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.reject_chore(
                chore_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "chore", chore_id)
        const.LOGGER.info("INFO: Chore '%s' rejected", chore_id)
        await coordinator.async_request_refresh()

    # --- Jobs ---
    async def handle_add_job(call: ServiceCall):
        """Handle creating a job (a library job when no user is given)."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data.get(const.FIELD_USER_ID)
        if user_id is not None and coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        data = _entity_fields(call.data)
        _raise_invalid(validate_job_data(data))
        job = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.add_job(
                data, user_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _require_created(job)
        const.LOGGER.info(
            "INFO: Job '%s' added for %s", job[const.DATA_JOB_TITLE], user_id or "library"
        )
        await coordinator.async_request_refresh()

    async def handle_update_job(call: ServiceCall):
        """Handle editing a job's definition."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        if coordinator.family.get_job(job_id) is None:
            _raise_not_found("job", job_id)

        changes = _entity_fields(call.data)
        _raise_invalid(validate_job_data(changes))
        _run_gated(
            coordinator, call, lambda: coordinator.family.update_job(job_id, changes)
        )
        await coordinator.async_request_refresh()

    async def handle_delete_job(call: ServiceCall):
        """Handle deleting a job."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        if coordinator.family.get_job(job_id) is None:
            _raise_not_found("job", job_id)

        _run_gated(coordinator, call, lambda: coordinator.family.delete_job(job_id))
        const.LOGGER.info("INFO: Job '%s' deleted", job_id)
        await coordinator.async_request_refresh()

    async def handle_assign_job(call: ServiceCall):
        """Handle moving a job to another user or back to the library."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        user_id = call.data.get(const.FIELD_USER_ID)
        if coordinator.family.get_job(job_id) is None:
            _raise_not_found("job", job_id)
        if user_id is not None and coordinator.family.get_user(user_id) is None:
            _raise_not_found("user", user_id)

        _run_gated(
            coordinator, call, lambda: coordinator.family.assign_job(job_id, user_id)
        )
        await coordinator.async_request_refresh()

    async def handle_complete_job(call: ServiceCall):
        """Handle a child recording work on a job."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        result = _check_result(
            coordinator.family.complete_job(job_id, call.data[const.FIELD_COUNT]),
            "job",
            job_id,
        )
        const.LOGGER.info(
            "INFO: Job '%s' completed, earned %s cents (pending approval: %s)",
            result["job_title"],
            result["earned"],
            result["pending_approval"],
        )
        await coordinator.async_request_refresh()

    async def handle_approve_job(call: ServiceCall):
        """Handle approving every pending completion of a job."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.approve_job(
                job_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "job", job_id)
        const.LOGGER.info(
            "INFO: Job '%s' approved, released %s cents", job_id, result["total_approved"]
        )
        await coordinator.async_request_refresh()

    async def handle_reject_job(call: ServiceCall):
        """Handle rejecting every pending completion of a job."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.reject_job(
                job_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "job", job_id)
        const.LOGGER.info(
            "INFO: Job '%s' rejected, discarded %s cents", job_id, result["total_rejected"]
        )
        await coordinator.async_request_refresh()

    async def handle_approve_completion(call: ServiceCall):
        """Handle approving one pending completion."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        completion_id = call.data[const.FIELD_COMPLETION_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.approve_completion(
                job_id, completion_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "job", job_id)
        await coordinator.async_request_refresh()

    async def handle_reject_completion(call: ServiceCall):
        """Handle rejecting one pending completion."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        job_id = call.data[const.FIELD_JOB_ID]
        completion_id = call.data[const.FIELD_COMPLETION_ID]
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.reject_completion(
                job_id, completion_id, call.data.get(const.FIELD_PARENT_ID)
            ),
        )
        _check_result(result, "job", job_id)
        await coordinator.async_request_refresh()

    # --- Templates ---
    async def handle_add_chore_template(call: ServiceCall):
        """Handle creating a chore template."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        data = _entity_fields(call.data)
        _raise_invalid(validate_chore_data(data))
        _run_gated(
            coordinator, call, lambda: coordinator.family.add_chore_template(data)
        )
        await coordinator.async_request_refresh()

    async def handle_add_job_template(call: ServiceCall):
        """Handle creating a job template."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        data = _entity_fields(call.data)
        _raise_invalid(validate_job_data(data))
        _run_gated(coordinator, call, lambda: coordinator.family.add_job_template(data))
        await coordinator.async_request_refresh()

    async def handle_update_template(call: ServiceCall):
        """Handle editing a chore or job template."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        template_id = call.data[const.FIELD_TEMPLATE_ID]
        found = coordinator.family.get_template(template_id)
        if found is None:
            _raise_not_found("template", template_id)

        changes = _entity_fields(call.data)
        validator = (
            validate_chore_data
            if found[0] == const.TEMPLATE_KIND_CHORE
            else validate_job_data
        )
        _raise_invalid(validator(changes))
        updated = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.update_template(template_id, changes),
        )
        _require_created(updated)
        await coordinator.async_request_refresh()

    async def handle_delete_template(call: ServiceCall):
        """Handle deleting a template. Instances created from it are kept."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        template_id = call.data[const.FIELD_TEMPLATE_ID]
        if coordinator.family.get_template(template_id) is None:
            _raise_not_found("template", template_id)

        _run_gated(
            coordinator, call, lambda: coordinator.family.delete_template(template_id)
        )
        await coordinator.async_request_refresh()

    async def handle_apply_template(call: ServiceCall):
        """Handle creating one chore or job per user from a template."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        template_id = call.data[const.FIELD_TEMPLATE_ID]
        user_ids = call.data[const.FIELD_USER_IDS]
        found = coordinator.family.get_template(template_id)
        if found is None:
            _raise_not_found("template", template_id)

        if found[0] == const.TEMPLATE_KIND_CHORE:
            created = _run_gated(
                coordinator,
                call,
                lambda: coordinator.family.apply_chore_template(template_id, user_ids),
            )
        else:
            created = _run_gated(
                coordinator,
                call,
                lambda: coordinator.family.apply_job_template(
                    template_id, user_ids, call.data.get(const.FIELD_PARENT_ID)
                ),
            )
        const.LOGGER.info(
            "INFO: Template '%s' applied, created %d item(s)", template_id, len(created)
        )
        await coordinator.async_request_refresh()

    # --- Money ---
    async def handle_redeem_cash(call: ServiceCall):
        """Handle spending cash from a balance."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        amount = dollars_to_cents(call.data[const.FIELD_AMOUNT])
        result = _check_result(
            coordinator.family.redeem_cash(
                user_id, amount, call.data[const.FIELD_DESCRIPTION]
            ),
            "user",
            user_id,
        )
        const.LOGGER.info(
            "INFO: Redeemed %s cents for '%s', balance now %s",
            amount,
            user_id,
            result["balance"],
        )
        await coordinator.async_request_refresh()

    async def handle_adjust_balance(call: ServiceCall):
        """Handle a parent credit or debit."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        amount = dollars_to_cents(call.data[const.FIELD_AMOUNT])
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.adjust_balance(
                user_id,
                amount,
                call.data[const.FIELD_DESCRIPTION],
                call.data.get(const.FIELD_PARENT_ID),
            ),
        )
        _check_result(result, "user", user_id)
        await coordinator.async_request_refresh()

    async def handle_award_bonus(call: ServiceCall):
        """Handle a bonus reward."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        user_id = call.data[const.FIELD_USER_ID]
        amount = dollars_to_cents(call.data[const.FIELD_AMOUNT])
        result = _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.award_bonus(
                user_id,
                amount,
                call.data[const.FIELD_DESCRIPTION],
                call.data.get(const.FIELD_PARENT_ID),
            ),
        )
        _check_result(result, "user", user_id)
        await coordinator.async_request_refresh()

    # --- Maintenance & parent gate ---
    async def handle_run_maintenance(call: ServiceCall):
        """Handle a manual reset/lock refresh pass."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        summary = coordinator.family.run_maintenance()
        const.LOGGER.info("INFO: Manual maintenance run: %s", summary)
        await coordinator.async_request_refresh()

    async def handle_set_parent_pattern(call: ServiceCall):
        """Handle changing the parent gesture (the current one is required)."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        new_pattern = call.data[const.FIELD_NEW_PATTERN]
        if not coordinator.family.pattern_gate.is_valid_pattern(new_pattern):
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_INVALID_PATTERN,
            )
        _run_gated(
            coordinator,
            call,
            lambda: coordinator.family.set_parent_pattern(new_pattern),
        )
        const.LOGGER.info("INFO: Parent pattern changed")

    async def handle_set_recovery_email(call: ServiceCall):
        """Handle storing the recovery e-mail."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        recovery = _get_recovery_manager(coordinator)
        stored = _run_gated(
            coordinator,
            call,
            lambda: recovery.set_recovery_email(call.data[const.FIELD_EMAIL]),
        )
        if not stored:
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_OPERATION_FAILED,
                translation_placeholders={"reason": const.REASON_INVALID_DATA},
            )

    async def handle_send_recovery_code(call: ServiceCall):
        """Handle sending a recovery code to the stored e-mail."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        recovery = _get_recovery_manager(coordinator)
        if not await recovery.async_send_code(call.data[const.FIELD_EMAIL]):
            raise HomeAssistantError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_OPERATION_FAILED,
                translation_placeholders={"reason": "recovery code not sent"},
            )

    async def handle_verify_recovery_code(call: ServiceCall):
        """Handle a recovery code; a match clears the parent gesture."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return

        recovery = _get_recovery_manager(coordinator)
        if not recovery.verify_code(call.data[const.FIELD_CODE]):
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_OPERATION_FAILED,
                translation_placeholders={"reason": "invalid or expired code"},
            )
        await coordinator.async_request_refresh()

    # --- Queries ---
    async def handle_get_job_status(call: ServiceCall) -> ServiceResponse:
        """Return unlock progress, eligibility and earnings for one job."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return {}

        job_id = call.data[const.FIELD_JOB_ID]
        status = coordinator.family.get_job_status(job_id)
        if status is None:
            _raise_not_found("job", job_id)
        return dict(status)

    async def handle_get_transactions(call: ServiceCall) -> ServiceResponse:
        """Return a user's ledger, newest first."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return {}

        user_id = call.data[const.FIELD_USER_ID]
        user = coordinator.family.get_user(user_id)
        if user is None:
            _raise_not_found("user", user_id)
        transactions = coordinator.family.transactions_for_user(user_id)
        return {
            "user_id": user_id,
            "cash_balance": user.get(const.DATA_USER_CASH_BALANCE, 0),
            "pending_balance": user.get(const.DATA_USER_PENDING_BALANCE, 0),
            "transactions": [dict(txn) for txn in transactions[: call.data[const.FIELD_LIMIT]]],
        }

    async def handle_get_pending_approvals(call: ServiceCall) -> ServiceResponse:
        """Return the jobs and chores waiting for a parent."""
        coordinator = _get_coordinator(hass)
        if coordinator is None:
            return {}

        return coordinator.family.pending_approvals()

    services: list[tuple[str, Callable[[ServiceCall], Any], vol.Schema]] = [
        (const.SERVICE_ADD_USER, handle_add_user, ADD_USER_SCHEMA),
        (const.SERVICE_UPDATE_USER, handle_update_user, UPDATE_USER_SCHEMA),
        (const.SERVICE_DELETE_USER, handle_delete_user, DELETE_USER_SCHEMA),
        (const.SERVICE_SWITCH_USER, handle_switch_user, SWITCH_USER_SCHEMA),
        (const.SERVICE_ADD_CHORE, handle_add_chore, ADD_CHORE_SCHEMA),
        (const.SERVICE_UPDATE_CHORE, handle_update_chore, UPDATE_CHORE_SCHEMA),
        (const.SERVICE_DELETE_CHORE, handle_delete_chore, CHORE_ID_GATED_SCHEMA),
        (const.SERVICE_ASSIGN_CHORE, handle_assign_chore, ASSIGN_CHORE_SCHEMA),
        (const.SERVICE_COMPLETE_CHORE, handle_complete_chore, COMPLETE_CHORE_SCHEMA),
        (const.SERVICE_APPROVE_CHORE, handle_approve_chore, CHORE_ID_GATED_SCHEMA),
        (const.SERVICE_REJECT_CHORE, handle_reject_chore, CHORE_ID_GATED_SCHEMA),
        (const.SERVICE_ADD_JOB, handle_add_job, ADD_JOB_SCHEMA),
        (const.SERVICE_UPDATE_JOB, handle_update_job, UPDATE_JOB_SCHEMA),
        (const.SERVICE_DELETE_JOB, handle_delete_job, JOB_ID_GATED_SCHEMA),
        (const.SERVICE_ASSIGN_JOB, handle_assign_job, ASSIGN_JOB_SCHEMA),
        (const.SERVICE_COMPLETE_JOB, handle_complete_job, COMPLETE_JOB_SCHEMA),
        (const.SERVICE_APPROVE_JOB, handle_approve_job, JOB_ID_GATED_SCHEMA),
        (const.SERVICE_REJECT_JOB, handle_reject_job, JOB_ID_GATED_SCHEMA),
        (const.SERVICE_APPROVE_COMPLETION, handle_approve_completion, COMPLETION_SCHEMA),
        (const.SERVICE_REJECT_COMPLETION, handle_reject_completion, COMPLETION_SCHEMA),
        (
            const.SERVICE_ADD_CHORE_TEMPLATE,
            handle_add_chore_template,
            ADD_CHORE_TEMPLATE_SCHEMA,
        ),
        (const.SERVICE_ADD_JOB_TEMPLATE, handle_add_job_template, ADD_JOB_TEMPLATE_SCHEMA),
        (const.SERVICE_UPDATE_TEMPLATE, handle_update_template, UPDATE_TEMPLATE_SCHEMA),
        (const.SERVICE_DELETE_TEMPLATE, handle_delete_template, DELETE_TEMPLATE_SCHEMA),
        (const.SERVICE_APPLY_TEMPLATE, handle_apply_template, APPLY_TEMPLATE_SCHEMA),
        (const.SERVICE_REDEEM_CASH, handle_redeem_cash, REDEEM_CASH_SCHEMA),
        (const.SERVICE_ADJUST_BALANCE, handle_adjust_balance, ADJUST_BALANCE_SCHEMA),
        (const.SERVICE_AWARD_BONUS, handle_award_bonus, AWARD_BONUS_SCHEMA),
        (const.SERVICE_RUN_MAINTENANCE, handle_run_maintenance, RUN_MAINTENANCE_SCHEMA),
        (
            const.SERVICE_SET_PARENT_PATTERN,
            handle_set_parent_pattern,
            SET_PARENT_PATTERN_SCHEMA,
        ),
        (
            const.SERVICE_SET_RECOVERY_EMAIL,
            handle_set_recovery_email,
            SET_RECOVERY_EMAIL_SCHEMA,
        ),
        (
            const.SERVICE_SEND_RECOVERY_CODE,
            handle_send_recovery_code,
            SEND_RECOVERY_CODE_SCHEMA,
        ),
        (
            const.SERVICE_VERIFY_RECOVERY_CODE,
            handle_verify_recovery_code,
            VERIFY_RECOVERY_CODE_SCHEMA,
        ),
    ]

    for service, handler, schema in services:
        hass.services.async_register(const.DOMAIN, service, handler, schema=schema)

    queries: list[tuple[str, Callable[[ServiceCall], Any], vol.Schema]] = [
        (const.SERVICE_GET_JOB_STATUS, handle_get_job_status, GET_JOB_STATUS_SCHEMA),
        (const.SERVICE_GET_TRANSACTIONS, handle_get_transactions, GET_TRANSACTIONS_SCHEMA),
        (
            const.SERVICE_GET_PENDING_APPROVALS,
            handle_get_pending_approvals,
            GET_PENDING_APPROVALS_SCHEMA,
        ),
    ]

    for service, handler, schema in queries:
        hass.services.async_register(
            const.DOMAIN,
            service,
            handler,
            schema=schema,
            supports_response=SupportsResponse.ONLY,
        )

    const.LOGGER.info("INFO: Family Economy services have been registered successfully")


def _get_recovery_manager(coordinator: FamilyEconomyCoordinator):
    if coordinator.recovery_manager is None:
        raise ServiceValidationError(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_RECOVERY_DISABLED,
        )
    return coordinator.recovery_manager


async def async_unload_services(hass: HomeAssistant):
    """Unregister Family Economy services when unloading the integration."""
    for service in const.ALL_SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Family Economy services have been unregistered")
