"""Diagnostics support for the Family Economy integration.

Returns the stored family snapshot with the parent gesture and the recovery
e-mail hash redacted, plus the entry options and a few runtime facts.
"""

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import FamilyEconomyCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: FamilyEconomyCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    family = coordinator.family
    recovery = coordinator.recovery_manager

    return {
        "options": dict(entry.options),
        "storage_path": coordinator.store.get_storage_path(),
        "gate": {
            "state": family.pattern_gate.state,
            "has_secret": family.pattern_gate.has_secret,
        },
        "recovery": {
            "enabled": recovery is not None,
            "code_pending": recovery.code_pending if recovery else False,
        },
        "data": async_redact_data(dict(family.get_state()), const.TO_REDACT),
    }
