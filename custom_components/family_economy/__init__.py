# File: __init__.py
"""Initialization file for the Family Economy integration.

Handles setting up the integration, including loading the stored family
snapshot, creating the coordinator and registering services. Entries reload
when their options change.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import FamilyEconomyCoordinator
from .services import async_setup_services, async_unload_services
from .store import FamilyEconomyStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Family Economy entry: %s", entry.entry_id)

    # Period boundaries are local-time; set the zone before anything computes one.
    const.set_default_timezone(hass)

    store = FamilyEconomyStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    coordinator = FamilyEconomyCoordinator(hass, entry, store)

    try:
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to refresh coordinator data: %s", e)
        raise ConfigEntryNotReady from e

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    const.LOGGER.info("INFO: Family Economy setup complete for entry: %s", entry.entry_id)
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options changed."""
    const.LOGGER.debug("DEBUG: Options changed, reloading entry %s", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Family Economy entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
        coordinator: FamilyEconomyCoordinator = entry_data[const.COORDINATOR]
        await coordinator.async_flush()

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the stored snapshot when the entry is removed."""
    const.LOGGER.info("INFO: Removing Family Economy entry: %s", entry.entry_id)

    store = FamilyEconomyStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()

    const.LOGGER.info("INFO: Family Economy entry data cleared: %s", entry.entry_id)
