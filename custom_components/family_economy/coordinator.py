# File: coordinator.py
"""Coordinator for the Family Economy integration.

Wires the pure FamilyEconomyManager into Home Assistant:
- Loads the stored snapshot and pushes config entry options into settings
- Fires manager events on the Home Assistant bus as ``family_economy_<event>``
- Schedules debounced saves after every change and updates entities at once
- Runs the maintenance pass on load, on every refresh and just after midnight
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.event import async_track_time_change
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import const
from .managers import FamilyEconomyManager, RecoveryManager
from .store import FamilyEconomyStore


class FamilyEconomyCoordinator(DataUpdateCoordinator):
    """Coordinator for the Family Economy integration."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: FamilyEconomyStore,
    ) -> None:
        """Initialize the FamilyEconomyCoordinator."""
        update_interval_minutes = config_entry.options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        )

        super().__init__(
            hass,
            const.LOGGER,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )
        self.config_entry = config_entry
        self.store = store
        self.family = self._build_manager(None)
        self.recovery_manager: RecoveryManager | None = None

    def _build_manager(self, snapshot: dict[str, Any] | None) -> FamilyEconomyManager:
        return FamilyEconomyManager.from_snapshot(
            snapshot,
            event_callback=self._fire_event,
            change_callback=self._persist,
        )

    # -------------------------------------------------------------------------------------
    # Load / refresh
    # -------------------------------------------------------------------------------------

    async def async_config_entry_first_refresh(self) -> None:
        """Load from storage, merge config options and start the daily timer."""
        self.family = self._build_manager(self.store.data or None)
        self._apply_options()

        if self.config_entry.options.get(
            const.CONF_ENABLE_RECOVERY, const.DEFAULT_ENABLE_RECOVERY
        ):
            self.recovery_manager = RecoveryManager(
                self.hass,
                self.family,
                self.config_entry.options.get(
                    const.CONF_RECOVERY_NOTIFY_SERVICE,
                    const.DEFAULT_RECOVERY_NOTIFY_SERVICE,
                ),
            )

        summary = self.family.run_maintenance()
        const.LOGGER.debug("DEBUG: Startup maintenance summary: %s", summary)

        self.config_entry.async_on_unload(
            async_track_time_change(
                self.hass, self._handle_daily_reset, **const.DEFAULT_DAILY_RESET_TIME
            )
        )

        self._persist()
        await super().async_config_entry_first_refresh()

    def _apply_options(self) -> None:
        """Push config entry options into the family settings."""
        options = self.config_entry.options
        changes: dict[str, Any] = {}
        for option_key, setting_key in (
            (const.CONF_WEEKLY_RESET_DAY, const.DATA_SETTINGS_WEEKLY_RESET_DAY),
            (const.CONF_REQUIRE_APPROVAL_JOBS, const.DATA_SETTINGS_REQUIRE_APPROVAL_JOBS),
            (const.CONF_REQUIRE_APPROVAL_CHORES, const.DATA_SETTINGS_REQUIRE_APPROVAL_CHORES),
        ):
            if option_key in options:
                changes[setting_key] = options[option_key]

        if const.DATA_SETTINGS_WEEKLY_RESET_DAY in changes:
            changes[const.DATA_SETTINGS_WEEKLY_RESET_DAY] = int(
                changes[const.DATA_SETTINGS_WEEKLY_RESET_DAY]
            )

        if changes and not self.family.update_settings(changes):
            const.LOGGER.warning(
                "WARNING: Ignoring invalid options for entry %s: %s",
                self.config_entry.entry_id,
                changes,
            )

    async def _async_update_data(self) -> dict[str, Any]:
        """Periodic update: run maintenance and publish the state."""
        try:
            self.family.run_maintenance()
            return dict(self.family.get_state())
        except Exception as err:  # pylint: disable=broad-exception-caught
            raise UpdateFailed(f"Error updating Family Economy data: {err}") from err

    @callback
    def _handle_daily_reset(self, now: datetime) -> None:
        """Run maintenance just after local midnight."""
        const.LOGGER.debug("DEBUG: Daily reset tick at %s", now)
        self.family.run_maintenance()

    # -------------------------------------------------------------------------------------
    # Manager hooks
    # -------------------------------------------------------------------------------------

    @callback
    def _fire_event(self, event_type: str, payload: dict[str, Any]) -> None:
        """Forward a manager event to the Home Assistant bus."""
        self.hass.bus.async_fire(f"{const.EVENT_PREFIX}{event_type}", payload)

    @callback
    def _persist(self) -> None:
        """Schedule a debounced save and push the change to entities."""
        self.store.schedule_save(self.family.get_state)
        self.async_update_listeners()

    async def async_flush(self) -> bool:
        """Write the current state immediately (used on unload)."""
        return await self.store.async_save_snapshot(dict(self.family.get_state()))
