"""Base entity classes for the Family Economy integration."""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import FamilyEconomyCoordinator


class FamilyEconomyCoordinatorEntity(CoordinatorEntity[FamilyEconomyCoordinator]):
    """Base entity class for Family Economy sensors with typed coordinator access.

    Every entity of an entry hangs off one service device named after the
    integration, so the family shows up as a single card in the device list.
    """

    def __init__(self, coordinator: FamilyEconomyCoordinator, entry: ConfigEntry) -> None:
        """Initialize the entity and attach it to the family device."""
        super().__init__(coordinator)
        self._entry = entry
        self._attr_device_info = DeviceInfo(
            identifiers={(const.DOMAIN, entry.entry_id)},
            name=entry.title or const.FAMILY_ECONOMY_TITLE,
            entry_type=DeviceEntryType.SERVICE,
        )

    @property
    def coordinator(self) -> FamilyEconomyCoordinator:
        """Return typed coordinator.

        Uses object.__getattribute__ to access the private _coordinator attribute
        set by the parent CoordinatorEntity class.
        """
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: FamilyEconomyCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)
