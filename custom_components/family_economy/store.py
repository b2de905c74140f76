# File: store.py
"""Handles persistent data storage for the Family Economy integration.

Uses Home Assistant's Storage helper to save and load the family state as one
JSON snapshot. Loaded payloads are validated and normalized before use: a
payload that is not an object is treated as absent, and missing or malformed
collections and settings fall back to defaults.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const
from .data_builders import build_default_state, normalize_snapshot

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import FamilyState


class FamilyEconomyStore:
    """Thin wrapper around Home Assistant's Store API for the family snapshot.

    Persistence failures are logged and reported as "no saved state" (load)
    or ``False`` (save); they never propagate to callers.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}

    @staticmethod
    def get_default_structure() -> FamilyState:
        """Return canonical empty data structure for fresh installations."""
        return build_default_state()

    async def async_load_snapshot(self) -> FamilyState | None:
        """Load and normalize the stored snapshot.

        Returns:
            The normalized state, or None when nothing usable is stored.
        """
        try:
            raw = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to load storage %s: %s. Starting from defaults",
                self._store.path,
                err,
            )
            return None

        if raw is None:
            return None

        snapshot = normalize_snapshot(raw)
        if snapshot is None:
            const.LOGGER.warning(
                "WARNING: Stored data is not an object (%s); ignoring it",
                type(raw).__name__,
            )
        return snapshot

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no usable data exists, initializes with an empty structure.
        """
        const.LOGGER.debug("DEBUG: FamilyEconomyStore: Loading data from storage")
        snapshot = await self.async_load_snapshot()

        if snapshot is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = dict(FamilyEconomyStore.get_default_structure())
            return

        self._data = dict(snapshot)
        const.LOGGER.debug(
            "DEBUG: Loaded existing data from storage: %s",
            {key: len(self._data.get(key, [])) for key in const.DATA_COLLECTION_KEYS},
        )

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def get_storage_path(self) -> str:
        """Get the storage file path."""
        return self._store.path

    async def async_save_snapshot(self, state: dict[str, Any]) -> bool:
        """Write ``state`` to disk now.

        Returns:
            True on success, False when the write failed (the error is logged).
        """
        self._data = state
        try:
            await self._store.async_save(state)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
            return False
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s",
                err,
            )
            return False
        const.LOGGER.debug("DEBUG: Data saved successfully to storage")
        return True

    def schedule_save(self, state_func: Callable[[], dict[str, Any]]) -> None:
        """Debounced save; ``state_func`` is called when the write happens."""

        def _data_to_save() -> dict[str, Any]:
            self._data = state_func()
            return self._data

        self._store.async_delay_save(_data_to_save, const.STORAGE_SAVE_DELAY)

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        self._data = dict(FamilyEconomyStore.get_default_structure())
        try:
            await self._store.async_remove()
            const.LOGGER.info("INFO: Storage file removed successfully: %s", self._store.path)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
