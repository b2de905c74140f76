"""Direct unit tests for FamilyEconomyStore.

Covers snapshot loading (absent, corrupt, partial), saving and error handling.
"""

# pylint: disable=protected-access  # Accessing _store for testing
# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from unittest.mock import AsyncMock, patch

import pytest
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError

from custom_components.family_economy import const
from custom_components.family_economy.store import FamilyEconomyStore


@pytest.fixture
def store(hass: HomeAssistant) -> FamilyEconomyStore:
    """Return a store instance."""
    return FamilyEconomyStore(hass)


async def test_initialize_without_data(store: FamilyEconomyStore) -> None:
    """No stored file gives the empty default structure."""
    with patch.object(store._store, "async_load", return_value=None):
        await store.async_initialize()

    assert store.data == dict(FamilyEconomyStore.get_default_structure())
    for key in const.DATA_COLLECTION_KEYS:
        assert store.data[key] == []
    assert store.data[const.DATA_SETTINGS][const.DATA_SETTINGS_WEEKLY_RESET_DAY] == 0


async def test_initialize_normalizes_partial_data(store: FamilyEconomyStore) -> None:
    """Missing collections and bad settings fall back to defaults."""
    stored = {
        const.DATA_USERS: [{"id": "user_1", "name": "Alex"}],
        const.DATA_SETTINGS: {const.DATA_SETTINGS_WEEKLY_RESET_DAY: 42},
    }
    with patch.object(store._store, "async_load", return_value=stored):
        await store.async_initialize()

    assert store.data[const.DATA_USERS] == [{"id": "user_1", "name": "Alex"}]
    assert store.data[const.DATA_JOBS] == []
    assert store.data[const.DATA_SETTINGS][const.DATA_SETTINGS_WEEKLY_RESET_DAY] == 0


@pytest.mark.parametrize("payload", [["a", "list"], "text", 12])
async def test_non_object_payload_ignored(store: FamilyEconomyStore, payload) -> None:
    with patch.object(store._store, "async_load", return_value=payload):
        assert await store.async_load_snapshot() is None
        await store.async_initialize()
    assert store.data[const.DATA_USERS] == []


async def test_load_error_treated_as_absent(store: FamilyEconomyStore) -> None:
    with patch.object(
        store._store, "async_load", side_effect=HomeAssistantError("corrupt json")
    ):
        assert await store.async_load_snapshot() is None


async def test_save_snapshot(store: FamilyEconomyStore) -> None:
    state = dict(FamilyEconomyStore.get_default_structure())
    with patch.object(store._store, "async_save", new=AsyncMock()) as mock_save:
        assert await store.async_save_snapshot(state)
    mock_save.assert_awaited_once_with(state)
    assert store.data is state


async def test_save_failure_reported(store: FamilyEconomyStore) -> None:
    with patch.object(
        store._store, "async_save", new=AsyncMock(side_effect=OSError("disk full"))
    ):
        assert not await store.async_save_snapshot(dict(store.data))


async def test_delete_storage(store: FamilyEconomyStore) -> None:
    with patch.object(store._store, "async_remove", new=AsyncMock()) as mock_remove:
        await store.async_delete_storage()
    mock_remove.assert_awaited_once()
    assert const.STORAGE_KEY in store.get_storage_path()


async def test_round_trip_through_hass_storage(
    hass: HomeAssistant, hass_storage: dict
) -> None:
    """A saved snapshot is what the next start loads."""
    first = FamilyEconomyStore(hass)
    await first.async_initialize()
    state = dict(first.data)
    state[const.DATA_USERS] = [{"id": "user_1", "name": "Alex", "cash_balance": 250}]
    assert await first.async_save_snapshot(state)

    assert hass_storage[const.STORAGE_KEY]["data"][const.DATA_USERS][0]["cash_balance"] == 250

    second = FamilyEconomyStore(hass)
    await second.async_initialize()
    assert second.data[const.DATA_USERS] == state[const.DATA_USERS]
