"""Tests for integration setup, unload and removal."""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from typing import Any

from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.family_economy import const
from custom_components.family_economy.coordinator import FamilyEconomyCoordinator

STORED_FAMILY: dict[str, Any] = {
    const.DATA_USERS: [
        {
            "id": "user_alex",
            "name": "Alex",
            "role": const.ROLE_CHILD,
            "avatar": const.DEFAULT_CHILD_AVATAR,
            "cash_balance": 1250,
            "pending_balance": 0,
            "gems": 3,
        }
    ],
    const.DATA_ACTIVE_USER_ID: "user_alex",
    const.DATA_SETTINGS: {const.DATA_SETTINGS_WEEKLY_RESET_DAY: 0},
}


@pytest.mark.asyncio
async def test_setup_entry(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Setup stores the coordinator and registers every service."""
    assert init_integration.state is ConfigEntryState.LOADED

    entry_data = hass.data[const.DOMAIN][init_integration.entry_id]
    assert isinstance(entry_data[const.COORDINATOR], FamilyEconomyCoordinator)
    assert entry_data[const.STORE] is entry_data[const.COORDINATOR].store

    for service in const.ALL_SERVICES:
        assert hass.services.has_service(const.DOMAIN, service)


@pytest.mark.asyncio
async def test_setup_loads_stored_family(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,
) -> None:
    hass_storage[const.STORAGE_KEY] = {
        "version": const.STORAGE_VERSION,
        "minor_version": 1,
        "key": const.STORAGE_KEY,
        "data": STORED_FAMILY,
    }
    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    family = hass.data[const.DOMAIN][mock_config_entry.entry_id][const.COORDINATOR].family
    alex = family.get_user("user_alex")
    assert alex is not None
    assert alex["cash_balance"] == 1250
    assert family.active_user["id"] == "user_alex"


@pytest.mark.asyncio
async def test_options_override_stored_settings(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    mock_config_entry: MockConfigEntry,
) -> None:
    """Entry options win over the settings saved in the snapshot."""
    hass_storage[const.STORAGE_KEY] = {
        "version": const.STORAGE_VERSION,
        "minor_version": 1,
        "key": const.STORAGE_KEY,
        "data": STORED_FAMILY,
    }
    options = dict(mock_config_entry.options)
    options[const.CONF_WEEKLY_RESET_DAY] = 5
    mock_config_entry.add_to_hass(hass)
    hass.config_entries.async_update_entry(mock_config_entry, options=options)

    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    family = hass.data[const.DOMAIN][mock_config_entry.entry_id][const.COORDINATOR].family
    assert family.reset_day == 5


@pytest.mark.asyncio
async def test_unload_flushes_and_removes_services(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    init_integration: MockConfigEntry,
) -> None:
    coordinator = hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]
    coordinator.family.add_user({const.DATA_NAME: "Alex"})

    assert await hass.config_entries.async_unload(init_integration.entry_id)
    await hass.async_block_till_done()

    assert init_integration.state is ConfigEntryState.NOT_LOADED
    assert init_integration.entry_id not in hass.data[const.DOMAIN]
    assert not hass.services.has_service(const.DOMAIN, const.SERVICE_ADD_USER)

    saved_users = hass_storage[const.STORAGE_KEY]["data"][const.DATA_USERS]
    assert [user["name"] for user in saved_users] == ["Alex"]


@pytest.mark.asyncio
async def test_remove_entry_deletes_storage(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    init_integration: MockConfigEntry,
) -> None:
    """Removing the entry clears the stored family."""
    await hass.config_entries.async_remove(init_integration.entry_id)
    await hass.async_block_till_done()

    assert const.STORAGE_KEY not in hass_storage
