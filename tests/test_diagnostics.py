"""Test Family Economy diagnostics."""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from homeassistant.core import HomeAssistant
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.family_economy import const
from custom_components.family_economy.diagnostics import (
    async_get_config_entry_diagnostics,
)

from tests.conftest import PARENT_PATTERN


@pytest.mark.asyncio
async def test_diagnostics_redacts_secrets(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """The parent gesture never appears in diagnostics."""
    coordinator = hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]
    coordinator.family.set_parent_pattern(PARENT_PATTERN)
    coordinator.family.add_user({const.DATA_NAME: "Alex"})

    diagnostics = await async_get_config_entry_diagnostics(hass, init_integration)

    assert diagnostics["options"] == dict(init_integration.options)
    assert const.STORAGE_KEY in diagnostics["storage_path"]
    assert diagnostics["gate"]["has_secret"] is True
    assert diagnostics["recovery"] == {"enabled": False, "code_pending": False}

    data = diagnostics["data"]
    assert data[const.DATA_PARENT_PASSWORD] == "**REDACTED**"
    assert [user["name"] for user in data[const.DATA_USERS]] == ["Alex"]


@pytest.mark.asyncio
async def test_diagnostics_without_secret(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    diagnostics = await async_get_config_entry_diagnostics(hass, init_integration)

    assert diagnostics["gate"]["has_secret"] is False
    assert diagnostics["data"][const.DATA_PARENT_PASSWORD] is None
