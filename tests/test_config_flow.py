"""Test the Family Economy config flow.

- test_user_step_shows_basic_form: only reset day and approval flags are asked
- test_user_step_creates_entry: options are normalized (reset day cast to int)
- test_single_instance: a second household aborts
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from unittest.mock import patch

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.family_economy import const


async def _start_flow(hass: HomeAssistant):
    return await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )


@pytest.mark.asyncio
async def test_user_step_shows_basic_form(hass: HomeAssistant) -> None:
    """The first form has no recovery or interval fields."""
    result = await _start_flow(hass)

    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == const.CONFIG_FLOW_STEP_USER
    assert result["errors"] == {}

    fields = {str(key) for key in result["data_schema"].schema}
    assert fields == {
        const.CONF_WEEKLY_RESET_DAY,
        const.CONF_REQUIRE_APPROVAL_JOBS,
        const.CONF_REQUIRE_APPROVAL_CHORES,
    }


@pytest.mark.asyncio
async def test_user_step_creates_entry(hass: HomeAssistant) -> None:
    """Submitting the form creates one entry holding everything in options."""
    with patch(
        "custom_components.family_economy.async_setup_entry", return_value=True
    ) as mock_setup:
        result = await _start_flow(hass)
        result = await hass.config_entries.flow.async_configure(
            result["flow_id"],
            user_input={
                const.CONF_WEEKLY_RESET_DAY: "3",
                const.CONF_REQUIRE_APPROVAL_JOBS: False,
                const.CONF_REQUIRE_APPROVAL_CHORES: True,
            },
        )
        await hass.async_block_till_done()

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == const.FAMILY_ECONOMY_TITLE
    assert result["data"] == {}

    entry = result["result"]
    assert entry.options == {
        const.CONF_WEEKLY_RESET_DAY: 3,
        const.CONF_REQUIRE_APPROVAL_JOBS: False,
        const.CONF_REQUIRE_APPROVAL_CHORES: True,
    }
    assert len(mock_setup.mock_calls) == 1


@pytest.mark.asyncio
async def test_single_instance(hass: HomeAssistant) -> None:
    """Only one household per Home Assistant instance."""
    MockConfigEntry(domain=const.DOMAIN, title=const.FAMILY_ECONOMY_TITLE).add_to_hass(
        hass
    )

    result = await _start_flow(hass)

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == const.TRANS_KEY_ERROR_SINGLE_INSTANCE
