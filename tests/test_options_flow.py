"""Test the Family Economy options flow.

Saving options reloads the entry, so the new values land in the family
settings and the recovery manager is rebuilt.
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.family_economy import const


def _form_input(**overrides):
    user_input = {
        const.CONF_WEEKLY_RESET_DAY: "0",
        const.CONF_REQUIRE_APPROVAL_JOBS: True,
        const.CONF_REQUIRE_APPROVAL_CHORES: True,
        const.CONF_ENABLE_RECOVERY: False,
        const.CONF_RECOVERY_NOTIFY_SERVICE: "",
        const.CONF_UPDATE_INTERVAL: const.DEFAULT_UPDATE_INTERVAL,
    }
    user_input.update(overrides)
    return user_input


@pytest.mark.asyncio
async def test_form_shows_current_options(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    result = await hass.config_entries.options.async_init(init_integration.entry_id)

    assert result["type"] == FlowResultType.FORM
    assert result["step_id"] == const.OPTIONS_FLOW_STEP_INIT

    fields = {str(key) for key in result["data_schema"].schema}
    assert const.CONF_ENABLE_RECOVERY in fields
    assert const.CONF_UPDATE_INTERVAL in fields


@pytest.mark.asyncio
async def test_recovery_requires_notify_service(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Turning recovery on without a notify service is refused."""
    result = await hass.config_entries.options.async_init(init_integration.entry_id)
    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input=_form_input(**{const.CONF_ENABLE_RECOVERY: True})
    )

    assert result["type"] == FlowResultType.FORM
    assert result["errors"] == {
        const.CONF_RECOVERY_NOTIFY_SERVICE: const.TRANS_KEY_ERROR_RECOVERY_SERVICE_REQUIRED
    }
    assert not init_integration.options[const.CONF_ENABLE_RECOVERY]


@pytest.mark.asyncio
async def test_save_updates_options_and_reloads(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """New options are stored and pushed into the reloaded family."""
    result = await hass.config_entries.options.async_init(init_integration.entry_id)
    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input=_form_input(
            **{
                const.CONF_WEEKLY_RESET_DAY: "4",
                const.CONF_REQUIRE_APPROVAL_JOBS: False,
                const.CONF_ENABLE_RECOVERY: True,
                const.CONF_RECOVERY_NOTIFY_SERVICE: "notify.family_phone",
                const.CONF_UPDATE_INTERVAL: 10,
            }
        ),
    )
    await hass.async_block_till_done()

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert init_integration.options[const.CONF_WEEKLY_RESET_DAY] == 4
    assert init_integration.options[const.CONF_UPDATE_INTERVAL] == 10

    coordinator = hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]
    assert coordinator.family.reset_day == 4
    assert (
        coordinator.family.settings[const.DATA_SETTINGS_REQUIRE_APPROVAL_JOBS] is False
    )
    assert coordinator.recovery_manager is not None
    assert coordinator.update_interval.total_seconds() == 600
