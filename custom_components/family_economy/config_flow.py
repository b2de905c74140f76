# File: config_flow.py
"""Config flow for the Family Economy integration.

A single household per Home Assistant instance. Setup asks for the weekly
reset day and the approval defaults; family members, chores and jobs are
created afterwards through services.
"""

from typing import Any, Optional

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import FamilyEconomyOptionsFlowHandler

# pylint: disable=abstract-method


class FamilyEconomyConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Family Economy."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Ask for the household settings and create the entry."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                options = fh.build_settings_options(user_input)
                const.LOGGER.debug("DEBUG: Creating entry with options %s", options)
                return self.async_create_entry(
                    title=const.FAMILY_ECONOMY_TITLE, data={}, options=options
                )

        defaults = fh.default_settings_input(user_input)
        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=fh.build_settings_schema(
                self.hass, defaults, include_advanced=False
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        """Return the Options Flow."""
        return FamilyEconomyOptionsFlowHandler(config_entry)
