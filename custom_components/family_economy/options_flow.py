# File: options_flow.py
"""Options Flow for the Family Economy integration.

Edits the household settings after setup. Saving the options reloads the
entry, which pushes the new values into the family settings and rebuilds the
recovery manager and refresh interval.
"""

from typing import Any, Optional

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class FamilyEconomyOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for the household settings."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""
        self._entry_options: dict[str, Any] = {}

    async def async_step_init(self, user_input: Optional[dict[str, Any]] = None):
        """Show and save the settings form."""
        self._entry_options = dict(self.config_entry.options)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_settings_inputs(user_input)
            if not errors:
                self._entry_options.update(fh.build_settings_options(user_input))
                const.LOGGER.debug(
                    "DEBUG: Saving options %s for entry %s",
                    self._entry_options,
                    self.config_entry.entry_id,
                )
                return self.async_create_entry(title="", data=self._entry_options)

        defaults = fh.default_settings_input(user_input or self._entry_options)
        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=fh.build_settings_schema(self.hass, defaults),
            errors=errors,
        )
