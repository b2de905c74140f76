# File: flow_helpers.py
"""Helpers for the Family Economy Config and Options flow.

Both flows edit the same household settings, so the schema builder and the
validation live here:
- build_settings_schema(hass, defaults, include_advanced) -> vol.Schema
- validate_settings_inputs(user_input) -> errors_dict (empty dict = no errors)
"""

from __future__ import annotations

from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers import selector
import voluptuous as vol

from . import const


def _get_notify_services(hass: HomeAssistant) -> list[dict[str, str]]:
    """Return all notify.* services as select options."""
    services_list = []
    all_services = hass.services.async_services()
    if const.NOTIFY_DOMAIN in all_services:
        for service_name in all_services[const.NOTIFY_DOMAIN].keys():
            fullname = f"{const.NOTIFY_DOMAIN}.{service_name}"
            services_list.append({"value": fullname, "label": fullname})
    return services_list


def default_settings_input(options: dict[str, Any] | None = None) -> dict[str, Any]:
    """Current option values with defaults filled in."""
    options = options or {}
    return {
        const.CONF_WEEKLY_RESET_DAY: str(
            options.get(const.CONF_WEEKLY_RESET_DAY, const.DEFAULT_WEEKLY_RESET_DAY)
        ),
        const.CONF_REQUIRE_APPROVAL_JOBS: options.get(
            const.CONF_REQUIRE_APPROVAL_JOBS, const.DEFAULT_REQUIRE_APPROVAL_JOBS
        ),
        const.CONF_REQUIRE_APPROVAL_CHORES: options.get(
            const.CONF_REQUIRE_APPROVAL_CHORES, const.DEFAULT_REQUIRE_APPROVAL_CHORES
        ),
        const.CONF_ENABLE_RECOVERY: options.get(
            const.CONF_ENABLE_RECOVERY, const.DEFAULT_ENABLE_RECOVERY
        ),
        const.CONF_RECOVERY_NOTIFY_SERVICE: options.get(
            const.CONF_RECOVERY_NOTIFY_SERVICE, const.DEFAULT_RECOVERY_NOTIFY_SERVICE
        ),
        const.CONF_UPDATE_INTERVAL: options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        ),
    }


def build_settings_schema(
    hass: HomeAssistant,
    defaults: dict[str, Any],
    include_advanced: bool = True,
) -> vol.Schema:
    """Build the household settings form.

    The config flow only asks for the weekly reset day and approval flags; the
    options flow adds recovery and the refresh interval.
    """
    day_options = [
        {"value": str(index), "label": name.capitalize()}
        for index, name in enumerate(const.WEEKDAY_OPTIONS)
    ]

    fields: dict[Any, Any] = {
        vol.Required(
            const.CONF_WEEKLY_RESET_DAY,
            default=defaults[const.CONF_WEEKLY_RESET_DAY],
        ): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=day_options,
                mode=selector.SelectSelectorMode.DROPDOWN,
                multiple=False,
            )
        ),
        vol.Required(
            const.CONF_REQUIRE_APPROVAL_JOBS,
            default=defaults[const.CONF_REQUIRE_APPROVAL_JOBS],
        ): selector.BooleanSelector(),
        vol.Required(
            const.CONF_REQUIRE_APPROVAL_CHORES,
            default=defaults[const.CONF_REQUIRE_APPROVAL_CHORES],
        ): selector.BooleanSelector(),
    }

    if not include_advanced:
        return vol.Schema(fields)

    notify_options = [
        {"value": const.CONF_EMPTY, "label": const.LABEL_NONE}
    ] + _get_notify_services(hass)

    fields.update(
        {
            vol.Required(
                const.CONF_ENABLE_RECOVERY,
                default=defaults[const.CONF_ENABLE_RECOVERY],
            ): selector.BooleanSelector(),
            vol.Optional(
                const.CONF_RECOVERY_NOTIFY_SERVICE,
                default=defaults[const.CONF_RECOVERY_NOTIFY_SERVICE] or const.CONF_EMPTY,
            ): selector.SelectSelector(
                selector.SelectSelectorConfig(
                    options=notify_options,
                    mode=selector.SelectSelectorMode.DROPDOWN,
                    multiple=False,
                    custom_value=True,
                )
            ),
            vol.Required(
                const.CONF_UPDATE_INTERVAL,
                default=defaults[const.CONF_UPDATE_INTERVAL],
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=const.MIN_UPDATE_INTERVAL,
                    max=const.MAX_UPDATE_INTERVAL,
                    step=1,
                    mode=selector.NumberSelectorMode.BOX,
                    unit_of_measurement="min",
                )
            ),
        }
    )
    return vol.Schema(fields)


def validate_settings_inputs(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate the settings form. Returns ``{field: translation_key}``."""
    errors: dict[str, str] = {}

    try:
        reset_day = int(user_input.get(const.CONF_WEEKLY_RESET_DAY, ""))
    except (TypeError, ValueError):
        reset_day = -1
    if not const.WEEKDAY_SUNDAY <= reset_day <= const.WEEKDAY_SATURDAY:
        errors[const.CONF_WEEKLY_RESET_DAY] = const.TRANS_KEY_ERROR_INVALID_RESET_DAY

    if const.CONF_UPDATE_INTERVAL in user_input:
        try:
            interval = float(user_input[const.CONF_UPDATE_INTERVAL])
        except (TypeError, ValueError):
            interval = 0.0
        if (
            not interval.is_integer()
            or not const.MIN_UPDATE_INTERVAL <= interval <= const.MAX_UPDATE_INTERVAL
        ):
            errors[const.CONF_UPDATE_INTERVAL] = (
                const.TRANS_KEY_ERROR_INVALID_UPDATE_INTERVAL
            )

    if user_input.get(const.CONF_ENABLE_RECOVERY) and not user_input.get(
        const.CONF_RECOVERY_NOTIFY_SERVICE
    ):
        errors[const.CONF_RECOVERY_NOTIFY_SERVICE] = (
            const.TRANS_KEY_ERROR_RECOVERY_SERVICE_REQUIRED
        )

    return errors


def build_settings_options(user_input: dict[str, Any]) -> dict[str, Any]:
    """Normalize validated form input into config entry options."""
    options = dict(user_input)
    options[const.CONF_WEEKLY_RESET_DAY] = int(options[const.CONF_WEEKLY_RESET_DAY])
    options[const.CONF_REQUIRE_APPROVAL_JOBS] = bool(
        options.get(const.CONF_REQUIRE_APPROVAL_JOBS)
    )
    options[const.CONF_REQUIRE_APPROVAL_CHORES] = bool(
        options.get(const.CONF_REQUIRE_APPROVAL_CHORES)
    )
    if const.CONF_UPDATE_INTERVAL in options:
        options[const.CONF_UPDATE_INTERVAL] = int(options[const.CONF_UPDATE_INTERVAL])
    return options
