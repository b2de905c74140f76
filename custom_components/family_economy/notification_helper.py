# File: notification_helper.py
"""Sends notifications using Home Assistant's notify services.

Family Economy only notifies for the parent gate recovery flow: the one-time
recovery code is delivered through whatever notify service the household
configured (mobile app, e-mail via SMTP, etc.).
"""

from __future__ import annotations

from typing import Any, Optional

from homeassistant.core import HomeAssistant

from . import const


def split_notify_service(notify_service: str) -> tuple[str, str]:
    """Split ``notify.mobile_app_x`` (or bare ``mobile_app_x``) into domain and service."""
    if const.DISPLAY_DOT not in notify_service:
        return const.NOTIFY_DOMAIN, notify_service
    domain, service = notify_service.split(const.DISPLAY_DOT, 1)
    return domain, service


async def async_send_notification(
    hass: HomeAssistant,
    notify_service: str,
    title: str,
    message: str,
    extra_data: Optional[dict[str, str]] = None,
) -> bool:
    """Send a notification using the specified notify service.

    Returns False instead of raising when the service is missing or fails, so
    callers can report "not sent" to the user.
    """
    if not notify_service:
        const.LOGGER.warning("WARNING: No notification service configured")
        return False

    domain, service = split_notify_service(notify_service)

    if not hass.services.has_service(domain, service):
        const.LOGGER.warning(
            "Notification service '%s.%s' not available - skipping notification",
            domain,
            service,
        )
        return False

    payload: dict[str, Any] = {const.NOTIFY_TITLE: title, const.NOTIFY_MESSAGE: message}
    if extra_data:
        payload[const.NOTIFY_DATA] = dict(extra_data)

    try:
        await hass.services.async_call(domain, service, payload, blocking=True)
    except Exception as err:  # pylint: disable=broad-exception-caught
        const.LOGGER.error(
            "ERROR: Unexpected error sending notification via '%s.%s': %s",
            domain,
            service,
            err,
        )
        return False

    const.LOGGER.debug("DEBUG: Notification sent via '%s.%s'", domain, service)
    return True
