"""Tests for RecoveryManager and notification delivery."""

from __future__ import annotations

from unittest.mock import patch

from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import async_mock_service

from custom_components.family_economy import const
from custom_components.family_economy.managers import RecoveryManager
from custom_components.family_economy.managers.recovery_manager import (
    email_hint,
    hash_email,
)
from custom_components.family_economy.notification_helper import (
    async_send_notification,
    split_notify_service,
)

from tests.conftest import PARENT_PATTERN

NOTIFY = "notify.mobile_app_phone"
EMAIL = "Jordan@Example.com"


def _recovery(hass, family, clock) -> RecoveryManager:
    manager = family["manager"]
    manager.set_parent_pattern(PARENT_PATTERN)
    recovery = RecoveryManager(hass, manager, NOTIFY, now_func=clock)
    assert recovery.set_recovery_email(EMAIL)
    return recovery


# =============================================================================
# E-MAIL HELPERS
# =============================================================================


def test_email_helpers() -> None:
    """Hash is case-insensitive; hint masks the local part."""
    assert hash_email(" jordan@example.com ") == hash_email(EMAIL)
    assert email_hint(EMAIL) == "jo***@example.com"
    assert email_hint("not-an-email") is None
    assert email_hint("@example.com") is None


def test_only_hash_and_hint_stored(family, clock) -> None:
    manager = family["manager"]
    recovery = RecoveryManager(None, manager, NOTIFY, now_func=clock)
    assert recovery.set_recovery_email(EMAIL)
    assert EMAIL.lower() not in str(manager.get_state())
    assert recovery.has_recovery_email
    assert recovery.email_hint == "jo***@example.com"
    assert recovery.verify_email("jordan@example.com")
    assert not recovery.verify_email("someone@example.com")
    assert not recovery.set_recovery_email("broken")


def test_generate_code_shape() -> None:
    for _ in range(20):
        code = RecoveryManager.generate_code()
        assert len(code) == const.RECOVERY_CODE_LENGTH
        assert code.isdigit()


# =============================================================================
# CODE FLOW
# =============================================================================


async def test_code_resets_parent_pattern(hass: HomeAssistant, family, clock) -> None:
    """A delivered code clears the gesture so the next gated call sets a new one."""
    calls = async_mock_service(hass, "notify", "mobile_app_phone")
    recovery = _recovery(hass, family, clock)

    with patch.object(RecoveryManager, "generate_code", return_value="123456"):
        assert await recovery.async_send_code(EMAIL)

    assert len(calls) == 1
    assert "123456" in calls[0].data["message"]
    assert recovery.code_pending
    assert recovery.time_remaining() == const.RECOVERY_CODE_EXPIRY_MINUTES * 60

    assert not recovery.verify_code("000000")
    assert recovery.verify_code(" 123456 ")
    assert not family["manager"].pattern_gate.has_secret
    assert not recovery.code_pending


async def test_wrong_email_sends_nothing(hass: HomeAssistant, family, clock) -> None:
    calls = async_mock_service(hass, "notify", "mobile_app_phone")
    recovery = _recovery(hass, family, clock)
    assert not await recovery.async_send_code("intruder@example.com")
    assert calls == []
    assert not recovery.code_pending


async def test_expired_code_rejected(hass: HomeAssistant, family, clock) -> None:
    async_mock_service(hass, "notify", "mobile_app_phone")
    recovery = _recovery(hass, family, clock)
    with patch.object(RecoveryManager, "generate_code", return_value="654321"):
        await recovery.async_send_code(EMAIL)

    clock.advance(minutes=const.RECOVERY_CODE_EXPIRY_MINUTES, seconds=1)

    assert not recovery.verify_code("654321")
    assert family["manager"].pattern_gate.has_secret


async def test_missing_notify_service(hass: HomeAssistant, family, clock) -> None:
    """No code is kept when it could not be delivered."""
    recovery = _recovery(hass, family, clock)
    assert not await recovery.async_send_code(EMAIL)
    assert not recovery.code_pending


# =============================================================================
# NOTIFICATION HELPER
# =============================================================================


def test_split_notify_service() -> None:
    assert split_notify_service("notify.family") == ("notify", "family")
    assert split_notify_service("family") == ("notify", "family")


async def test_send_notification_payload(hass: HomeAssistant) -> None:
    calls = async_mock_service(hass, "notify", "family")
    assert await async_send_notification(
        hass, "notify.family", "Title", "Body", {"priority": "high"}
    )
    assert calls[0].data == {
        "title": "Title",
        "message": "Body",
        "data": {"priority": "high"},
    }


async def test_send_notification_without_service(hass: HomeAssistant) -> None:
    assert not await async_send_notification(hass, "", "Title", "Body")
