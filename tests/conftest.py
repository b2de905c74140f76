"""Shared fixtures for Family Economy tests."""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.family_economy import const
from custom_components.family_economy.managers import FamilyEconomyManager
from custom_components.family_economy.utils import dt_utils

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

# Wednesday 2026-01-21 15:00 UTC; the week (reset day Sunday) began 2026-01-18.
WEDNESDAY_AFTERNOON = datetime(2026, 1, 21, 15, 0, tzinfo=UTC)

PARENT_PATTERN = [0, 1, 2, 5, 8]


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture(autouse=True)
def utc_default_timezone() -> Generator[None]:
    """Evaluate period math in UTC unless a test sets up the integration."""
    previous = dt_utils.get_default_timezone()
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(previous)


class FakeClock:
    """Settable clock injected as ``now_func``."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen on a Wednesday afternoon."""
    return FakeClock(WEDNESDAY_AFTERNOON)


@pytest.fixture
def events() -> list[tuple[str, dict[str, Any]]]:
    """Collects events fired by the manager."""
    return []


@pytest.fixture
def manager(clock: FakeClock, events: list) -> FamilyEconomyManager:
    """An empty family with a fixed clock and recorded events."""
    return FamilyEconomyManager(
        event_callback=lambda event_type, payload: events.append((event_type, payload)),
        now_func=clock,
    )


@pytest.fixture
def family(manager: FamilyEconomyManager) -> dict[str, Any]:
    """One parent and one child; the child is the active user."""
    parent = manager.add_user({const.DATA_NAME: "Mom", const.DATA_USER_ROLE: const.ROLE_PARENT})
    child = manager.add_user({const.DATA_NAME: "Alex", const.DATA_USER_ROLE: const.ROLE_CHILD})
    return {"manager": manager, "parent": parent, "child": child}


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a config entry with default options."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title=const.FAMILY_ECONOMY_TITLE,
        data={},
        options={
            const.CONF_WEEKLY_RESET_DAY: const.DEFAULT_WEEKLY_RESET_DAY,
            const.CONF_REQUIRE_APPROVAL_JOBS: True,
            const.CONF_REQUIRE_APPROVAL_CHORES: True,
            const.CONF_ENABLE_RECOVERY: False,
            const.CONF_RECOVERY_NOTIFY_SERVICE: "",
            const.CONF_UPDATE_INTERVAL: const.DEFAULT_UPDATE_INTERVAL,
        },
        entry_id="family_economy_test_entry",
    )


@pytest.fixture
async def init_integration(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> MockConfigEntry:
    """Set up the integration with an empty store."""
    mock_config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()
    return mock_config_entry
