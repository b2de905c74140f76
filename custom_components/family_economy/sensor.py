# File: sensor.py
"""Sensors for the Family Economy integration.

Sensors Defined in This File (4):

# Per-user sensors
01. UserCashSensor

# Per-job sensors
02. JobStatusSensor

# System sensors
03. SystemPendingApprovalsSensor
04. SystemActiveUserSensor

Users and jobs added after setup get their sensors on the next coordinator
update. Sensors of deleted users and jobs report unavailable.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CURRENCY_DOLLAR
from homeassistant.core import HomeAssistant, callback

from . import const
from .coordinator import FamilyEconomyCoordinator
from .entity import FamilyEconomyCoordinatorEntity
from .utils.currency_utils import cents_to_dollars, format_cents


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities
):
    """Set up sensors for the Family Economy integration."""
    data = hass.data[const.DOMAIN][entry.entry_id]
    coordinator: FamilyEconomyCoordinator = data[const.COORDINATOR]

    known_users: set[str] = set()
    known_jobs: set[str] = set()

    def _new_entities() -> list[SensorEntity]:
        entities: list[SensorEntity] = []
        for user in coordinator.family.users:
            user_id = user[const.DATA_ID]
            if user_id in known_users:
                continue
            known_users.add(user_id)
            entities.append(
                UserCashSensor(coordinator, entry, user_id, user.get(const.DATA_NAME, ""))
            )
        for job in coordinator.family.jobs:
            job_id = job[const.DATA_ID]
            if job_id in known_jobs:
                continue
            known_jobs.add(job_id)
            entities.append(
                JobStatusSensor(coordinator, entry, job_id, job.get(const.DATA_JOB_TITLE, ""))
            )
        return entities

    entities = _new_entities()
    entities.append(SystemPendingApprovalsSensor(coordinator, entry))
    entities.append(SystemActiveUserSensor(coordinator, entry))
    async_add_entities(entities)

    @callback
    def _async_add_new_entities() -> None:
        if new_entities := _new_entities():
            const.LOGGER.debug(
                "DEBUG: Adding %d sensor(s) for new users or jobs", len(new_entities)
            )
            async_add_entities(new_entities)

    entry.async_on_unload(coordinator.async_add_listener(_async_add_new_entities))


# ------------------------------------------------------------------------------------------
class UserCashSensor(FamilyEconomyCoordinatorEntity, SensorEntity):
    """Spendable cash of one family member, in dollars.

    Uses MEASUREMENT so the balance can be graphed. Pending earnings, gems and
    streaks ride along as attributes.
    """

    _attr_has_entity_name = True
    _attr_translation_key = const.TRANS_KEY_SENSOR_USER_CASH
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = CURRENCY_DOLLAR

    def __init__(
        self,
        coordinator: FamilyEconomyCoordinator,
        entry: ConfigEntry,
        user_id: str,
        user_name: str,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry)
        self._user_id = user_id
        self._attr_unique_id = (
            f"{entry.entry_id}_{user_id}{const.SENSOR_UID_SUFFIX_USER_CASH}"
        )
        self._attr_translation_placeholders = {
            const.SENSOR_PLACEHOLDER_USER_NAME: user_name,
        }

    @property
    def _user(self) -> dict[str, Any] | None:
        return self.coordinator.family.get_user(self._user_id)

    @property
    def available(self) -> bool:
        """Unavailable once the user is deleted."""
        return super().available and self._user is not None

    @property
    def native_value(self) -> float | None:
        """Return the cash balance in dollars."""
        user = self._user
        if user is None:
            return None
        return cents_to_dollars(user.get(const.DATA_USER_CASH_BALANCE, 0))

    @property
    def icon(self) -> str:
        """An empty wallet gets its own icon."""
        if self.native_value:
            return const.SENSOR_ICON_CASH
        return const.SENSOR_ICON_CASH_EMPTY

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        user = self._user
        if user is None:
            return {}
        active = self.coordinator.family.active_user
        cash = user.get(const.DATA_USER_CASH_BALANCE, 0)
        return {
            const.ATTR_USER_ID: self._user_id,
            const.ATTR_USER_NAME: user.get(const.DATA_NAME),
            const.ATTR_ROLE: user.get(const.DATA_USER_ROLE),
            const.ATTR_IS_ACTIVE: active is not None and active[const.DATA_ID] == self._user_id,
            const.ATTR_CASH_CENTS: cash,
            const.ATTR_CASH_FORMATTED: format_cents(cash),
            const.ATTR_PENDING_BALANCE: cents_to_dollars(
                user.get(const.DATA_USER_PENDING_BALANCE, 0)
            ),
            const.ATTR_GEMS: user.get(const.DATA_USER_GEMS, 0),
            const.ATTR_CURRENT_STREAK: user.get(const.DATA_USER_CURRENT_STREAK, 0),
            const.ATTR_LONGEST_STREAK: user.get(const.DATA_USER_LONGEST_STREAK, 0),
        }


# ------------------------------------------------------------------------------------------
class JobStatusSensor(FamilyEconomyCoordinatorEntity, SensorEntity):
    """Completions of one job in its current period.

    Attributes carry the full job status: lock state and unlock progress,
    whether another completion is allowed (and why not), and earnings in cents.
    """

    _attr_has_entity_name = True
    _attr_translation_key = const.TRANS_KEY_SENSOR_JOB_STATUS
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(
        self,
        coordinator: FamilyEconomyCoordinator,
        entry: ConfigEntry,
        job_id: str,
        job_title: str,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry)
        self._job_id = job_id
        self._attr_unique_id = (
            f"{entry.entry_id}_{job_id}{const.SENSOR_UID_SUFFIX_JOB_STATUS}"
        )
        self._attr_translation_placeholders = {
            const.SENSOR_PLACEHOLDER_JOB_TITLE: job_title,
        }

    @property
    def available(self) -> bool:
        """Unavailable once the job is deleted."""
        return super().available and self.coordinator.family.get_job(self._job_id) is not None

    @property
    def native_value(self) -> int | None:
        if self.coordinator.family.get_job(self._job_id) is None:
            return None
        return self.coordinator.family.get_current_period_completions(self._job_id)

    @property
    def icon(self) -> str:
        job = self.coordinator.family.get_job(self._job_id)
        if job is not None and job.get(const.DATA_JOB_IS_LOCKED):
            return const.SENSOR_ICON_JOB_LOCKED
        return const.SENSOR_ICON_JOB_OPEN

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        status = self.coordinator.family.get_job_status(self._job_id)
        return dict(status) if status is not None else {}


# ------------------------------------------------------------------------------------------
class SystemPendingApprovalsSensor(FamilyEconomyCoordinatorEntity, SensorEntity):
    """Number of jobs and chores waiting for a parent."""

    _attr_has_entity_name = True
    _attr_translation_key = const.TRANS_KEY_SENSOR_PENDING_APPROVALS
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: FamilyEconomyCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry)
        self._attr_unique_id = f"{entry.entry_id}{const.SENSOR_UID_SUFFIX_PENDING_APPROVALS}"

    @property
    def native_value(self) -> int:
        family = self.coordinator.family
        return len(family.jobs_needing_approval()) + len(family.chores_pending_approval())

    @property
    def icon(self) -> str:
        if self.native_value:
            return const.SENSOR_ICON_PENDING
        return const.SENSOR_ICON_PENDING_NONE

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """List what is waiting and who may approve it."""
        summary = self.coordinator.family.pending_approvals()
        return {
            const.ATTR_PENDING_JOBS: summary["jobs"],
            const.ATTR_PENDING_CHORES: summary["chores"],
            const.ATTR_APPROVERS: summary["approvers"],
        }


# ------------------------------------------------------------------------------------------
class SystemActiveUserSensor(FamilyEconomyCoordinatorEntity, SensorEntity):
    """Name of the family member whose view is selected."""

    _attr_has_entity_name = True
    _attr_translation_key = const.TRANS_KEY_SENSOR_ACTIVE_USER
    _attr_icon = const.SENSOR_ICON_ACTIVE_USER

    def __init__(self, coordinator: FamilyEconomyCoordinator, entry: ConfigEntry) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry)
        self._attr_unique_id = f"{entry.entry_id}{const.SENSOR_UID_SUFFIX_ACTIVE_USER}"

    @property
    def native_value(self) -> str | None:
        user = self.coordinator.family.active_user
        return user.get(const.DATA_NAME) if user is not None else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        user = self.coordinator.family.active_user
        if user is None:
            return {}
        return {
            const.ATTR_USER_ID: user[const.DATA_ID],
            const.ATTR_ROLE: user.get(const.DATA_USER_ROLE),
        }

