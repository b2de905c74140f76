"""Tests for data_builders - validation, entity building and snapshot normalization.

Test Categories:
- validate_*_data: error dicts keyed by field
- build_*: defaults on create, preserved runtime fields on update
- normalize_snapshot: corrupt or partial payloads
"""

from __future__ import annotations

import pytest

from custom_components.family_economy import const
from custom_components.family_economy.data_builders import (
    EntityValidationError,
    build_chore,
    build_default_state,
    build_job,
    build_unlock_conditions,
    build_user,
    normalize_snapshot,
    validate_chore_data,
    validate_job_data,
    validate_settings,
    validate_user_data,
)

from tests.conftest import WEDNESDAY_AFTERNOON as NOW

# =============================================================================
# VALIDATION
# =============================================================================


class TestValidation:
    """validate_* returns {field: translation_key}."""

    def test_user_requires_name(self) -> None:
        assert validate_user_data({}) == {const.DATA_NAME: const.TRANS_KEY_INVALID_NAME}
        assert validate_user_data({const.DATA_NAME: "Alex"}) == {}

    def test_user_role(self) -> None:
        errors = validate_user_data({const.DATA_NAME: "Alex", const.DATA_USER_ROLE: "pet"})
        assert errors == {const.DATA_USER_ROLE: const.TRANS_KEY_INVALID_ROLE}

    def test_chore_partial_update_is_valid(self) -> None:
        """Only fields that are present are checked."""
        assert validate_chore_data({const.DATA_CHORE_POINTS: 3}) == {}

    def test_chore_errors(self) -> None:
        errors = validate_chore_data(
            {
                const.DATA_NAME: "",
                const.DATA_CHORE_POINTS: -1,
                const.DATA_CHORE_RECURRENCE: "monthly",
            }
        )
        assert errors == {
            const.DATA_NAME: const.TRANS_KEY_INVALID_NAME,
            const.DATA_CHORE_POINTS: const.TRANS_KEY_INVALID_POINTS,
            const.DATA_CHORE_RECURRENCE: const.TRANS_KEY_INVALID_RECURRENCE,
        }

    def test_job_errors(self) -> None:
        errors = validate_job_data(
            {
                const.DATA_JOB_VALUE: 1.5,
                const.DATA_JOB_UNLOCK_CONDITIONS: {"daily_chores": -2},
                const.DATA_JOB_MAX_COMPLETIONS: 0,
            }
        )
        assert errors == {
            const.DATA_JOB_VALUE: const.TRANS_KEY_INVALID_VALUE,
            const.DATA_JOB_UNLOCK_CONDITIONS: const.TRANS_KEY_INVALID_UNLOCK_CONDITIONS,
            const.DATA_JOB_MAX_COMPLETIONS: const.TRANS_KEY_INVALID_MAX_COMPLETIONS,
        }

    @pytest.mark.parametrize(
        ("day", "valid"), [(0, True), (6, True), (7, False), (-1, False), (True, False), ("1", False)]
    )
    def test_settings_reset_day(self, day, valid) -> None:
        errors = validate_settings({const.DATA_SETTINGS_WEEKLY_RESET_DAY: day})
        assert (not errors) is valid


# =============================================================================
# BUILDERS
# =============================================================================


class TestBuilders:
    """Create defaults and update preservation."""

    def test_build_user_defaults(self) -> None:
        child = build_user({const.DATA_NAME: " Alex "}, now=NOW)
        assert child["name"] == "Alex"
        assert child["role"] == const.ROLE_CHILD
        assert child["avatar"] == const.DEFAULT_CHILD_AVATAR
        assert child["cash_balance"] == 0
        assert child["pending_balance"] == 0
        assert child["created_at"] == NOW.isoformat()

        parent = build_user({const.DATA_NAME: "Mom", const.DATA_USER_ROLE: const.ROLE_PARENT})
        assert parent["avatar"] == const.DEFAULT_PARENT_AVATAR

    def test_build_user_update_keeps_balances(self) -> None:
        user = build_user({const.DATA_NAME: "Alex"}, now=NOW)
        user["cash_balance"] = 700
        renamed = build_user({const.DATA_NAME: "Alexandra"}, existing=user)
        assert renamed["id"] == user["id"]
        assert renamed["cash_balance"] == 700

    def test_build_user_rejects_blank_rename(self) -> None:
        user = build_user({const.DATA_NAME: "Alex"}, now=NOW)
        with pytest.raises(EntityValidationError) as err:
            build_user({const.DATA_NAME: ""}, existing=user)
        assert err.value.field == const.DATA_NAME

    def test_build_chore_accepts_whole_float_points(self) -> None:
        chore = build_chore({const.DATA_NAME: "Dishes", const.DATA_CHORE_POINTS: 4.0})
        assert chore["points"] == 4

    def test_unlock_conditions(self) -> None:
        assert build_unlock_conditions(None) == {"daily_chores": 0, "weekly_chores": 0}
        assert build_unlock_conditions(
            {"daily_chores": 2, "require_all_chores": True}
        ) == {"daily_chores": 2, "weekly_chores": 0, "require_all_chores": True}

    def test_build_job_defaults(self) -> None:
        job = build_job({const.DATA_JOB_TITLE: "Rake leaves"}, user_id="user_a", now=NOW)
        assert job["value"] == const.DEFAULT_JOB_VALUE
        assert job["requires_approval"] is True
        assert job["max_completions_per_period"] is None
        assert job["last_reset"] == NOW.isoformat()

    def test_build_job_blank_max_means_unlimited(self) -> None:
        job = build_job({const.DATA_JOB_TITLE: "Rake", const.DATA_JOB_MAX_COMPLETIONS: ""})
        assert job["max_completions_per_period"] is None


# =============================================================================
# SNAPSHOT NORMALIZATION
# =============================================================================


class TestNormalizeSnapshot:
    """Loaded payloads are coerced into a well-formed state."""

    @pytest.mark.parametrize("payload", [None, [], "garbage", 3])
    def test_non_dict_is_absent(self, payload) -> None:
        assert normalize_snapshot(payload) is None

    def test_empty_dict_gives_defaults(self) -> None:
        assert normalize_snapshot({}) == build_default_state()

    def test_bad_collections_and_entities_dropped(self) -> None:
        state = normalize_snapshot(
            {
                "users": "not a list",
                "chores": [{"id": "chore_1"}, "junk", 5],
                "jobs": [{"id": "job_1", "completions": None, "unlock_conditions": []}],
            }
        )
        assert state["users"] == []
        assert state["chores"] == [{"id": "chore_1"}]
        assert state["jobs"][0]["completions"] == []
        assert state["jobs"][0]["unlock_conditions"] == {}

    def test_entities_without_string_id_dropped(self) -> None:
        state = normalize_snapshot(
            {
                "users": [{"id": "user_1"}, {"name": "No id"}, {"id": 7}, {"id": ""}],
                "jobs": [
                    {
                        "id": "job_1",
                        "completions": [{"id": "completion_1"}, {"count": 2}],
                    }
                ],
                "transactions": [{"type": "earn", "amount": 100}],
            }
        )
        assert state["users"] == [{"id": "user_1"}]
        assert state["jobs"][0]["completions"] == [{"id": "completion_1"}]
        assert state["transactions"] == [{"type": "earn", "amount": 100}]

    def test_settings_merged_field_by_field(self) -> None:
        state = normalize_snapshot(
            {"settings": {"weekly_reset_day": 9, "require_approval_for_jobs": False, "x": 1}}
        )
        assert state["settings"]["weekly_reset_day"] == const.DEFAULT_WEEKLY_RESET_DAY
        assert state["settings"]["require_approval_for_jobs"] is False
        assert "x" not in state["settings"]

    def test_password_and_active_user(self) -> None:
        state = normalize_snapshot(
            {"parent_password": [0, 1, 2, 3], "active_user_id": "user_a"}
        )
        assert state["parent_password"] == [0, 1, 2, 3]
        assert state["active_user_id"] == "user_a"

        corrupt = normalize_snapshot({"parent_password": "1234", "active_user_id": 7})
        assert corrupt["parent_password"] is None
        assert corrupt["active_user_id"] is None
