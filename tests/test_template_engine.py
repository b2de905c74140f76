"""Tests for TemplateEngine - prototypes and fan-out to users."""

from __future__ import annotations

import pytest

from custom_components.family_economy import const
from custom_components.family_economy.engines.chore_engine import ChoreEngine
from custom_components.family_economy.engines.template_engine import TemplateEngine

from tests.conftest import WEDNESDAY_AFTERNOON as NOW


@pytest.fixture
def chore_template():
    return TemplateEngine.create_chore_template(
        {
            const.DATA_NAME: "Feed cat",
            const.DATA_CHORE_POINTS: 3,
            const.DATA_CHORE_RECURRENCE: const.RECURRENCE_DAILY,
        },
        now=NOW,
    )


@pytest.fixture
def job_template():
    return TemplateEngine.create_job_template(
        {
            const.DATA_JOB_TITLE: "Mow lawn",
            const.DATA_JOB_VALUE: 1000,
            const.DATA_JOB_RECURRENCE: const.RECURRENCE_WEEKLY,
            const.DATA_JOB_UNLOCK_CONDITIONS: {"daily_chores": 1},
        },
        now=NOW,
    )


class TestTemplates:
    """Prototype creation and updates."""

    def test_chore_template_shape(self, chore_template) -> None:
        assert chore_template["id"].startswith(const.ID_PREFIX_CHORE_TEMPLATE)
        assert "user_id" not in chore_template
        assert "completed" not in chore_template
        assert chore_template["points"] == 3

    def test_job_template_shape(self, job_template) -> None:
        assert job_template["id"].startswith(const.ID_PREFIX_JOB_TEMPLATE)
        assert "completions" not in job_template
        assert job_template["unlock_conditions"] == {
            "daily_chores": 1,
            "weekly_chores": 0,
        }

    def test_update_keeps_identity(self, chore_template) -> None:
        updated = TemplateEngine.update_template(
            chore_template, {const.DATA_CHORE_POINTS: 8}, const.TEMPLATE_KIND_CHORE
        )
        assert updated["id"] == chore_template["id"]
        assert updated["created_at"] == chore_template["created_at"]
        assert updated["points"] == 8

    def test_update_without_fields_is_noop(self, job_template) -> None:
        assert (
            TemplateEngine.update_template(
                job_template, {"user_id": "x"}, const.TEMPLATE_KIND_JOB
            )
            is job_template
        )

    def test_unknown_kind(self, job_template) -> None:
        with pytest.raises(ValueError):
            TemplateEngine.update_template(job_template, {}, "reward")


class TestApply:
    """Fan-out creates independent instances."""

    def test_chore_fan_out(self, chore_template) -> None:
        chores = TemplateEngine.apply_chore_template(
            chore_template, ["user_a", "user_b", "user_a", ""], now=NOW
        )
        assert [c["user_id"] for c in chores] == ["user_a", "user_b"]
        assert len({c["id"] for c in chores}) == 2
        assert all(c["template_id"] == chore_template["id"] for c in chores)
        assert all(c["points"] == 3 for c in chores)

    def test_single_user_id_accepted(self, chore_template) -> None:
        assert len(TemplateEngine.apply_chore_template(chore_template, "user_a", NOW)) == 1

    def test_instances_are_independent(self, chore_template) -> None:
        """Changing one instance or the template leaves the others alone."""
        first, second = TemplateEngine.apply_chore_template(
            chore_template, ["user_a", "user_b"], now=NOW
        )
        ChoreEngine.apply_update(first, {const.DATA_CHORE_POINTS: 99})
        TemplateEngine.update_chore_template(chore_template, {const.DATA_CHORE_POINTS: 50})
        assert second["points"] == 3

    def test_job_fan_out_computes_lock(self, job_template) -> None:
        jobs = TemplateEngine.apply_job_template(
            job_template, ["user_a", "user_b"], "user_mom", [], 0, now=NOW
        )
        assert len(jobs) == 2
        for job in jobs:
            assert job["template_id"] == job_template["id"]
            assert job["created_by"] == "user_mom"
            assert job["value"] == 1000
            assert job["is_locked"] is True
            assert job["completions"] == []
        assert jobs[0]["unlock_conditions"] is not jobs[1]["unlock_conditions"]

    def test_empty_targets(self, job_template) -> None:
        assert TemplateEngine.apply_job_template(job_template, [], None, [], 0) == []
