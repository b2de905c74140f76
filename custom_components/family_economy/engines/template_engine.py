"""Template Engine - Pure logic for chore/job prototypes and fan-out.

Templates are unassigned prototypes. Applying one copies its definition fields
into one new, independent instance per target user; each instance keeps a
``template_id`` back-reference but is never updated from the template again.

ARCHITECTURE: Pure logic engine that calls no Home Assistant APIs (const.py
supplies the shared vocabulary, nothing else).
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..data_builders import (
    CHORE_TEMPLATE_FIELDS,
    JOB_TEMPLATE_FIELDS,
    build_chore_template,
    build_job_template,
)
from .chore_engine import ChoreEngine
from .job_engine import JobEngine

if TYPE_CHECKING:
    from ..type_defs import ChoreData, ChoreTemplateData, JobData, JobTemplateData


def _as_user_list(user_ids: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Accept a single id or a sequence of ids; drop empties and duplicates."""
    if user_ids is None:
        return []
    if isinstance(user_ids, str):
        user_ids = [user_ids]
    seen: list[str] = []
    for user_id in user_ids:
        if user_id and user_id not in seen:
            seen.append(user_id)
    return seen


class TemplateEngine:
    """Pure logic engine for templates. All methods are static."""

    @staticmethod
    def create_chore_template(
        data: dict[str, Any], now: datetime | None = None
    ) -> ChoreTemplateData:
        """Create a chore prototype."""
        return build_chore_template(data, now=now)

    @staticmethod
    def create_job_template(
        data: dict[str, Any], now: datetime | None = None
    ) -> JobTemplateData:
        """Create a job prototype."""
        return build_job_template(data, now=now)

    @staticmethod
    def update_chore_template(
        template: ChoreTemplateData, changes: dict[str, Any]
    ) -> ChoreTemplateData:
        """Update a chore prototype. Existing instances are not touched."""
        allowed = {k: v for k, v in changes.items() if k in CHORE_TEMPLATE_FIELDS}
        if not allowed:
            return template
        return build_chore_template(allowed, existing=template)

    @staticmethod
    def update_job_template(
        template: JobTemplateData, changes: dict[str, Any]
    ) -> JobTemplateData:
        """Update a job prototype. Existing instances are not touched."""
        allowed = {k: v for k, v in changes.items() if k in JOB_TEMPLATE_FIELDS}
        if not allowed:
            return template
        return build_job_template(allowed, existing=template)

    @staticmethod
    def update_template(
        template: dict[str, Any], changes: dict[str, Any], kind: str
    ) -> dict[str, Any]:
        """Dispatch to the chore or job update by ``kind``."""
        if kind == const.TEMPLATE_KIND_CHORE:
            return TemplateEngine.update_chore_template(template, changes)  # type: ignore[arg-type,return-value]
        if kind == const.TEMPLATE_KIND_JOB:
            return TemplateEngine.update_job_template(template, changes)  # type: ignore[arg-type,return-value]
        raise ValueError(f"Unknown template kind: {kind}")

    @staticmethod
    def apply_chore_template(
        template: ChoreTemplateData,
        user_ids: str | list[str],
        now: datetime | None = None,
    ) -> list[ChoreData]:
        """Create one chore per user from the template."""
        definition = {
            const.DATA_NAME: template[const.DATA_NAME],  # type: ignore[literal-required]
            const.DATA_ICON: template[const.DATA_ICON],  # type: ignore[literal-required]
            const.DATA_CHORE_POINTS: template[const.DATA_CHORE_POINTS],  # type: ignore[literal-required]
            const.DATA_CHORE_RECURRENCE: template[const.DATA_CHORE_RECURRENCE],  # type: ignore[literal-required]
            const.DATA_TEMPLATE_ID: template[const.DATA_ID],  # type: ignore[literal-required]
        }
        return [
            ChoreEngine.create(definition, user_id=user_id, now=now)
            for user_id in _as_user_list(user_ids)
        ]

    @staticmethod
    def apply_job_template(
        template: JobTemplateData,
        user_ids: str | list[str],
        created_by: str | None,
        chores: list[ChoreData],
        reset_day: int,
        now: datetime | None = None,
    ) -> list[JobData]:
        """Create one job per user from the template with its lock status computed."""
        definition: dict[str, Any] = {
            key: copy.deepcopy(template.get(key))  # type: ignore[misc]
            for key in JOB_TEMPLATE_FIELDS
            if key in template
        }
        definition[const.DATA_TEMPLATE_ID] = template[const.DATA_ID]  # type: ignore[literal-required]
        return [
            JobEngine.create(
                definition,
                chores,
                reset_day,
                user_id=user_id,
                created_by=created_by,
                now=now,
            )
            for user_id in _as_user_list(user_ids)
        ]
