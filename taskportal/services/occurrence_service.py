from __future__ import annotations

import logging
from datetime import date

from taskportal.domain.entities import OccurrenceEntity, TaskEntity
from taskportal.domain.enums import TaskKind, TaskStatus
from taskportal.domain.recurrence import generate_occurrences
from taskportal.domain.workflow import visible_occurrences
from taskportal.infra.repository import OccurrenceRepository

logger = logging.getLogger(__name__)


def plan_rows(task: dict) -> list[dict]:
    """Occurrence rows for a recurring task payload, empty when there is nothing to schedule."""
    if task.get("kind") != TaskKind.RECURRING.value:
        return []
    if not task.get("start_date") or not task.get("end_date") or not task.get("frequency"):
        return []

    due_dates = generate_occurrences(task["start_date"], task["end_date"], task["frequency"])
    return [
        {
            "organization_id": task["organization_id"],
            "seq": seq,
            "due_date": due_date,
            "status": TaskStatus.PENDING.value,
            "name": task["name"],
            "description": task["description"],
            "assignee_ids": list(task.get("assignee_ids") or ()),
        }
        for seq, due_date in enumerate(due_dates, start=1)
    ]


class OccurrenceService:
    def __init__(self, repo: OccurrenceRepository) -> None:
        self._repo = repo

    def materialize(self, task: TaskEntity) -> list[OccurrenceEntity]:
        rows = plan_rows(
            {
                "organization_id": task.organization_id,
                "kind": task.kind.value,
                "name": task.name,
                "description": task.description,
                "start_date": task.start_date,
                "end_date": task.end_date,
                "frequency": task.frequency.value if task.frequency else None,
                "assignee_ids": task.assignee_ids,
            }
        )
        if not rows:
            return []
        created = self._repo.create_occurrences(task.id, rows)
        logger.info("Created %d occurrences for task %s", len(created), task.id)
        return created

    def get_occurrence(self, occurrence_id: int) -> OccurrenceEntity | None:
        return self._repo.get_occurrence(occurrence_id)

    def list_for_task(self, task_id: int) -> list[OccurrenceEntity]:
        return self._repo.list_for_task(task_id)

    def visible_for_employee(self, employee_id: int, today: date | None = None) -> list[OccurrenceEntity]:
        occurrences = self._repo.list_for_employee(employee_id)
        return visible_occurrences(occurrences, today or date.today())

    def completed_for_employee(self, employee_id: int) -> list[OccurrenceEntity]:
        return self._repo.list_for_employee(
            employee_id, status=TaskStatus.COMPLETED, newest_first=True
        )

    def update_status(self, occurrence_id: int, status: TaskStatus) -> OccurrenceEntity | None:
        return self._repo.update_status(occurrence_id, status)
