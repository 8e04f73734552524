from __future__ import annotations

import logging
from typing import Iterable

from taskportal.domain.entities import Actor, OccurrenceEntity, TaskEntity, TaskView
from taskportal.domain.enums import TaskStatus
from taskportal.domain.errors import AuthorizationError, NotFoundError, ValidationError
from taskportal.domain.events import Hook, StatusChanged
from taskportal.domain.workflow import (
    ADMIN_TARGETS,
    admin_transition,
    employee_transition,
    next_for_review,
    parse_status,
    rollup_status,
)
from taskportal.infra.repository import TaskRepository

from .hooks import run_hooks
from .occurrence_service import OccurrenceService

logger = logging.getLogger(__name__)


class StatusService:
    """Verification workflow for tasks and occurrences.

    Employees submit (pending -> pending_verification); admins approve or reject.
    Every occurrence change is rolled up into the parent task's status before
    the post-commit hooks run.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        occurrences: OccurrenceService,
        hooks: Iterable[Hook] = (),
    ) -> None:
        self._tasks = tasks
        self._occurrences = occurrences
        self._hooks = list(hooks)

    def change_task_status(
        self, actor: Actor, task_id: int, status: str | TaskStatus, note: str | None = None
    ) -> TaskEntity:
        target = parse_status(status)
        task = self._load_task(task_id)
        if actor.organization_id != task.organization_id:
            raise AuthorizationError()

        if actor.is_admin:
            return self._review_task(actor, task, target, note)

        if task.is_recurring:
            raise ValidationError("Recurring tasks are updated through their occurrences")
        if actor.id not in task.assignee_ids:
            raise AuthorizationError()
        employee_transition(task.status, target)
        return self._set_task_status(actor, task, target, None)

    def change_occurrence_status(
        self, actor: Actor, occurrence_id: int, status: str | TaskStatus, note: str | None = None
    ) -> TaskView:
        target = parse_status(status)
        occurrence = self._occurrences.get_occurrence(occurrence_id)
        if occurrence is None:
            raise NotFoundError("Occurrence", occurrence_id)
        task = self._load_task(occurrence.task_id)
        if actor.organization_id != task.organization_id:
            raise AuthorizationError()

        if actor.is_admin:
            admin_transition(occurrence.status, target)
        else:
            if actor.id not in occurrence.assignee_ids:
                raise AuthorizationError()
            employee_transition(occurrence.status, target)
            note = None

        changed, parent = self._set_occurrence_status(actor, task, occurrence, target, note)
        return TaskView.from_occurrence(changed, parent)

    def _review_task(
        self, actor: Actor, task: TaskEntity, target: TaskStatus, note: str | None
    ) -> TaskEntity:
        if target not in ADMIN_TARGETS:
            raise ValidationError("Status must be completed or pending")

        if not task.is_recurring:
            admin_transition(task.status, target)
            return self._set_task_status(actor, task, target, note)

        # Review queue is first in, first out by sequence.
        occurrence = next_for_review(self._occurrences.list_for_task(task.id))
        if occurrence is None:
            return task
        _, parent = self._set_occurrence_status(actor, task, occurrence, target, note)
        return parent

    def _set_task_status(
        self, actor: Actor, task: TaskEntity, target: TaskStatus, note: str | None
    ) -> TaskEntity:
        values = {"status": target.value}
        if note:
            values["approval_note"] = note
        updated = self._tasks.update_task(task.id, values)
        if updated is None:
            raise NotFoundError("Task", task.id)
        run_hooks(
            self._hooks,
            StatusChanged(actor=actor, task=updated, previous=task.status, status=target, note=note),
        )
        return updated

    def _set_occurrence_status(
        self,
        actor: Actor,
        task: TaskEntity,
        occurrence: OccurrenceEntity,
        target: TaskStatus,
        note: str | None,
    ) -> tuple[OccurrenceEntity, TaskEntity]:
        changed = self._occurrences.update_status(occurrence.id, target)
        if changed is None:
            raise NotFoundError("Occurrence", occurrence.id)

        siblings = self._occurrences.list_for_task(task.id)
        values = {"status": rollup_status(o.status for o in siblings).value}
        if note:
            values["approval_note"] = note
        parent = self._tasks.update_task(task.id, values)
        if parent is None:
            raise NotFoundError("Task", task.id)
        logger.info(
            "Occurrence %s of task %s moved to %s; task is now %s",
            changed.id,
            task.id,
            target.value,
            parent.status.value,
        )

        run_hooks(
            self._hooks,
            StatusChanged(
                actor=actor,
                task=parent,
                previous=occurrence.status,
                status=target,
                occurrence=changed,
                note=note,
            ),
        )
        return changed, parent

    def _load_task(self, task_id: int) -> TaskEntity:
        task = self._tasks.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task
