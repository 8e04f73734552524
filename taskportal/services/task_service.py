from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable

from taskportal.domain.entities import Actor, TaskEntity, TaskView
from taskportal.domain.enums import Frequency, Priority, TaskKind
from taskportal.domain.errors import AuthorizationError, NotFoundError, ValidationError
from taskportal.domain.events import EmployeeAssigned, Hook, TaskCreated, TaskDeleted, TaskUpdated
from taskportal.domain.filters import TaskFilters
from taskportal.infra.repository import EmployeeRepository, TaskRepository

from .hooks import run_hooks
from .occurrence_service import OccurrenceService, plan_rows

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("start_date", "end_date", "frequency")


class TaskService:
    def __init__(
        self,
        repo: TaskRepository,
        occurrences: OccurrenceService,
        employees: EmployeeRepository,
        hooks: Iterable[Hook] = (),
    ) -> None:
        self._repo = repo
        self._occurrences = occurrences
        self._employees = employees
        self._hooks = list(hooks)

    def list_tasks(self, actor: Actor, filters: TaskFilters | None = None) -> list[TaskEntity]:
        _require_admin(actor)
        filters = filters or TaskFilters()
        return self._repo.list_tasks(
            TaskFilters(
                organization_id=actor.organization_id,
                assignee_id=filters.assignee_id,
                assigned_by_id=filters.assigned_by_id,
                kind=filters.kind,
                status=filters.status,
                search=filters.search,
            )
        )

    def get_task(self, actor: Actor, task_id: int) -> TaskEntity:
        task = self._load(task_id)
        _check_organization(actor, task)
        return task

    def create_task(self, actor: Actor, data: dict, today: date | None = None) -> TaskEntity:
        _require_admin(actor)
        today = today or date.today()
        normalized = self._normalize_new(actor, data, today)

        rows = plan_rows(normalized)
        task = self._repo.create_task(normalized, occurrence_rows=rows)
        logger.info(
            "Task %s created in organization %s with %d occurrences",
            task.id,
            task.organization_id,
            len(rows),
        )
        run_hooks(self._hooks, TaskCreated(actor=actor, task=task))
        return task

    def update_task(
        self, actor: Actor, task_id: int, data: dict, today: date | None = None
    ) -> TaskEntity:
        _require_admin(actor)
        today = today or date.today()
        task = self._load(task_id)
        _check_organization(actor, task)

        updates: dict = {}
        if "name" in data:
            updates["name"] = _required_text(data, "name", "Task name")
        if "description" in data:
            updates["description"] = _required_text(data, "description", "Description")
        if "priority" in data:
            updates["priority"] = _parse_choice(Priority, data["priority"], "Priority").value
        if "kind" in data and _parse_kind(data["kind"]) != task.kind:
            raise ValidationError("Task type cannot be changed")

        if task.kind == TaskKind.ONE_TIME and "due_date" in data:
            due_date = _parse_date(data["due_date"], "Due date")
            if due_date < today:
                raise ValidationError("Due date cannot be in the past")
            updates["due_date"] = due_date
        if task.is_recurring:
            for key in SCHEDULE_FIELDS:
                if key in data and _parse_schedule_value(key, data[key]) != getattr(task, key):
                    raise ValidationError("Schedule of a recurring task cannot be changed")

        added: list[int] = []
        if "assignee_ids" in data:
            assignee_ids = self._validate_assignees(task.organization_id, data["assignee_ids"])
            added = [i for i in assignee_ids if i not in task.assignee_ids]
            updates["assignee_ids"] = assignee_ids

        changed = tuple(
            key
            for key, value in updates.items()
            if (tuple(sorted(value)) if key == "assignee_ids" else value)
            != _current_value(task, key)
        )
        if not changed:
            return task

        updated = self._repo.update_task(task.id, {key: updates[key] for key in changed})
        if updated is None:
            raise NotFoundError("Task", task_id)
        if updated.is_recurring:
            for employee_id in added:
                updated = self._repo.add_assignee(updated.id, employee_id) or updated
        run_hooks(self._hooks, TaskUpdated(actor=actor, task=updated, fields=changed))
        return updated

    def delete_task(self, actor: Actor, task_id: int) -> TaskEntity:
        _require_admin(actor)
        task = self._load(task_id)
        _check_organization(actor, task)
        deleted = self._repo.delete_task(task.id)
        if deleted is None:
            raise NotFoundError("Task", task_id)
        run_hooks(self._hooks, TaskDeleted(actor=actor, task=deleted))
        return deleted

    def assign_employee(self, actor: Actor, task_id: int, employee_id: int) -> TaskEntity:
        task = self._load(task_id)
        _check_organization(actor, task)

        employee = self._employees.get_employee(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if employee.organization_id != task.organization_id:
            raise AuthorizationError()
        if employee.id in task.assignee_ids:
            raise ValidationError("Employee already assigned to this task")

        updated = self._repo.add_assignee(
            task.id,
            employee.id,
            assigned_by_id=None if actor.is_admin else actor.id,
            assigned_by_admin_id=actor.id if actor.is_admin else None,
        )
        if updated is None:
            raise NotFoundError("Task", task_id)
        run_hooks(self._hooks, EmployeeAssigned(actor=actor, task=updated, employee=employee))
        return updated

    def list_for_employee(self, actor: Actor, today: date | None = None) -> list[TaskView]:
        """Open occurrences, one-time tasks, then completed occurrences for an employee."""
        if actor.is_admin:
            raise AuthorizationError()
        visible = self._occurrences.visible_for_employee(actor.id, today)
        completed = self._occurrences.completed_for_employee(actor.id)
        one_time = [
            task
            for task in self._repo.list_tasks(
                TaskFilters(organization_id=actor.organization_id, assignee_id=actor.id)
            )
            if task.kind == TaskKind.ONE_TIME
        ]
        parents = self._load_parents({o.task_id for o in visible + completed})

        views = [TaskView.from_occurrence(o, parents.get(o.task_id)) for o in visible]
        views.extend(TaskView.from_task(task) for task in one_time)
        views.extend(TaskView.from_occurrence(o, parents.get(o.task_id)) for o in completed)
        return views

    def list_assigned_by(self, actor: Actor) -> list[TaskEntity]:
        if actor.is_admin:
            raise AuthorizationError()
        return self._repo.list_tasks(
            TaskFilters(organization_id=actor.organization_id, assigned_by_id=actor.id)
        )

    def get_stats(self, actor: Actor, today: date | None = None) -> dict[str, int]:
        _require_admin(actor)
        return self._repo.get_stats(actor.organization_id, today)

    def _load(self, task_id: int) -> TaskEntity:
        task = self._repo.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def _load_parents(self, task_ids: set[int]) -> dict[int, TaskEntity]:
        parents = {}
        for task_id in task_ids:
            try:
                parent = self._repo.get_task(task_id)
            except Exception:  # noqa: BLE001
                logger.exception("Could not load parent task %s", task_id)
                continue
            if parent is not None:
                parents[task_id] = parent
        return parents

    def _normalize_new(self, actor: Actor, data: dict, today: date) -> dict:
        name = _required_text(data, "name", "Task name")
        description = _required_text(data, "description", "Description")
        if not data.get("priority"):
            raise ValidationError("Priority is required")
        priority = _parse_choice(Priority, data["priority"], "Priority")
        if not data.get("kind"):
            raise ValidationError("Task type is required")
        kind = _parse_kind(data["kind"])

        normalized = {
            "organization_id": actor.organization_id,
            "name": name,
            "description": description,
            "priority": priority.value,
            "kind": kind.value,
            "status": "pending",
        }

        if kind == TaskKind.ONE_TIME:
            if not data.get("due_date"):
                raise ValidationError("Due date is required for one-time tasks")
            due_date = _parse_date(data["due_date"], "Due date")
            if due_date < today:
                raise ValidationError("Due date cannot be in the past")
            normalized["due_date"] = due_date
        else:
            if not data.get("start_date") or not data.get("end_date"):
                raise ValidationError("Start date and end date are required for recurring tasks")
            if not data.get("frequency"):
                raise ValidationError("Frequency is required for recurring tasks")
            frequency = _parse_choice(Frequency, data["frequency"], "Frequency")
            start_date = _parse_date(data["start_date"], "Start date")
            end_date = _parse_date(data["end_date"], "End date")
            if start_date >= end_date:
                raise ValidationError("Start date must be before end date")
            if start_date < today:
                raise ValidationError("Start date cannot be in the past")
            normalized.update(
                start_date=start_date,
                end_date=end_date,
                frequency=frequency.value,
            )

        assignee_ids = self._validate_assignees(actor.organization_id, data.get("assignee_ids"))
        normalized["assignee_ids"] = assignee_ids
        normalized["assigned_by_ids"] = []
        normalized["assigned_by_admin_id"] = actor.id if assignee_ids else None
        return normalized

    def _validate_assignees(self, organization_id: int, raw) -> list[int]:
        if raw is None or raw == "":
            return []
        values = raw if isinstance(raw, (list, tuple, set)) else [raw]
        assignee_ids: list[int] = []
        for value in values:
            try:
                employee_id = int(value)
            except (TypeError, ValueError):
                raise ValidationError("Invalid employee id for assignee") from None
            employee = self._employees.get_employee(employee_id)
            if employee is None:
                raise NotFoundError("Employee", employee_id)
            if employee.organization_id != organization_id:
                raise AuthorizationError()
            if employee_id not in assignee_ids:
                assignee_ids.append(employee_id)
        return assignee_ids


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError()


def _check_organization(actor: Actor, task: TaskEntity) -> None:
    if actor.organization_id != task.organization_id:
        raise AuthorizationError()


def _current_value(task: TaskEntity, key: str):
    value = getattr(task, key)
    if key == "assignee_ids":
        return tuple(sorted(value))
    if hasattr(value, "value"):
        return value.value
    return value


def _required_text(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


def _parse_choice(enum_cls, value, label: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{label} must be one of: {choices}") from None


def _parse_kind(value) -> TaskKind:
    normalized = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return TaskKind(normalized)
    except ValueError:
        raise ValidationError("Task type must be one_time or recurring") from None


def _parse_date(value, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"{label} must be a valid date") from None


def _parse_schedule_value(key: str, value):
    if key == "frequency":
        return _parse_choice(Frequency, value, "Frequency")
    return _parse_date(value, key.replace("_", " ").capitalize())
