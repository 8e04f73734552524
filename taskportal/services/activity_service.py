from __future__ import annotations

import logging

from taskportal.domain.entities import ActivityEntity, Actor
from taskportal.domain.enums import ActivityKind, TaskStatus
from taskportal.domain.errors import AuthorizationError
from taskportal.domain.events import (
    EmployeeAdded,
    EmployeeAssigned,
    Event,
    StatusChanged,
    TaskCreated,
    TaskDeleted,
    TaskUpdated,
)
from taskportal.domain.filters import ActivityFilters
from taskportal.infra.repository import ActivityRepository, AdminRepository, EmployeeRepository

logger = logging.getLogger(__name__)

_FIELD_LABELS = {
    "priority": "priority",
    "due_date": "due date",
    "start_date": "start date",
    "end_date": "end date",
    "frequency": "frequency",
}


class ActivityService:
    """Audit feed. ``record`` is registered as a post-commit hook on the other services."""

    def __init__(
        self,
        repo: ActivityRepository,
        admins: AdminRepository,
        employees: EmployeeRepository,
    ) -> None:
        self._repo = repo
        self._admins = admins
        self._employees = employees

    def list_activities(self, actor: Actor, filters: ActivityFilters | None = None) -> list[ActivityEntity]:
        if not actor.is_admin:
            raise AuthorizationError()
        filters = filters or ActivityFilters()
        return self._repo.list_activities(
            ActivityFilters(
                organization_id=actor.organization_id,
                kind=filters.kind,
                employee_id=filters.employee_id,
            )
        )

    def record(self, event: Event) -> ActivityEntity | None:
        try:
            return self._repo.add_activity(self._build(event))
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record activity for %s", type(event).__name__)
            return None

    def _build(self, event: Event) -> dict:
        actor = event.actor
        name = self._actor_label(actor)
        data = {
            "organization_id": actor.organization_id,
            "actor_admin_id": actor.id if actor.is_admin else None,
            "actor_employee_id": None if actor.is_admin else actor.id,
            "details": None,
        }

        if isinstance(event, TaskCreated):
            data.update(
                task_id=event.task.id,
                kind=ActivityKind.CREATED.value,
                summary=f"{name} created task {event.task.name}",
            )
        elif isinstance(event, TaskUpdated):
            data.update(
                task_id=event.task.id,
                kind=ActivityKind.UPDATED.value,
                summary=_update_summary(name, event),
                details={"fields": list(event.fields)},
            )
        elif isinstance(event, TaskDeleted):
            data.update(
                task_id=event.task.id,
                kind=ActivityKind.DELETED.value,
                summary=f"{name} deleted task {event.task.name}",
            )
        elif isinstance(event, EmployeeAdded):
            data.update(
                task_id=None,
                kind=ActivityKind.CREATED.value,
                summary=f"{name} added employee {event.employee.name}",
                details={"employee_id": event.employee.id},
            )
        elif isinstance(event, EmployeeAssigned):
            data.update(
                task_id=event.task.id,
                kind=ActivityKind.UPDATED.value,
                summary=(
                    f"{name} assigned task {event.task.name} "
                    f"to employee {event.employee.name}"
                ),
                details={"assignee_id": event.employee.id},
            )
        elif isinstance(event, StatusChanged):
            data.update(
                task_id=event.task.id,
                kind=ActivityKind.STATUS.value,
                summary=_status_summary(name, event),
                details={"note": event.note} if event.note else None,
            )
        else:
            raise TypeError(f"Unsupported event {event!r}")
        return data

    def _actor_label(self, actor: Actor) -> str:
        role = "Admin" if actor.is_admin else "Employee"
        try:
            if actor.is_admin:
                found = self._admins.get_admin(actor.id)
            else:
                found = self._employees.get_employee(actor.id)
        except Exception:  # noqa: BLE001
            logger.exception("Actor lookup failed for %s %s", actor.role, actor.id)
            found = None
        return f"{role} {found.name}" if found else role


def _update_summary(name: str, event: TaskUpdated) -> str:
    task = event.task
    if len(event.fields) == 1:
        field = event.fields[0]
        if field == "name":
            return f"{name} renamed task to {task.name}"
        if field in _FIELD_LABELS:
            value = getattr(task, field)
            if hasattr(value, "isoformat"):
                value = value.isoformat()
            return f"{name} changed {_FIELD_LABELS[field]} to {value}"
    return f"{name} updated task {task.name}"


def _status_summary(name: str, event: StatusChanged) -> str:
    if event.occurrence is not None:
        seq = event.occurrence.seq
        if event.status == TaskStatus.PENDING_VERIFICATION:
            return f"{name} submitted occurrence #{seq} for verification"
        verb = "approved" if event.status == TaskStatus.COMPLETED else "rejected"
        return f"{name} {verb} occurrence #{seq}"

    if event.previous == TaskStatus.PENDING_VERIFICATION:
        if event.status == TaskStatus.COMPLETED:
            return f"{name} approved task {event.task.name}"
        if event.status == TaskStatus.PENDING:
            return f"{name} rejected task {event.task.name}"
    return f"{name} updated status to {event.status.value}"
