from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Optional

from .enums import ActivityKind, ActorRole, Frequency, Priority, TaskKind, TaskStatus


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation, resolved from a verified token."""

    id: int
    role: ActorRole
    organization_id: int

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


@dataclass(frozen=True)
class AdminEntity:
    id: int | None
    name: str
    email: str
    password_hash: str
    created_at: datetime


@dataclass(frozen=True)
class EmployeeEntity:
    id: int | None
    organization_id: int
    name: str
    email: str
    contact: str
    dept: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    organization_id: int
    name: str
    description: str
    kind: TaskKind
    priority: Priority
    status: TaskStatus
    due_date: Optional[date]
    start_date: Optional[date]
    end_date: Optional[date]
    frequency: Frequency | None
    assignee_ids: tuple[int, ...]
    assigned_by_ids: tuple[int, ...]
    assigned_by_admin_id: int | None
    approval_note: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_recurring(self) -> bool:
        return self.kind == TaskKind.RECURRING


@dataclass(frozen=True)
class OccurrenceEntity:
    id: int | None
    task_id: int
    organization_id: int
    seq: int
    due_date: date
    status: TaskStatus
    name: str
    description: str
    assignee_ids: tuple[int, ...]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ActivityEntity:
    id: int | None
    organization_id: int
    task_id: int | None
    kind: ActivityKind
    actor_admin_id: int | None
    actor_employee_id: int | None
    summary: str
    details: dict[str, Any] | None
    created_at: datetime


@dataclass(frozen=True)
class TaskView:
    """A row of an employee's task list: either a one-time task or an occurrence.

    ``kind`` tells the two shapes apart; ``seq`` and ``task_id`` only carry
    meaning for occurrences.
    """

    kind: Literal["task", "occurrence"]
    id: int
    task_id: int
    name: str
    description: str
    task_kind: TaskKind
    priority: Priority
    status: TaskStatus
    due_date: Optional[date]
    assignee_ids: tuple[int, ...] = field(default_factory=tuple)
    seq: int | None = None

    @classmethod
    def from_task(cls, task: TaskEntity) -> "TaskView":
        return cls(
            kind="task",
            id=task.id,
            task_id=task.id,
            name=task.name,
            description=task.description,
            task_kind=task.kind,
            priority=task.priority,
            status=task.status,
            due_date=task.due_date,
            assignee_ids=task.assignee_ids,
        )

    @classmethod
    def from_occurrence(
        cls, occurrence: OccurrenceEntity, parent: TaskEntity | None = None
    ) -> "TaskView":
        return cls(
            kind="occurrence",
            id=occurrence.id,
            task_id=occurrence.task_id,
            name=parent.name if parent else occurrence.name,
            description=parent.description if parent else occurrence.description,
            task_kind=TaskKind.RECURRING,
            priority=parent.priority if parent else Priority.MEDIUM,
            status=occurrence.status,
            due_date=occurrence.due_date,
            assignee_ids=occurrence.assignee_ids,
            seq=occurrence.seq,
        )
