from __future__ import annotations

from dataclasses import dataclass

from .enums import ActivityKind, TaskKind, TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    organization_id: int | None = None
    assignee_id: int | None = None
    assigned_by_id: int | None = None
    kind: TaskKind | None = None
    status: TaskStatus | None = None
    search: str | None = None


@dataclass(frozen=True)
class ActivityFilters:
    organization_id: int | None = None
    kind: ActivityKind | None = None
    employee_id: int | None = None
