from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .entities import Actor, EmployeeEntity, OccurrenceEntity, TaskEntity
from .enums import TaskStatus


@dataclass(frozen=True)
class TaskCreated:
    actor: Actor
    task: TaskEntity


@dataclass(frozen=True)
class TaskUpdated:
    actor: Actor
    task: TaskEntity
    fields: tuple[str, ...]


@dataclass(frozen=True)
class TaskDeleted:
    actor: Actor
    task: TaskEntity


@dataclass(frozen=True)
class EmployeeAdded:
    actor: Actor
    employee: EmployeeEntity


@dataclass(frozen=True)
class EmployeeAssigned:
    actor: Actor
    task: TaskEntity
    employee: EmployeeEntity


@dataclass(frozen=True)
class StatusChanged:
    actor: Actor
    task: TaskEntity
    previous: TaskStatus
    status: TaskStatus
    occurrence: Optional[OccurrenceEntity] = None
    note: str | None = None


Event = TaskCreated | TaskUpdated | TaskDeleted | EmployeeAdded | EmployeeAssigned | StatusChanged
Hook = Callable[[Event], None]
