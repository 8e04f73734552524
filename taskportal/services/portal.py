from __future__ import annotations

from dataclasses import dataclass

from taskportal.infra.db import SessionLocal
from taskportal.infra.repository import (
    ActivityRepository,
    AdminRepository,
    EmployeeRepository,
    OccurrenceRepository,
    TaskRepository,
)

from .activity_service import ActivityService
from .auth_service import AuthService
from .employee_service import EmployeeService
from .occurrence_service import OccurrenceService
from .status_service import StatusService
from .task_service import TaskService


@dataclass(frozen=True)
class Portal:
    tasks: TaskService
    statuses: StatusService
    occurrences: OccurrenceService
    employees: EmployeeService
    activities: ActivityService
    auth: AuthService


def build_portal(session_factory=SessionLocal, jwt_secret: str | None = None) -> Portal:
    task_repo = TaskRepository(session_factory)
    employee_repo = EmployeeRepository(session_factory)
    admin_repo = AdminRepository(session_factory)

    activities = ActivityService(ActivityRepository(session_factory), admin_repo, employee_repo)
    hooks = [activities.record]

    occurrences = OccurrenceService(OccurrenceRepository(session_factory))
    return Portal(
        tasks=TaskService(task_repo, occurrences, employee_repo, hooks=hooks),
        statuses=StatusService(task_repo, occurrences, hooks=hooks),
        occurrences=occurrences,
        employees=EmployeeService(employee_repo, hooks=hooks),
        activities=activities,
        auth=AuthService(admin_repo, employee_repo, secret=jwt_secret),
    )
