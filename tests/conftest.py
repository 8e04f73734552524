from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from taskportal.domain.entities import Actor, EmployeeEntity
from taskportal.domain.enums import ActorRole
from taskportal.services.activity_service import ActivityService
from taskportal.services.employee_service import EmployeeService
from taskportal.services.occurrence_service import OccurrenceService
from taskportal.services.status_service import StatusService
from taskportal.services.task_service import TaskService

from fakes import (
    FakeActivityRepo,
    FakeAdminRepo,
    FakeEmployeeRepo,
    FakeOccurrenceRepo,
    FakeTaskRepo,
)

TODAY = date(2024, 3, 1)


def as_actor(employee: EmployeeEntity) -> Actor:
    return Actor(id=employee.id, role=ActorRole.EMPLOYEE, organization_id=employee.organization_id)


@pytest.fixture()
def portal() -> SimpleNamespace:
    """Services wired to in-memory repositories, with activity recording as a hook."""
    admin_repo = FakeAdminRepo()
    employee_repo = FakeEmployeeRepo()
    occurrence_repo = FakeOccurrenceRepo()
    task_repo = FakeTaskRepo(occurrence_repo)
    activity_repo = FakeActivityRepo()

    activities = ActivityService(activity_repo, admin_repo, employee_repo)
    hooks = [activities.record]
    occurrences = OccurrenceService(occurrence_repo)

    return SimpleNamespace(
        admin_repo=admin_repo,
        employee_repo=employee_repo,
        occurrence_repo=occurrence_repo,
        task_repo=task_repo,
        activity_repo=activity_repo,
        activities=activities,
        occurrences=occurrences,
        tasks=TaskService(task_repo, occurrences, employee_repo, hooks=hooks),
        statuses=StatusService(task_repo, occurrences, hooks=hooks),
        employees=EmployeeService(employee_repo, hooks=hooks),
    )


@pytest.fixture()
def admin(portal: SimpleNamespace) -> Actor:
    record = portal.admin_repo.create_admin(
        {"name": "Ada", "email": "ada@example.com", "password_hash": "x"}
    )
    return Actor(id=record.id, role=ActorRole.ADMIN, organization_id=record.id)


@pytest.fixture()
def other_admin(portal: SimpleNamespace) -> Actor:
    record = portal.admin_repo.create_admin(
        {"name": "Otto", "email": "otto@example.com", "password_hash": "x"}
    )
    return Actor(id=record.id, role=ActorRole.ADMIN, organization_id=record.id)


@pytest.fixture()
def alice(portal: SimpleNamespace, admin: Actor) -> EmployeeEntity:
    return portal.employee_repo.add(admin.organization_id, "Alice")


@pytest.fixture()
def bob(portal: SimpleNamespace, admin: Actor) -> EmployeeEntity:
    return portal.employee_repo.add(admin.organization_id, "Bob")
