from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskportal.domain.entities import Actor
from taskportal.domain.enums import ActivityKind, ActorRole, TaskStatus
from taskportal.domain.filters import ActivityFilters, TaskFilters
from taskportal.infra import models  # noqa: F401
from taskportal.infra.db import Base
from taskportal.infra.repository import AdminRepository, OccurrenceRepository, TaskRepository
from taskportal.services.auth_service import hash_password
from taskportal.services.portal import build_portal

TODAY = date(2024, 3, 1)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture()
def org(session_factory):
    portal = build_portal(session_factory, jwt_secret="sqlite-test-secret-with-enough-length")
    record = AdminRepository(session_factory).create_admin(
        {"name": "Ada", "email": "ada@example.com", "password_hash": hash_password("admin-pass")}
    )
    admin = Actor(id=record.id, role=ActorRole.ADMIN, organization_id=record.id)

    def hire(name: str):
        employee = portal.employees.add_employee(
            admin,
            {
                "name": name,
                "email": f"{name.lower()}@example.com",
                "contact": "5551234567",
                "password": "password1",
            },
        )
        return employee, Actor(id=employee.id, role=ActorRole.EMPLOYEE, organization_id=admin.id)

    return portal, admin, hire


def _recurring(portal, admin, assignee_ids):
    return portal.tasks.create_task(
        admin,
        {
            "name": "Stock count",
            "description": "Count the shelves",
            "priority": "medium",
            "kind": "recurring",
            "start_date": "2024-03-01",
            "end_date": "2024-06-01",
            "frequency": "monthly",
            "assignee_ids": assignee_ids,
        },
        today=TODAY,
    )


def test_recurring_lifecycle_on_sqlite(session_factory, org) -> None:
    portal, admin, hire = org
    alice, alice_actor = hire("Alice")
    bob, _ = hire("Bobby")

    task = _recurring(portal, admin, [alice.id])
    occurrences = OccurrenceRepository(session_factory).list_for_task(task.id)
    assert [(o.seq, o.due_date) for o in occurrences] == [
        (1, date(2024, 3, 1)),
        (2, date(2024, 4, 1)),
        (3, date(2024, 5, 1)),
        (4, date(2024, 6, 1)),
    ]
    assert all(o.assignee_ids == (alice.id,) for o in occurrences)

    portal.tasks.assign_employee(admin, task.id, bob.id)
    occurrences = OccurrenceRepository(session_factory).list_for_task(task.id)
    assert all(o.assignee_ids == tuple(sorted((alice.id, bob.id))) for o in occurrences)

    visible = portal.occurrences.visible_for_employee(alice.id, today=date(2024, 4, 15))
    assert [o.seq for o in visible] == [1, 2, 3]

    portal.statuses.change_occurrence_status(alice_actor, occurrences[1].id, "pending_verification")
    portal.statuses.change_occurrence_status(alice_actor, occurrences[0].id, "pending_verification")
    assert portal.tasks.get_task(admin, task.id).status == TaskStatus.PENDING_VERIFICATION

    approved = portal.statuses.change_task_status(admin, task.id, "completed")
    statuses = [o.status for o in OccurrenceRepository(session_factory).list_for_task(task.id)]
    assert statuses == [
        TaskStatus.COMPLETED,
        TaskStatus.PENDING_VERIFICATION,
        TaskStatus.PENDING,
        TaskStatus.PENDING,
    ]
    assert approved.status == TaskStatus.PENDING_VERIFICATION

    completed = portal.occurrences.completed_for_employee(alice.id)
    assert [o.seq for o in completed] == [1]

    feed = portal.activities.list_activities(admin, ActivityFilters(kind=ActivityKind.STATUS))
    assert [a.summary for a in feed] == [
        "Admin Ada approved occurrence #1",
        "Employee Alice submitted occurrence #1 for verification",
        "Employee Alice submitted occurrence #2 for verification",
    ]


def test_delete_cascades_occurrences_and_keeps_audit(session_factory, org) -> None:
    portal, admin, hire = org
    alice, _ = hire("Alice")
    task = _recurring(portal, admin, [alice.id])

    portal.tasks.delete_task(admin, task.id)

    assert TaskRepository(session_factory).get_task(task.id) is None
    assert OccurrenceRepository(session_factory).list_for_task(task.id) == []
    assert OccurrenceRepository(session_factory).list_for_employee(alice.id) == []
    kinds = [a.kind for a in portal.activities.list_activities(admin)]
    assert kinds[0] == ActivityKind.DELETED
    assert ActivityKind.CREATED in kinds


def test_stats_and_login_on_sqlite(session_factory, org) -> None:
    portal, admin, hire = org
    alice, alice_actor = hire("Alice")
    _recurring(portal, admin, [alice.id])

    stats = portal.tasks.get_stats(admin, today=date(2024, 4, 15))
    assert stats["total"] == 1
    assert stats["pending"] == 1
    assert stats["overdue"] == 2

    token, actor = portal.auth.login("alice@example.com", "password1")
    assert actor == alice_actor
    assert portal.auth.verify_token(token) == alice_actor


def test_task_and_occurrences_are_written_together(session_factory, org) -> None:
    _, admin, _ = org
    repo = TaskRepository(session_factory)
    row = {
        "organization_id": admin.organization_id,
        "seq": 1,
        "due_date": date(2024, 3, 4),
        "status": "pending",
        "name": "Backups",
        "description": "Check the nightly backups",
        "assignee_ids": [],
    }
    data = {
        "organization_id": admin.organization_id,
        "name": "Backups",
        "description": "Check the nightly backups",
        "priority": "high",
        "kind": "recurring",
        "status": "pending",
        "start_date": date(2024, 3, 4),
        "end_date": date(2024, 3, 11),
        "frequency": "weekly",
    }

    with pytest.raises(IntegrityError):
        repo.create_task(data, occurrence_rows=[row, dict(row)])

    assert repo.list_tasks(TaskFilters(organization_id=admin.organization_id)) == []

    task = repo.create_task(data, occurrence_rows=[row, {**row, "seq": 2, "due_date": date(2024, 3, 11)}])
    occurrences = OccurrenceRepository(session_factory).list_for_task(task.id)
    assert [o.seq for o in occurrences] == [1, 2]


def test_completed_history_orders_by_due_date_on_sqlite(session_factory, org) -> None:
    portal, admin, hire = org
    alice, _ = hire("Alice")
    task = _recurring(portal, admin, [alice.id])
    repo = OccurrenceRepository(session_factory)
    first, second, third, _ = repo.list_for_task(task.id)
    for occurrence in (second, first, third):
        repo.update_status(occurrence.id, TaskStatus.COMPLETED)

    completed = portal.occurrences.completed_for_employee(alice.id)

    assert [o.due_date for o in completed] == [
        date(2024, 5, 1),
        date(2024, 4, 1),
        date(2024, 3, 1),
    ]
