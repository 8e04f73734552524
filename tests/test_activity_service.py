from __future__ import annotations

from datetime import date

import pytest

from taskportal.domain.enums import ActivityKind
from taskportal.domain.errors import AuthorizationError
from taskportal.domain.events import TaskCreated
from taskportal.domain.filters import ActivityFilters
from taskportal.services.hooks import run_hooks

from conftest import TODAY, as_actor


def _create(portal, admin, name: str, assignee_ids=()):
    return portal.tasks.create_task(
        admin,
        {
            "name": name,
            "description": "desc",
            "priority": "medium",
            "kind": "one_time",
            "due_date": date(2024, 4, 1),
            "assignee_ids": list(assignee_ids),
        },
        today=TODAY,
    )


def test_feed_is_filtered_by_kind_and_employee(portal, admin, alice, bob) -> None:
    task = _create(portal, admin, "Inventory", [alice.id, bob.id])
    portal.statuses.change_task_status(as_actor(alice), task.id, "pending_verification")
    portal.statuses.change_task_status(admin, task.id, "pending")
    portal.statuses.change_task_status(as_actor(bob), task.id, "pending_verification")

    everything = portal.activities.list_activities(admin)
    status_only = portal.activities.list_activities(admin, ActivityFilters(kind=ActivityKind.STATUS))
    by_alice = portal.activities.list_activities(admin, ActivityFilters(employee_id=alice.id))

    assert [a.kind for a in everything] == [
        ActivityKind.STATUS,
        ActivityKind.STATUS,
        ActivityKind.STATUS,
        ActivityKind.CREATED,
    ]
    assert len(status_only) == 3
    assert [a.summary for a in by_alice] == ["Employee Alice updated status to pending_verification"]


def test_feed_is_scoped_to_organization(portal, admin, other_admin) -> None:
    _create(portal, admin, "Mine")
    _create(portal, other_admin, "Theirs")

    summaries = [a.summary for a in portal.activities.list_activities(other_admin)]

    assert summaries == ["Admin Otto created task Theirs"]


def test_feed_is_admin_only(portal, alice) -> None:
    with pytest.raises(AuthorizationError):
        portal.activities.list_activities(as_actor(alice))


def test_unknown_actor_falls_back_to_role_label(portal, admin) -> None:
    portal.admin_repo.admins.clear()

    task = _create(portal, admin, "Orphan")

    assert portal.activity_repo.activities[-1].summary == "Admin created task Orphan"
    assert portal.activity_repo.activities[-1].task_id == task.id


def test_failing_hook_does_not_stop_the_others(portal, admin) -> None:
    seen = []

    def broken(event) -> None:
        raise RuntimeError("boom")

    task = _create(portal, admin, "Hooked")
    run_hooks([broken, seen.append], TaskCreated(actor=admin, task=task))

    assert len(seen) == 1


def test_record_returns_none_when_store_fails(portal, admin) -> None:
    task = _create(portal, admin, "Lost")
    portal.activity_repo.fail = True

    assert portal.activities.record(TaskCreated(actor=admin, task=task)) is None
