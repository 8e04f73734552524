from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from taskportal.domain.enums import ActivityKind
from taskportal.domain.errors import AuthorizationError, NotFoundError, ValidationError

from conftest import as_actor

VALID = {
    "name": "Grace",
    "email": "Grace@Example.com",
    "contact": "+1 555 123 4567",
    "password": "s3cret!",
    "dept": "Ops",
}


def test_add_employee_hashes_password_and_records_activity(portal, admin) -> None:
    employee = portal.employees.add_employee(admin, VALID)

    assert employee.organization_id == admin.organization_id
    assert employee.email == "grace@example.com"
    assert employee.password_hash != "s3cret!"
    assert check_password_hash(employee.password_hash, "s3cret!")
    activity = portal.activity_repo.activities[-1]
    assert activity.kind == ActivityKind.CREATED
    assert activity.task_id is None
    assert activity.summary == "Admin Ada added employee Grace"


@pytest.mark.parametrize(
    ("field", "value", "message"),
    [
        ("name", "Al", "Name must be at least 3 characters"),
        ("email", "not-an-email", "Invalid email address"),
        ("contact", "call me", "Invalid contact number"),
        ("password", "123", "Password must be at least 6 characters"),
    ],
)
def test_add_employee_validates_fields(portal, admin, field, value, message) -> None:
    with pytest.raises(ValidationError, match=message):
        portal.employees.add_employee(admin, {**VALID, field: value})


def test_duplicate_email_is_rejected(portal, admin) -> None:
    portal.employees.add_employee(admin, VALID)

    with pytest.raises(ValidationError, match="Email already exists"):
        portal.employees.add_employee(admin, {**VALID, "name": "Grace Two"})


def test_update_search_and_delete(portal, admin, alice) -> None:
    updated = portal.employees.update_employee(admin, alice.id, {"dept": "Finance"})
    assert updated.dept == "Finance"

    assert [e.id for e in portal.employees.search_employees(admin, "fin")] == [alice.id]
    assert [e.id for e in portal.employees.list_employees(admin)] == [alice.id]

    deleted = portal.employees.delete_employee(admin, alice.id)
    assert deleted.id == alice.id
    with pytest.raises(NotFoundError):
        portal.employees.delete_employee(admin, alice.id)


def test_other_organization_cannot_manage_employee(portal, other_admin, alice) -> None:
    with pytest.raises(AuthorizationError):
        portal.employees.update_employee(other_admin, alice.id, {"dept": "Sales"})
    with pytest.raises(AuthorizationError):
        portal.employees.list_employees(as_actor(alice))
