from __future__ import annotations

import re
from typing import Iterable

from taskportal.domain.entities import Actor, EmployeeEntity
from taskportal.domain.errors import AuthorizationError, NotFoundError, ValidationError
from taskportal.domain.events import EmployeeAdded, Hook
from taskportal.infra.repository import EmployeeRepository

from .auth_service import hash_password
from .hooks import run_hooks

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CONTACT_RE = re.compile(r"^\+?[0-9][0-9 \-]{5,18}[0-9]$")


class EmployeeService:
    def __init__(self, repo: EmployeeRepository, hooks: Iterable[Hook] = ()) -> None:
        self._repo = repo
        self._hooks = list(hooks)

    def list_employees(self, actor: Actor) -> list[EmployeeEntity]:
        _require_admin(actor)
        return self._repo.list_employees(actor.organization_id)

    def search_employees(self, actor: Actor, text: str) -> list[EmployeeEntity]:
        _require_admin(actor)
        return self._repo.list_employees(actor.organization_id, search=(text or "").strip() or None)

    def add_employee(self, actor: Actor, data: dict) -> EmployeeEntity:
        _require_admin(actor)
        name = _validate_name(data.get("name"))
        email = _validate_email(data.get("email"))
        contact = _validate_contact(data.get("contact"))
        password = _validate_password(data.get("password"))
        if self._repo.get_by_email(email):
            raise ValidationError("Email already exists")

        employee = self._repo.create_employee(
            {
                "organization_id": actor.organization_id,
                "name": name,
                "email": email,
                "contact": contact,
                "dept": str(data.get("dept") or "").strip(),
                "password_hash": hash_password(password),
            }
        )
        run_hooks(self._hooks, EmployeeAdded(actor=actor, employee=employee))
        return employee

    def update_employee(self, actor: Actor, employee_id: int, data: dict) -> EmployeeEntity:
        employee = self._load_owned(actor, employee_id)

        updates: dict = {}
        if data.get("name") is not None:
            updates["name"] = _validate_name(data["name"])
        if data.get("email") is not None:
            email = _validate_email(data["email"])
            existing = self._repo.get_by_email(email)
            if existing and existing.id != employee.id:
                raise ValidationError("Email already exists")
            updates["email"] = email
        if data.get("contact") is not None:
            updates["contact"] = _validate_contact(data["contact"])
        if data.get("password"):
            updates["password_hash"] = hash_password(_validate_password(data["password"]))
        if data.get("dept") is not None:
            updates["dept"] = str(data["dept"]).strip()

        if not updates:
            return employee
        updated = self._repo.update_employee(employee.id, updates)
        if updated is None:
            raise NotFoundError("Employee", employee_id)
        return updated

    def delete_employee(self, actor: Actor, employee_id: int) -> EmployeeEntity:
        employee = self._load_owned(actor, employee_id)
        deleted = self._repo.delete_employee(employee.id)
        if deleted is None:
            raise NotFoundError("Employee", employee_id)
        return deleted

    def _load_owned(self, actor: Actor, employee_id: int) -> EmployeeEntity:
        _require_admin(actor)
        employee = self._repo.get_employee(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if employee.organization_id != actor.organization_id:
            raise AuthorizationError()
        return employee


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError()


def _validate_name(value) -> str:
    name = str(value or "").strip()
    if len(name) < 3:
        raise ValidationError("Name must be at least 3 characters")
    return name


def _validate_email(value) -> str:
    email = str(value or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    return email


def _validate_contact(value) -> str:
    contact = str(value or "").strip()
    if not CONTACT_RE.match(contact):
        raise ValidationError("Invalid contact number")
    return contact


def _validate_password(value) -> str:
    password = str(value or "")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    return password
