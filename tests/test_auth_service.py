from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskportal.domain.entities import Actor
from taskportal.domain.enums import ActorRole
from taskportal.domain.errors import AuthorizationError
from taskportal.services.auth_service import AuthService, check_password, hash_password

SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.fixture()
def auth(portal) -> AuthService:
    return AuthService(portal.admin_repo, portal.employee_repo, secret=SECRET, token_ttl_minutes=5)


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("hunter22")

    assert hashed != "hunter22"
    assert check_password(hashed, "hunter22")
    assert not check_password(hashed, "hunter23")
    assert not check_password("", "hunter22")


def test_admin_login_issues_verifiable_token(portal, auth) -> None:
    admin = portal.admin_repo.create_admin(
        {"name": "Root", "email": "root@example.com", "password_hash": hash_password("admin-pass")}
    )

    token, actor = auth.login(" Root@Example.com ", "admin-pass")

    assert actor == Actor(id=admin.id, role=ActorRole.ADMIN, organization_id=admin.id)
    assert auth.verify_token(token) == actor


def test_employee_token_resolves_organization_from_account(portal, auth, admin) -> None:
    employee = portal.employee_repo.create_employee(
        {
            "organization_id": admin.organization_id,
            "name": "Eve",
            "email": "eve@example.com",
            "password_hash": hash_password("eve-pass"),
        }
    )

    token, actor = auth.login("eve@example.com", "eve-pass")

    assert actor.role == ActorRole.EMPLOYEE
    assert auth.verify_token(token).organization_id == employee.organization_id


def test_wrong_password_is_rejected(portal, auth) -> None:
    portal.admin_repo.create_admin(
        {"name": "Root", "email": "root@example.com", "password_hash": hash_password("admin-pass")}
    )

    with pytest.raises(AuthorizationError, match="Invalid email or password"):
        auth.login("root@example.com", "guess")


def test_tampered_expired_and_orphaned_tokens_fail(portal, auth, admin) -> None:
    actor = Actor(id=admin.id, role=ActorRole.ADMIN, organization_id=admin.id)
    expired = jwt.encode(
        {
            "sub": str(admin.id),
            "role": "admin",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        SECRET,
        algorithm="HS256",
    )
    foreign = jwt.encode({"sub": str(admin.id), "role": "admin"}, "other-secret-of-enough-length!!", algorithm="HS256")
    orphan = auth.issue_token(Actor(id=999, role=ActorRole.EMPLOYEE, organization_id=admin.id))

    with pytest.raises(AuthorizationError, match="Token expired"):
        auth.verify_token(expired)
    with pytest.raises(AuthorizationError, match="Invalid token"):
        auth.verify_token(foreign)
    with pytest.raises(AuthorizationError, match="Invalid token"):
        auth.verify_token(orphan)
    assert auth.verify_token(auth.issue_token(actor)) == actor


def test_missing_secret_is_a_configuration_error(portal) -> None:
    auth = AuthService(portal.admin_repo, portal.employee_repo, secret="")

    with pytest.raises(RuntimeError):
        auth.issue_token(Actor(id=1, role=ActorRole.ADMIN, organization_id=1))
