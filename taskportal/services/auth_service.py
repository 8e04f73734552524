from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from taskportal.config import SETTINGS
from taskportal.domain.entities import Actor
from taskportal.domain.enums import ActorRole
from taskportal.domain.errors import AuthorizationError
from taskportal.infra.repository import AdminRepository, EmployeeRepository

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def check_password(password_hash: str, password: str) -> bool:
    if not password_hash or not password:
        return False
    return check_password_hash(password_hash, password)


class AuthService:
    def __init__(
        self,
        admins: AdminRepository,
        employees: EmployeeRepository,
        secret: str | None = None,
        algorithm: str | None = None,
        token_ttl_minutes: int | None = None,
    ) -> None:
        self._admins = admins
        self._employees = employees
        self._secret = SETTINGS.jwt_secret if secret is None else secret
        self._algorithm = algorithm or SETTINGS.jwt_algorithm
        self._ttl = timedelta(minutes=token_ttl_minutes or SETTINGS.token_ttl_minutes)

    def login(self, email: str, password: str) -> tuple[str, Actor]:
        email = (email or "").strip().lower()
        employee = self._employees.get_by_email(email)
        if employee and check_password(employee.password_hash, password):
            actor = Actor(id=employee.id, role=ActorRole.EMPLOYEE, organization_id=employee.organization_id)
            return self.issue_token(actor), actor

        admin = self._admins.get_by_email(email)
        if admin and check_password(admin.password_hash, password):
            actor = Actor(id=admin.id, role=ActorRole.ADMIN, organization_id=admin.id)
            return self.issue_token(actor), actor

        logger.info("Rejected login for %s", email)
        raise AuthorizationError("Invalid email or password")

    def issue_token(self, actor: Actor) -> str:
        if not self._secret:
            raise RuntimeError("JWT_SECRET is not set. Add it to your .env file.")
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(actor.id),
            "role": actor.role.value,
            "org": actor.organization_id,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> Actor:
        """Decode a token and resolve the actor it was issued for.

        The organization always comes from the stored account, never from the
        token claims, so moved or deleted accounts lose access immediately.
        """
        if not self._secret:
            raise RuntimeError("JWT_SECRET is not set. Add it to your .env file.")
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthorizationError("Token expired") from None
        except jwt.InvalidTokenError:
            raise AuthorizationError("Invalid token") from None

        try:
            subject_id = int(payload.get("sub"))
            role = ActorRole(payload.get("role"))
        except (TypeError, ValueError):
            raise AuthorizationError("Invalid token") from None

        if role == ActorRole.ADMIN:
            admin = self._admins.get_admin(subject_id)
            if admin is None:
                raise AuthorizationError("Invalid token")
            return Actor(id=admin.id, role=role, organization_id=admin.id)

        employee = self._employees.get_employee(subject_id)
        if employee is None:
            raise AuthorizationError("Invalid token")
        return Actor(id=employee.id, role=role, organization_id=employee.organization_id)
