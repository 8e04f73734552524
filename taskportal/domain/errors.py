from __future__ import annotations


class TaskPortalError(Exception):
    """Base class for errors surfaced to callers of the service layer."""


class ValidationError(TaskPortalError):
    """A required field is missing or malformed. The message is user-facing."""


class AuthorizationError(TaskPortalError):
    """The actor may not perform the operation.

    The message stays generic so callers cannot tell which check failed.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFoundError(TaskPortalError):
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id
