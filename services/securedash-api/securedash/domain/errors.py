"""Domain error taxonomy translated into HTTP responses at the API boundary."""

from __future__ import annotations

from typing import Sequence


class AccessError(Exception):
    """Base class for errors raised by the access service."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(AccessError):
    status_code = 401
    default_message = "Not authorized"


class Forbidden(AccessError):
    status_code = 403
    default_message = "Access denied. Super Admins only."


class NotFound(AccessError):
    status_code = 404
    default_message = "User not found"


class ValidationError(AccessError):
    status_code = 400
    default_message = "Invalid payload"


class InvalidPayload(ValidationError):
    pass


class InvalidRole(ValidationError):
    default_message = "Invalid role"


class InvalidModules(ValidationError):
    """Raised when a write names modules outside the catalog."""

    def __init__(self, modules: Sequence[str]) -> None:
        self.modules = list(modules)
        super().__init__(f"Invalid modules: {', '.join(self.modules)}")


class DuplicateEmail(ValidationError):
    default_message = "User already exists"


class Conflict(AccessError):
    status_code = 400
    default_message = "Conflict"


class SuperadminExists(Conflict):
    default_message = "Super Admin already exists"


class InvalidCredentials(AccessError):
    # Unknown email and wrong password share this error on purpose.
    status_code = 400
    default_message = "Invalid email or password"


class StorageError(AccessError):
    status_code = 500
