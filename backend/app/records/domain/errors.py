from typing import Optional


class DomainError(Exception):
    """Base domain error with a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PermissionDenied(DomainError):
    """Raised when the user has insufficient permissions."""


class NotFound(DomainError):
    """Raised when a required entity is missing."""


class InvalidRequest(DomainError):
    """Raised when submitted input fails validation."""


class PersistenceError(DomainError):
    """Describes a record store failure, including access-policy denials."""

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.detail = detail
        self.hint = hint

    def to_dict(self) -> dict:
        return {"message": self.message, "detail": self.detail, "hint": self.hint}
