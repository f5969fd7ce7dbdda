from __future__ import annotations


class AppError(Exception):
    """Base application error; ``detail`` is the message shown to the client."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class UnauthorizedError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    """Operation is not allowed in the record's current state."""


class MessageDeletedError(ConflictError):
    """Edit or delete attempted on a soft-deleted message."""


class ValidationError(AppError):
    pass


class InvalidCredentialsError(ValidationError):
    def __init__(self) -> None:
        # Same text for unknown email and wrong password
        super().__init__("Invalid credentials")
