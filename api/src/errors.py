"""
API error types and their JSON rendering.

Every failure response has the shape ``{"message": ..., "error": ...}``;
``error`` carries the underlying fault text and is omitted when there is none.
"""

from typing import Optional

from fastapi import status


class ApiError(Exception):
    """Base class for errors reported to the client."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class EntityNotFoundError(ApiError):
    """The addressed row does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class StorageFaultError(ApiError):
    """A read or write against the relational store failed."""

    @classmethod
    def wrap(cls, message: str, exc: BaseException) -> "StorageFaultError":
        return cls(message, error=str(exc))
