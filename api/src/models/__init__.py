"""ORM models and API schemas."""

from api.src.models.entities import Base, Task, User
from api.src.models.schemas import (
    ErrorResponse,
    TaskPayload,
    TaskResponse,
    UserPayload,
    UserResponse,
)
from api.src.models.auth import Principal

__all__ = [
    "Base",
    "Task",
    "User",
    "ErrorResponse",
    "TaskPayload",
    "TaskResponse",
    "UserPayload",
    "UserResponse",
    "Principal",
]
