"""
Pydantic request and response schemas.

The wire format is camelCase (``isCompleted``, ``assignedUserId``); request
bodies also accept the snake_case field names.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Identifiers are 32-bit signed integers in the relational schema
ID_MIN = -2**31
ID_MAX = 2**31 - 1


class CamelModel(BaseModel):
    """Base schema serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Users
# ============================================================================


class UserPayload(CamelModel):
    """User upsert body. ``id`` 0 creates, any other value replaces."""
    id: int = Field(
        default=0,
        ge=ID_MIN,
        le=ID_MAX,
        description="0 to create, otherwise the id of the user to replace"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    email: Optional[str] = Field(
        default=None,
        description="Contact email"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": 0, "name": "Ada Lovelace", "email": "ada@example.com"}
        }
    )


class UserResponse(CamelModel):
    """User as stored."""
    id: int
    name: str
    email: Optional[str] = None


# ============================================================================
# Tasks
# ============================================================================


class TaskPayload(CamelModel):
    """Task upsert body. ``id`` 0 creates, any other value replaces."""
    id: int = Field(
        default=0,
        ge=ID_MIN,
        le=ID_MAX,
        description="0 to create, otherwise the id of the task to replace"
    )
    title: str = Field(
        ...,
        description="Task title"
    )
    is_completed: bool = Field(
        default=False,
        description="Completion flag"
    )
    assigned_user_id: Optional[int] = Field(
        default=None,
        ge=ID_MIN,
        le=ID_MAX,
        description="Id of the assigned user, null when unassigned"
    )
    user: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Accepted for round-tripping list responses; assignment follows assignedUserId"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": 0, "title": "Write spec", "isCompleted": False, "assignedUserId": None}
        }
    )


class TaskResponse(CamelModel):
    """Task as stored, with its assigned user inlined."""
    id: int
    title: str
    is_completed: bool
    assigned_user_id: Optional[int] = None
    user: Optional[UserResponse] = None


# ============================================================================
# Errors
# ============================================================================


class ErrorResponse(BaseModel):
    """Failure body returned by every route."""
    message: str = Field(
        ...,
        description="Human readable summary"
    )
    error: Optional[str] = Field(
        default=None,
        description="Underlying fault text"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Error creating task",
                "error": "FOREIGN KEY constraint failed"
            }
        }
    }
