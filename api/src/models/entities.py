"""
SQLAlchemy ORM models for tasks and users.

Uses SQLAlchemy 2.0 declarative syntax with async compatibility. Column
names follow the existing relational schema (``Tasks`` / ``Users`` tables
with PascalCase columns); Python attributes are snake_case.
"""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class User(Base):
    """
    User profile.

    A user may be assigned any number of tasks. The relationship is only
    navigable from the task side; deleting a user that still has tasks is
    rejected by the store's foreign key.
    """
    __tablename__ = "Users"

    id: Mapped[int] = mapped_column(
        "Id",
        Integer,
        primary_key=True,
        autoincrement=True
    )
    name: Mapped[str] = mapped_column(
        "Name",
        String(200),
        nullable=False
    )
    email: Mapped[Optional[str]] = mapped_column(
        "Email",
        String(255),
        nullable=True
    )

    # Identifiers are never handed out twice, even after deletes
    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, name='{self.name}')>"


class Task(Base):
    """
    Task item with optional assignee.

    ``user`` is resolved through ``assigned_user_id`` and is loaded with
    ``selectin`` so list queries return tasks with their user inlined.
    """
    __tablename__ = "Tasks"

    id: Mapped[int] = mapped_column(
        "Id",
        Integer,
        primary_key=True,
        autoincrement=True
    )
    title: Mapped[str] = mapped_column(
        "Title",
        String,
        nullable=False
    )
    is_completed: Mapped[bool] = mapped_column(
        "IsCompleted",
        Boolean,
        nullable=False,
        default=False
    )
    assigned_user_id: Mapped[Optional[int]] = mapped_column(
        "AssignedUserId",
        ForeignKey("Users.Id"),
        nullable=True,
        index=True
    )

    user: Mapped[Optional[User]] = relationship(
        "User",
        lazy="selectin"
    )

    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        """String representation."""
        return f"<Task(id={self.id}, title='{self.title}', assigned_user_id={self.assigned_user_id})>"


__all__ = ["Base", "Task", "User"]
