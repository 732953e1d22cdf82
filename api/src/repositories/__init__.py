"""Persistence access for tasks and users."""

from api.src.repositories.base import Create, EntityRepository, Replace, WriteCommand, command_for
from api.src.repositories.gateway import StorageGateway
from api.src.repositories.task_repo import TaskRepository
from api.src.repositories.user_repo import UserRepository

__all__ = [
    "Create",
    "Replace",
    "WriteCommand",
    "command_for",
    "EntityRepository",
    "StorageGateway",
    "TaskRepository",
    "UserRepository",
]
