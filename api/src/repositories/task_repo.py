"""Task repository."""

from typing import Any, Dict

from api.src.models.entities import Task
from api.src.models.schemas import TaskPayload
from api.src.repositories.base import EntityRepository


class TaskRepository(EntityRepository[Task]):
    """Repository for task rows. ``user`` is always loaded alongside."""

    model = Task
    entity_name = "Task"

    async def load_related(self, entity: Task) -> Task:
        # assigned_user_id may have changed since the row was loaded
        await self.session.refresh(entity, attribute_names=["user"])
        return entity

    def columns_from(self, payload: TaskPayload) -> Dict[str, Any]:
        return {
            "title": payload.title,
            "is_completed": payload.is_completed,
            "assigned_user_id": payload.assigned_user_id,
        }
