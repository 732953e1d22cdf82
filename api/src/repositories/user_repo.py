"""User repository."""

from typing import Any, Dict

from api.src.models.entities import User
from api.src.models.schemas import UserPayload
from api.src.repositories.base import EntityRepository


class UserRepository(EntityRepository[User]):
    """Repository for user rows. Deleting never touches dependent tasks."""

    model = User
    entity_name = "User"

    def columns_from(self, payload: UserPayload) -> Dict[str, Any]:
        return {
            "name": payload.name,
            "email": payload.email,
        }
