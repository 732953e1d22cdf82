"""
Base repository and write commands.

An upsert arrives on the wire as a single payload whose ``id`` of 0 means
"new". The routers translate it into an explicit command before it reaches
a repository, so a repository never guesses between insert and update.
"""

import structlog
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.src.errors import EntityNotFoundError
from api.src.models.entities import Base

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
PayloadT = TypeVar("PayloadT", bound=BaseModel)


@dataclass(frozen=True)
class Create(Generic[PayloadT]):
    """Insert a new row built from ``payload``."""
    payload: PayloadT


@dataclass(frozen=True)
class Replace(Generic[PayloadT]):
    """Overwrite every mutable column of row ``id`` with ``payload``."""
    id: int
    payload: PayloadT


WriteCommand = Union[Create, Replace]


def command_for(payload: BaseModel) -> WriteCommand:
    """
    Translate an upsert payload into a write command.

    Args:
        payload: Request body carrying an ``id`` field

    Returns:
        ``Create`` when ``id`` is 0, ``Replace`` otherwise
    """
    if payload.id == 0:
        return Create(payload)
    return Replace(payload.id, payload)


class EntityRepository(Generic[ModelT]):
    """Collection of one entity type bound to a request's session."""

    model: Type[ModelT]
    entity_name: str = "Entity"

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: Request scoped async session
        """
        self.session = session

    async def list_all(self) -> List[ModelT]:
        """
        Get every row in storage order.

        Returns:
            All rows ordered by primary key
        """
        result = await self.session.execute(
            select(self.model).order_by(self.model.id)
        )
        rows = list(result.scalars().all())
        logger.debug("entities_listed", entity=self.entity_name, count=len(rows))
        return rows

    async def find(self, entity_id: int) -> Optional[ModelT]:
        """
        Get row by primary key.

        Args:
            entity_id: Primary key

        Returns:
            Row or None if not found
        """
        entity = await self.session.get(self.model, entity_id)
        if entity is None:
            logger.debug("entity_not_found", entity=self.entity_name, entity_id=entity_id)
        return entity

    async def apply(self, command: WriteCommand) -> ModelT:
        """
        Stage a write command in the session.

        Nothing is persisted until the gateway saves changes.

        Args:
            command: ``Create`` or ``Replace``

        Returns:
            The pending (new) or modified row

        Raises:
            EntityNotFoundError: If a ``Replace`` targets a missing row
        """
        if isinstance(command, Create):
            entity = self.model(**self.columns_from(command.payload))
            self.session.add(entity)
            logger.debug("entity_staged_for_insert", entity=self.entity_name)
            return entity

        if isinstance(command, Replace):
            entity = await self.find(command.id)
            if entity is None:
                raise EntityNotFoundError(f"{self.entity_name} not found")

            for attribute, value in self.columns_from(command.payload).items():
                setattr(entity, attribute, value)

            logger.debug("entity_staged_for_replace", entity=self.entity_name, entity_id=command.id)
            return entity

        raise TypeError(f"Unsupported write command: {command!r}")

    async def remove(self, entity: ModelT) -> None:
        """
        Stage a row for deletion.

        Args:
            entity: Row previously loaded through this repository
        """
        await self.session.delete(entity)
        logger.debug("entity_staged_for_delete", entity=self.entity_name, entity_id=entity.id)

    async def load_related(self, entity: ModelT) -> ModelT:
        """Resolve navigation attributes after a save. No-op by default."""
        return entity

    def columns_from(self, payload: BaseModel) -> Dict[str, Any]:
        """Map a payload onto the model's writable attributes."""
        raise NotImplementedError
