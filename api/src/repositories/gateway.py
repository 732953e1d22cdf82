"""
Storage gateway: one unit of work per request.

Wraps a request scoped ``AsyncSession`` and exposes the task and user
collections plus a single ``save_changes`` that commits everything staged.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from api.src.repositories.task_repo import TaskRepository
from api.src.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)


class StorageGateway:
    """Entity collections and commit for one request."""

    def __init__(self, session: AsyncSession):
        """
        Initialize gateway.

        Args:
            session: Session opened for the current request
        """
        self.session = session
        self.tasks = TaskRepository(session)
        self.users = UserRepository(session)

    async def save_changes(self) -> None:
        """
        Commit all pending changes.

        The session is rolled back when the commit fails so it can still be
        closed cleanly at the end of the request.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On constraint violation or lost connection
        """
        try:
            await self.session.commit()
        except Exception as e:
            logger.warning("save_changes_failed", error=str(e))
            await self.session.rollback()
            raise
