"""
Unit tests for write commands, repositories and the storage gateway.

Tests run against a temporary SQLite database with foreign keys enforced,
without the HTTP stack.
"""

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from api.src.config import Settings
from api.src.database import build_engine, build_session_factory, create_schema
from api.src.errors import EntityNotFoundError
from api.src.models.schemas import TaskPayload, UserPayload
from api.src.repositories.base import Create, Replace, command_for
from api.src.repositories.gateway import StorageGateway


pytestmark = pytest.mark.unit


@pytest_asyncio.fixture
async def session_factory(database_url):
    engine = build_engine(Settings(_env_file=None, database_url=database_url))
    await create_schema(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def gateway(session_factory):
    async with session_factory() as session:
        yield StorageGateway(session)


async def _create_user(gateway: StorageGateway, name: str = "Ada") -> int:
    user = await gateway.users.apply(Create(UserPayload(name=name)))
    await gateway.save_changes()
    return user.id


# ============================================================================
# COMMAND MAPPING
# ============================================================================


class TestCommandFor:
    """Upsert payload to explicit command."""

    def test_zero_id_creates(self):
        payload = TaskPayload(id=0, title="Write spec")

        assert command_for(payload) == Create(payload)

    def test_non_zero_id_replaces(self):
        payload = TaskPayload(id=7, title="Write spec")

        command = command_for(payload)

        assert isinstance(command, Replace)
        assert command.id == 7
        assert command.payload is payload

    def test_negative_id_is_a_replace(self):
        assert isinstance(command_for(UserPayload(id=-1, name="x")), Replace)

    def test_payload_accepts_camel_case_and_snake_case(self):
        camel = TaskPayload.model_validate({"title": "a", "isCompleted": True, "assignedUserId": 3})
        snake = TaskPayload.model_validate({"title": "a", "is_completed": True, "assigned_user_id": 3})

        assert camel == snake
        assert camel.model_dump(by_alias=True)["assignedUserId"] == 3


# ============================================================================
# TASK REPOSITORY
# ============================================================================


class TestTaskRepository:
    """Task collection behaviour."""

    @pytest.mark.asyncio
    async def test_create_assigns_new_id(self, gateway):
        task = await gateway.tasks.apply(Create(TaskPayload(title="Write spec")))
        await gateway.save_changes()

        assert task.id == 1
        assert task.is_completed is False
        assert task.assigned_user_id is None

    @pytest.mark.asyncio
    async def test_list_all_in_id_order_with_user_loaded(self, gateway, session_factory):
        user_id = await _create_user(gateway)
        for title in ("first", "second", "third"):
            await gateway.tasks.apply(Create(TaskPayload(title=title, assigned_user_id=user_id)))
        await gateway.save_changes()

        async with session_factory() as session:
            tasks = await StorageGateway(session).tasks.list_all()

        assert [t.title for t in tasks] == ["first", "second", "third"]
        assert all(t.user is not None and t.user.name == "Ada" for t in tasks)

    @pytest.mark.asyncio
    async def test_replace_overwrites_every_field(self, gateway):
        user_id = await _create_user(gateway)
        created = await gateway.tasks.apply(
            Create(TaskPayload(title="old", is_completed=False, assigned_user_id=user_id))
        )
        await gateway.save_changes()

        replaced = await gateway.tasks.apply(
            Replace(created.id, TaskPayload(id=created.id, title="new", is_completed=True))
        )
        await gateway.save_changes()
        replaced = await gateway.tasks.load_related(replaced)

        assert replaced.id == created.id
        assert replaced.title == "new"
        assert replaced.is_completed is True
        assert replaced.assigned_user_id is None
        assert replaced.user is None

    @pytest.mark.asyncio
    async def test_replace_missing_row_raises_not_found(self, gateway):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await gateway.tasks.apply(Replace(42, TaskPayload(id=42, title="ghost")))

        assert exc_info.value.message == "Task not found"
        assert await gateway.tasks.list_all() == []

    @pytest.mark.asyncio
    async def test_load_related_follows_new_assignment(self, gateway):
        first = await _create_user(gateway, "Ada")
        second = await _create_user(gateway, "Grace")
        task = await gateway.tasks.apply(Create(TaskPayload(title="t", assigned_user_id=first)))
        await gateway.save_changes()
        await gateway.tasks.load_related(task)
        assert task.user.name == "Ada"

        await gateway.tasks.apply(Replace(task.id, TaskPayload(id=task.id, title="t", assigned_user_id=second)))
        await gateway.save_changes()
        await gateway.tasks.load_related(task)

        assert task.user.name == "Grace"

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, gateway):
        task = await gateway.tasks.apply(Create(TaskPayload(title="one")))
        await gateway.save_changes()
        await gateway.tasks.remove(task)
        await gateway.save_changes()

        again = await gateway.tasks.apply(Create(TaskPayload(title="two")))
        await gateway.save_changes()

        assert again.id == task.id + 1

    @pytest.mark.asyncio
    async def test_find_returns_none_for_missing_row(self, gateway):
        assert await gateway.tasks.find(999) is None


# ============================================================================
# STORAGE GATEWAY
# ============================================================================


class TestStorageGateway:
    """Unit of work semantics."""

    @pytest.mark.asyncio
    async def test_unknown_user_violates_foreign_key(self, gateway):
        await gateway.tasks.apply(Create(TaskPayload(title="orphan", assigned_user_id=999)))

        with pytest.raises(IntegrityError):
            await gateway.save_changes()

        # The failed unit of work is rolled back and the session stays usable
        assert await gateway.tasks.list_all() == []

    @pytest.mark.asyncio
    async def test_user_with_tasks_cannot_be_deleted(self, gateway):
        user_id = await _create_user(gateway)
        await gateway.tasks.apply(Create(TaskPayload(title="t", assigned_user_id=user_id)))
        await gateway.save_changes()

        user = await gateway.users.find(user_id)
        await gateway.users.remove(user)

        with pytest.raises(IntegrityError):
            await gateway.save_changes()

    @pytest.mark.asyncio
    async def test_unsaved_changes_are_discarded_with_the_session(self, session_factory):
        async with session_factory() as session:
            await StorageGateway(session).users.apply(Create(UserPayload(name="never saved")))

        async with session_factory() as session:
            assert await StorageGateway(session).users.list_all() == []

    @pytest.mark.asyncio
    async def test_user_replace_keeps_id(self, gateway):
        user_id = await _create_user(gateway, "Ada")

        user = await gateway.users.apply(
            Replace(user_id, UserPayload(id=user_id, name="Ada Lovelace", email="ada@example.com"))
        )
        await gateway.save_changes()

        stored = await gateway.users.list_all()
        assert [(u.id, u.name, u.email) for u in stored] == [(user_id, "Ada Lovelace", "ada@example.com")]
        assert user.id == user_id
