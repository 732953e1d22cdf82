"""
Task router.

Provides REST API endpoints for:
- Listing tasks with their assigned user
- Creating or replacing a task (upsert)
- Deleting a task

All endpoints require a valid bearer token.
"""

import structlog
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError

from api.src.errors import ApiError, EntityNotFoundError, StorageFaultError
from api.src.middleware.auth import get_current_principal
from api.src.models.auth import Principal
from api.src.models.schemas import ID_MAX, ID_MIN, ErrorResponse, TaskPayload, TaskResponse
from api.src.dependencies import get_storage_gateway
from api.src.repositories.base import Create, command_for
from api.src.repositories.gateway import StorageGateway

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/task",
    tags=["Tasks"],
    responses={
        400: {"model": ErrorResponse, "description": "Storage fault or invalid request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
    }
)


@router.get(
    "",
    response_model=List[TaskResponse],
    summary="List Tasks",
    description="Retrieves all tasks with their assigned users."
)
async def get_tasks(
    gateway: StorageGateway = Depends(get_storage_gateway)
) -> List[TaskResponse]:
    """
    Return every task, each with its ``user`` inlined (or null).

    Raises:
        StorageFaultError: If the tasks could not be read
    """
    try:
        tasks = await gateway.tasks.list_all()
    except Exception as e:
        logger.error("task_list_failed", error=str(e))
        raise StorageFaultError.wrap("Error retrieving tasks", e)

    logger.info("tasks_listed", count=len(tasks))
    return tasks


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_200_OK,
    summary="Create or Replace Task",
    description="""
    Creates a new task when `id` is 0, otherwise replaces every field of the
    existing task with that id.

    **Error Responses:**
    - 400: The store rejected the write (e.g. unknown assignedUserId)
    - 404: `id` is non-zero and no such task exists
    """,
    responses={404: {"model": ErrorResponse, "description": "Task not found"}}
)
async def upsert_task(
    payload: TaskPayload,
    gateway: StorageGateway = Depends(get_storage_gateway),
    principal: Principal = Depends(get_current_principal)
) -> TaskResponse:
    """
    Create or replace a task.

    Args:
        payload: Task body
        gateway: Storage gateway
        principal: Authenticated caller

    Returns:
        The persisted task

    Raises:
        EntityNotFoundError: If a replace targets a missing task
        StorageFaultError: If the store rejects the write
    """
    command = command_for(payload)
    action = "create" if isinstance(command, Create) else "replace"

    try:
        task = await gateway.tasks.apply(command)
        await gateway.save_changes()
    except ApiError:
        raise
    except SQLAlchemyError as e:
        logger.error("task_upsert_failed", action=action, task_id=payload.id, error=str(e))
        raise StorageFaultError.wrap("Error creating task", e)

    # Committed; a failure from here on is not a write fault
    task = await gateway.tasks.load_related(task)

    logger.info(
        "task_created" if action == "create" else "task_replaced",
        task_id=task.id,
        assigned_user_id=task.assigned_user_id,
        subject=principal.subject
    )
    return task


@router.delete(
    "",
    response_model=TaskResponse,
    summary="Delete Task",
    description="Deletes a task by its ID and returns its last state.",
    responses={404: {"model": ErrorResponse, "description": "Task not found"}}
)
async def delete_task(
    task_id: int = Query(..., alias="Id", ge=ID_MIN, le=ID_MAX, description="ID of the task to delete"),
    gateway: StorageGateway = Depends(get_storage_gateway),
    principal: Principal = Depends(get_current_principal)
) -> TaskResponse:
    """
    Delete a task.

    Args:
        task_id: Task ID (``Id`` query parameter)
        gateway: Storage gateway
        principal: Authenticated caller

    Returns:
        The deleted task as it was before removal

    Raises:
        EntityNotFoundError: If the task does not exist
        StorageFaultError: If the store rejects the delete
    """
    try:
        task = await gateway.tasks.find(task_id)
        if task is None:
            raise EntityNotFoundError("Task not found")

        await gateway.tasks.remove(task)
        await gateway.save_changes()
    except ApiError:
        raise
    except SQLAlchemyError as e:
        logger.error("task_delete_failed", task_id=task_id, error=str(e))
        raise StorageFaultError.wrap("Error deleting task", e)

    logger.info("task_deleted", task_id=task_id, subject=principal.subject)
    return task
