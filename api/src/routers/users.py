"""
User router.

Provides REST API endpoints for:
- Listing users
- Creating or replacing a user (upsert)
- Deleting a user

Deleting a user does not touch tasks assigned to it; the store's foreign
key decides whether the delete is allowed.
"""

import structlog
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from api.src.errors import ApiError, EntityNotFoundError, StorageFaultError
from api.src.middleware.auth import get_current_principal
from api.src.models.auth import Principal
from api.src.models.schemas import ID_MAX, ID_MIN, ErrorResponse, UserPayload, UserResponse
from api.src.dependencies import get_storage_gateway
from api.src.repositories.base import Create, command_for
from api.src.repositories.gateway import StorageGateway

logger = structlog.get_logger(__name__)

# Existing clients match on this exact text, including on the user route.
USER_DELETE_NOT_FOUND_MESSAGE = "Task not found"

router = APIRouter(
    prefix="/user",
    tags=["Users"],
    responses={
        400: {"model": ErrorResponse, "description": "Storage fault or invalid request"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
    }
)


@router.get(
    "",
    response_model=List[UserResponse],
    summary="List Users",
    description="Retrieves all users."
)
async def get_users(
    gateway: StorageGateway = Depends(get_storage_gateway)
) -> List[UserResponse]:
    try:
        users = await gateway.users.list_all()
    except Exception as e:
        logger.error("user_list_failed", error=str(e))
        raise StorageFaultError.wrap("Error retrieving users", e)

    logger.info("users_listed", count=len(users))
    return users


@router.post(
    "",
    response_model=UserResponse,
    summary="Create or Replace User",
    description="Creates a new user when `id` is 0, otherwise replaces the user with that id.",
    responses={404: {"model": ErrorResponse, "description": "User not found"}}
)
async def upsert_user(
    payload: UserPayload,
    gateway: StorageGateway = Depends(get_storage_gateway),
    principal: Principal = Depends(get_current_principal)
) -> UserResponse:
    """
    Create or replace a user.

    Raises:
        EntityNotFoundError: If a replace targets a missing user
        StorageFaultError: If the store rejects the write
    """
    command = command_for(payload)
    action = "create" if isinstance(command, Create) else "replace"

    try:
        user = await gateway.users.apply(command)
        await gateway.save_changes()
    except ApiError:
        raise
    except SQLAlchemyError as e:
        logger.error("user_upsert_failed", action=action, user_id=payload.id, error=str(e))
        raise StorageFaultError.wrap("Error saving user", e)

    logger.info(
        "user_created" if action == "create" else "user_replaced",
        user_id=user.id,
        subject=principal.subject
    )
    return user


@router.delete(
    "",
    response_model=UserResponse,
    summary="Delete User",
    description="Deletes a user by its ID and returns its last state.",
    responses={404: {"model": ErrorResponse, "description": "User not found"}}
)
async def delete_user(
    user_id: int = Query(..., alias="Id", ge=ID_MIN, le=ID_MAX, description="ID of the user to delete"),
    gateway: StorageGateway = Depends(get_storage_gateway),
    principal: Principal = Depends(get_current_principal)
) -> UserResponse:
    """
    Delete a user.

    Raises:
        EntityNotFoundError: If the user does not exist
        StorageFaultError: If the store rejects the delete, e.g. tasks still reference the user
    """
    try:
        user = await gateway.users.find(user_id)
        if user is None:
            raise EntityNotFoundError(USER_DELETE_NOT_FOUND_MESSAGE)

        await gateway.users.remove(user)
        await gateway.save_changes()
    except ApiError:
        raise
    except SQLAlchemyError as e:
        logger.error("user_delete_failed", user_id=user_id, error=str(e))
        raise StorageFaultError.wrap("Error deleting user", e)

    logger.info("user_deleted", user_id=user_id, subject=principal.subject)
    return user
