"""Todo item endpoints.

Mounted under every supported API version (``/api/v1``, ``/api/v2``). All
routes authenticate the caller first and then apply the per-identity rate
limit. Version 2 only changes the listing shape (paginated envelope).
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.auth import CurrentUserDep, verify_bearer_token
from app.core.errors import NotFoundAppError
from app.core.rate_limit import enforce_rate_limit
from app.db import crud
from app.db.models import TodoItem
from app.db.session import SessionDep
from app.schemas.todo import TodoItemInput, TodoItemPage, TodoItemResponse
from app.services.user_service import default_authenticated_profile

logger = logging.getLogger(__name__)

_protected = [Depends(verify_bearer_token), Depends(enforce_rate_limit)]

router = APIRouter(prefix="/todoitems", tags=["Todo Items"], dependencies=_protected)
v1_router = APIRouter(prefix="/todoitems", tags=["Todo Items"], dependencies=_protected)
v2_router = APIRouter(prefix="/todoitems", tags=["Todo Items"], dependencies=_protected)


def _owner_id(session, identity: str) -> int | None:
    user = crud.get_user_by_email(session, identity)
    return user.id if user is not None else None


def _get_owned_item(session, identity: str, item_id: int) -> TodoItem:
    owner_id = _owner_id(session, identity)
    item = crud.get_todo_item(session, owner_id, item_id) if owner_id is not None else None
    if item is None:
        raise NotFoundAppError(
            code="todo_item_not_found",
            message=f"Todo item {item_id} not found",
            details={"resource": "todo_item", "resource_id": item_id},
        )
    return item


@v1_router.get("/", response_model=List[TodoItemResponse])
def list_todo_items_v1(session: SessionDep, identity: CurrentUserDep) -> List[TodoItemResponse]:
    """List all of the caller's todo items."""
    owner_id = _owner_id(session, identity)
    if owner_id is None:
        return []
    return [TodoItemResponse.model_validate(item) for item in crud.list_todo_items(session, owner_id)]


@v2_router.get("/", response_model=TodoItemPage)
def list_todo_items_v2(
    session: SessionDep,
    identity: CurrentUserDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> TodoItemPage:
    """List the caller's todo items one page at a time."""
    owner_id = _owner_id(session, identity)
    if owner_id is None:
        return TodoItemPage(items=[], total=0, page=page, page_size=page_size)

    items = crud.list_todo_items(
        session, owner_id, offset=(page - 1) * page_size, limit=page_size
    )
    return TodoItemPage(
        items=[TodoItemResponse.model_validate(item) for item in items],
        total=crud.count_todo_items(session, owner_id),
        page=page,
        page_size=page_size,
    )


@router.get("/{item_id}", response_model=TodoItemResponse)
def get_todo_item(item_id: int, session: SessionDep, identity: CurrentUserDep) -> TodoItemResponse:
    return TodoItemResponse.model_validate(_get_owned_item(session, identity, item_id))


@router.post("/", response_model=TodoItemResponse, status_code=status.HTTP_201_CREATED)
def create_todo_item(
    payload: TodoItemInput,
    session: SessionDep,
    identity: CurrentUserDep,
) -> TodoItemResponse:
    """Create a todo item owned by the caller.

    The caller's directory record is created on first write, with the default
    authenticated rate-limit profile.
    """
    user = crud.get_or_create_user(session, identity, default_authenticated_profile())
    item = crud.create_todo_item(
        session, user.id, title=payload.title, is_completed=payload.is_completed
    )
    logger.info("todo.created", extra={"todo_id": item.id, "user_id": user.id})
    return TodoItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=TodoItemResponse)
def update_todo_item(
    item_id: int,
    payload: TodoItemInput,
    session: SessionDep,
    identity: CurrentUserDep,
) -> TodoItemResponse:
    item = _get_owned_item(session, identity, item_id)
    item = crud.update_todo_item(
        session, item, title=payload.title, is_completed=payload.is_completed
    )
    logger.info("todo.updated", extra={"todo_id": item.id})
    return TodoItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo_item(item_id: int, session: SessionDep, identity: CurrentUserDep) -> Response:
    item = _get_owned_item(session, identity, item_id)
    crud.delete_todo_item(session, item)
    logger.info("todo.deleted", extra={"todo_id": item_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
