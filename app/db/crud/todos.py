"""Todo item operations, always scoped to the owning user."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import TodoItem


def list_todo_items(
    session: Session,
    user_id: int,
    *,
    offset: int = 0,
    limit: int | None = None,
) -> list[TodoItem]:
    stmt = (
        select(TodoItem)
        .where(TodoItem.user_id == user_id)
        .order_by(TodoItem.id)
        .offset(offset)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.execute(stmt).scalars().all())


def count_todo_items(session: Session, user_id: int) -> int:
    stmt = select(func.count()).select_from(TodoItem).where(TodoItem.user_id == user_id)
    return session.execute(stmt).scalar_one()


def get_todo_item(session: Session, user_id: int, item_id: int) -> TodoItem | None:
    """Get an item by id if it belongs to user_id."""
    stmt = select(TodoItem).where(TodoItem.id == item_id, TodoItem.user_id == user_id)
    return session.execute(stmt).scalar_one_or_none()


def create_todo_item(session: Session, user_id: int, *, title: str, is_completed: bool) -> TodoItem:
    item = TodoItem(title=title, is_completed=is_completed, user_id=user_id)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def update_todo_item(session: Session, item: TodoItem, *, title: str, is_completed: bool) -> TodoItem:
    item.title = title
    item.is_completed = is_completed
    session.commit()
    session.refresh(item)
    return item


def delete_todo_item(session: Session, item: TodoItem) -> None:
    session.delete(item)
    session.commit()
