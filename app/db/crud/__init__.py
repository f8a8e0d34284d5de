"""CRUD operations package.

- users.py: user directory (rate-limit profiles)
- todos.py: todo items owned by a user
"""

from app.db.crud.todos import (
    count_todo_items,
    create_todo_item,
    delete_todo_item,
    get_todo_item,
    list_todo_items,
    update_todo_item,
)
from app.db.crud.users import (
    SqlAlchemyUserDirectory,
    get_or_create_user,
    get_user_by_email,
    upsert_rate_limit_profile,
)

__all__ = [
    "SqlAlchemyUserDirectory",
    "count_todo_items",
    "create_todo_item",
    "delete_todo_item",
    "get_or_create_user",
    "get_todo_item",
    "get_user_by_email",
    "list_todo_items",
    "update_todo_item",
    "upsert_rate_limit_profile",
]
