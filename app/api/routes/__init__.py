from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.todo import router as todo_router
from app.api.routes.todo import v1_router as todo_v1_router
from app.api.routes.todo import v2_router as todo_v2_router
from app.api.routes.users import router as users_router

__all__ = [
    "health_router",
    "todo_router",
    "todo_v1_router",
    "todo_v2_router",
    "users_router",
]
