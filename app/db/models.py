"""ORM models for the user directory and todo items."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class User(Base):
    """Directory record holding a caller's personalised rate-limit profile."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    permit_limit: Mapped[int] = mapped_column(Integer)
    rate_limit_window_minutes: Mapped[int] = mapped_column(Integer)
    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    todo_items: Mapped[list["TodoItem"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class TodoItem(Base):
    __tablename__ = "todo_items"
    __table_args__ = (Index("idx_todo_items_user_created", "user_id", "created_on"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    user: Mapped[User] = relationship(back_populates="todo_items")
