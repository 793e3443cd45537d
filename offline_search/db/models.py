"""SQLAlchemy models for the local search cache."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from offline_search.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CachedUser(Base):
    __tablename__ = "cached_users"

    login: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(1024))
    # Most recent query that returned this user.
    query: Mapped[str] = mapped_column(String(256), nullable=False)
    # casefold() of ``query``; lookups compare against this column.
    query_key: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    def __repr__(self) -> str:
        return f"CachedUser(id={self.id!r}, login={self.login!r}, query={self.query!r})"


__all__ = ["CachedUser"]
