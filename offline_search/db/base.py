"""Declarative base for SQLAlchemy models."""

from __future__ import annotations

from sqlalchemy import BigInteger
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Declarative base keyed by the upstream identity.

    Rows mirror remote records, so the primary key is supplied by the caller
    and never generated locally.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:  # noqa: N805
        return cls.__name__.lower()

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)


__all__ = ["Base"]
