"""Pydantic models and result states shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict

StateKind = Literal["idle", "loading", "cached", "resolved", "empty", "failed"]


class UserRecord(BaseModel):
    """A searchable user as returned by the remote catalog."""

    model_config = ConfigDict(frozen=True, from_attributes=True, extra="ignore")

    id: int
    login: str
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class ResultState:
    """Current outcome of a search as shown to the user.

    ``records`` is only populated for ``cached`` and ``resolved``;
    ``error`` only for ``failed``.
    """

    kind: StateKind
    records: tuple[UserRecord, ...] = ()
    error: BaseException | None = None

    @classmethod
    def idle(cls) -> "ResultState":
        return cls("idle")

    @classmethod
    def loading(cls) -> "ResultState":
        return cls("loading")

    @classmethod
    def cached(cls, records: Iterable[UserRecord]) -> "ResultState":
        return cls("cached", records=tuple(records))

    @classmethod
    def resolved(cls, records: Iterable[UserRecord]) -> "ResultState":
        return cls("resolved", records=tuple(records))

    @classmethod
    def empty(cls) -> "ResultState":
        return cls("empty")

    @classmethod
    def failed(cls, error: BaseException) -> "ResultState":
        return cls("failed", error=error)

    @property
    def is_idle(self) -> bool:
        return self.kind == "idle"

    @property
    def is_loading(self) -> bool:
        return self.kind == "loading"

    @property
    def is_cached(self) -> bool:
        return self.kind == "cached"

    @property
    def is_terminal(self) -> bool:
        return self.kind in ("resolved", "empty", "failed")


__all__ = ["ResultState", "StateKind", "UserRecord"]
