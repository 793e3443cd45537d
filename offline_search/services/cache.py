"""Read-through cache of search results stored in the local database."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from offline_search.db.models import CachedUser
from offline_search.db.session import Database
from offline_search.domain.models import UserRecord
from offline_search.logging import logger
from offline_search.services.cancellation import CancellationToken
from offline_search.services.exceptions import (
    CacheReadFailure,
    CacheWriteFailure,
    SearchCancelled,
)


class CacheReader:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def read(self, tag: str) -> list[UserRecord]:
        """Return users last seen under ``tag`` (case-insensitive), by ascending id.

        Case folding happens in Python on both the write and the read side, so
        non-ASCII tags match regardless of what the database collation does.
        """

        if not tag:
            return []
        stmt = (
            select(CachedUser)
            .where(CachedUser.query_key == tag.casefold())
            .order_by(CachedUser.id.asc())
        )
        try:
            async with self._database.session() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise CacheReadFailure(f"Failed to read cached users for {tag!r}: {exc}") from exc
        return [UserRecord.model_validate(row) for row in rows]


class UpsertScope:
    """Write scope shared by the per-record workers of one upsert batch.

    Session access is serialised through a lock. Identities resolved in this
    scope are remembered, so duplicates in a batch mutate the same object and
    the last write applied wins.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._lock = asyncio.Lock()
        self._resolved: dict[int, CachedUser] = {}

    async def fetch_or_create(self, identity: int) -> CachedUser:
        if not isinstance(identity, int) or isinstance(identity, bool):
            raise TypeError(f"identity must be an int, got {type(identity).__name__}")
        async with self._lock:
            entity = self._resolved.get(identity)
            if entity is None:
                entity = await self.session.get(CachedUser, identity)
                if entity is None:
                    entity = CachedUser(id=identity)
                    self.session.add(entity)
                self._resolved[identity] = entity
            return entity

    @property
    def has_changes(self) -> bool:
        session = self.session
        return bool(session.new or session.dirty or session.deleted)


class CacheUpsertEngine:
    """Persist a freshly fetched batch, tagging every row with its query."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def upsert(
        self,
        records: Iterable[UserRecord | Mapping[str, Any]],
        tag: str,
        token: CancellationToken | None = None,
    ) -> int:
        """Create or update one row per record and commit once.

        Returns how many records were applied. Records that fail on their own
        are logged and skipped; only a failed commit raises
        :class:`CacheWriteFailure`.
        """

        items = list(records)
        if not items:
            return 0

        async with self._database.session() as session:
            scope = UpsertScope(session)
            outcomes = await asyncio.gather(
                *(self._apply(scope, item, tag, token) for item in items),
                return_exceptions=True,
            )
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    await session.rollback()
                    raise outcome

            if token is not None and token.cancelled:
                await session.rollback()
                raise SearchCancelled(token.label or "upsert superseded")

            applied = sum(1 for outcome in outcomes if outcome)
            if not scope.has_changes:
                logger.debug("cache_upsert_nothing_to_commit", tag=tag, batch_size=len(items))
                return applied

            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("cache_upsert_commit_failed", tag=tag, error=str(exc))
                raise CacheWriteFailure(f"Failed to commit cached users for {tag!r}: {exc}") from exc

        logger.info(
            "cache_upsert_committed",
            tag=tag,
            batch_size=len(items),
            applied=applied,
        )
        return applied

    async def _apply(
        self,
        scope: UpsertScope,
        item: UserRecord | Mapping[str, Any],
        tag: str,
        token: CancellationToken | None,
    ) -> bool:
        if token is not None:
            token.raise_if_cancelled()
        try:
            record = item if isinstance(item, UserRecord) else UserRecord.model_validate(item)
            entity = await scope.fetch_or_create(record.id)
        except (SearchCancelled, asyncio.CancelledError):
            raise
        except Exception as exc:
            logger.warning(
                "cache_upsert_record_failed",
                tag=tag,
                item=repr(item),
                error=str(exc),
                exception_type=exc.__class__.__name__,
            )
            return False

        entity.login = record.login
        entity.avatar_url = record.avatar_url
        entity.query = tag
        entity.query_key = tag.casefold()
        return True


__all__ = ["CacheReader", "CacheUpsertEngine", "UpsertScope"]
