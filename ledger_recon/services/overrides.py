"""Persisted manual override map (ledger entry id -> external record id).

Single-pair writes are last-write-wins. Batch writes from the review queue go
through an exclusive lock with a bounded wait so two reviewers applying
batches at the same time never interleave; a timed-out batch is reported back
to the caller and nothing is written.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from weakref import WeakKeyDictionary

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger_recon.logger import get_logger, log_exception
from ledger_recon.models import ManualOverride

logger = get_logger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 30.0

_batch_write_locks: WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock] = WeakKeyDictionary()


def get_batch_write_lock() -> asyncio.Lock:
    """Batch write lock shared by every store running on the current event loop.

    Created on first use so it is never bound to a loop other than the caller's.
    """
    loop = asyncio.get_running_loop()
    lock = _batch_write_locks.get(loop)
    if lock is None:
        lock = _batch_write_locks[loop] = asyncio.Lock()
    return lock


@dataclass(frozen=True)
class BatchResolveResult:
    success: bool
    count: int = 0
    message: str | None = None


def dedupe_pairs(pairs: Iterable[tuple[str | None, str | None]]) -> dict[str, str]:
    """Drop incomplete pairs and keep the last record id seen for each entry id."""
    unique: dict[str, str] = {}
    for entry_id, record_id in pairs:
        if entry_id and record_id:
            unique[entry_id] = record_id
    return unique


class ManualOverrideStore:
    """Access to the ``manual_overrides`` table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        lock: asyncio.Lock | None = None,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self._session_maker = session_maker
        self._lock = lock
        self._lock_timeout = lock_timeout

    async def get_all(self) -> dict[str, str]:
        async with self._session_maker() as session:
            result = await session.execute(select(ManualOverride).order_by(ManualOverride.entry_id))
            return {row.entry_id: row.record_id for row in result.scalars().all()}

    async def count(self) -> int:
        async with self._session_maker() as session:
            result = await session.execute(select(func.count()).select_from(ManualOverride))
            return result.scalar_one()

    async def set_one(self, entry_id: str, record_id: str) -> None:
        async with self._session_maker() as session:
            async with session.begin():
                await self._upsert(session, {entry_id: record_id})
        logger.info("Manual override stored", entry_id=entry_id, record_id=record_id)

    async def set_batch(self, pairs: Iterable[tuple[str | None, str | None]]) -> BatchResolveResult:
        """Merge many overrides into the persisted map in one transaction."""
        pairs = list(pairs)
        if not pairs:
            return BatchResolveResult(success=False, message="No overrides to apply")

        unique = dedupe_pairs(pairs)
        if not unique:
            return BatchResolveResult(success=False, message="No valid overrides to apply")

        lock = self._lock if self._lock is not None else get_batch_write_lock()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Override batch lock timeout",
                timeout_seconds=self._lock_timeout,
                pairs=len(unique),
            )
            return BatchResolveResult(
                success=False,
                message="Could not acquire the override lock. Another reviewer may be applying overrides; try again.",
            )

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await self._upsert(session, unique)
        except Exception as e:
            log_exception(logger, e, "Override batch write failed", pairs=len(unique))
            return BatchResolveResult(success=False, message=str(e))
        finally:
            lock.release()

        logger.info("Manual override batch stored", count=len(unique))
        return BatchResolveResult(success=True, count=len(unique))

    async def clear(self) -> int:
        async with self._session_maker() as session:
            async with session.begin():
                result = await session.execute(delete(ManualOverride))
        removed = result.rowcount or 0
        logger.info("Manual overrides cleared", removed=removed)
        return removed

    @staticmethod
    async def _upsert(session: AsyncSession, overrides: dict[str, str]) -> None:
        result = await session.execute(
            select(ManualOverride).where(ManualOverride.entry_id.in_(list(overrides)))
        )
        existing = {row.entry_id: row for row in result.scalars().all()}
        for entry_id, record_id in overrides.items():
            row = existing.get(entry_id)
            if row is None:
                session.add(ManualOverride(entry_id=entry_id, record_id=record_id))
            else:
                row.record_id = record_id
