"""
SQL-backed counter stores.

Each write is a single INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement,
so the database serializes concurrent updates to the same row. PostgreSQL is
the production target; SQLite is supported for tests and single-node use.
"""

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import DateTime, case, delete, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authguard.core.exceptions import StoreUnavailableError
from authguard.models.account_failure import AccountFailure
from authguard.models.rate_limit_counter import RateLimitCounter
from authguard.stores.base import Clock, CounterResult, utc_now

logger = logging.getLogger(__name__)

# Errors that mean the database could not be used for this operation
_STORE_ERRORS = (SQLAlchemyError, OSError)


def _dialect_insert(session: AsyncSession, table: Any) -> Any:
    """Dialect-aware INSERT construct supporting ON CONFLICT."""
    dialect_name = session.get_bind().dialect.name

    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as _pg_insert

        return _pg_insert(table)
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as _sqlite_insert

        return _sqlite_insert(table)
    raise ValueError(f"Unsupported dialect for counter store: {dialect_name}")


class SqlCounterStore:
    """Fixed-window request counters in the rate_limit_counters table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utc_now):
        self._session_factory = session_factory
        self._clock = clock

    async def increment_or_reset(
        self,
        subject_key: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
    ) -> CounterResult:
        now = self._clock()
        cutoff = now - timedelta(seconds=window_seconds)
        table = RateLimitCounter.__table__
        window_active = table.c.window_start > cutoff

        try:
            async with self._session_factory() as session:
                stmt = _dialect_insert(session, table).values(
                    subject_key=subject_key,
                    endpoint=endpoint,
                    request_count=1,
                    window_start=now,
                )
                # Both SET expressions see the row as it was before this update
                stmt = stmt.on_conflict_do_update(
                    index_elements=[table.c.subject_key, table.c.endpoint],
                    set_={
                        "request_count": case(
                            (window_active, table.c.request_count + 1),
                            else_=1,
                        ),
                        "window_start": case(
                            (window_active, table.c.window_start),
                            else_=literal(now, DateTime(timezone=True)),
                        ),
                    },
                ).returning(table.c.request_count)

                result = await session.execute(stmt)
                count = result.scalar_one()
                await session.commit()
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

        return CounterResult(count=count, allowed=count <= limit)

    async def purge_expired(self, older_than_seconds: int) -> int:
        """Remove counters whose window started before the cutoff. Returns count deleted."""
        cutoff = self._clock() - timedelta(seconds=older_than_seconds)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(RateLimitCounter).where(RateLimitCounter.window_start < cutoff)
                )
                await session.commit()
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

        logger.info("Purged %d expired rate limit counters", result.rowcount)
        return result.rowcount


class SqlFailureCounterStore:
    """Per-account failure counters in the account_failures table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utc_now):
        self._session_factory = session_factory
        self._clock = clock

    async def get_failures(self, account: str) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(AccountFailure.failed_attempts).where(AccountFailure.account == account)
                )
                count = result.scalar_one_or_none()
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

        return count or 0

    async def increment_failures(self, account: str) -> int:
        now = self._clock()
        table = AccountFailure.__table__

        try:
            async with self._session_factory() as session:
                stmt = _dialect_insert(session, table).values(
                    account=account,
                    failed_attempts=1,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[table.c.account],
                    set_={
                        "failed_attempts": table.c.failed_attempts + 1,
                        "updated_at": literal(now, DateTime(timezone=True)),
                    },
                ).returning(table.c.failed_attempts)

                result = await session.execute(stmt)
                count = result.scalar_one()
                await session.commit()
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e

        return count

    async def reset_failures(self, account: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    update(AccountFailure)
                    .where(AccountFailure.account == account)
                    .values(failed_attempts=0, updated_at=self._clock())
                )
                await session.commit()
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e
