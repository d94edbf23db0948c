"""
Refresh token persistence.

The identity kernel depends only on the RefreshTokenStore protocol. Two
implementations are provided: an in-memory store for tests and single-process
use, and a SQLAlchemy store for PostgreSQL/SQLite.
"""

import threading
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chirpy_auth.kernel.identity.errors import InternalError
from chirpy_auth.kernel.identity.refresh_tokens import RefreshToken
from chirpy_auth.kernel.models.refresh_token import RefreshTokenModel
from chirpy_auth.logging_config import get_logger

logger = get_logger(__name__)


class RefreshTokenStore(Protocol):
    """Narrow store interface used by RefreshTokenManager."""

    async def find_by_value(self, value: str) -> Optional[RefreshToken]:
        """Return the record whose value matches exactly, or None."""
        ...

    async def insert(self, token: RefreshToken) -> None:
        """Persist a newly issued record."""
        ...

    async def mark_revoked(self, value: str, revoked_at: datetime) -> bool:
        """
        Atomically set revoked_at if it is still unset.

        Returns True if this call revoked the token, False if it was
        missing or already revoked.
        """
        ...


class InMemoryRefreshTokenStore:
    """Dict-backed store guarded by a lock."""

    def __init__(self) -> None:
        self._records: dict[str, RefreshToken] = {}
        self._lock = threading.Lock()

    async def find_by_value(self, value: str) -> Optional[RefreshToken]:
        with self._lock:
            return self._records.get(value)

    async def insert(self, token: RefreshToken) -> None:
        with self._lock:
            if token.value in self._records:
                raise InternalError("refresh token value already stored")
            self._records[token.value] = token

    async def mark_revoked(self, value: str, revoked_at: datetime) -> bool:
        with self._lock:
            record = self._records.get(value)
            if record is None or record.revoked_at is not None:
                return False
            self._records[value] = record.model_copy(update={"revoked_at": revoked_at})
            return True

    def __len__(self) -> int:
        return len(self._records)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_record(row: RefreshTokenModel) -> RefreshToken:
    return RefreshToken(
        value=row.token,
        user_id=row.user_id,
        created_at=_as_utc(row.created_at),
        expires_at=_as_utc(row.expires_at),
        revoked_at=_as_utc(row.revoked_at),
    )


class SqlAlchemyRefreshTokenStore:
    """
    Store backed by the refresh_tokens table.

    Each operation runs in its own session and transaction. Revocation is a
    single conditional UPDATE, so a concurrent refresh sees the row either
    before or after the revoke, never in between.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_value(self, value: str) -> Optional[RefreshToken]:
        query = select(RefreshTokenModel).where(RefreshTokenModel.token == value)
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                row = result.scalar_one_or_none()
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.error("Refresh token lookup failed: %s", exc)
            raise InternalError("refresh token store unavailable") from exc

    async def insert(self, token: RefreshToken) -> None:
        row = RefreshTokenModel(
            token=token.value,
            user_id=token.user_id,
            created_at=token.created_at,
            updated_at=token.created_at,
            expires_at=token.expires_at,
            revoked_at=token.revoked_at,
        )
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    session.add(row)
        except SQLAlchemyError as exc:
            logger.error("Refresh token insert failed: %s", exc)
            raise InternalError("refresh token store unavailable") from exc

    async def mark_revoked(self, value: str, revoked_at: datetime) -> bool:
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.token == value,
                RefreshTokenModel.revoked_at.is_(None),
            )
            .values(revoked_at=revoked_at, updated_at=revoked_at)
        )
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            logger.error("Refresh token revoke failed: %s", exc)
            raise InternalError("refresh token store unavailable") from exc
