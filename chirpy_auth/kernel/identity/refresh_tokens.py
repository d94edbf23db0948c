"""
Opaque refresh token issuing, validation and revocation.
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from chirpy_auth.kernel.identity.errors import (
    ExpiredError,
    InternalError,
    NotFoundError,
    RevokedError,
)
from chirpy_auth.kernel.identity.jwt import utcnow
from chirpy_auth.logging_config import get_logger

if TYPE_CHECKING:
    from chirpy_auth.kernel.identity.token_store import RefreshTokenStore

logger = get_logger(__name__)

REFRESH_TOKEN_BYTES = 32
REFRESH_TOKEN_TTL = timedelta(days=60)


class RefreshToken(BaseModel):
    """Stored refresh token record."""

    model_config = ConfigDict(frozen=True)

    value: str
    user_id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None

    @field_validator("created_at", "expires_at", "revoked_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps from a store as UTC."""
        if v is None or v.tzinfo is not None:
            return v
        return v.replace(tzinfo=timezone.utc)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None


def make_refresh_token() -> str:
    """
    Generate 256 bits of randomness as 64 lowercase hex characters.

    Raises:
        InternalError: If the OS random source fails
    """
    try:
        return secrets.token_hex(REFRESH_TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise InternalError("random source unavailable for refresh token") from exc


class RefreshTokenManager:
    """
    Long-lived opaque tokens checked against a persisted record.

    Refreshing does not rotate the opaque value: it stays valid until its
    original expiry or an explicit revoke.
    """

    def __init__(
        self,
        store: "RefreshTokenStore",
        ttl: timedelta = REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    def issue(self, user_id: uuid.UUID) -> RefreshToken:
        """
        Create a new refresh token record for the caller to persist.

        Args:
            user_id: Owner of the token

        Returns:
            Unsaved RefreshToken expiring after the configured TTL
        """
        now = self.clock()
        return RefreshToken(
            value=make_refresh_token(),
            user_id=user_id,
            created_at=now,
            expires_at=now + self.ttl,
        )

    async def refresh(self, value: str) -> uuid.UUID:
        """
        Validate a refresh token and return its owner.

        Checks run in order: not found, expired, revoked.

        Raises:
            NotFoundError: No record matches value
            ExpiredError: Token is at or past its expiry
            RevokedError: Token was revoked
            InternalError: Store failure
        """
        record = await self.store.find_by_value(value)
        if record is None:
            raise NotFoundError("refresh token not found")
        if record.is_expired(self.clock()):
            raise ExpiredError("refresh token has expired")
        if record.is_revoked:
            raise RevokedError("refresh token has been revoked")
        return record.user_id

    async def revoke(self, value: str) -> None:
        """
        Revoke a refresh token. Revoking an already revoked token is a no-op.

        Raises:
            NotFoundError: No record matches value
            InternalError: Store failure
        """
        record = await self.store.find_by_value(value)
        if record is None:
            raise NotFoundError("refresh token not found")
        if record.is_revoked:
            return

        changed = await self.store.mark_revoked(value, self.clock())
        if changed:
            logger.info("Refresh token revoked", extra={"user_id": str(record.user_id)})
        else:
            # A concurrent revoke got there first
            logger.debug("Refresh token already revoked", extra={"user_id": str(record.user_id)})
