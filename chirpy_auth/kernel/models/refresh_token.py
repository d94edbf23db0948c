"""
Refresh token table.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from chirpy_auth.kernel.models.base import Base, TimestampMixin


class RefreshTokenModel(Base, TimestampMixin):
    """Persisted refresh token. Rows are retained after expiry or revocation."""

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    def __repr__(self) -> str:
        return f"<RefreshToken user={self.user_id} expires={self.expires_at:%Y-%m-%d}>"
