"""
Persistence models for the identity kernel.
"""

from chirpy_auth.kernel.models.base import Base, TimestampMixin
from chirpy_auth.kernel.models.refresh_token import RefreshTokenModel

__all__ = [
    "Base",
    "TimestampMixin",
    "RefreshTokenModel",
]
