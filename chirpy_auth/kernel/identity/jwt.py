"""
Session token (JWT) minting and validation.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWSError, JWTError, jws, jwt
from pydantic import BaseModel, ValidationError

from chirpy_auth.kernel.identity.errors import (
    ExpiredError,
    MalformedError,
    UnauthenticatedError,
)

ISSUER = "chirpy"
ALGORITHM = "HS256"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionClaims(BaseModel):
    """Claims carried inside a session token."""

    iss: str
    sub: str  # User ID
    iat: int
    exp: int


class SessionTokenService:
    """
    Stateless session token creation and verification.

    The signing secret is passed into every call; nothing here holds
    process-wide state beyond the clock.
    """

    def __init__(
        self,
        issuer: str = ISSUER,
        algorithm: str = ALGORITHM,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.issuer = issuer
        self.algorithm = algorithm
        self.clock = clock

    def mint(self, subject: uuid.UUID, secret: str, ttl: timedelta) -> str:
        """
        Create a signed session token.

        Args:
            subject: Identity the token asserts
            secret: Shared HMAC secret (may be empty)
            ttl: Lifetime; negative values produce an already expired token

        Returns:
            Compact JWT string
        """
        now = self.clock()
        claims = SessionClaims(
            iss=self.issuer,
            sub=str(subject),
            iat=int(now.timestamp()),
            exp=int((now + ttl).timestamp()),
        )
        return jwt.encode(claims.model_dump(), secret, algorithm=self.algorithm)

    def validate(self, token: str, secret: str) -> uuid.UUID:
        """
        Verify a session token and return its subject.

        Raises:
            MalformedError: Token or claims could not be parsed
            UnauthenticatedError: Signature does not verify under secret
            ExpiredError: Token expiry has passed
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedError("session token is not a compact JWT") from exc

        if header.get("alg") != self.algorithm:
            raise UnauthenticatedError(
                "session token uses an unexpected signing algorithm",
                detail={"alg": header.get("alg")},
            )

        try:
            payload = jws.verify(token, secret, algorithms=[self.algorithm])
        except JWSError as exc:
            raise UnauthenticatedError("session token signature mismatch") from exc

        try:
            claims = SessionClaims.model_validate_json(payload)
            subject = uuid.UUID(claims.sub)
        except (ValidationError, ValueError) as exc:
            raise MalformedError("session token claims are invalid") from exc

        if int(self.clock().timestamp()) >= claims.exp:
            raise ExpiredError("session token has expired")

        return subject


# Default service instance
_session_tokens: Optional[SessionTokenService] = None


def get_session_token_service() -> SessionTokenService:
    """Get or create the default session token service."""
    global _session_tokens
    if _session_tokens is None:
        _session_tokens = SessionTokenService()
    return _session_tokens


# Convenience functions
def make_jwt(user_id: uuid.UUID, token_secret: str, expires_in: timedelta) -> str:
    """Mint a session token."""
    return get_session_token_service().mint(user_id, token_secret, expires_in)


def validate_jwt(token: str, token_secret: str) -> uuid.UUID:
    """Validate a session token and return the user ID."""
    return get_session_token_service().validate(token, token_secret)
