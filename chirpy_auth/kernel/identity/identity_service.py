"""
Identity service composing hashing, session tokens and refresh tokens.
"""

import uuid
from typing import Mapping, Optional

from pydantic import BaseModel

from chirpy_auth.config import Settings
from chirpy_auth.kernel.identity import credentials
from chirpy_auth.kernel.identity.errors import AuthError
from chirpy_auth.kernel.identity.jwt import SessionTokenService
from chirpy_auth.kernel.identity.password import PasswordHasher
from chirpy_auth.kernel.identity.refresh_tokens import RefreshTokenManager
from chirpy_auth.kernel.identity.token_store import RefreshTokenStore
from chirpy_auth.logging_config import get_logger

logger = get_logger(__name__)


class TokenPair(BaseModel):
    """Session and refresh token pair returned on login."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until the session token expires


class IdentityService:
    """
    Login, request authentication, refresh and revoke flows.

    User lookup stays with the caller: login receives the identity and its
    stored password hash.
    """

    def __init__(
        self,
        settings: Settings,
        store: RefreshTokenStore,
        hasher: Optional[PasswordHasher] = None,
        session_tokens: Optional[SessionTokenService] = None,
        refresh_tokens: Optional[RefreshTokenManager] = None,
    ):
        self.settings = settings
        self.store = store
        self.hasher = hasher or PasswordHasher(rounds=settings.bcrypt_rounds)
        self.session_tokens = session_tokens or SessionTokenService()
        self.refresh_tokens = refresh_tokens or RefreshTokenManager(
            store, ttl=settings.refresh_token_ttl
        )

    async def login(self, user_id: uuid.UUID, password: str, password_hash: str) -> TokenPair:
        """
        Verify a password and issue a session/refresh token pair.

        The refresh token is persisted before the pair is returned.

        Raises:
            UnauthenticatedError: Password mismatch
            MalformedError: Stored hash is not a valid hash
            InternalError: Random source or store failure
        """
        try:
            self.hasher.verify(password, password_hash)
        except AuthError as exc:
            logger.info(
                "Login rejected",
                extra={"user_id": str(user_id), "error_code": exc.error_code},
            )
            raise

        if self.hasher.needs_rehash(password_hash):
            logger.info("Password hash uses outdated cost", extra={"user_id": str(user_id)})

        ttl = self.settings.session_token_ttl
        access_token = self.session_tokens.mint(user_id, self.settings.jwt_secret, ttl)
        refresh_token = self.refresh_tokens.issue(user_id)
        await self.store.insert(refresh_token)

        logger.info("User logged in", extra={"user_id": str(user_id)})
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token.value,
            expires_in=int(ttl.total_seconds()),
        )

    def authenticate(self, headers: Mapping[str, str]) -> uuid.UUID:
        """Return the identity asserted by the request's bearer session token."""
        token = credentials.get_bearer_token(headers)
        return self.session_tokens.validate(token, self.settings.jwt_secret)

    async def refresh(self, headers: Mapping[str, str]) -> str:
        """
        Exchange the bearer refresh token for a new session token.

        The refresh token itself is left unchanged.
        """
        value = credentials.get_bearer_token(headers)
        user_id = await self.refresh_tokens.refresh(value)
        return self.session_tokens.mint(
            user_id, self.settings.jwt_secret, self.settings.session_token_ttl
        )

    async def revoke(self, headers: Mapping[str, str]) -> None:
        """Revoke the bearer refresh token."""
        value = credentials.get_bearer_token(headers)
        await self.refresh_tokens.revoke(value)

    def verify_api_key(self, headers: Mapping[str, str]) -> None:
        """Check the request's ApiKey credential against the configured key."""
        credentials.verify_api_key(headers, self.settings.api_key)

    def change_password(self, new_password: str) -> str:
        """Hash a new password; the caller replaces the stored hash wholesale."""
        return self.hasher.hash(new_password)
