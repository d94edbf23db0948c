"""
Identity Core - password hashing, session tokens and refresh tokens.
"""

from chirpy_auth.kernel.identity.errors import (
    AuthError,
    ErrorKind,
    ExpiredError,
    InternalError,
    MalformedError,
    NotFoundError,
    NotPresentError,
    RevokedError,
    UnauthenticatedError,
)
from chirpy_auth.kernel.identity.password import (
    PasswordHasher,
    check_password_hash,
    hash_password,
)
from chirpy_auth.kernel.identity.jwt import (
    SessionClaims,
    SessionTokenService,
    make_jwt,
    validate_jwt,
)
from chirpy_auth.kernel.identity.refresh_tokens import (
    RefreshToken,
    RefreshTokenManager,
    make_refresh_token,
)
from chirpy_auth.kernel.identity.token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    SqlAlchemyRefreshTokenStore,
)
from chirpy_auth.kernel.identity.credentials import (
    ExtractedCredential,
    extract_credential,
    get_api_key,
    get_bearer_token,
    verify_api_key,
)
from chirpy_auth.kernel.identity.identity_service import IdentityService, TokenPair

__all__ = [
    "AuthError",
    "ErrorKind",
    "ExpiredError",
    "InternalError",
    "MalformedError",
    "NotFoundError",
    "NotPresentError",
    "RevokedError",
    "UnauthenticatedError",
    "PasswordHasher",
    "check_password_hash",
    "hash_password",
    "SessionClaims",
    "SessionTokenService",
    "make_jwt",
    "validate_jwt",
    "RefreshToken",
    "RefreshTokenManager",
    "make_refresh_token",
    "InMemoryRefreshTokenStore",
    "RefreshTokenStore",
    "SqlAlchemyRefreshTokenStore",
    "ExtractedCredential",
    "extract_credential",
    "get_api_key",
    "get_bearer_token",
    "verify_api_key",
    "IdentityService",
    "TokenPair",
]
