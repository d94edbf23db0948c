"""
Runtime wiring for the identity kernel.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from chirpy_auth.config import Settings, get_settings
from chirpy_auth.database import build_engine, build_session_maker, close_db, init_db
from chirpy_auth.kernel.identity.identity_service import IdentityService
from chirpy_auth.kernel.identity.token_store import SqlAlchemyRefreshTokenStore
from chirpy_auth.logging_config import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def auth_runtime(settings: Optional[Settings] = None) -> AsyncIterator[IdentityService]:
    """
    Build an IdentityService backed by the configured database.

    Runs startup and shutdown tasks around the yielded service.
    """
    settings = settings or get_settings()

    # Configure logging first
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    if not settings.jwt_secret:
        logger.warning("JWT secret is empty; session tokens are signed with an empty key")
    if not settings.api_key:
        logger.warning("API key is empty; every ApiKey request will be rejected")

    engine = build_engine(settings.database_url, echo=settings.debug)
    try:
        await init_db(engine)
        logger.info("Database initialized")

        store = SqlAlchemyRefreshTokenStore(build_session_maker(engine))
        yield IdentityService(settings, store)
    finally:
        await close_db(engine)
        logger.info("Database connections closed")
