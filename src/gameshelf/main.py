"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, and routers all registered here.

The token codec is built here, at startup, from validated settings: a
missing or short secret stops the app from being created at all.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from gameshelf import __version__
from gameshelf.api import api_router
from gameshelf.auth.identity import IdentityResolver
from gameshelf.auth.jwt import TokenCodec, TokenType
from gameshelf.config import Settings, settings as default_settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    cfg: Settings = app.state.settings
    logger.info(
        "gameshelf.starting",
        version=__version__,
        environment=cfg.environment,
        port=cfg.port,
    )

    from gameshelf.cache.redis import close_redis, init_redis
    try:
        await init_redis()
        logger.info("gameshelf.redis_connected", url=cfg.redis_url)
    except (RedisError, OSError) as e:
        logger.warning("gameshelf.redis_unavailable", error=str(e))
        # Redis is optional — only rate limiting depends on it

    yield

    logger.info("gameshelf.shutdown")
    await close_redis()

    from gameshelf.db.engine import engine
    await engine.dispose()


def build_token_codec(cfg: Settings) -> TokenCodec:
    return TokenCodec(
        cfg.jwt_secret,
        algorithm=cfg.jwt_algorithm,
        access_ttl=timedelta(minutes=cfg.access_token_expire_minutes),
        refresh_ttl=timedelta(days=cfg.refresh_token_expire_days),
    )


def create_app(
    cfg: Optional[Settings] = None,
    token_codec: Optional[TokenCodec] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = cfg or default_settings
    codec = token_codec or build_token_codec(cfg)

    app = FastAPI(
        title="Gameshelf",
        description="Accounts, board-game collections, and reviews",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.token_codec = codec

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → Authentication → handler

    from gameshelf.middleware.authentication import RequestAuthenticationMiddleware
    from gameshelf.middleware.rate_limit import RateLimitMiddleware
    from gameshelf.middleware.request_id import RequestIdMiddleware
    from gameshelf.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        RequestAuthenticationMiddleware,
        resolver=IdentityResolver(
            codec,
            required_type=TokenType.ACCESS,
            trusted_identity_header=cfg.trusted_identity_header,
            trusted_email_header=cfg.trusted_email_header,
        ),
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=cfg.rate_limit_rpm,
        auth_rpm=cfg.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: gameshelf.main:app)
app = create_app()
