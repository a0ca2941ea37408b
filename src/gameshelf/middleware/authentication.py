"""Request authentication middleware — resolve the caller once per request.

Learn: Runs before every route. Three outcomes:
- no credential → pass through untouched (handlers decide if they need one)
- bad credential → 401 plain text, the route never runs
- good credential → Identity stored on request.state.identity

Handlers never read request.state directly; they take the Identity as
an explicit parameter through get_current_identity (auth/dependencies.py).
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from gameshelf.auth.identity import Authenticated, IdentityResolver, Rejected

logger = structlog.get_logger()


class RequestAuthenticationMiddleware(BaseHTTPMiddleware):
    """Attach an Identity to the request or short-circuit with 401."""

    def __init__(self, app, resolver: IdentityResolver):
        super().__init__(app)
        self.resolver = resolver

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.identity = None
        resolution = self.resolver.resolve_headers(request.headers)

        if isinstance(resolution, Rejected):
            logger.warning(
                "auth.credential_rejected",
                failure=resolution.failure.value,
                client_ip=request.client.host if request.client else "unknown",
                path=request.url.path,
            )
            return PlainTextResponse(
                resolution.detail,
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )

        if isinstance(resolution, Authenticated):
            request.state.identity = resolution.identity
            structlog.contextvars.bind_contextvars(
                user_id=resolution.identity.subject
            )

        return await call_next(request)
