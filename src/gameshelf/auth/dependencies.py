"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The middleware has
already done the cryptography; these just hand its result to the
handler as a typed parameter, or refuse with 401 when a route needs an
identity and the request came in without one.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request

from gameshelf.auth.identity import Identity
from gameshelf.auth.jwt import TokenCodec


def get_current_identity_optional(request: Request) -> Optional[Identity]:
    """Identity for this request, or None for anonymous callers.

    Learn: This is the "soft" auth dependency. Used for endpoints that
    work both authenticated and unauthenticated.
    """
    return getattr(request.state, "identity", None)


def get_current_identity(
    identity: Optional[Identity] = Depends(get_current_identity_optional),
) -> Identity:
    """Identity for this request (required — 401 if none).

    Learn: This is the "hard" auth dependency. Used for endpoints
    that require authentication.
    """
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def get_token_codec(request: Request) -> TokenCodec:
    """The app-wide codec built in create_app()."""
    return request.app.state.token_codec
