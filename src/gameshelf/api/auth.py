"""Auth API — registration, login, token refresh.

Learn: Routes for the token lifecycle:
- POST /auth/register → create a user, return access + refresh tokens
- POST /auth/login → email/password → access + refresh tokens
- POST /auth/refresh → refresh token → brand-new token pair

Every failure here is a 401 with a deliberately vague message; the
response never says whether a signature, an expiry, or a password was
the problem.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.dependencies import get_token_codec
from gameshelf.auth.jwt import TokenCodec
from gameshelf.db.engine import get_db
from gameshelf.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from gameshelf.services.auth_service import (
    AuthenticationError,
    AuthService,
    EmailAlreadyExistsError,
    TokenPair,
)

router = APIRouter(prefix="/auth")


def _svc(
    request: Request,
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(
        db,
        codec,
        rotate_refresh_tokens=request.app.state.settings.rotate_refresh_tokens,
    )


def _to_response(pair: TokenPair) -> AuthResponse:
    return AuthResponse.model_validate(pair)


def _unauthorized(e: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=e.detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new user account and log it in."""
    try:
        return _to_response(await svc.register(body.email, body.name, body.password))
    except EmailAlreadyExistsError:
        raise HTTPException(status_code=409, detail="Email already registered")


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Login with email and password → JWT tokens."""
    try:
        return _to_response(await svc.login(body.email, body.password))
    except AuthenticationError as e:
        raise _unauthorized(e)


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AuthResponse)
async def refresh(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Exchange a refresh token for a new access + refresh pair."""
    try:
        return _to_response(await svc.refresh(body.refresh_token))
    except AuthenticationError as e:
        raise _unauthorized(e)
