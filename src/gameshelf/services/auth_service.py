"""Account service — registration, login, and token refresh.

Learn: All three flows end the same way: a fresh access + refresh pair
for a user row. Refresh is the interesting one:

1. The refresh token goes through the same IdentityResolver as API
   calls, configured to accept only refresh tokens, so an access token
   gets WRONG_TOKEN_KIND here exactly like a refresh token does at the
   API gate.
2. With rotation on, the old token's jti is written to revoked_tokens.
   A second exchange of the same token hits that row (or the primary
   key, if two requests race) and is refused as an invalid credential.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gameshelf.auth.identity import (
    AuthFailure,
    Authenticated,
    IdentityResolver,
    Rejected,
)
from gameshelf.auth.jwt import TokenCodec, TokenType, Valid, utcnow
from gameshelf.auth.password import hash_password, needs_rehash, verify_password
from gameshelf.db.models import RevokedToken, User
from gameshelf.services.errors import ConflictError

logger = structlog.get_logger()


class AuthenticationError(Exception):
    """Credentials were refused. Always surfaced as 401."""

    def __init__(self, failure: AuthFailure, detail: str):
        super().__init__(detail)
        self.failure = failure
        self.detail = detail


class EmailAlreadyExistsError(ConflictError):
    """Raised when registering an email that is already taken."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime
    user: User


def _invalid_token() -> AuthenticationError:
    return AuthenticationError(AuthFailure.INVALID_CREDENTIAL, "Invalid or expired token")


class AuthService:
    """Issues token pairs for registration, login, and refresh."""

    def __init__(self, db: AsyncSession, codec: TokenCodec, *, rotate_refresh_tokens: bool = True):
        self.db = db
        self.codec = codec
        self.rotate_refresh_tokens = rotate_refresh_tokens
        self._refresh_resolver = IdentityResolver(codec, required_type=TokenType.REFRESH)

    # ─── Register ─────────────────────────────────────────

    async def register(self, email: str, name: str, password: str) -> TokenPair:
        if await self._find_by_email(email):
            raise EmailAlreadyExistsError(f"Email {email} is already registered")

        user = User(email=email, name=name, password_hash=hash_password(password))
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise EmailAlreadyExistsError(f"Email {email} is already registered")
        await self.db.refresh(user)

        logger.info("auth.registered", user_id=user.id)
        return self._issue_pair(user)

    # ─── Login ────────────────────────────────────────────

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self._find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("auth.login_failed")
            raise AuthenticationError(AuthFailure.INVALID_CREDENTIAL, "Invalid credentials")

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
            await self.db.commit()
            logger.info("auth.password_rehashed", user_id=user.id)

        logger.info("auth.login", user_id=user.id)
        return self._issue_pair(user)

    # ─── Refresh ──────────────────────────────────────────

    async def refresh(self, refresh_token: str) -> TokenPair:
        resolution = self._refresh_resolver.resolve_token(refresh_token)
        if isinstance(resolution, Rejected):
            logger.warning("auth.refresh_rejected", failure=resolution.failure.value)
            raise AuthenticationError(resolution.failure, resolution.detail)
        if not isinstance(resolution, Authenticated):
            raise _invalid_token()
        identity = resolution.identity

        user = await self.db.get(User, identity.subject)
        if not user:
            raise _invalid_token()

        if self.rotate_refresh_tokens:
            await self._revoke(identity.token_id, user.id, refresh_token)

        logger.info("auth.refreshed", user_id=user.id)
        return self._issue_pair(user)

    # ─── Helpers ──────────────────────────────────────────

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def _revoke(self, token_id: str | None, user_id: int, token: str) -> None:
        """Record the jti so this refresh token can't be exchanged again."""
        if not token_id:
            raise _invalid_token()
        if await self.db.get(RevokedToken, token_id):
            logger.warning("auth.refresh_reused", user_id=user_id)
            raise _invalid_token()

        check = self.codec.verify(token)
        expires_at = check.payload.expires_at if isinstance(check, Valid) else utcnow()
        self.db.add(RevokedToken(jti=token_id, user_id=user_id, expires_at=expires_at))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("auth.refresh_reused", user_id=user_id)
            raise _invalid_token()

    def _issue_pair(self, user: User) -> TokenPair:
        access = self.codec.issue_access(str(user.id), user.email)
        refresh = self.codec.issue_refresh(str(user.id))
        return TokenPair(
            access_token=access.token,
            refresh_token=refresh.token,
            expires_at=access.expires_at,
            refresh_expires_at=refresh.expires_at,
            user=user,
        )
