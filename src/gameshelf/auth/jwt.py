"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (60min), used for API calls, carries email
- Refresh token: long-lived (7 days), only good for a new token pair

The codec is a pure function of the signing secret plus claims: no I/O,
no shared mutable state, safe to share across concurrent requests.
verify() answers "is this our token?"; is_valid() adds the expiry check.
Neither raises; failures come back as values so callers can't forget
to fail closed.
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

import jwt

from gameshelf.config import HMAC_ALGORITHMS, MIN_SECRET_BYTES, secret_bytes

REQUIRED_CLAIMS = ["sub", "type", "iat", "exp"]


class TokenType(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims of a token we signed."""
    subject: str
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None
    token_id: Optional[str] = None


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class Valid:
    payload: TokenPayload


@dataclass(frozen=True)
class Invalid:
    reason: str


TokenCheck = Union[Valid, Invalid]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Issues and verifies HMAC-signed identity tokens."""

    def __init__(
        self,
        secret: Optional[str],
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=60),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret or not secret.strip():
            raise ValueError("JWT secret must be configured")
        if secret_bytes(secret) < MIN_SECRET_BYTES:
            raise ValueError(
                f"JWT secret must be at least {MIN_SECRET_BYTES} bytes long"
            )
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(
                f"Unsupported JWT algorithm {algorithm!r}; use one of {HMAC_ALGORITHMS}"
            )
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock

    # ─── Issue ────────────────────────────────────────────

    def issue(
        self,
        subject: str,
        email: Optional[str],
        token_type: TokenType,
        ttl: timedelta,
    ) -> IssuedToken:
        """Sign a new token. Refresh tokens get a unique jti and no email."""
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")

        # JWT timestamps are whole seconds; truncate so the returned
        # expires_at matches what verify() will read back.
        now = self._clock().replace(microsecond=0)
        expires = now + ttl
        payload = {
            "sub": str(subject),
            "type": TokenType(token_type).value,
            "iat": now,
            "exp": expires,
        }
        if token_type == TokenType.ACCESS and email:
            payload["email"] = email
        if token_type == TokenType.REFRESH:
            payload["jti"] = uuid.uuid4().hex

        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires)

    def issue_access(self, subject: str, email: str) -> IssuedToken:
        return self.issue(subject, email, TokenType.ACCESS, self.access_ttl)

    def issue_refresh(self, subject: str) -> IssuedToken:
        return self.issue(subject, None, TokenType.REFRESH, self.refresh_ttl)

    # ─── Verify ───────────────────────────────────────────

    def verify(self, encoded: str) -> TokenCheck:
        """Check signature, encoding, and claim structure. Ignores expiry."""
        try:
            claims = jwt.decode(
                encoded,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as e:
            return Invalid(reason=str(e) or type(e).__name__)

        try:
            payload = TokenPayload(
                subject=str(claims["sub"]),
                token_type=TokenType(claims["type"]),
                issued_at=datetime.fromtimestamp(int(claims["iat"]), timezone.utc),
                expires_at=datetime.fromtimestamp(int(claims["exp"]), timezone.utc),
                email=claims.get("email"),
                token_id=claims.get("jti"),
            )
        except (TypeError, ValueError, OverflowError) as e:
            return Invalid(reason=f"Malformed claims: {e}")
        return Valid(payload=payload)

    def check(self, encoded: str) -> TokenCheck:
        """verify() plus the expiry check."""
        result = self.verify(encoded)
        if isinstance(result, Invalid):
            return result
        if result.payload.expires_at <= self._clock():
            return Invalid(reason="Token has expired")
        return result

    def is_valid(self, encoded: str) -> bool:
        return isinstance(self.check(encoded), Valid)
