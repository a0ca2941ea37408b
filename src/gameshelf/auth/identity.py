"""Identity resolution — credential material in, typed outcome out.

Learn: Per request the resolver walks a tiny state machine:

    NoCredential → Anonymous            (no header at all)
                 → Rejected(reason)     (bad/expired/wrong-kind credential)
                 → Authenticated(id)    (good credential)

"Anonymous" is not a failure. The gate lets the request through and any
handler that needs an identity rejects on its own (see dependencies.py).
Every failure path, including surprises while decoding, lands in
Rejected, so nothing here can accidentally produce an identity.
"""

import enum
from dataclasses import dataclass
from typing import Mapping, Optional, Union

from gameshelf.auth.jwt import Invalid, TokenCodec, TokenType

BEARER_SCHEME = "bearer"


class AuthFailure(str, enum.Enum):
    """Why a credential was refused. Deliberately coarse."""
    INVALID_CREDENTIAL = "invalid_credential"
    WRONG_TOKEN_KIND = "wrong_token_kind"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Built once per request, never mutated."""
    subject: int
    email: Optional[str] = None
    token_id: Optional[str] = None


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticated:
    identity: Identity


@dataclass(frozen=True)
class Rejected:
    failure: AuthFailure
    detail: str


Resolution = Union[Anonymous, Authenticated, Rejected]

_INVALID = Rejected(AuthFailure.INVALID_CREDENTIAL, "Invalid or expired token")


def _parse_subject(raw: str) -> Optional[int]:
    try:
        subject = int(raw)
    except (TypeError, ValueError):
        return None
    return subject if subject > 0 else None


class IdentityResolver:
    """Turns request credentials into an Identity for one resolution point.

    required_type is the token kind this point accepts: "access" for
    ordinary API use, "refresh" for the token-exchange endpoint.
    """

    def __init__(
        self,
        codec: TokenCodec,
        *,
        required_type: TokenType = TokenType.ACCESS,
        trusted_identity_header: Optional[str] = None,
        trusted_email_header: Optional[str] = None,
    ):
        self.codec = codec
        self.required_type = required_type
        self.trusted_identity_header = trusted_identity_header
        self.trusted_email_header = trusted_email_header

    def resolve_headers(self, headers: Mapping[str, str]) -> Resolution:
        """Resolve from HTTP headers. Bearer tokens win over gateway headers."""
        authorization = headers.get("authorization")
        if authorization:
            # Auth schemes are case-insensitive (RFC 7235).
            scheme, sep, credentials = authorization.partition(" ")
            if sep and scheme.lower() == BEARER_SCHEME:
                return self.resolve_token(credentials.strip())

        if self.trusted_identity_header:
            raw = headers.get(self.trusted_identity_header)
            if raw is not None:
                return self._resolve_gateway(raw, headers)

        return Anonymous()

    def resolve_token(self, token: str) -> Resolution:
        """Resolve a bare encoded token."""
        if not token:
            return _INVALID

        result = self.codec.check(token)
        if isinstance(result, Invalid):
            return _INVALID

        payload = result.payload
        if payload.token_type != self.required_type:
            return Rejected(
                AuthFailure.WRONG_TOKEN_KIND,
                f"{self.required_type.value.capitalize()} token required",
            )

        subject = _parse_subject(payload.subject)
        if subject is None:
            return _INVALID

        return Authenticated(
            Identity(subject=subject, email=payload.email, token_id=payload.token_id)
        )

    def _resolve_gateway(self, raw: str, headers: Mapping[str, str]) -> Resolution:
        subject = _parse_subject(raw.strip())
        if subject is None:
            return Rejected(AuthFailure.INVALID_CREDENTIAL, "Invalid identity header")
        email = (
            headers.get(self.trusted_email_header)
            if self.trusted_email_header
            else None
        )
        return Authenticated(Identity(subject=subject, email=email))
