"""TokenCodec tests — issuing, verifying, and expiry.

Learn: The codec never raises on bad input; every failure is an Invalid
value. A controllable clock makes expiry deterministic instead of
sleeping in tests.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from gameshelf.auth.jwt import Invalid, TokenCodec, TokenType, Valid

SECRET = "codec-test-secret-0123456789abcdefghijklmnop"
OTHER_SECRET = "another-secret-0123456789abcdefghijklmnopqr"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def codec(clock):
    return TokenCodec(
        SECRET,
        access_ttl=timedelta(minutes=60),
        refresh_ttl=timedelta(days=7),
        clock=clock,
    )


# ═══════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize("secret", [None, "", "   "])
def test_missing_secret_rejected(secret):
    with pytest.raises(ValueError):
        TokenCodec(secret)


def test_short_secret_rejected():
    with pytest.raises(ValueError, match="at least 32 bytes"):
        TokenCodec("too-short")


def test_whitespace_does_not_count_toward_secret_length():
    padded = "  too-short  " + " " * 32
    with pytest.raises(ValueError, match="at least 32 bytes"):
        TokenCodec(padded)


@pytest.mark.parametrize("algorithm", ["RS256", "ES256", "none", "hs256"])
def test_non_hmac_algorithm_rejected(algorithm):
    with pytest.raises(ValueError, match="Unsupported JWT algorithm"):
        TokenCodec(SECRET, algorithm=algorithm)


@pytest.mark.parametrize("algorithm", ["HS384", "HS512"])
def test_stronger_hmac_algorithms_round_trip(algorithm):
    codec = TokenCodec("k" * 64, algorithm=algorithm)
    issued = codec.issue_access("7", "g@example.com")

    result = codec.check(issued.token)
    assert isinstance(result, Valid)
    assert pyjwt.get_unverified_header(issued.token)["alg"] == algorithm


def test_non_positive_ttl_rejected(codec):
    with pytest.raises(ValueError):
        codec.issue("1", "a@example.com", TokenType.ACCESS, timedelta(0))
    with pytest.raises(ValueError):
        codec.issue("1", "a@example.com", TokenType.ACCESS, timedelta(seconds=-5))


# ═══════════════════════════════════════════════════════════
# Issue → verify
# ═══════════════════════════════════════════════════════════


def test_access_token_round_trip(codec, clock):
    issued = codec.issue_access("42", "alice@example.com")

    assert issued.expires_at == clock.now + timedelta(minutes=60)
    assert codec.is_valid(issued.token)

    result = codec.check(issued.token)
    assert isinstance(result, Valid)
    payload = result.payload
    assert payload.subject == "42"
    assert payload.token_type == TokenType.ACCESS
    assert payload.email == "alice@example.com"
    assert payload.token_id is None
    assert payload.issued_at == clock.now
    assert payload.expires_at == issued.expires_at


def test_refresh_token_has_jti_and_no_email(codec):
    first = codec.check(codec.issue_refresh("42").token)
    second = codec.check(codec.issue_refresh("42").token)

    assert isinstance(first, Valid) and isinstance(second, Valid)
    assert first.payload.token_type == TokenType.REFRESH
    assert first.payload.email is None
    assert first.payload.token_id
    assert first.payload.token_id != second.payload.token_id


def test_issue_truncates_microseconds(clock):
    clock.now = clock.now.replace(microsecond=987654)
    codec = TokenCodec(SECRET, clock=clock)

    issued = codec.issue_access("1", "a@example.com")
    result = codec.check(issued.token)

    assert isinstance(result, Valid)
    assert issued.expires_at.microsecond == 0
    assert result.payload.expires_at == issued.expires_at


# ═══════════════════════════════════════════════════════════
# Expiry
# ═══════════════════════════════════════════════════════════


def test_token_valid_until_expiry(codec, clock):
    issued = codec.issue_access("1", "a@example.com")

    clock.advance(timedelta(minutes=59, seconds=59))
    assert codec.is_valid(issued.token)

    clock.advance(timedelta(seconds=1))
    assert not codec.is_valid(issued.token)


def test_expired_token_still_verifies_structurally(codec, clock):
    issued = codec.issue_access("1", "a@example.com")
    clock.advance(timedelta(days=1))

    assert isinstance(codec.verify(issued.token), Valid)
    result = codec.check(issued.token)
    assert isinstance(result, Invalid)
    assert "expired" in result.reason


# ═══════════════════════════════════════════════════════════
# Tampering and foreign tokens
# ═══════════════════════════════════════════════════════════


def test_wrong_secret_rejected(codec, clock):
    other = TokenCodec(OTHER_SECRET, clock=clock)
    token = other.issue_access("1", "a@example.com").token

    assert isinstance(codec.verify(token), Invalid)
    assert not codec.is_valid(token)


def test_tampered_signature_rejected(codec):
    token = codec.issue_access("1", "a@example.com").token
    head, body, sig = token.split(".")
    flipped = sig[:-2] + ("AA" if sig[-2:] != "AA" else "BB")

    assert not codec.is_valid(f"{head}.{body}.{flipped}")


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c", "....", "Bearer x"])
def test_malformed_token_rejected(codec, garbage):
    assert isinstance(codec.check(garbage), Invalid)


def test_missing_required_claim_rejected(codec, clock):
    token = pyjwt.encode(
        {"sub": "1", "iat": clock.now, "exp": clock.now + timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )
    assert isinstance(codec.verify(token), Invalid)


def test_unknown_token_type_rejected(codec, clock):
    token = pyjwt.encode(
        {
            "sub": "1",
            "type": "session",
            "iat": clock.now,
            "exp": clock.now + timedelta(hours=1),
        },
        SECRET,
        algorithm="HS256",
    )
    result = codec.verify(token)
    assert isinstance(result, Invalid)
    assert "Malformed" in result.reason


def test_unsigned_token_rejected(codec, clock):
    token = pyjwt.encode(
        {
            "sub": "1",
            "type": "access",
            "iat": clock.now,
            "exp": clock.now + timedelta(hours=1),
        },
        None,
        algorithm="none",
    )
    assert not codec.is_valid(token)
