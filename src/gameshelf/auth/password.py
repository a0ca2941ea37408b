"""Password hashing utilities.

Learn: bcrypt salts automatically and stores its own work factor in the
hash ("$2b$12$..."), so raising GAMESHELF_BCRYPT_ROUNDS doesn't break old
hashes. needs_rehash() spots hashes made with a different cost and the
login flow re-hashes them while it still has the plaintext.
"""

import bcrypt

from gameshelf.config import settings

BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    # bcrypt ignores everything past 72 bytes; newer releases raise instead.
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt at the configured work factor."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def hash_rounds(password_hash: str) -> int | None:
    """Work factor recorded in a bcrypt hash, or None if it isn't one."""
    parts = password_hash.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return None
    return int(parts[2])


def needs_rehash(password_hash: str, rounds: int | None = None) -> bool:
    return hash_rounds(password_hash) != (rounds or settings.bcrypt_rounds)
