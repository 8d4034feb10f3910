"""bcrypt helpers for the credential accounts kept by the auth gateway."""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt ignores everything past the first 72 bytes.
BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """Return the bcrypt hash of *password* with a fresh salt.

    Raises:
        ValueError: for an empty password, or one bcrypt would truncate.
    """
    raw = password.encode("utf-8")
    if not raw or len(raw) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be 1-{BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    raw = password.encode("utf-8")
    if not raw or not password_hash or len(raw) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(raw, password_hash.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        logger.warning("Rejecting credential with a malformed password hash")
        return False
