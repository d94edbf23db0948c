"""
Password hashing utilities using bcrypt.
"""

import base64
import hashlib
import re

import bcrypt

from chirpy_auth.kernel.identity.errors import (
    InternalError,
    MalformedError,
    UnauthenticatedError,
)

# Cost factor for bcrypt hashing (matches bcrypt's reference default)
BCRYPT_ROUNDS = 10

# bcrypt ignores input past this many bytes
BCRYPT_MAX_BYTES = 72

# $2b$10$ + 22 salt chars + 31 digest chars
_BCRYPT_HASH_RE = re.compile(r"^\$2[abxy]?\$(\d{2})\$[./A-Za-z0-9]{53}$")


class PasswordHasher:
    """Password hashing service."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    @staticmethod
    def _encode_password(password: str) -> bytes:
        """
        Encode a password for bcrypt.

        Passwords within bcrypt's 72-byte window are passed through unchanged.
        Longer ones are reduced to base64(sha256(password)) so every byte counts
        and two long passwords sharing a 72-byte prefix hash differently.
        """
        pwd_bytes = password.encode('utf-8')
        if len(pwd_bytes) <= BCRYPT_MAX_BYTES:
            return pwd_bytes
        return base64.b64encode(hashlib.sha256(pwd_bytes).digest())

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt with a fresh random salt.

        Args:
            password: Plain text password (may be empty)

        Returns:
            Encoded hash carrying algorithm tag, cost, salt and digest

        Raises:
            InternalError: If the OS random source fails
        """
        pwd_bytes = self._encode_password(password)
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
        except (OSError, NotImplementedError) as exc:
            raise InternalError("random source unavailable for salt generation") from exc
        hashed = bcrypt.hashpw(pwd_bytes, salt)
        return hashed.decode('utf-8')

    def verify(self, plain_password: str, hashed_password: str) -> None:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored hashed password

        Raises:
            MalformedError: If the stored hash is empty or not a bcrypt hash
            UnauthenticatedError: If the password does not match
        """
        if not hashed_password:
            raise MalformedError("password hash is empty")
        if not _BCRYPT_HASH_RE.match(hashed_password):
            raise MalformedError("password hash is not a bcrypt hash")

        pwd_bytes = self._encode_password(plain_password)
        try:
            matched = bcrypt.checkpw(pwd_bytes, hashed_password.encode('utf-8'))
        except ValueError as exc:
            raise MalformedError("password hash is not a bcrypt hash") from exc
        if not matched:
            raise UnauthenticatedError("password does not match")

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a password hash was produced with a different cost.

        Format: $2b$XX$... where XX is the rounds
        """
        match = _BCRYPT_HASH_RE.match(hashed_password or "")
        if not match:
            return True
        return int(match.group(1)) != self.rounds


_default_hasher = PasswordHasher()


# Convenience functions
def hash_password(password: str) -> str:
    """Hash a password."""
    return _default_hasher.hash(password)


def check_password_hash(plain_password: str, hashed_password: str) -> None:
    """Verify a password, raising on mismatch or a malformed hash."""
    _default_hasher.verify(plain_password, hashed_password)
