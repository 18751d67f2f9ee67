"""One-way password hashing with bcrypt."""

from typing import Optional

import bcrypt

# bcrypt only considers the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Salted bcrypt hash and constant-time verification."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt."""
        password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against its hash. Malformed or missing hashes never match."""
        if not hashed_password:
            return False
        password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError:
            return False
