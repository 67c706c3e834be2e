"""bcrypt-backed implementation of the PasswordHasher port."""

import bcrypt

from registers.application.interfaces import PasswordHasher


class BcryptHasher(PasswordHasher):
    """Hashes secrets with bcrypt using a configurable cost factor."""

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    def hash(self, secret: str) -> str:
        # bcrypt only considers the first 72 bytes
        secret_bytes = secret.encode("utf-8")[:72]
        hashed = bcrypt.hashpw(secret_bytes, bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    def verify(self, secret: str, hashed: str) -> bool:
        secret_bytes = secret.encode("utf-8")[:72]
        try:
            return bcrypt.checkpw(secret_bytes, hashed.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False
