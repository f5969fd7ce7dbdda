"""Salted PBKDF2-SHA256 password hashing.

Encoded form: ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``
"""
from __future__ import annotations

import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"


class Pbkdf2Hasher:
    def __init__(self, iterations: int = 200_000) -> None:
        self._iterations = iterations

    def _digest(self, password: str, salt: str, iterations: int) -> str:
        dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
        return dk.hex()

    def hash(self, password: str) -> str:
        salt = secrets.token_hex(16)
        digest = self._digest(password, salt, self._iterations)
        return f"{ALGORITHM}${self._iterations}${salt}${digest}"

    def verify(self, password: str, encoded: str) -> bool:
        try:
            algorithm, iterations, salt, digest = encoded.split("$", 3)
            rounds = int(iterations)
        except ValueError:
            return False
        if algorithm != ALGORITHM or rounds <= 0:
            return False
        candidate = self._digest(password, salt, rounds)
        return hmac.compare_digest(candidate, digest)
