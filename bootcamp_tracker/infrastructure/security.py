"""Credentials & Sessions — PBKDF2 password hashing and signed session tokens.

Invariants:
    - Stored hash is base64(salt[16] + pbkdf2_sha256(password, salt, 200k)[32])
    - verify_password never raises on malformed stored values; it returns False
    - Session tokens carry only the user id, signed and timestamped (itsdangerous)
    - An expired or tampered token reads as None (anonymous)
"""

import base64
import binascii
import hashlib
import secrets
import uuid

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

_SALT_BYTES = 16
_KEY_BYTES = 32
_ITERATIONS = 200_000
_TOKEN_SALT = "bootcamp-session"


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(_SALT_BYTES)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _ITERATIONS)
    return base64.b64encode(salt + dk).decode("ascii")


def verify_password(password: str, stored: str) -> bool:
    try:
        raw = base64.b64decode(stored.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        return False
    if len(raw) != _SALT_BYTES + _KEY_BYTES:
        return False
    salt, stored_key = raw[:_SALT_BYTES], raw[_SALT_BYTES:]
    new_key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _ITERATIONS)
    return secrets.compare_digest(new_key, stored_key)


class SessionTokens:
    """Issues and reads signed session tokens."""

    def __init__(self, secret_key: str, max_age_seconds: int):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_TOKEN_SALT)
        self.max_age_seconds = max_age_seconds

    def issue(self, user_id: uuid.UUID) -> str:
        return self._serializer.dumps({"uid": str(user_id)})

    def read(self, token: str | None) -> uuid.UUID | None:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self.max_age_seconds)
        except (BadSignature, SignatureExpired):
            return None
        try:
            return uuid.UUID(data["uid"])
        except (KeyError, TypeError, ValueError):
            return None
