"""EventSub Signatures — HMAC-SHA256 verification for Twitch webhook deliveries.

Invariants:
    - Signed message is message_id + timestamp + raw body, byte-for-byte
    - Signature header format: "sha256=" + lowercase hex digest
    - Comparison is constant time; a missing part never verifies
"""

import hashlib
import hmac

MESSAGE_ID_HEADER = "Twitch-Eventsub-Message-Id"
TIMESTAMP_HEADER = "Twitch-Eventsub-Message-Timestamp"
SIGNATURE_HEADER = "Twitch-Eventsub-Message-Signature"
MESSAGE_TYPE_HEADER = "Twitch-Eventsub-Message-Type"

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, message_id: str, timestamp: str, body: bytes) -> str:
    message = message_id.encode() + timestamp.encode() + body
    digest = hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(
    secret: str,
    message_id: str | None,
    timestamp: str | None,
    signature: str | None,
    body: bytes,
) -> bool:
    if not (secret and message_id and timestamp and signature):
        return False
    expected = compute_signature(secret, message_id, timestamp, body)
    return hmac.compare_digest(expected.encode(), signature.encode())
