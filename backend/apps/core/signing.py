"""
Webhook signature verification for identity provider events.

The provider signs each delivery with HMAC-SHA256 over "<timestamp>.<payload>"
and sends the result in a single header: "t=<unix-seconds>,v1=<hex-digest>".
"""

import hashlib
import hmac
import time

SIGNATURE_VERSION = "v1"

# Default replay window in seconds, used by the webhook view via settings
DEFAULT_TOLERANCE = 300


def _signed_content(timestamp: int | str, payload: bytes | str) -> bytes:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return f"{timestamp}.".encode() + payload


def _compute_digest(secret: str, timestamp: int | str, payload: bytes | str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        _signed_content(timestamp, payload),
        hashlib.sha256,
    ).hexdigest()


def parse_signature_header(signature_header: str) -> tuple[str, str] | None:
    """
    Split a signature header into (timestamp, digest).

    Returns None when either segment is missing.
    """
    timestamp = digest = None
    for part in signature_header.split(","):
        key, sep, value = part.strip().partition("=")
        if not sep:
            continue
        if key == "t":
            timestamp = value
        elif key == SIGNATURE_VERSION:
            digest = value

    if not timestamp or not digest:
        return None
    return timestamp, digest


def sign_payload(payload: bytes | str, secret: str, timestamp: int | None = None) -> str:
    """
    Produce a signature header for a payload.

    Uses the same canonicalization as verify_signature. Intended for tests and
    local event simulation.

    Args:
        payload: Raw request body
        secret: Webhook signing secret
        timestamp: Unix timestamp (defaults to current time)

    Returns:
        Header value "t=<timestamp>,v1=<hex>"
    """
    if timestamp is None:
        timestamp = int(time.time())
    return f"t={timestamp},{SIGNATURE_VERSION}={_compute_digest(secret, timestamp, payload)}"


def verify_signature(
    payload: bytes | str,
    signature_header: str,
    secret: str,
    tolerance: int | None = None,
    now: int | None = None,
) -> bool:
    """
    Verify a webhook signature header against the raw payload.

    Never raises: malformed headers and non-numeric timestamps verify False.

    Args:
        payload: Raw request body, exactly as received
        signature_header: Value of the signature header
        secret: Webhook signing secret
        tolerance: Maximum age/skew of the signed timestamp in seconds.
            None disables the check.
        now: Current unix time, for tests

    Returns:
        True if the digest matches (and the timestamp is within tolerance)
    """
    parsed = parse_signature_header(signature_header or "")
    if parsed is None:
        return False
    timestamp, digest = parsed

    try:
        timestamp_int = int(timestamp)
    except ValueError:
        return False

    if tolerance is not None:
        current_time = int(time.time()) if now is None else now
        if abs(current_time - timestamp_int) > tolerance:
            return False

    expected = _compute_digest(secret, timestamp, payload)

    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(expected.encode(), digest.encode("utf-8", "replace"))
