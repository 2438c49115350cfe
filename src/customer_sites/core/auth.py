"""Request authentication.

Requests carry two query parameters:
- auth: hex SHA-256 digest of the shared secret
- t: epoch milliseconds when the request was built (optional)

The digest depends on the secret alone, so it acts as a long-lived bearer
token; t only bounds how long a captured URL stays usable.
"""

from __future__ import annotations

import hashlib
import logging
import time

logger = logging.getLogger(__name__)

# Requests older than this are rejected when t is supplied
DEFAULT_MAX_AGE_MS = 10 * 60 * 1000


def compute_auth_hash(secret: str) -> str:
    """Compute the auth digest for a shared secret.

    Args:
        secret: Shared secret (plain text).

    Returns:
        64-character lowercase hex string (SHA256)
    """
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


def verify_auth(
    auth: str | None,
    timestamp: str | None,
    secret: str | None,
    now: int | None = None,
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
    require_timestamp: bool = False,
) -> bool:
    """Check a request's credential and freshness.

    Args:
        auth: Value of the auth query parameter.
        timestamp: Value of the t query parameter (epoch ms), if any.
        secret: Server-held shared secret. None fails closed.
        now: Current epoch ms (defaults to the wall clock).
        max_age_ms: Maximum accepted age of t.
        require_timestamp: Reject requests without t.

    Returns:
        True if the request is authenticated. Never raises.
    """
    if not secret:
        logger.error("Shared secret is not configured; rejecting API request")
        return False

    try:
        expected = compute_auth_hash(secret)
    except Exception as e:
        logger.error(f"Failed to compute auth digest: {e}")
        return False

    if not auth or auth != expected:
        logger.warning("API auth failed: digest mismatch")
        return False

    if not timestamp:
        if require_timestamp:
            logger.warning("API auth failed: timestamp missing")
            return False
        return True

    try:
        issued_at = int(timestamp)
    except ValueError:
        logger.warning(f"API auth failed: invalid timestamp {timestamp!r}")
        return False

    current = now_ms() if now is None else now
    if current - issued_at > max_age_ms:
        logger.warning("API auth failed: timestamp expired")
        return False

    return True
