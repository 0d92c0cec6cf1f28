"""Bearer token expiry checks.

Tokens are JWTs ('header.payload.signature'). Only the payload is inspected;
the signature is the server's business. Anything that cannot be read is
treated as expired so that a broken token is never sent.
"""

import base64
import binascii
import json
import logging
import time
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Tokens expiring within this window are rejected before they are sent.
DEFAULT_EXPIRY_SKEW_SECONDS = 5 * 60

def decode_token_payload(token: str) -> Optional[Dict[str, Any]]:
    """Returns the decoded JWT payload, or None if the token is malformed."""
    parts = token.split(".")
    if len(parts) != 3:
        logger.warning(f"Token has {len(parts)} segment(s), expected 3")
        return None

    segment = parts[1]
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
        payload = json.loads(raw)
    except (binascii.Error, ValueError) as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        logger.warning(f"Failed to decode token payload: {e}")
        return None

    if not isinstance(payload, dict):
        logger.warning(f"Token payload is a {type(payload).__name__}, expected an object")
        return None
    return payload

def is_token_expired(
    token: Optional[str],
    now: Optional[float] = None,
    skew_seconds: float = DEFAULT_EXPIRY_SKEW_SECONDS,
) -> bool:
    """Decides whether a bearer token is unusable.

    Args:
        token: The token string, possibly None.
        now: Current Unix time in seconds (wall clock if None).
        skew_seconds: Safety margin before `exp` during which the token is
            already considered expired.

    Returns:
        True if the token is missing, malformed, or expires within the skew
        window; False if it is well-formed and either unbounded (no `exp`)
        or valid beyond the window.
    """
    if not token:
        return True

    payload = decode_token_payload(token)
    if payload is None:
        return True

    exp = payload.get("exp")
    if exp is None:
        return False
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        logger.warning(f"Token 'exp' claim is not numeric: {type(exp).__name__}")
        return True

    current = time.time() if now is None else now
    return current >= exp - skew_seconds
