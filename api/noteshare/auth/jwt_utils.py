from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional, Dict, Any
import logging

from ..config.settings import JWT_SECRET_KEY, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from ..core.errors import InvalidToken

logger = logging.getLogger(__name__)

# ────────────────────────────────────────────────────────────────────
#  Public API
# ────────────────────────────────────────────────────────────────────
def create_access_token(
    claims: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    secret_key: str = JWT_SECRET_KEY,
) -> str:
    """
    Create a signed session token for a user.

    Args:
        claims: Identity claims, must include ``id``; ``email`` and ``name``
            are carried as given
        expires_delta: Optional lifetime. Without one (and with no configured
            ACCESS_TOKEN_EXPIRE_MINUTES) the token never expires
        secret_key: Signing key

    Returns:
        str: The encoded JWT
    """
    if claims.get("id") is None:
        raise ValueError("claims must include the user id")

    now = datetime.now(timezone.utc)
    data = {
        "sub": str(claims["id"]),
        "id": claims["id"],
        "email": claims.get("email"),
        "name": claims.get("name"),
        "iat": now,
    }

    if expires_delta is None and ACCESS_TOKEN_EXPIRE_MINUTES > 0:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    if expires_delta is not None:
        data["exp"] = now + expires_delta

    return jwt.encode(data, secret_key, algorithm=JWT_ALGORITHM)


def verify_token(token: str, secret_key: str = JWT_SECRET_KEY) -> Dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        InvalidToken: bad signature, malformed token, expired ``exp`` or
            missing identity claims
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token validation failed: {str(e)}")
        raise InvalidToken()

    if payload.get("id") is None:
        logger.warning("Token missing required claims")
        raise InvalidToken()

    return payload
