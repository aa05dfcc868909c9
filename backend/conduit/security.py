"""
Conduit Articles Backend — Access Tokens
=========================================

What:  Encoding and decoding of the JWT access tokens shared with the
       profile/auth service.
How:   HS256 via python-jose, signed with settings.jwt_secret.
       Claims: sub (user id), username, exp.
Who:   The auth guard decodes; the auth service (and tests) encode.

Header formats accepted by extract_token():
    Authorization: Token <jwt>
    Authorization: Bearer <jwt>
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from conduit.config import settings

logger = logging.getLogger(__name__)

TOKEN_SCHEMES = ("token", "bearer")


@dataclass(frozen=True)
class TokenPayload:
    user_id: uuid.UUID
    username: Optional[str]


def create_access_token(
    user_id: uuid.UUID,
    username: str,
    expires_delta: Optional[timedelta] = None,
    now_utc: Optional[datetime] = None,
) -> str:
    """
    Create a signed access token.

    Args:
        user_id: Subject of the token.
        username: Convenience claim, not trusted for authorization.
        expires_delta: Lifetime; defaults to settings.access_token_expire_minutes.
        now_utc: Issue time, for deterministic tests.
    """
    issued = now_utc if now_utc is not None else datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "username": username,
        "exp": issued + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[TokenPayload]:
    """Returns the payload of a valid token, or None if it is expired, tampered or malformed."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("Rejected access token: %s", str(e))
        return None

    subject = claims.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        return None
    return TokenPayload(user_id=user_id, username=claims.get("username"))


def extract_token(authorization: Optional[str]) -> Optional[str]:
    """Pulls the raw token out of an Authorization header value."""
    if not authorization:
        return None
    parts = authorization.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() not in TOKEN_SCHEMES:
        return None
    return parts[1].strip() or None
