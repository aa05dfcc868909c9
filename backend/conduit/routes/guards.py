"""
Conduit Articles Backend — Viewer Resolution and Auth Guard
============================================================

What:  FastAPI dependencies that identify the requesting user.
How:   resolve_viewer() reads the Authorization header, verifies the token
       and loads the user; FastAPI caches its result for the rest of the
       request. auth_guard() is listed in a route's guard chain and rejects
       the request with 401 before the handler runs when there is no viewer.

Outcomes of resolve_viewer():
    no header                 → None (anonymous)
    unknown scheme / bad JWT  → None (anonymous)
    valid JWT, unknown user   → None (anonymous)
    valid JWT, known user     → User
"""

import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.exceptions import UnauthorizedError
from conduit.models import User
from conduit.security import decode_access_token, extract_token

logger = logging.getLogger(__name__)


async def resolve_viewer(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """Returns the authenticated user, or None for anonymous requests."""
    token = extract_token(authorization)
    if token is None:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    result = await db.execute(select(User).where(User.id == payload.user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Token subject %s does not match any user", payload.user_id)
    return user


async def auth_guard(viewer: Optional[User] = Depends(resolve_viewer)) -> User:
    """
    Rejects unauthenticated requests.

    Raises:
        UnauthorizedError: No valid token identified a user (→ 401).
    """
    if viewer is None:
        raise UnauthorizedError()
    return viewer
