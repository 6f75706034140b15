"""Auth middleware -- FastAPI dependency for extracting the current user.

Sessions are opaque bearer tokens: ``Authorization: Bearer <session_token>``.
Issuing them is handled elsewhere.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from tonemeter.auth.models import User
from tonemeter.auth.store import UserStore
from web.backend.app.dependencies import get_user_store


async def get_current_user(
    authorization: Optional[str] = Header(None),
    store: UserStore = Depends(get_user_store),
) -> User:
    """FastAPI dependency that extracts and validates the current user.

    Raises ``401 Unauthorized`` if no valid session token is provided.
    """
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            user = store.validate_session(token)
            if user is not None:
                return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
