from __future__ import annotations

from fastapi import HTTPException, Request

from ..config import DEFAULT_SESSION_CONFIG

_USER_KEY = DEFAULT_SESSION_CONFIG.user_key


def get_current_user(request: Request) -> dict | None:
    """Return the user dict from the session, or ``None`` for anonymous viewers."""
    return request.session.get(_USER_KEY)


def get_actor_id(request: Request) -> int | None:
    user = get_current_user(request)
    return user["id"] if user else None


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = request.session.get(_USER_KEY)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
