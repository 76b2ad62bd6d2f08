"""
auth/dependencies.py -- Session resolution and FastAPI Depends() helpers.

Two credentials are checked in priority order:
  1. Session cookie ("auth" by default) -- set by the login flow.
  2. Authorization: Bearer <token> header -- API clients.

resolve_session() is the cookie-only reader used by the page guard in
web/guard.py. It reports whether a stale cookie must be cleared.

try_get_current_user() is the soft variant for API routes (returns None on
failure). get_current_user() raises HTTP 401 if unauthenticated and
require_admin() raises HTTP 403 if the user is not an administrator.

Layer rule: no imports from api/, web/, directory/, or cache/.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from auth.models import SessionState, User
from auth.store import UserStore
from auth.tokens import decode_access_token
from core.config import get_settings

logger = logging.getLogger("resdir.auth")


def _user_for_token(store: UserStore, token: str) -> User | None:
    payload = decode_access_token(token)
    if payload is None:
        return None
    try:
        return store.get_by_id(payload["user_id"])
    except SQLAlchemyError:
        logger.warning("User lookup failed for session token", exc_info=True)
        return None


def resolve_session(request: Request) -> SessionState:
    """Read the session cookie and load its user.

    No cookie: anonymous, nothing to clear. A cookie that fails verification
    or names a user that no longer exists: anonymous, and the cookie is
    flagged for removal.
    """
    token = request.cookies.get(get_settings().auth_cookie_name)
    if not token:
        return SessionState()
    user = _user_for_token(request.app.state.user_store, token)
    if user is None:
        return SessionState(clear_cookie=True)
    return SessionState(user=user)


def try_get_current_user(request: Request) -> User | None:
    """Authenticate via session cookie, then Bearer header. Never raises."""
    user_store: UserStore = request.app.state.user_store

    token: str | None = request.cookies.get(get_settings().auth_cookie_name)
    if token:
        user = _user_for_token(user_store, token)
        if user is not None:
            return user

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return _user_for_token(user_store, auth_header[7:])

    return None


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required.")
    return user


def require_admin(request: Request) -> User:
    """Require an administrator. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin."""
    user = get_current_user(request)
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required.")
    return user
