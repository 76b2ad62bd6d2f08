"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in directory/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/, web/, directory/, or cache/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """An account able to hold a session.

    Users are created outside the web surface (registration flow or the
    `create-user` CLI command) and only read here. hashed_password must never
    leave the server; the API maps users through api.models.PublicUser.
    """

    username: str
    hashed_password: str
    is_admin: bool = False
    id: int | None = None
    created_at: str | None = None


@dataclass
class SessionState:
    """Outcome of reading the session cookie for one request.

    user        -- the authenticated user, None for anonymous requests
    clear_cookie -- True when a cookie was sent but did not resolve to a user
                   (bad signature, expired, unknown user); the response must
                   expire it so the browser stops replaying it.
    """

    user: User | None = None
    clear_cookie: bool = False
