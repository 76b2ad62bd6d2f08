"""
tests/conftest.py -- Shared test fixtures for the resource directory.

This module provides:
  - _make_test_stores(): isolated in-memory DBs for users and the directory
  - _seed_users() / seed_directory(): two users (admin, member) and a small
    categorised directory
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client / web_client: module-scoped TestClients with session tokens
  - web / api: per-test views of those clients with an empty cookie jar

Named shared-memory SQLite URIs (not plain :memory:) are required because
TestClient runs sync route handlers in a thread pool. The named URI format
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any auth/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# Set DEBUG before any auth/core import so get_settings() can auto-generate
# SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
# TestClient sends Host: testserver, which production defaults do not allow.
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from cache.store import ListingCache
from directory.models import Category, Resource
from directory.store import ResourceStore

ADMIN_PASSWORD = "adminpass123"
MEMBER_PASSWORD = "memberpass123"


@dataclass
class Sessions:
    """Tokens and ids of the seeded users."""

    admin_id: int
    member_id: int
    admin: str
    member: str


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, ResourceStore]:
    """Create isolated named shared-memory SQLite stores.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'web').
    """
    users_url = f"sqlite:///file:test_users_{db_suffix}?mode=memory&cache=shared&uri=true"
    directory_url = f"sqlite:///file:test_directory_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=users_url), ResourceStore(db_url=directory_url)


def seed_directory(store: ResourceStore) -> dict[str, int]:
    """Create three categories and four resources. Returns category ids by name.

    Resource            Categories          created_at
    SQLAlchemy Core     Python, Databases   2024-01-01
    FastAPI guide       Python, Web         2024-02-01
    PostgreSQL manual   Databases           2024-03-01
    HTMX examples       Web                 2024-04-01
    """
    ids = {name: store.create_category(Category(name=name)) for name in ("Python", "Databases", "Web")}
    rows = [
        ("SQLAlchemy Core", "Query building without the ORM", ["Python", "Databases"], "2024-01-01T00:00:00+00:00"),
        ("FastAPI guide", "Typed web APIs in Python", ["Python", "Web"], "2024-02-01T00:00:00+00:00"),
        ("PostgreSQL manual", "Reference for the database server", ["Databases"], "2024-03-01T00:00:00+00:00"),
        ("HTMX examples", "Hypermedia patterns for the web", ["Web"], "2024-04-01T00:00:00+00:00"),
    ]
    for title, description, categories, created_at in rows:
        store.create_resource(
            Resource(
                title=title,
                url=f"https://example.org/{title.lower().replace(' ', '-')}",
                description=description,
                category_ids=[ids[c] for c in categories],
                created_at=created_at,
            )
        )
    return ids


def _seed_users(user_store: UserStore) -> Sessions:
    admin_id = user_store.create_user(
        User(username="admin", hashed_password=hash_password(ADMIN_PASSWORD), is_admin=True)
    )
    member_id = user_store.create_user(User(username="member", hashed_password=hash_password(MEMBER_PASSWORD)))
    return Sessions(
        admin_id=admin_id,
        member_id=member_id,
        admin=create_access_token(admin_id, expire_seconds=3600),
        member=create_access_token(member_id, expire_seconds=3600),
    )


def _patch_lifespan(user_store: UserStore, directory: ResourceStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine: a real asyncio.Task is
    required because shutdown calls .cancel() on it.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.directory = directory
        app.state.listing_cache = ListingCache(ttl=60)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        app.state.listing_cache.close()

    return test_lifespan


def _client(db_suffix: str) -> Generator[tuple[TestClient, Sessions], None, None]:
    user_store, directory = _make_test_stores(db_suffix)
    sessions = _seed_users(user_store)
    seed_directory(directory)

    app.router.lifespan_context = _patch_lifespan(user_store, directory)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client, sessions

    user_store.close()
    directory.close()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


def _module_key(request: pytest.FixtureRequest) -> str:
    """DB name suffix unique to the requesting test module."""
    return request.module.__name__.replace(".", "_")


@pytest.fixture(scope="module")
def api_client(request: pytest.FixtureRequest) -> Generator[tuple[TestClient, Sessions], None, None]:
    """Yield (client, sessions) for REST API integration tests."""
    yield from _client(f"api_{_module_key(request)}")


@pytest.fixture(scope="module")
def web_client(request: pytest.FixtureRequest) -> Generator[tuple[TestClient, Sessions], None, None]:
    """Yield (client, sessions) for web route integration tests.

    follow_redirects=False: tests assert on redirect locations and on the
    Set-Cookie headers of the redirect response itself.
    """
    yield from _client(f"web_{_module_key(request)}")


@pytest.fixture
def api(api_client: tuple[TestClient, Sessions]) -> tuple[TestClient, Sessions]:
    """api_client with an empty cookie jar, so one test's login cannot leak into the next."""
    client, sessions = api_client
    client.cookies.clear()
    return client, sessions


@pytest.fixture
def web(web_client: tuple[TestClient, Sessions]) -> tuple[TestClient, Sessions]:
    """web_client with an empty cookie jar."""
    client, sessions = web_client
    client.cookies.clear()
    return client, sessions


def set_cookie_headers(response) -> list[str]:
    """Return every Set-Cookie header value of an httpx response."""
    return response.headers.get_list("set-cookie")


def cookie_cleared(response, name: str = "auth") -> bool:
    """True if the response expires the named cookie."""
    return any(h.startswith(f"{name}=") and "max-age=0" in h.lower() for h in set_cookie_headers(response))
