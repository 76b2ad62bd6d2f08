"""
web/routes.py -- Jinja2 template routes for the resource directory web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same stores, same listing cache) but return HTML instead of JSON.

Every page goes through web.guard.with_auth, which resolves the session and
applies the page's access rule before the handler runs.

Routes:
  GET  /                     -- home: category sidebar, search, sort, listing
  GET  /partials/resources   -- HTMX: resource list for a filter query string
  GET  /login                -- login form (signed-out visitors only)
  POST /login                -- handle password login
  POST /logout               -- clear cookie, redirect /
  GET  /account              -- current user (signed-in users only)
  GET  /admin                -- users and directory counts (administrators only)
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, set_auth_cookie
from core.config import get_settings
from core.filters import MODES, SORT_OPTIONS, ResourceFilters
from directory.store import ResourceStore
from web.guard import with_auth
from web.templating import templates

logger = logging.getLogger("resdir.web")

router = APIRouter()

_ERROR_MESSAGE = "An error occurred, please try again."

_MODE_LABELS = {
    "in": "Any selected category",
    "all": "All selected categories",
}
_SORT_LABELS = {
    "newest": "Newest first",
    "oldest": "Oldest first",
    "alphabetical": "A to Z",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fetch_listing(request: Request, filters: ResourceFilters) -> dict:
    """Return the listing payload for filters, read through the listing cache.

    The payload has the envelope shape used by the REST API. A store fault
    yields an error payload that is not cached, so the next poll retries.
    """
    query = filters.to_query_string()
    cache = request.app.state.listing_cache
    payload = cache.get(query)
    if payload is not None:
        return payload

    store: ResourceStore = request.app.state.directory
    try:
        resources = store.list_resources(filters)
        categories = store.list_categories()
    except SQLAlchemyError:
        logger.exception("Listing fetch failed for %s", query)
        return {"status": "error", "data": {}, "message": _ERROR_MESSAGE}

    payload = {
        "status": "success",
        "data": {
            "resources": [asdict(r) for r in resources],
            "categories": [{"id": c.id, "name": c.name} for c in categories],
        },
        "message": None,
    }
    cache.set(query, payload)
    return payload


def _listing_state(payload: dict) -> str:
    """Classify a listing payload: "error", "empty" or "results"."""
    resources = payload.get("data", {}).get("resources")
    if payload.get("status") == "error" or resources is None:
        return "error"
    if not resources:
        return "empty"
    return "results"


# ---------------------------------------------------------------------------
# GET / -- home page
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
@with_auth
def home(request: Request, user: Optional[User]) -> HTMLResponse:
    """Render the filter UI; the listing itself is loaded by HTMX."""
    filters = ResourceFilters.from_query(request.query_params)
    store: ResourceStore = request.app.state.directory
    categories_error = False
    try:
        categories = store.list_categories()
    except SQLAlchemyError:
        logger.exception("Category fetch failed for home page")
        categories = []
        categories_error = True

    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "user": user,
            "filters": filters,
            "categories": categories,
            "categories_error": categories_error,
            "query": filters.to_query_string(),
            "modes": [(m, _MODE_LABELS[m]) for m in MODES],
            "sort_options": [(s, _SORT_LABELS[s]) for s in SORT_OPTIONS],
            "refresh_seconds": get_settings().listing_refresh_seconds,
        },
    )


# ---------------------------------------------------------------------------
# GET /partials/resources -- HTMX: listing fragment
# ---------------------------------------------------------------------------


@router.get("/partials/resources", response_class=HTMLResponse)
def resources_fragment(request: Request) -> HTMLResponse:
    """Render the resource list for the filter query string.

    Polled by the home page every LISTING_REFRESH_SECONDS.
    """
    filters = ResourceFilters.from_query(request.query_params)
    payload = _fetch_listing(request, filters)
    state = _listing_state(payload)
    category_names: dict[int, str] = {}
    if state == "results":
        category_names = {c["id"]: c["name"] for c in payload["data"]["categories"]}

    return templates.TemplateResponse(
        request,
        "partials/resource_list.html",
        {
            "state": state,
            "resources": payload["data"].get("resources", []) if state == "results" else [],
            "category_names": category_names,
            "filters": filters,
            "error_message": _ERROR_MESSAGE,
        },
    )


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
@with_auth(logout_required=True)
def login_page(request: Request, user: Optional[User]) -> HTMLResponse:
    return templates.TemplateResponse(request, "login.html", {"user": user, "error": None, "username": ""})


@router.post("/login", response_class=HTMLResponse)
@with_auth(logout_required=True)
def login_submit(
    request: Request,
    user: Optional[User],
    username: str = Form(default=""),
    password: str = Form(default=""),
) -> HTMLResponse:
    """Handle the login form. Redirects home on success, re-renders on failure."""
    user_store: UserStore = request.app.state.user_store
    authenticated = authenticate_user(user_store, username.strip(), password) if username and password else None
    if authenticated is None:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"user": None, "error": "Invalid username or password.", "username": username},
        )

    logger.info("User %s signed in", authenticated.username)
    response = RedirectResponse("/", status_code=303)
    set_auth_cookie(response, create_access_token(authenticated.id))
    return response


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the session cookie and go home."""
    response = RedirectResponse("/", status_code=303)
    clear_auth_cookie(response)
    return response


# ---------------------------------------------------------------------------
# GET /account -- signed-in users
# ---------------------------------------------------------------------------


@router.get("/account", response_class=HTMLResponse)
@with_auth(login_required=True)
def account(request: Request, user: Optional[User]) -> HTMLResponse:
    return templates.TemplateResponse(request, "account.html", {"user": user})


# ---------------------------------------------------------------------------
# GET /admin -- administrators
# ---------------------------------------------------------------------------


@router.get("/admin", response_class=HTMLResponse)
@with_auth(admin_required=True)
def admin(request: Request, user: Optional[User]) -> HTMLResponse:
    """Admin overview: every user plus resource and category counts."""
    user_store: UserStore = request.app.state.user_store
    store: ResourceStore = request.app.state.directory
    return templates.TemplateResponse(
        request,
        "admin.html",
        {
            "user": user,
            "users": user_store.list_users(),
            "resource_count": store.count_resources(),
            "category_count": store.count_categories(),
        },
    )
