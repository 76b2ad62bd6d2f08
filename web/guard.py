"""
web/guard.py -- Access-control wrapper for server-rendered pages.

with_auth() wraps a page handler. Before the page runs, the wrapper reads the
session cookie, verifies it and loads the user (auth.dependencies
.resolve_session). The page is then either rendered with the resolved user or
replaced by the generic error view:

  admin_required   -- denied unless a user is present AND is an administrator
  login_required   -- denied when nobody is signed in (ignored if
                      logout_required is also set)
  logout_required  -- denied when somebody is signed in (login form)

A cookie that does not resolve to a user is expired on whichever response
goes out, page or error view.

The wrapped handler must accept `request` and `user` parameters. FastAPI only
sees the remaining parameters (path, query, form), so pages keep declaring
their own inputs the usual way:

    @router.get("/account", response_class=HTMLResponse)
    @with_auth(login_required=True)
    def account(request: Request, user: Optional[User]) -> HTMLResponse: ...
"""

import functools
import inspect
import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from auth.dependencies import resolve_session
from auth.models import User
from auth.tokens import clear_auth_cookie
from web.templating import templates

logger = logging.getLogger("resdir.web.guard")

_DENIED_STATUS = 403


def is_denied(
    user: Optional[User],
    *,
    login_required: bool = False,
    logout_required: bool = False,
    admin_required: bool = False,
) -> bool:
    """Return True when the configured condition forbids rendering for user."""
    if admin_required and (user is None or not user.is_admin):
        return True
    if login_required and not logout_required and user is None:
        return True
    if logout_required and user is not None:
        return True
    return False


def render_error(request: Request, user: Optional[User] = None, status_code: int = _DENIED_STATUS) -> Response:
    """Render the generic error view."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"user": user},
        status_code=status_code,
    )


def with_auth(
    page: Optional[Callable] = None,
    *,
    login_required: bool = False,
    logout_required: bool = False,
    admin_required: bool = False,
):
    """Wrap a page handler with session resolution and an access rule.

    Usable bare (@with_auth) or configured (@with_auth(admin_required=True)).
    """

    def decorate(func: Callable) -> Callable:
        signature = inspect.signature(func)
        if "request" not in signature.parameters or "user" not in signature.parameters:
            raise TypeError(f"{func.__name__} must accept 'request' and 'user' parameters")
        is_async = inspect.iscoroutinefunction(func)

        @functools.wraps(func)
        async def wrapper(request: Request, **kwargs):
            session = await run_in_threadpool(resolve_session, request)
            if session.clear_cookie:
                logger.info("Discarding invalid session cookie on %s", request.url.path)

            if is_denied(
                session.user,
                login_required=login_required,
                logout_required=logout_required,
                admin_required=admin_required,
            ):
                response = render_error(request, session.user)
            elif is_async:
                response = await func(request=request, user=session.user, **kwargs)
            else:
                response = await run_in_threadpool(func, request=request, user=session.user, **kwargs)

            if session.clear_cookie:
                clear_auth_cookie(response)
            return response

        # FastAPI builds the request model from the signature; hide `user`.
        wrapper.__signature__ = signature.replace(
            parameters=[p for name, p in signature.parameters.items() if name != "user"]
        )
        return wrapper

    if page is not None:
        return decorate(page)
    return decorate
