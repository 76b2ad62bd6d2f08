"""
api/routes/auth.py -- Session endpoints.

Routes:
  POST /api/auth/login   -- password login; sets the session cookie
  POST /api/auth/logout  -- clears the session cookie
  GET  /api/auth/me      -- current user (requires auth)

Security:
  POST /login is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  authenticate_user() provides timing equalization -- use it, never inline.
  Wrong username and wrong password return the same error message.
  Cache-Control: no-store on login responses.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import ErrorEnvelope, LoginRequest, MessageEnvelope, PublicUser, UserData, UserEnvelope
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, set_auth_cookie
from core.config import get_settings

# Auth policy:
# - POST /api/auth/login:  public
# - POST /api/auth/logout: public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:     requires auth (get_current_user)
router = APIRouter()


@limiter.limit(get_settings().login_rate_limit)
@router.post("/auth/login", response_model=UserEnvelope)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password and set the session cookie."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content=ErrorEnvelope(message="Invalid username or password.").model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(user.id)
    resp = JSONResponse(
        status_code=200,
        content=UserEnvelope(data=UserData(user=PublicUser.from_user(user))).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageEnvelope)
async def logout() -> JSONResponse:
    """Clear the session cookie."""
    resp = JSONResponse(content=MessageEnvelope(message="Logged out.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/auth/me", response_model=UserEnvelope)
async def me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    """Return the currently authenticated user."""
    return UserEnvelope(data=UserData(user=PublicUser.from_user(current_user)))
