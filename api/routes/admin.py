"""
api/routes/admin.py -- Administrator endpoints.

Routes:
  GET /api/admin/users/{user_id}  -- user record without password hash

A missing user and a database fault produce the same response: HTTP 400 with
the generic error envelope. Callers cannot tell an unknown id from an outage.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import ErrorEnvelope, PublicUser, UserData, UserEnvelope
from auth.dependencies import require_admin
from auth.store import UserStore
from core.filters import MAX_ID

logger = logging.getLogger("resdir.api.admin")

# Auth policy:
# - every route: requires admin -- enforced once at router level
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/admin/users/{user_id}", response_model=UserEnvelope)
def get_user(request: Request, user_id: int = Path(ge=1, le=MAX_ID)):
    """Look a user up by id and return it without the password hash."""
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_by_id(user_id)
    except SQLAlchemyError:
        logger.exception("Admin user lookup failed for id=%d", user_id)
        user = None

    if user is None:
        return JSONResponse(status_code=400, content=ErrorEnvelope().model_dump())

    return UserEnvelope(data=UserData(user=PublicUser.from_user(user)))
