"""
api/routes/resources.py -- Directory listing endpoints.

Routes:
  GET /api/resources?categories=&mode=&sortBy=&search=  -- filtered resource list
  GET /api/categories                                    -- all categories

Both are public and read-only. Query parameters use the same wire format as
the home page (core.filters.ResourceFilters), so the page URL and the API URL
of one filter state differ only by path.

Any store fault collapses to the generic error envelope (HTTP 400); the cause
is logged, never returned.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import limiter
from api.models import (
    CategoriesData,
    CategoriesEnvelope,
    CategoryOut,
    ErrorEnvelope,
    ResourceOut,
    ResourcesData,
    ResourcesEnvelope,
)
from core.filters import ResourceFilters
from directory.store import ResourceStore

logger = logging.getLogger("resdir.api.resources")

# Auth policy:
# - GET /api/resources:  public
# - GET /api/categories: public
router = APIRouter()


@limiter.limit("120/minute")
@router.get("/resources", response_model=ResourcesEnvelope)
def list_resources(request: Request):
    """Return the resources matching the filter query parameters.

    Unknown mode/sortBy values fall back to the defaults ("in", "newest");
    malformed category ids are ignored.
    """
    filters = ResourceFilters.from_query(request.query_params)
    store: ResourceStore = request.app.state.directory
    try:
        resources = store.list_resources(filters)
    except SQLAlchemyError:
        logger.exception("Resource listing failed for %s", filters.to_query_string())
        return JSONResponse(status_code=400, content=ErrorEnvelope().model_dump())

    return ResourcesEnvelope(data=ResourcesData(resources=[ResourceOut.from_resource(r) for r in resources]))


@limiter.limit("120/minute")
@router.get("/categories", response_model=CategoriesEnvelope)
def list_categories(request: Request):
    """Return every category ordered by name."""
    store: ResourceStore = request.app.state.directory
    try:
        categories = store.list_categories()
    except SQLAlchemyError:
        logger.exception("Category listing failed")
        return JSONResponse(status_code=400, content=ErrorEnvelope().model_dump())

    return CategoriesEnvelope(data=CategoriesData(categories=[CategoryOut.from_category(c) for c in categories]))
