"""
API request and response models for the resource directory REST endpoints.

Every endpoint answers with the same envelope:

    {"status": "success" | "error", "data": {...}, "message": str | null}

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in directory/models.py and auth/models.py, which
own the domain representation. Factory classmethods map between the two.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User
from directory.models import Category, Resource

GENERIC_ERROR_MESSAGE = "An error occurred, please try again."


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class PublicUser(BaseModel):
    """Client-safe view of a user. The password hash is never part of it."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    is_admin: bool
    created_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(id=user.id, username=user.username, is_admin=user.is_admin, created_at=user.created_at)


class CategoryOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    @classmethod
    def from_category(cls, category: Category) -> "CategoryOut":
        return cls(id=category.id, name=category.name)


class ResourceOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    url: str
    categories: list[int]
    created_at: str

    @classmethod
    def from_resource(cls, resource: Resource) -> "ResourceOut":
        return cls(
            id=resource.id,
            title=resource.title,
            description=resource.description,
            url=resource.url,
            categories=list(resource.category_ids),
            created_at=resource.created_at,
        )


class UserData(BaseModel):
    user: PublicUser


class ResourcesData(BaseModel):
    resources: list[ResourceOut]


class CategoriesData(BaseModel):
    categories: list[CategoryOut]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class UserEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: UserData
    message: Optional[str] = None


class ResourcesEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: ResourcesData
    message: Optional[str] = None


class CategoriesEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: CategoriesData
    message: Optional[str] = None


class MessageEnvelope(BaseModel):
    """Success envelope carrying no data, e.g. logout."""

    status: Literal["success"] = "success"
    data: dict = Field(default_factory=dict)
    message: Optional[str] = None


class ErrorEnvelope(BaseModel):
    """Error envelope returned on every 4xx/5xx response.

    data is always empty so clients can branch on status alone.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    data: dict = Field(default_factory=dict)
    message: str = GENERIC_ERROR_MESSAGE


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
