"""Admin-facing schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import APIModel


class UserCreateRequest(BaseModel):
    """Create a user and issue its token."""

    username: str = Field(min_length=1, max_length=100)
    is_admin: bool = False


class UserUpdateRequest(BaseModel):
    """Rename a user or change its role."""

    username: str | None = Field(default=None, min_length=1, max_length=100)
    is_admin: bool | None = None


class UserResponse(APIModel):
    """User metadata."""

    id: int
    username: str
    is_admin: bool
    created_at: datetime
