"""Sales customer schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.common import APIModel


class CustomerCreateRequest(BaseModel):
    """Create a customer."""

    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)


class CustomerUpdateRequest(BaseModel):
    """Partially update a customer."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    credit_limit: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class CustomerSnapshot(APIModel):
    """Audited state of a customer."""

    code: str
    name: str
    email: str | None
    credit_limit: Decimal
    is_active: bool


class CustomerResponse(CustomerSnapshot):
    """Customer payload."""

    id: int
    created_at: datetime
    updated_at: datetime | None
