"""Common schema primitives."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

ItemT = TypeVar("ItemT")


class APIModel(BaseModel):
    """Base API model with attribute validation enabled."""

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(APIModel):
    """Return a generated token exactly once."""

    user_id: int
    username: str
    token: str


class MessageResponse(APIModel):
    """Simple message response."""

    message: str
    timestamp: datetime | None = None


class PaginatedResponse(APIModel, Generic[ItemT]):
    """Page envelope for list endpoints."""

    data: list[ItemT]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(
        cls, items: list[ItemT], *, total: int, page: int, page_size: int
    ) -> "PaginatedResponse[ItemT]":
        """Assemble an envelope and derive ``total_pages``.

        Parameters
        ----------
        items : list[ItemT]
            Items on the current page.
        total : int
            Total match count.
        page : int
            Normalized page number.
        page_size : int
            Normalized page size.

        Returns
        -------
        PaginatedResponse[ItemT]
            Page envelope.
        """
        total_pages = (total + page_size - 1) // page_size if page_size else 0
        return cls(
            data=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )
