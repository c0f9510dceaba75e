"""Bootstrap request schema."""

from pydantic import BaseModel, Field


class BootstrapRequest(BaseModel):
    """Create the initial administrator."""

    username: str = Field(default="admin", min_length=1, max_length=100)
