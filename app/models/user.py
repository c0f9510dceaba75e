"""User model."""

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import TimestampMixin, id_column


class User(TimestampMixin, Base):
    """Authenticated actor with a bearer token."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_token_lookup", "token_lookup"),)

    id: Mapped[int] = id_column()
    username: Mapped[str] = mapped_column(String(100), unique=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    token_hash: Mapped[str] = mapped_column(String(512))
    token_lookup: Mapped[str] = mapped_column(String(64))
