"""ORM models."""

from app.models.audit import AuditLog
from app.models.customer import Customer
from app.models.user import User

__all__ = [
    "AuditLog",
    "Customer",
    "User",
]
