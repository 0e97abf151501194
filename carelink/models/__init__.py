"""SQLAlchemy ORM models."""

from carelink.models.base import Base
from carelink.models.service_order import ServiceOrder
from carelink.models.user import User, UserSession

__all__ = ["Base", "ServiceOrder", "User", "UserSession"]
