"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.preference import Preference
from app.models.role import Role
from app.models.user import User, user_roles_table

__all__ = ["Base", "Preference", "Role", "User", "user_roles_table"]
