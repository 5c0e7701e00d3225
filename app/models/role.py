"""ORM model for named roles assignable to users."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.models.user import user_roles_table


class Role(Base):
    """Role such as ROLE_ADMIN. users is the inverse side of User.user_roles."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nom = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=True)

    users = relationship(
        "User",
        secondary=user_roles_table,
        back_populates="user_roles",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Role(id={self.id!r}, nom={self.nom!r})"
