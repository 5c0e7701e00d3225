"""ORM model for directory users and their role membership table."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.models.base import Base

# Owning side of User <-> Role. Rows go away with either end.
user_roles_table = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Directory user.

    roles: free-form role names stored on the user itself.
    user_roles: Role rows linked through user_roles (many-to-many).
    preference: at most one Preference, removed together with the user.
    password: bcrypt hash, never the plaintext.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(180), nullable=False, unique=True, index=True)
    nom = Column(String(255), nullable=False)
    prenom = Column(String(255), nullable=False)
    roles = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user_roles = relationship(
        "Role",
        secondary=user_roles_table,
        back_populates="users",
        order_by="Role.id",
    )
    preference = relationship(
        "Preference",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("roles", [])
        super().__init__(**kwargs)

    def get_roles(self) -> list[str]:
        """Free-form roles plus linked Role names, deduplicated, first occurrence kept."""
        names = list(self.roles or [])
        names.extend(role.nom for role in self.user_roles)
        return list(dict.fromkeys(names))

    @property
    def granted_roles(self) -> list[str]:
        return self.get_roles()

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"User(id={self.id!r}, email={self.email!r})"
