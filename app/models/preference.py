"""ORM model for per-user interface preferences."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base

DEFAULT_LANGUE = "fr"
DEFAULT_THEME = "light"
DEFAULT_NOTIFICATIONS = True


class Preference(Base):
    """
    Language, theme and notification settings of exactly one user.

    user_id is unique and non-null: one row per user at most, never ownerless.
    """

    __tablename__ = "preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    langue = Column(String(5), nullable=False, default=DEFAULT_LANGUE)
    theme = Column(String(10), nullable=False, default=DEFAULT_THEME)
    notifications = Column(Boolean, nullable=False, default=DEFAULT_NOTIFICATIONS)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    user = relationship("User", back_populates="preference")

    def __init__(self, **kwargs):
        # Column defaults only apply at INSERT; set them now so validation sees them.
        kwargs.setdefault("langue", DEFAULT_LANGUE)
        kwargs.setdefault("theme", DEFAULT_THEME)
        kwargs.setdefault("notifications", DEFAULT_NOTIFICATIONS)
        super().__init__(**kwargs)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Preference(id={self.id!r}, user_id={self.user_id!r}, theme={self.theme!r})"
