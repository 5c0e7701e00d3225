"""Pydantic request/response schemas."""

from app.schemas.health import HealthResponse
from app.schemas.preference import PreferencePayload, PreferenceRead
from app.schemas.role import RolePayload, RoleRead
from app.schemas.user import PageMeta, UserListResponse, UserPayload, UserRead

__all__ = [
    "HealthResponse",
    "PageMeta",
    "PreferencePayload",
    "PreferenceRead",
    "RolePayload",
    "RoleRead",
    "UserListResponse",
    "UserPayload",
    "UserRead",
]
