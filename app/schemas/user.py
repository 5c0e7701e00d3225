"""Request payload, read view and paginated list envelope for users."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.preference import PreferenceRead
from app.schemas.role import RoleRead


class UserRead(BaseModel):
    """
    User under the user:read group. No password field exists here.

    Attribute sources differ from the wire names: roles comes from
    User.granted_roles (free-form roles plus linked role names), createdAt
    from created_at, userRoles from user_roles.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    email: str
    nom: str
    prenom: str
    roles: list[str] = Field(default_factory=list, validation_alias="granted_roles")
    createdAt: datetime = Field(validation_alias="created_at")
    userRoles: list[RoleRead] = Field(default_factory=list, validation_alias="user_roles")
    preference: PreferenceRead | None = None


class UserPayload(BaseModel):
    """Decoded body of POST/PUT /users (types only)."""

    model_config = ConfigDict(extra="ignore", strict=True)

    email: str | None = None
    nom: str | None = None
    prenom: str | None = None
    password: str | None = Field(default=None, description="Plaintext, hashed before storage")
    roles: list[str] | None = Field(default=None, description="Free-form role names")
    userRoles: list[int] | None = Field(default=None, description="Ids of Role rows to link")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    sort: str
    order: str


class UserListResponse(BaseModel):
    """Response for GET /users."""

    data: list[UserRead]
    meta: PageMeta
