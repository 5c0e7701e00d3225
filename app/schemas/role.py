"""Request payload and read view for roles."""

from pydantic import BaseModel, ConfigDict, Field


class RoleRead(BaseModel):
    """Role as exposed under the role:read group (also embedded in users)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    nom: str
    description: str | None = None


class RolePayload(BaseModel):
    """
    Decoded body of POST/PUT /roles. Only types are checked here; field
    rules run on the entity afterwards.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    nom: str | None = None
    description: str | None = Field(default=None, description="Optional, null clears it")
