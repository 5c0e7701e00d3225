"""Request payload and read view for preferences."""

from pydantic import BaseModel, ConfigDict, Field


class PreferenceRead(BaseModel):
    """Preference fields exposed under preference:read and inside user:read."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    langue: str
    theme: str
    notifications: bool


class PreferencePayload(BaseModel):
    """Decoded body of preference create/update (types only)."""

    model_config = ConfigDict(extra="ignore", strict=True)

    langue: str | None = None
    theme: str | None = None
    notifications: bool | None = None
    user: int | None = Field(
        default=None,
        description="Owning user id; required on POST /preferences, ignored on updates",
    )
