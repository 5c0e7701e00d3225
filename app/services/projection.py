"""
Output shaping: entity (or list of entities) -> plain JSON-compatible data.

Each (model, group) pair maps to one explicit pydantic view. Views list the
exposed fields; anything not listed (the password in particular) cannot leak.
Relations are embedded one level deep through the target's own view.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from app.models import Preference, Role, User
from app.schemas.preference import PreferenceRead
from app.schemas.role import RoleRead
from app.schemas.user import UserRead

USER_READ = "user:read"
ROLE_READ = "role:read"
PREFERENCE_READ = "preference:read"

VIEWS: dict[tuple[type, str], type[BaseModel]] = {
    (User, USER_READ): UserRead,
    (Role, ROLE_READ): RoleRead,
    (Role, USER_READ): RoleRead,
    (Preference, PREFERENCE_READ): PreferenceRead,
    (Preference, USER_READ): PreferenceRead,
}


class ProjectionError(LookupError):
    """No view is registered for this entity type and group."""


def view_for(model: type, group: str) -> type[BaseModel]:
    try:
        return VIEWS[(model, group)]
    except KeyError:
        raise ProjectionError(f"No {group!r} view for {model.__name__}") from None


def project(subject: Any, group: str) -> Any:
    """
    Project one entity to a dict, or any iterable of entities to a list.

    Raises ProjectionError when ``group`` has no view for the entity type.
    """
    if isinstance(subject, Iterable) and not isinstance(subject, (str, bytes, dict)):
        return [project(item, group) for item in subject]
    view = view_for(type(subject), group)
    return view.model_validate(subject).model_dump(mode="json")
