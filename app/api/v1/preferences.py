"""Standalone preference endpoints. Each preference still belongs to one user."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.v1.common import (
    ensure_valid,
    entity_resolver,
    get_store,
    parse_payload,
    read_json_object,
)
from app.core.exceptions import EntityNotFoundError
from app.models import Preference, User
from app.schemas.preference import PreferencePayload, PreferenceRead
from app.services.projection import PREFERENCE_READ, project
from app.services.store import EntityStore
from app.services.validation import Violation, validate

router = APIRouter()

resolve_preference = entity_resolver(Preference)

EDITABLE_FIELDS = ("langue", "theme", "notifications")


def _owner_violations(store: EntityStore, user_id: int | None) -> tuple[User | None, list[Violation]]:
    """Load the owning user for a new preference, or explain why it cannot own one."""
    if user_id is None:
        return None, [Violation("user", "L'utilisateur ne peut pas être nul")]
    try:
        user = store.find_by_id(User, user_id)
    except EntityNotFoundError:
        return None, [Violation("user", f"L'utilisateur {user_id} n'existe pas")]
    if user.preference is not None:
        return None, [Violation("user", "Cet utilisateur a déjà des préférences")]
    return user, []


@router.get("", response_model=list[PreferenceRead])
def list_preferences(
    store: Annotated[EntityStore, Depends(get_store)],
    theme: str | None = None,
    langue: str | None = None,
) -> list[dict[str, Any]]:
    """All preferences by id, optionally narrowed by theme and/or langue."""
    filters = {key: value for key, value in (("theme", theme), ("langue", langue)) if value}
    return project(store.find_by_filter(Preference, filters=filters).items, PREFERENCE_READ)


@router.post("", response_model=PreferenceRead, status_code=status.HTTP_201_CREATED)
async def create_preference(
    request: Request,
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """Create a preference for ``user``; omitted fields take their defaults (fr, light, true)."""
    payload = parse_payload(
        PreferencePayload, await read_json_object(request, allow_empty=True)
    )
    fields = payload.model_dump(exclude_unset=True)
    preference = Preference(**{key: fields[key] for key in EDITABLE_FIELDS if key in fields})
    owner, owner_violations = _owner_violations(store, fields.get("user"))
    ensure_valid(validate(preference) + owner_violations)

    store.link_preference(owner, preference)
    store.create(preference)
    return project(preference, PREFERENCE_READ)


@router.get("/{entity_id}", response_model=PreferenceRead)
def show_preference(
    preference: Annotated[Preference, Depends(resolve_preference)],
) -> dict[str, Any]:
    return project(preference, PREFERENCE_READ)


@router.put("/{entity_id}", response_model=PreferenceRead)
async def update_preference(
    request: Request,
    preference: Annotated[Preference, Depends(resolve_preference)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """Partial update of langue/theme/notifications. The owner cannot be changed here."""
    payload = parse_payload(
        PreferencePayload, await read_json_object(request, allow_empty=True)
    )
    fields = payload.model_dump(exclude_unset=True)
    for key in EDITABLE_FIELDS:
        if key in fields:
            setattr(preference, key, fields[key])
    ensure_valid(validate(preference))
    store.update(preference)
    return project(preference, PREFERENCE_READ)


@router.delete(
    "/{entity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_preference(
    preference: Annotated[Preference, Depends(resolve_preference)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> Response:
    store.delete(preference)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
