"""User endpoints: paginated list, CRUD and the nested preference sub-resource."""

import math
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.v1.common import (
    ensure_valid,
    entity_resolver,
    get_store,
    parse_payload,
    read_json_object,
)
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.security import hash_password
from app.models import Preference, Role, User
from app.schemas.preference import PreferencePayload, PreferenceRead
from app.schemas.user import UserListResponse, UserPayload, UserRead
from app.services.projection import PREFERENCE_READ, USER_READ, project
from app.services.store import EntityStore
from app.services.validation import Violation, validate

router = APIRouter()

resolve_user = entity_resolver(User)

# Wire names accepted by ?sort= that differ from the column attribute.
SORT_ALIASES = {"createdAt": "created_at"}

# OFFSET is bound as a signed 64-bit integer.
MAX_OFFSET = 2**63 - 1

PLAIN_FIELDS = ("email", "nom", "prenom", "roles")
PREFERENCE_FIELDS = ("langue", "theme", "notifications")


def _resolve_linked_roles(
    store: EntityStore, role_ids: list[int] | None
) -> tuple[list[Role], list[Violation]]:
    if not role_ids:
        return [], []
    roles, missing = store.resolve_roles(role_ids)
    violations = [Violation("userRoles", f"Le rôle {role_id} n'existe pas") for role_id in missing]
    return roles, violations


@router.get("", response_model=UserListResponse)
def list_users(
    store: Annotated[EntityStore, Depends(get_store)],
    page: int = 1,
    limit: int = settings.PAGINATION_DEFAULT_LIMIT,
    sort: str = "id",
    order: str = "DESC",
) -> dict[str, Any]:
    """
    One page of users. page and limit are clamped (1 <= page <= the last page
    the database can offset to, 1 <= limit <= PAGINATION_MAX_LIMIT), never
    rejected. sort/order go to the store as given; an unknown column or
    direction fails there.
    """
    limit = max(1, min(settings.PAGINATION_MAX_LIMIT, limit))
    page = max(1, min(page, MAX_OFFSET // limit + 1))
    result = store.find_by_filter(
        User,
        sort=SORT_ALIASES.get(sort, sort),
        order=order,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return {
        "data": project(result.items, USER_READ),
        "meta": {
            "total": result.total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(result.total / limit),
            "sort": sort,
            "order": order,
        },
    }


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: Request,
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """
    Create a user. Missing fields default to empty values and fail validation
    where required. The password is validated as plaintext, then hashed.
    """
    payload = parse_payload(UserPayload, await read_json_object(request))
    fields = payload.model_dump(exclude_unset=True)
    plain_password = fields.get("password", "")

    user = User(
        email=fields.get("email", ""),
        nom=fields.get("nom", ""),
        prenom=fields.get("prenom", ""),
        roles=fields.get("roles", []),
        password=plain_password,
    )
    linked_roles, role_violations = _resolve_linked_roles(store, fields.get("userRoles"))
    ensure_valid(validate(user) + role_violations)

    user.password = hash_password(plain_password)
    store.set_roles(user, linked_roles)
    store.create(user)
    return project(user, USER_READ)


@router.get("/{entity_id}", response_model=UserRead)
def show_user(user: Annotated[User, Depends(resolve_user)]) -> dict[str, Any]:
    return project(user, USER_READ)


@router.put("/{entity_id}", response_model=UserRead)
async def update_user(
    request: Request,
    user: Annotated[User, Depends(resolve_user)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """Partial update: only keys present in the body change; the whole user is re-validated."""
    payload = parse_payload(UserPayload, await read_json_object(request, allow_empty=True))
    fields = payload.model_dump(exclude_unset=True)

    for key in PLAIN_FIELDS:
        if key in fields:
            setattr(user, key, fields[key])

    overrides = {}
    if "password" in fields:
        overrides["password"] = fields["password"]
    linked_roles, role_violations = _resolve_linked_roles(store, fields.get("userRoles"))
    ensure_valid(validate(user, overrides=overrides) + role_violations)

    if "password" in fields:
        user.password = hash_password(fields["password"])
    if "userRoles" in fields:
        store.set_roles(user, linked_roles)
    store.update(user)
    return project(user, USER_READ)


@router.delete(
    "/{entity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_user(
    user: Annotated[User, Depends(resolve_user)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> Response:
    """Delete the user and, by cascade, its preference. Linked roles are kept."""
    store.delete(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{entity_id}/preferences", response_model=PreferenceRead)
def show_user_preferences(user: Annotated[User, Depends(resolve_user)]) -> dict[str, Any]:
    if user.preference is None:
        raise NotFoundError("No preferences found")
    return project(user.preference, PREFERENCE_READ)


@router.put("/{entity_id}/preferences", response_model=PreferenceRead)
async def update_user_preferences(
    request: Request,
    user: Annotated[User, Depends(resolve_user)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """Upsert: create and link a preference when the user has none, then patch it."""
    payload = parse_payload(
        PreferencePayload, await read_json_object(request, allow_empty=True)
    )
    fields = payload.model_dump(exclude_unset=True)

    preference = user.preference
    created = preference is None
    if created:
        preference = Preference()
    for key in PREFERENCE_FIELDS:
        if key in fields:
            setattr(preference, key, fields[key])
    ensure_valid(validate(preference))

    if created:
        store.link_preference(user, preference)
    store.update(user)
    return project(preference, PREFERENCE_READ)
