"""Role endpoints (no pagination)."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.v1.common import (
    ensure_valid,
    entity_resolver,
    get_store,
    parse_payload,
    read_json_object,
)
from app.models import Role
from app.schemas.role import RolePayload, RoleRead
from app.services.projection import ROLE_READ, project
from app.services.store import EntityStore
from app.services.validation import validate

router = APIRouter()

resolve_role = entity_resolver(Role)


@router.get("", response_model=list[RoleRead])
def list_roles(
    store: Annotated[EntityStore, Depends(get_store)],
    prefix: str | None = None,
) -> list[dict[str, Any]]:
    """All roles by id, or only those whose name starts with ``prefix`` (by name)."""
    roles = store.find_roles_by_prefix(prefix) if prefix else store.find_all(Role)
    return project(roles, ROLE_READ)


@router.post("", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
async def create_role(
    request: Request,
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    payload = parse_payload(RolePayload, await read_json_object(request))
    fields = payload.model_dump(exclude_unset=True)
    role = Role(nom=fields.get("nom", ""), description=fields.get("description"))
    ensure_valid(validate(role))
    store.create(role)
    return project(role, ROLE_READ)


@router.get("/{entity_id}", response_model=RoleRead)
def show_role(role: Annotated[Role, Depends(resolve_role)]) -> dict[str, Any]:
    return project(role, ROLE_READ)


@router.put("/{entity_id}", response_model=RoleRead)
async def update_role(
    request: Request,
    role: Annotated[Role, Depends(resolve_role)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> dict[str, Any]:
    """Partial update; ``"description": null`` clears the description."""
    payload = parse_payload(RolePayload, await read_json_object(request, allow_empty=True))
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(role, key, value)
    ensure_valid(validate(role))
    store.update(role)
    return project(role, ROLE_READ)


@router.delete(
    "/{entity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_role(
    role: Annotated[Role, Depends(resolve_role)],
    store: Annotated[EntityStore, Depends(get_store)],
) -> Response:
    """Delete the role; users holding it lose the link but are not deleted."""
    store.delete(role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
