"""Shared handler plumbing: store dependency, path id resolution, body decoding."""

import json
import logging
from collections.abc import Callable
from typing import Annotated, Any, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import BadRequestError, EntityNotFoundError, ValidationFailedError
from app.models import Base
from app.services.store import EntityStore
from app.services.validation import Violation

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
PayloadT = TypeVar("PayloadT", bound=BaseModel)


def get_store(db: Annotated[Session, Depends(get_db)]) -> EntityStore:
    """Dependency: entity store bound to this request's session."""
    return EntityStore(db)


def entity_resolver(model: type[ModelT]) -> Callable[..., ModelT]:
    """
    Build a dependency that turns the ``{entity_id}`` path segment into an
    entity of ``model``. Ids that are not integers resolve to nothing (404),
    like unknown ids.
    """

    def resolve(
        entity_id: str,
        store: Annotated[EntityStore, Depends(get_store)],
    ) -> ModelT:
        try:
            pk = int(entity_id)
        except ValueError:
            raise EntityNotFoundError(model.__name__, entity_id) from None
        return store.find_by_id(model, pk)

    resolve.__name__ = f"resolve_{model.__name__.lower()}"
    return resolve


async def read_json_object(request: Request, allow_empty: bool = False) -> dict[str, Any]:
    """
    Decode the request body as a JSON object.

    An empty body or ``{}`` is rejected unless ``allow_empty``. The parser's
    message is logged, not returned.
    """
    raw = await request.body()
    if not raw.strip():
        if allow_empty:
            return {}
        raise BadRequestError()
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug("Rejected body on %s %s: %s", request.method, request.url.path, e)
        raise BadRequestError() from e
    if not isinstance(data, dict):
        raise BadRequestError()
    if not data and not allow_empty:
        raise BadRequestError()
    return data


def parse_payload(schema: type[PayloadT], data: dict[str, Any]) -> PayloadT:
    """Type-check decoded JSON against ``schema``; 400 keyed by field on mismatch."""
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            path = ".".join(str(part) for part in err["loc"]) or "body"
            errors.setdefault(path, err["msg"])
        raise BadRequestError("Invalid field types", errors=errors) from e


def ensure_valid(violations: list[Violation]) -> None:
    """Raise a 400 carrying every violation, ordered by field path."""
    if violations:
        raise ValidationFailedError(sorted(violations, key=lambda v: v.path))
