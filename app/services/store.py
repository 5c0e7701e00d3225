"""
Entity store: CRUD and queries for User, Role and Preference over a Session.

Every write method commits before returning. Driver errors are rolled back
and re-raised as StoreError; unique/foreign key failures as
ConstraintViolationError. Relation helpers (link_preference, add_role,
remove_role) keep both sides of a relation in step and leave the commit to
the following create/update.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple, TypeVar

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import (
    ConstraintViolationError,
    EntityNotFoundError,
    InvalidQueryError,
    StoreError,
)
from app.models import Base, Preference, Role, User
from app.services.validation import Violation

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

SORT_ORDERS = ("ASC", "DESC")

# (field, message) pairs checked before every create/update.
UNIQUE_FIELDS: dict[type[Base], tuple[tuple[str, str], ...]] = {
    User: (("email", "Cet email est déjà utilisé"),),
    Role: (("nom", "Ce nom de rôle est déjà utilisé"),),
}


class Page(NamedTuple):
    """One window of a filtered query plus the unwindowed row count."""

    items: list[Any]
    total: int


class EntityStore:
    """Repository over one SQLAlchemy session (one per request)."""

    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, entity: ModelT) -> ModelT:
        """Insert ``entity`` (and cascaded relations); the id is assigned here."""
        self._check_unique(entity)
        self.session.add(entity)
        self._commit(entity)
        self.session.refresh(entity)
        logger.info("%s created: id=%s", type(entity).__name__, entity.id)
        return entity

    def update(self, entity: ModelT) -> ModelT:
        """Persist field changes already applied to a fetched entity."""
        self._check_unique(entity)
        self._commit(entity)
        self.session.refresh(entity)
        logger.info("%s updated: id=%s", type(entity).__name__, entity.id)
        return entity

    def delete(self, entity: Base) -> None:
        """
        Remove ``entity`` permanently.

        A User takes its Preference with it; a Role only loses its membership
        rows, the Users stay.
        """
        name, entity_id = type(entity).__name__, entity.id
        self.session.delete(entity)
        self._commit(entity)
        logger.info("%s deleted: id=%s", name, entity_id)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_by_id(self, model: type[ModelT], entity_id: int) -> ModelT:
        try:
            entity = self.session.get(model, entity_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load {model.__name__} {entity_id}") from e
        if entity is None:
            raise EntityNotFoundError(model.__name__, entity_id)
        return entity

    def find_all(self, model: type[ModelT]) -> list[ModelT]:
        return self.find_by_filter(model, sort="id", order="ASC").items

    def find_by_filter(
        self,
        model: type[ModelT],
        filters: Mapping[str, Any] | None = None,
        where: Iterable[ColumnElement[bool]] = (),
        sort: str = "id",
        order: str = "ASC",
        limit: int | None = None,
        offset: int = 0,
    ) -> Page:
        """
        Filter by column equality (``filters``) and/or raw SQL expressions
        (``where``), order by any column, and return one window.

        ``total`` counts every matching row regardless of limit/offset.
        Raises InvalidQueryError for an unknown column or order direction.
        """
        columns = inspect(model).columns
        conditions: list[ColumnElement[bool]] = list(where)
        for field, value in (filters or {}).items():
            if field not in columns:
                raise InvalidQueryError(f"Unknown filter field for {model.__name__}: {field!r}")
            conditions.append(getattr(model, field) == value)

        if sort not in columns:
            raise InvalidQueryError(f"Unknown sort field for {model.__name__}: {sort!r}")
        direction = order.upper() if isinstance(order, str) else order
        if direction not in SORT_ORDERS:
            raise InvalidQueryError(f"Invalid sort order: {order!r}")

        sort_column = getattr(model, sort)
        stmt = (
            select(model)
            .where(*conditions)
            .order_by(sort_column.desc() if direction == "DESC" else sort_column.asc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        count_stmt = select(func.count()).select_from(model).where(*conditions)

        try:
            total = self.session.scalar(count_stmt) or 0
            items = list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Query on {model.__name__} failed") from e
        return Page(items=items, total=total)

    def find_role_by_nom(self, nom: str) -> Role | None:
        page = self.find_by_filter(Role, filters={"nom": nom}, limit=1)
        return page.items[0] if page.items else None

    def find_roles_by_prefix(self, prefix: str) -> list[Role]:
        # autoescape: "_" in ROLE_ prefixes must not act as a LIKE wildcard.
        return self.find_by_filter(
            Role, where=[Role.nom.startswith(prefix, autoescape=True)], sort="nom"
        ).items

    def find_preferences_by_theme(self, theme: str) -> list[Preference]:
        return self.find_by_filter(Preference, filters={"theme": theme}).items

    def find_preferences_by_langue(self, langue: str) -> list[Preference]:
        return self.find_by_filter(Preference, filters={"langue": langue}).items

    # -------------------------------------------------------------------------
    # Relations
    # -------------------------------------------------------------------------

    def link_preference(self, user: User, preference: Preference) -> Preference:
        """
        Make ``preference`` the user's preference, both sides at once.

        Rejects a preference owned by another user. A previous preference of
        ``user`` is detached and, having no owner left, deleted.
        """
        owner = preference.user
        if owner is not None and owner is not user:
            raise ConstraintViolationError(
                [Violation("user", "Ces préférences appartiennent déjà à un autre utilisateur")]
            )
        previous = user.preference
        if previous is not None and previous is not preference:
            user.preference = None
            # Flush the orphan delete first; user_id is unique on preferences.
            if inspect(previous).persistent:
                try:
                    self.session.flush()
                except SQLAlchemyError as e:
                    self.session.rollback()
                    raise StoreError("Failed to detach previous preference") from e
        user.preference = preference
        return preference

    def add_role(self, user: User, role: Role) -> None:
        if role not in user.user_roles:
            user.user_roles.append(role)

    def remove_role(self, user: User, role: Role) -> None:
        if role in user.user_roles:
            user.user_roles.remove(role)

    def set_roles(self, user: User, roles: Iterable[Role]) -> None:
        """Replace the user's linked roles, keeping Role.users in step."""
        wanted = list(dict.fromkeys(roles))
        for role in list(user.user_roles):
            if role not in wanted:
                self.remove_role(user, role)
        for role in wanted:
            self.add_role(user, role)

    def resolve_roles(self, role_ids: Iterable[int]) -> tuple[list[Role], list[int]]:
        """Load roles by id; returns (found, missing ids)."""
        ids = list(dict.fromkeys(role_ids))
        if not ids:
            return [], []
        try:
            found = list(self.session.scalars(select(Role).where(Role.id.in_(ids))).all())
        except SQLAlchemyError as e:
            raise StoreError("Failed to load roles") from e
        by_id = {role.id: role for role in found}
        return [by_id[i] for i in ids if i in by_id], [i for i in ids if i not in by_id]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_unique(self, entity: Base) -> None:
        model = type(entity)
        violations: list[Violation] = []
        for field, message in UNIQUE_FIELDS.get(model, ()):
            value = getattr(entity, field)
            if value is None:
                continue
            stmt = select(model.id).where(getattr(model, field) == value)
            if entity.id is not None:
                stmt = stmt.where(model.id != entity.id)
            try:
                taken = self.session.scalar(stmt.limit(1)) is not None
            except SQLAlchemyError as e:
                raise StoreError(f"Uniqueness check on {model.__name__}.{field} failed") from e
            if taken:
                violations.append(Violation(field, message))
        if violations:
            raise ConstraintViolationError(violations)

    def _commit(self, entity: Base) -> None:
        name = type(entity).__name__
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("Integrity error on %s write: %s", name, e.orig)
            raise ConstraintViolationError(
                [Violation(name.lower(), "Cette opération viole une contrainte d'intégrité")]
            ) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"Failed to write {name}") from e
