"""Shared test scaffolding: in-memory SQLite database and API client wiring."""

import unittest
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import hash_password
from app.main import app
from app.models import Base, Preference, Role, User
from app.services.store import EntityStore

VALID_PASSWORD = "correct-horse-battery"


def make_engine() -> Engine:
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


def make_user(index: int = 1, **overrides: Any) -> User:
    """Transient, valid user; password already hashed."""
    fields: dict[str, Any] = {
        "email": f"user{index}@example.com",
        "nom": f"Nom{index}",
        "prenom": f"Prenom{index}",
        "password": hash_password(VALID_PASSWORD),
    }
    fields.update(overrides)
    return User(**fields)


class DatabaseTestCase(unittest.TestCase):
    """One empty database and one session per test."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.session: Session = self.SessionLocal()
        self.store = EntityStore(self.session)
        # Registered first, so it runs after every other cleanup.
        self.addCleanup(self._drop_database)

    def _drop_database(self) -> None:
        self.session.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def fresh_session(self) -> Session:
        """Separate session, to read what was really committed."""
        session = self.SessionLocal()
        self.addCleanup(session.close)
        return session


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient whose get_db yields sessions on that database."""

    raise_server_exceptions = True

    def setUp(self) -> None:
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app, raise_server_exceptions=self.raise_server_exceptions)

    def post_user(self, index: int = 1, **overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {
            "email": f"user{index}@example.com",
            "nom": "Martin",
            "prenom": "Claire",
            "password": VALID_PASSWORD,
        }
        body.update(overrides)
        response = self.client.post("/api/users", json=body)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def post_role(self, nom: str = "ROLE_ADMIN", description: str | None = None) -> dict[str, Any]:
        response = self.client.post("/api/roles", json={"nom": nom, "description": description})
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def seed_users(self, count: int) -> list[User]:
        users = [make_user(i) for i in range(1, count + 1)]
        self.session.add_all(users)
        self.session.commit()
        return users

    def seed_preference(self, user: User, **fields: Any) -> Preference:
        preference = Preference(**fields)
        self.store.link_preference(user, preference)
        self.store.update(user)
        return preference

    def seed_role(self, nom: str, **fields: Any) -> Role:
        return self.store.create(Role(nom=nom, **fields))
