from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from catalog.auth import create_access_token
from catalog.deps import create_db_engine, get_db, get_images
from catalog.images import NullImageStore
from catalog.main import app
from catalog.models import Base, Category, User
from catalog.service import CatalogService


@pytest.fixture()
def engine():
    # In-memory SQLite on a StaticPool: every session sees the same database
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def alice(db):
    user = User(email="alice@example.com", full_name="Alice")
    db.add(user)
    db.flush()
    return user


@pytest.fixture()
def bob(db):
    user = User(email="bob@example.com", full_name="Bob")
    db.add(user)
    db.flush()
    return user


@pytest.fixture()
def categories(db):
    soups = Category(name="Soups", slug="soups")
    desserts = Category(name="Desserts", slug="desserts")
    db.add_all([soups, desserts])
    db.flush()
    return soups, desserts


@pytest.fixture()
def service(db):
    return CatalogService(db)


@pytest.fixture()
def make_draft(categories):
    def _make(**overrides):
        draft = {
            "title": "Tomato Soup",
            "description": "A warm soup for cold evenings.",
            "ingredients": [
                {"name": "Tomato", "amount": 4, "unit": "pcs"},
                {"name": "Stock", "amount": 0.5, "unit": "l"},
            ],
            "steps": [
                {"step": 1, "instruction": "Chop the tomatoes."},
                {"step": 2, "instruction": "Simmer in stock for 20 minutes."},
            ],
            "cuisine": "Italian",
            "cooking_time": 30,
            "categories": [categories[0].id],
        }
        draft.update(overrides)
        return draft

    return _make


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------

@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_images] = lambda: NullImageStore()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def seeded(session_factory):
    """Users and categories committed up front, for tests that go through HTTP."""
    session = session_factory()
    alice = User(email="alice@example.com", full_name="Alice")
    bob = User(email="bob@example.com", full_name="Bob")
    soups = Category(name="Soups", slug="soups")
    desserts = Category(name="Desserts", slug="desserts")
    session.add_all([alice, bob, soups, desserts])
    session.commit()
    ids = SimpleNamespace(alice=alice.id, bob=bob.id, soups=soups.id, desserts=desserts.id)
    session.close()
    return ids


@pytest.fixture()
def auth_header():
    def _header(user_id):
        return {"Authorization": f"Bearer {create_access_token(str(user_id))}"}

    return _header
