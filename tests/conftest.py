"""Pytest configuration and fixtures"""
import itertools
import os

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

# Set test environment variables before the app modules read them
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("DATABASE_NAME", None)

import catalog  # noqa: E402
from auth import Principal, create_access_token  # noqa: E402
from database import ensure_indexes, get_db  # noqa: E402


@pytest.fixture
def mongo_db():
    """In-memory database with the production indexes"""
    client = mongomock.MongoClient()
    db = client["catalog_test"]
    ensure_indexes(db)
    yield db
    client.close()


@pytest.fixture
def client(mongo_db):
    """Test client wired to the in-memory database"""
    from main import app

    app.dependency_overrides[get_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _insert_user(db, name, is_admin=False):
    user_id = db["user"].insert_one(
        {"name": name, "email": f"{name.split()[0].lower()}@example.com", "isAdmin": is_admin}
    ).inserted_id
    return Principal(id=str(user_id), name=name, is_admin=is_admin)


@pytest.fixture
def user(mongo_db):
    return _insert_user(mongo_db, "Jane Tester")


@pytest.fixture
def other_user(mongo_db):
    return _insert_user(mongo_db, "Sam Other")


@pytest.fixture
def admin(mongo_db):
    return _insert_user(mongo_db, "Ada Admin", is_admin=True)


def _headers(principal):
    token = create_access_token({"user_id": principal.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(user):
    return _headers(user)


@pytest.fixture
def other_user_headers(other_user):
    return _headers(other_user)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def sample_product():
    """Sample product body"""
    return {
        "name": "Keychron Q1",
        "vendor": "Keychron",
        "price": 169.0,
        "description": "Gasket-mounted 75% keyboard",
        "image": "/images/q1.png",
        "mainCategory": "keyboards",
        "subCategory": "mech_wired",
        "inStock": 10,
        "featured": True,
    }


@pytest.fixture
def make_product(mongo_db):
    """Create products through the catalog with unique names"""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        body = {
            "name": f"Test Product {n}",
            "vendor": "Vendor",
            "price": 10.0 * n,
            "mainCategory": "keyboards",
            "subCategory": "mech_wired",
            "inStock": 5,
        }
        body.update(overrides)
        return catalog.create_product(mongo_db, body)

    return _make


@pytest.fixture
def missing_id():
    return str(ObjectId())
