import os

# Tables are created per test below, never against the configured database
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
# Every test client shares one address; limits get their own test
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipekit.main import app
from recipekit.db import Base, get_db

# --- Test Database Setup ---

SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# check_same_thread is needed for SQLite; StaticPool shares the in-memory DB
# across sessions
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """Test client with DB override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    """Direct database session for setup."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_ingredient(client):
    """Factory: create an ingredient through the API and return its JSON."""
    def _make(name, **fields):
        response = client.post("/api/ingredients", json={"name": name, **fields})
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_recipe(client):
    """Factory: create a recipe through the API and return its JSON."""
    def _make(name, ingredients, servings=None, description="Test recipe", steps=None):
        payload = {
            "name": name,
            "description": description,
            "servings": servings,
            "ingredients": ingredients,
            "steps": steps or [{"text": "Mix everything."}],
        }
        response = client.post("/api/recipes", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
