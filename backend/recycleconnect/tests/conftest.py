"""
Shared fixtures: an isolated app per test and logged-in clients per role.
"""
import itertools
import pytest
from fastapi.testclient import TestClient
from recycleconnect.core.config import Settings
from recycleconnect.main import create_app
from recycleconnect.repositories.memory import InMemoryStore

PASSWORD = "testpassword123"

_user_numbers = itertools.count(1)


def register(client, role, username=None, **overrides):
    """Register a user and return the response."""
    username = username or f"{role}{next(_user_numbers)}"
    payload = {
        "username": username,
        "email": f"{username}@example.com",
        "password": PASSWORD,
        "fullName": f"{username.capitalize()} Example",
        "role": role,
    }
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def create_listing(client, **overrides):
    payload = {
        "materialType": "paper",
        "quantity": 10,
        "unit": "kg",
        "price": 2,
        "location": "Depot 4",
    }
    payload.update(overrides)
    return client.post("/api/listings", json=payload)


@pytest.fixture
def app_settings():
    return Settings(LOG_LEVEL="WARNING", STORAGE_BACKEND="memory")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def app(app_settings, store):
    return create_app(app_settings, store=store)


@pytest.fixture
def make_client(app):
    """Factory for clients with separate cookie jars against the same app."""
    clients = []

    def factory():
        client = TestClient(app)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def login_as(make_client):
    """Register a user with the given role and return a logged-in client."""
    def factory(role, username=None):
        client = make_client()
        response = register(client, role, username=username)
        assert response.status_code == 201, response.text
        user = response.json()
        response = login(client, user["email"])
        assert response.status_code == 200, response.text
        client.user = user
        return client
    return factory


@pytest.fixture
def collector(login_as):
    return login_as("collector")


@pytest.fixture
def transporter(login_as):
    return login_as("transporter")


@pytest.fixture
def buyer(login_as):
    return login_as("buyer")
