import pytest

from database import MemoryStore, Storage
from state import AppState


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def storage(store):
    return Storage(store)


@pytest.fixture
def state(storage):
    """Freshly seeded state on an empty store."""
    return AppState.bootstrap(storage)


@pytest.fixture
def client(state):
    from fastapi.testclient import TestClient

    from main import app, get_state

    app.dependency_overrides[get_state] = lambda: state
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
