import pytest

from domain.entities import User
from tests.fakes import FakeAuthProvider, InMemoryTaskStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def alice() -> User:
    return User(id="user-alice", email="alice@example.com")


@pytest.fixture
def bob() -> User:
    return User(id="user-bob", email="bob@example.com")
