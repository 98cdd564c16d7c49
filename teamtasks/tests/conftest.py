"""Shared fixtures: both storage backends, a fixed clock and a few users."""

import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from teamtasks.accounts import AccountService
from teamtasks.database import DatabaseStorage
from teamtasks.models import SignInRequest, User
from teamtasks.mutations import TaskMutationEngine
from teamtasks.queries import TaskQueryEngine
from teamtasks.sharing import SharingEngine
from teamtasks.storage import MemoryStorage

from helpers import NOW, FixedClock


@pytest.fixture(name="engine")
def engine_fixture():
    """Fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="storage", params=["memory", "database"])
def storage_fixture(request):
    if request.param == "memory":
        yield MemoryStorage()
        return
    engine = request.getfixturevalue("engine")
    with Session(engine) as session:
        yield DatabaseStorage(session)


@pytest.fixture(name="clock")
def clock_fixture() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture(name="accounts")
def accounts_fixture(storage) -> AccountService:
    return AccountService(storage)


@pytest.fixture(name="queries")
def queries_fixture(storage, clock) -> TaskQueryEngine:
    return TaskQueryEngine(storage, clock)


@pytest.fixture(name="mutations")
def mutations_fixture(storage, clock) -> TaskMutationEngine:
    return TaskMutationEngine(storage, clock)


@pytest.fixture(name="sharing")
def sharing_fixture(storage, clock) -> SharingEngine:
    return SharingEngine(storage, clock)


def _sign_in(accounts: AccountService, name: str) -> User:
    return accounts.sign_in(SignInRequest(
        external_id=f"uid-{name}",
        email=f"{name}@example.com",
        display_name=name.capitalize(),
    ))


@pytest.fixture(name="alice")
def alice_fixture(accounts) -> User:
    return _sign_in(accounts, "alice")


@pytest.fixture(name="bob")
def bob_fixture(accounts) -> User:
    return _sign_in(accounts, "bob")


@pytest.fixture(name="carol")
def carol_fixture(accounts) -> User:
    return _sign_in(accounts, "carol")
