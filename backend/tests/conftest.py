from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leaveflow.db import get_session
from leaveflow.main import app
from leaveflow.models import SQLModel
from leaveflow.repositories.memory import InMemoryLeaveRepository
from leaveflow.services.events import InMemoryEventPublisher, LoggingEventPublisher, set_event_publisher
from leaveflow.services.users import InMemoryUserDirectory, set_user_directory

from factories import ADMIN_ID, EMPLOYEE_ID, MANAGER_ID, make_user

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy.ext.asyncio import AsyncEngine


@pytest.fixture
def user_directory() -> Iterator[InMemoryUserDirectory]:
    """Directory seeded with an admin, a manager and an employee reporting to the manager."""
    directory = InMemoryUserDirectory()
    directory.seed(make_user(ADMIN_ID, name="Ada Admin"))
    directory.seed(make_user(MANAGER_ID, name="Max Manager"))
    directory.seed(make_user(EMPLOYEE_ID, name="Eve Employee", manager_id=MANAGER_ID))
    set_user_directory(directory)
    yield directory
    set_user_directory(InMemoryUserDirectory())


@pytest.fixture
def event_publisher() -> Iterator[InMemoryEventPublisher]:
    publisher = InMemoryEventPublisher()
    set_event_publisher(publisher)
    yield publisher
    set_event_publisher(LoggingEventPublisher())


@pytest.fixture
def memory_repo(user_directory: InMemoryUserDirectory) -> InMemoryLeaveRepository:
    return InMemoryLeaveRepository(user_directory)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Fresh in-memory SQLite database per test.

    pysqlite's implicit transaction handling is switched off so that
    SAVEPOINTs behave the way they do on PostgreSQL.
    """
    _engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(_engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    user_directory: InMemoryUserDirectory,
    event_publisher: InMemoryEventPublisher,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
