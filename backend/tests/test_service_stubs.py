"""Tests for the user directory and event publisher stubs."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from leaveflow.models.enums import LeaveEventType
from leaveflow.services.events import (
    EventPublisher,
    InMemoryEventPublisher,
    LeaveEvent,
    LoggingEventPublisher,
    get_event_publisher,
    set_event_publisher,
)
from leaveflow.services.users import InMemoryUserDirectory, UserDirectory

from factories import make_user

if TYPE_CHECKING:
    import pytest

ORG_A = uuid.uuid4()


def _event(event_type: LeaveEventType = LeaveEventType.SUBMITTED) -> LeaveEvent:
    return LeaveEvent(
        type=event_type,
        organization_id=ORG_A,
        request_id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        actor_id=uuid.uuid4(),
    )


# ---------------------------------------------------------------------------
# InMemoryUserDirectory tests
# ---------------------------------------------------------------------------


async def test_user_directory_get_not_found() -> None:
    directory = InMemoryUserDirectory()
    assert await directory.get_user(uuid.uuid4()) is None


async def test_user_directory_seed_and_get() -> None:
    directory = InMemoryUserDirectory()
    user = make_user(organization_id=ORG_A, name="Alice Smith")
    directory.seed(user)

    result = await directory.get_user(user.id)
    assert result is not None
    assert result.organization_id == ORG_A
    assert result.email == "alice@example.com"


def test_user_directory_satisfies_protocol() -> None:
    assert isinstance(InMemoryUserDirectory(), UserDirectory)


# ---------------------------------------------------------------------------
# Event publisher tests
# ---------------------------------------------------------------------------


async def test_in_memory_publisher_keeps_order() -> None:
    publisher = InMemoryEventPublisher()
    first, second = _event(LeaveEventType.SUBMITTED), _event(LeaveEventType.APPROVED)

    await publisher.publish([first, second])

    assert publisher.published == [first, second]


async def test_logging_publisher_logs_each_event(caplog: pytest.LogCaptureFixture) -> None:
    event = _event(LeaveEventType.CANCELLED)
    with caplog.at_level(logging.INFO, logger="leaveflow.services.events"):
        await LoggingEventPublisher().publish([event])
    assert "leave.request.cancelled" in caplog.text
    assert str(event.request_id) in caplog.text


def test_set_event_publisher_overrides_dependency() -> None:
    original = get_event_publisher()
    replacement = InMemoryEventPublisher()
    try:
        set_event_publisher(replacement)
        assert get_event_publisher() is replacement
        assert isinstance(replacement, EventPublisher)
    finally:
        set_event_publisher(original)
