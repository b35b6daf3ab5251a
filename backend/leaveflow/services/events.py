# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from leaveflow.models.base import now_utc
from leaveflow.models.enums import LeaveEventType

logger = logging.getLogger(__name__)


class LeaveEvent(BaseModel):
    """Domain event describing one request transition."""

    type: LeaveEventType
    organization_id: uuid.UUID
    request_id: uuid.UUID
    user_id: uuid.UUID
    actor_id: uuid.UUID
    occurred_at: datetime = Field(default_factory=now_utc)
    payload: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class EventPublisher(Protocol):
    """Interface for handing transition events to the notification layer."""

    async def publish(self, events: list[LeaveEvent]) -> None:
        """Deliver events in order. Delivery failures must not be raised."""
        ...


class LoggingEventPublisher:
    """Development publisher that logs events instead of delivering them."""

    async def publish(self, events: list[LeaveEvent]) -> None:
        for event in events:
            logger.info("Event %s for request %s (actor %s)", event.type, event.request_id, event.actor_id)


class InMemoryEventPublisher:
    """Collects published events. Used by tests."""

    def __init__(self) -> None:
        self.published: list[LeaveEvent] = []

    async def publish(self, events: list[LeaveEvent]) -> None:
        self.published.extend(events)


_event_publisher: EventPublisher = LoggingEventPublisher()


def get_event_publisher() -> EventPublisher:
    """FastAPI dependency for the event publisher."""
    return _event_publisher


def set_event_publisher(publisher: EventPublisher) -> None:
    """Override the publisher (for testing or production wiring)."""
    global _event_publisher
    _event_publisher = publisher
