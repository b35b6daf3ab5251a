# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class UserInfo(BaseModel):
    """User metadata from the organization directory."""

    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    email: str
    department: str | None = None
    country: str | None = None  # ISO 3166-1 alpha-2; selects policy and holidays
    manager_id: uuid.UUID | None = None  # default approver for their requests


@runtime_checkable
class UserDirectory(Protocol):
    """Interface for the organization directory."""

    async def get_user(self, user_id: uuid.UUID) -> UserInfo | None:
        """Fetch user metadata. Returns None if not found."""
        ...


class InMemoryUserDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._users: dict[uuid.UUID, UserInfo] = {}

    def seed(self, user: UserInfo) -> None:
        """Seed a user for testing."""
        self._users[user.id] = user

    async def get_user(self, user_id: uuid.UUID) -> UserInfo | None:
        return self._users.get(user_id)


_user_directory: UserDirectory = InMemoryUserDirectory()


def get_user_directory() -> UserDirectory:
    """FastAPI dependency for the user directory."""
    return _user_directory


def set_user_directory(directory: UserDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _user_directory
    _user_directory = directory
