# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, Path, status

from leaveflow.db import SessionDep
from leaveflow.exceptions import AppError
from leaveflow.repositories.sql import SqlLeaveRepository
from leaveflow.schemas.auth import AuthContext
from leaveflow.services.events import EventPublisher, get_event_publisher
from leaveflow.services.users import UserDirectory, get_user_directory


async def get_auth_context(
    x_organization_id: uuid.UUID = Header(),
    x_user_id: uuid.UUID = Header(),
    x_role: str = Header(default="employee"),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(organization_id=x_organization_id, user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def validate_organization_scope(
    organization_id: uuid.UUID = Path(),
    auth: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """Ensure the path organization_id matches the auth header organization_id."""
    if organization_id != auth.organization_id:
        raise AppError("Organization ID mismatch", status_code=status.HTTP_403_FORBIDDEN)
    return auth


async def get_repository(
    session: SessionDep,
    users: UserDirectory = Depends(get_user_directory),
) -> SqlLeaveRepository:
    """One repository (unit of work) per HTTP request."""
    return SqlLeaveRepository(session, users)


RepoDep = Annotated[SqlLeaveRepository, Depends(get_repository)]
PublisherDep = Annotated[EventPublisher, Depends(get_event_publisher)]
