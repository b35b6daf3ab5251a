from leaveflow.repositories.base import LeaveRepository, RepositoryError
from leaveflow.repositories.memory import InMemoryLeaveRepository
from leaveflow.repositories.sql import SqlLeaveRepository

__all__ = [
    "InMemoryLeaveRepository",
    "LeaveRepository",
    "RepositoryError",
    "SqlLeaveRepository",
]
