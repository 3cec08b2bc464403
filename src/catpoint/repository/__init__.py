"""Security repository implementations."""

from .memory import InMemorySecurityRepository
from .sql import SqlSecurityRepository

__all__ = ["InMemorySecurityRepository", "SqlSecurityRepository"]
