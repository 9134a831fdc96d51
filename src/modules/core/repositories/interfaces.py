"""Repository base contract.

Services depend on these interfaces; the Django implementations live in
each module's ``repositories/django_repository.py``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Entity with primary key *id*, or ``None``."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> Iterable[T]:
        """Entities matching the ORM-style *filters*."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Insert or update *entity*."""
