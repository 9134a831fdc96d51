"""Customer lookups for the order backend.

Customers are owned by the storefront; the order service only needs to
resolve a reference before attaching it to a new order.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError
from django.db.models import QuerySet

from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository


class CustomerDjangoRepository(ICustomerRepository):
    def get_by_id(self, id: str) -> Optional[Customer]:
        """Active customer with primary key *id*, or ``None`` (also for malformed ids)."""
        try:
            return Customer.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return Customer.objects.filter(**(filters or {}))

    def save(self, entity: Customer) -> Customer:
        entity.save()
        return entity
