"""Customer model as seen by the order backend.

Customer accounts are owned by the storefront; this backend only reads
them to address shipments.  Shipment creation requires a populated
customer with an e-mail and a phone number of at least ten digits.
"""

from __future__ import annotations

import re

from django.db import models

from modules.core.models import BaseModel


class Customer(BaseModel):
    """Storefront customer placing jewelry orders."""

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150, blank=True, default="")
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=20, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    @property
    def phone_digits(self) -> str:
        """Phone number with every non-digit character stripped."""
        return re.sub(r"[^0-9]", "", self.phone or "")

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"
