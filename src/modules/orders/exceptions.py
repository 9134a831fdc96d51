"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  The API
layer (Views) catches these and translates them into HTTP responses; each
class carries the machine-readable ``code`` placed in the error envelope.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""

    code = "ORDER_NOT_FOUND"


class InvalidOrderStatus(Exception):
    """The requested status is not one of the canonical order statuses."""

    code = "INVALID_ORDER_STATUS"


class InvalidStatusTransition(Exception):
    """The transition is not allowed under the strict transition policy."""

    code = "INVALID_STATUS_TRANSITION"
