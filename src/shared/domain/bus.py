"""Event bus contracts for in-process delivery of domain events."""

from __future__ import annotations

from typing import Generic, List, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Reacts to one type of domain event."""

    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Dispatches committed domain events to their handlers."""

    def publish(self, event: DomainEvent) -> List[str]:
        """Deliver *event*; return the error messages of failed handlers."""
        ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...
