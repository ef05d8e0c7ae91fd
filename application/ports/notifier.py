"""
Notifier port - best-effort side channel for order events.

Implementations must not raise: a failed notification never fails the
operation that produced the event.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.order.events import OrderEvent


@runtime_checkable
class Notifier(Protocol):

    def notify(self, event: OrderEvent) -> None: ...
