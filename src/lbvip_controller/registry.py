"""Dispatch resource events to registered handlers."""

from __future__ import annotations

from typing import Dict

from .events import AddressDelete, AddressUpsert, ResourceEvent, ServiceDelete, ServiceUpsert
from .handlers import ResourceHandler


class HandlerRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[str, ResourceHandler] = {}

    def register(self, name: str, handler: ResourceHandler) -> None:
        if name in self._handlers:
            raise ValueError(f"handler '{name}' already registered")
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def handle(self, event: ResourceEvent) -> None:
        if isinstance(event, ServiceUpsert):
            for handler in list(self._handlers.values()):
                handler.on_service_upsert(event.service)
        elif isinstance(event, ServiceDelete):
            for handler in list(self._handlers.values()):
                handler.on_service_delete(event.key)
        elif isinstance(event, AddressUpsert):
            for handler in list(self._handlers.values()):
                handler.on_address_upsert(event.address)
        elif isinstance(event, AddressDelete):
            for handler in list(self._handlers.values()):
                handler.on_address_delete(event.address)
        else:
            raise TypeError(f"Unsupported event type: {type(event)!r}")
