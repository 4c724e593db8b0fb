"""Abstract interface for handlers managed by :class:`HandlerRegistry`."""

from __future__ import annotations

from abc import ABC, abstractmethod

from lbvip.model import IpAddress, ObjectKey, Service


class ResourceHandler(ABC):
    @abstractmethod
    def on_service_upsert(self, service: Service) -> None:
        """React to ``service`` being created or updated."""

    @abstractmethod
    def on_service_delete(self, key: ObjectKey) -> None:
        """React to the Service ``key`` being removed."""

    @abstractmethod
    def on_address_upsert(self, address: IpAddress) -> None:
        """React to ``address`` being created or updated."""

    @abstractmethod
    def on_address_delete(self, address: IpAddress) -> None:
        """React to ``address`` being removed."""
