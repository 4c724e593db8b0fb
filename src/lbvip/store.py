"""Abstract interface to the store holding Services and IpAddresses."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .model import Event, IpAddress, Service


class ResourceStore(ABC):
    """Read/write access to the two watched resource kinds.

    Reads return ``None`` for a missing resource.  Writes are optimistic:
    ``update_*`` must raise :class:`~lbvip.errors.ConflictError` when the
    passed object carries a stale ``resource_version``, and ``create_*`` must
    raise :class:`~lbvip.errors.AlreadyExistsError` on a duplicate key.  Any
    other failure is reported as :class:`~lbvip.errors.StoreError`.
    """

    @abstractmethod
    def get_service(self, namespace: str, name: str) -> Optional[Service]:
        """Return the Service ``namespace/name`` or ``None``."""

    @abstractmethod
    def list_services(self) -> Iterable[Service]:
        """Return all known Services."""

    @abstractmethod
    def update_service(self, service: Service) -> Service:
        """Persist ``service`` and return the stored copy."""

    @abstractmethod
    def get_address(self, namespace: str, name: str) -> Optional[IpAddress]:
        """Return the IpAddress ``namespace/name`` or ``None``."""

    @abstractmethod
    def create_address(self, address: IpAddress) -> IpAddress:
        """Create ``address`` and return the stored copy."""

    @abstractmethod
    def update_address(self, address: IpAddress) -> IpAddress:
        """Persist ``address`` and return the stored copy."""

    @abstractmethod
    def delete_address(self, namespace: str, name: str) -> None:
        """Remove the IpAddress ``namespace/name``."""

    @abstractmethod
    def create_event(self, event: Event) -> Event:
        """Record an audit event."""
