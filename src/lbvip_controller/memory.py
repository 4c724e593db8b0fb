"""In-memory resource store with optimistic concurrency.

Stands in for the cluster API in lab runs and tests.  Every successful
mutation bumps the resource version and is published to an optional
:class:`HandlerRegistry`, the same way a watch would deliver it.
"""

from __future__ import annotations

import itertools
import logging
import uuid
from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional, Tuple

from lbvip.errors import AlreadyExistsError, ConflictError, NotFoundError
from lbvip.model import Event, IpAddress, Service
from lbvip.store import ResourceStore

from .events import AddressDelete, AddressUpsert, ResourceEvent, ServiceDelete, ServiceUpsert
from .registry import HandlerRegistry

LOG = logging.getLogger(__name__)

Key = Tuple[str, str]


class InMemoryStore(ResourceStore):
    def __init__(self, registry: Optional[HandlerRegistry] = None) -> None:
        self._registry = registry
        self._lock = Lock()
        self._versions = itertools.count(1)
        self._services: Dict[Key, Service] = {}
        self._addresses: Dict[Key, IpAddress] = {}
        self._events: List[Event] = []

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    def get_service(self, namespace: str, name: str) -> Optional[Service]:
        with self._lock:
            return self._services.get((namespace, name))

    def list_services(self) -> List[Service]:
        with self._lock:
            return sorted(self._services.values(), key=lambda s: (s.namespace, s.name))

    def create_service(self, service: Service) -> Service:
        key = (service.namespace, service.name)
        with self._lock:
            if key in self._services:
                raise AlreadyExistsError(f"service '{service.namespace}-{service.name}' already exists")
            stored = replace(
                service,
                uid=service.uid or str(uuid.uuid4()),
                resource_version=next(self._versions),
            )
            self._services[key] = stored
        self._publish(ServiceUpsert(stored))
        return stored

    def update_service(self, service: Service) -> Service:
        key = (service.namespace, service.name)
        with self._lock:
            current = self._services.get(key)
            if current is None:
                raise NotFoundError(f"service '{service.namespace}-{service.name}' not found")
            self._check_version(current.resource_version, service.resource_version, "service", key)
            stored = replace(service, uid=current.uid, resource_version=next(self._versions))
            self._services[key] = stored
        self._publish(ServiceUpsert(stored))
        return stored

    def delete_service(self, namespace: str, name: str) -> None:
        with self._lock:
            current = self._services.pop((namespace, name), None)
        if current is None:
            raise NotFoundError(f"service '{namespace}-{name}' not found")
        self._publish(ServiceDelete(current.key))

    # ------------------------------------------------------------------
    # IpAddresses
    # ------------------------------------------------------------------
    def get_address(self, namespace: str, name: str) -> Optional[IpAddress]:
        with self._lock:
            return self._addresses.get((namespace, name))

    def list_addresses(self) -> List[IpAddress]:
        with self._lock:
            return sorted(self._addresses.values(), key=lambda a: (a.namespace, a.name))

    def create_address(self, address: IpAddress) -> IpAddress:
        key = (address.namespace, address.name)
        with self._lock:
            if key in self._addresses:
                raise AlreadyExistsError(
                    f"ipaddress '{address.namespace}-{address.name}' already exists"
                )
            stored = replace(
                address,
                uid=address.uid or str(uuid.uuid4()),
                resource_version=next(self._versions),
            )
            self._addresses[key] = stored
        self._publish(AddressUpsert(stored))
        return stored

    def update_address(self, address: IpAddress) -> IpAddress:
        key = (address.namespace, address.name)
        with self._lock:
            current = self._addresses.get(key)
            if current is None:
                raise NotFoundError(f"ipaddress '{address.namespace}-{address.name}' not found")
            self._check_version(current.resource_version, address.resource_version, "ipaddress", key)
            stored = replace(address, uid=current.uid, resource_version=next(self._versions))
            self._addresses[key] = stored
        self._publish(AddressUpsert(stored))
        return stored

    def delete_address(self, namespace: str, name: str) -> None:
        with self._lock:
            current = self._addresses.pop((namespace, name), None)
        if current is None:
            raise NotFoundError(f"ipaddress '{namespace}-{name}' not found")
        self._publish(AddressDelete(current))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def create_event(self, event: Event) -> Event:
        with self._lock:
            stored = replace(event, name=f"{event.involved_name}.{uuid.uuid4().hex[:10]}")
            self._events.append(stored)
        return stored

    def list_events(self, namespace: Optional[str] = None) -> List[Event]:
        with self._lock:
            return [e for e in self._events if namespace is None or e.namespace == namespace]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _check_version(current: int, given: int, kind: str, key: Key) -> None:
        if current != given:
            raise ConflictError(
                f"{kind} '{key[0]}-{key[1]}' was modified "
                f"(resource version {given}, current {current})"
            )

    def _publish(self, event: ResourceEvent) -> None:
        # Called without holding the lock so handlers may read the store.
        if self._registry is not None:
            self._registry.handle(event)
