"""Handler feeding the VIP work queue."""

from __future__ import annotations

import logging
from typing import Callable

from lbvip.errors import StoreError
from lbvip.model import IpAddress, ObjectKey, Service
from lbvip.propagator import AddressChangePropagator

from .base import ResourceHandler

LOG = logging.getLogger(__name__)

Enqueue = Callable[[ObjectKey], None]


class VIPHandler(ResourceHandler):
    """Turn resource events into Service keys to reconcile.

    Handlers never reconcile inline; they only decide which Services must be
    looked at again and leave the work to whoever drains ``enqueue``.
    """

    def __init__(self, propagator: AddressChangePropagator, enqueue: Enqueue) -> None:
        self._propagator = propagator
        self._enqueue = enqueue

    def on_service_upsert(self, service: Service) -> None:
        self._enqueue(service.key)

    def on_service_delete(self, key: ObjectKey) -> None:
        LOG.debug("service %s deleted", key)

    def on_address_upsert(self, address: IpAddress) -> None:
        for key in self._propagator.on_address_upserted(address):
            self._enqueue(key)

    def on_address_delete(self, address: IpAddress) -> None:
        try:
            keys = self._propagator.on_address_deleted(address)
        except StoreError as exc:
            # The reconciler reaches the same reset on its own pass.
            LOG.warning("failed to reset VIP for ip address %s: %s", address.key, exc)
            keys = address.service_owners()
        for key in keys:
            self._enqueue(key)


def build_vip_handler(propagator: AddressChangePropagator, enqueue: Enqueue) -> VIPHandler:
    return VIPHandler(propagator, enqueue)
