"""Translate IpAddress changes into work for the VIP reconciler."""

from __future__ import annotations

import logging
from typing import List, Optional

from .annotations import ANN_VIP, get_annotation
from .errors import StoreError
from .model import IpAddress, ObjectKey
from .recorder import EventRecorder
from .store import ResourceStore

LOG = logging.getLogger(__name__)


class AddressChangePropagator:
    """Map address events back to the Services that own them.

    Only owner references of kind ``Service`` / ``v1`` are followed.
    """

    def __init__(self, store: ResourceStore, recorder: Optional[EventRecorder] = None) -> None:
        self._store = store
        self._recorder = recorder

    def on_address_upserted(self, address: IpAddress) -> List[ObjectKey]:
        """Return the Services to re-examine after ``address`` changed."""

        if not address.address:
            LOG.debug("ip address '%s-%s' has no address yet", address.namespace, address.name)
            return []

        owners = address.service_owners()
        for key in owners:
            LOG.debug("ip address '%s-%s' resolved, re-examining %s", address.namespace, address.name, key)
        return owners

    def on_address_deleted(self, address: IpAddress) -> List[ObjectKey]:
        """Clear the VIP of every owning Service still carrying one.

        The reconciler cannot be used here since the resource it would derive
        the decision from is already gone.  Returns the keys of the Services
        that were reset.
        """

        reset: List[ObjectKey] = []
        for key in address.service_owners():
            service = self._store.get_service(key.namespace, key.name)
            if service is None:
                LOG.debug("service '%s-%s' is gone, nothing to reset", key.namespace, key.name)
                continue

            vip = get_annotation(service, ANN_VIP)
            if not vip:
                continue

            try:
                self._store.update_service(service.with_annotation(ANN_VIP, ""))
            except StoreError as exc:
                raise type(exc)(
                    f"error updating service '{key.namespace}-{key.name}': {exc}"
                ) from exc

            LOG.info(
                "ip address for service '%s-%s' was deleted, released VIP %s",
                key.namespace,
                key.name,
                vip,
            )
            if self._recorder is not None:
                self._recorder.notify(service, f"VIP {vip} released")
            reset.append(key)
        return reset
