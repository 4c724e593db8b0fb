"""File-based Service and IPAM state watcher."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from threading import Event, Thread
from typing import Dict, Tuple

from lbvip.annotations import ANN_VIP, ANN_VIP_ACTIVE_PROVIDER
from lbvip.errors import StoreError
from lbvip.model import Service
from lbvip_controller.memory import InMemoryStore

from .utils import ServiceSpec, parse_addresses, parse_services

LOG = logging.getLogger(__name__)

Key = Tuple[str, str]

# Written by the controllers, never taken from the state file.
MANAGED_ANNOTATIONS = frozenset({ANN_VIP, ANN_VIP_ACTIVE_PROVIDER})


class FileStateWatcher(Thread):
    """Poll a JSON state file and apply its changes to the store.

    The file holds the Services to manage and, standing in for IPAM, the
    addresses resolved for their requests::

        {"services": [{"namespace": "ns1", "name": "svc1", "type": "NodePort",
                       "annotations": {"nexinto.com/req-vip": "true"}}],
         "addresses": [{"namespace": "ns1", "name": "svc1", "address": "10.0.0.7"}]}

    Only entries that changed since the previous poll are applied.  An entry
    that fails to apply is retried on the next poll.
    """

    def __init__(
        self,
        store: InMemoryStore,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._store = store
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._services: Dict[Key, ServiceSpec] = {}
        self._addresses: Dict[Key, str] = {}

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("state file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def poll(self) -> None:
        if not self._path.exists():
            LOG.debug("state file %s does not exist yet", self._path)
            return

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse state file %s: %s", self._path, exc)
            return

        if not isinstance(payload, dict):
            LOG.warning("invalid state file %s: top level must be an object", self._path)
            return

        try:
            services = parse_services(payload.get("services"))
            addresses = parse_addresses(payload.get("addresses"))
        except ValueError as exc:
            LOG.warning("invalid state file %s: %s", self._path, exc)
            return

        self._sync_services(services)
        self._sync_addresses(addresses)

    def _sync_services(self, desired: Dict[Key, ServiceSpec]) -> None:
        for key, spec in desired.items():
            if self._services.get(key) == spec:
                continue
            try:
                self._apply_service(key, spec)
            except StoreError as exc:
                LOG.warning("failed to apply service %s/%s: %s", key[0], key[1], exc)
                continue
            self._services[key] = spec

        for key in set(self._services) - set(desired):
            LOG.debug("service %s/%s removed", *key)
            if self._store.get_service(*key) is not None:
                self._store.delete_service(*key)
            del self._services[key]

    def _apply_service(self, key: Key, spec: ServiceSpec) -> None:
        service_type, items = spec
        annotations = {k: v for k, v in items if k not in MANAGED_ANNOTATIONS}
        current = self._store.get_service(*key)
        if current is None:
            LOG.debug("service %s/%s added", *key)
            self._store.create_service(
                Service(namespace=key[0], name=key[1], type=service_type, annotations=annotations)
            )
            return

        managed = {k: v for k, v in current.annotations.items() if k in MANAGED_ANNOTATIONS}
        updated = current.with_annotations({**annotations, **managed})
        if updated.type != service_type:
            updated = replace(updated, type=service_type)
        if updated != current:
            LOG.debug("service %s/%s updated", *key)
            self._store.update_service(updated)

    def _sync_addresses(self, desired: Dict[Key, str]) -> None:
        for key, value in desired.items():
            if self._addresses.get(key) == value:
                continue
            current = self._store.get_address(*key)
            if current is None:
                # IPAM only resolves requests that exist; retry next poll.
                LOG.debug("no ip address request %s/%s yet", *key)
                continue
            if current.address != value:
                try:
                    self._store.update_address(current.with_address(value))
                except StoreError as exc:
                    LOG.warning("failed to resolve ip address %s/%s: %s", key[0], key[1], exc)
                    continue
                LOG.info("ip address %s/%s resolved to %s", key[0], key[1], value or "<none>")
            self._addresses[key] = value

        for key in set(self._addresses) - set(desired):
            LOG.info("ip address %s/%s released", *key)
            if self._store.get_address(*key) is not None:
                self._store.delete_address(*key)
            del self._addresses[key]
