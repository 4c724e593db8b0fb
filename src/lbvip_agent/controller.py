"""Reconcile worker driving the VIP core from a work queue."""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import List, Optional

from lbvip.annotations import ANN_VIP, get_annotation
from lbvip.errors import ConflictError, VIPError
from lbvip.model import ObjectKey, Service
from lbvip.propagator import AddressChangePropagator
from lbvip.reconciler import VIPReconciler
from lbvip.recorder import EventRecorder
from lbvip.request import AddressRequestIssuer
from lbvip.store import ResourceStore
from lbvip_controller import HandlerRegistry
from lbvip_controller.handlers import build_vip_handler

from .config import ControllerConfig
from .queue import WorkQueue

LOG = logging.getLogger(__name__)


class VIPController:
    """Apply reconciler decisions for one provider.

    Each pass persists at most one change.  The store publishes that change
    back through the registry, which queues the Service again, so a Service
    moves through claim, request and store in separate passes.
    """

    def __init__(
        self,
        store: ResourceStore,
        config: ControllerConfig,
        *,
        recorder: Optional[EventRecorder] = None,
        queue: Optional[WorkQueue] = None,
    ) -> None:
        self._store = store
        self._config = config
        self._recorder = recorder or EventRecorder(store)
        self._queue = queue or WorkQueue(
            backoff_base=config.backoff_base, backoff_max=config.backoff_max
        )
        self._reconciler = VIPReconciler(
            AddressRequestIssuer(store),
            service_types=config.service_types,
        )
        self._propagator = AddressChangePropagator(store, self._recorder)
        self._threads: List[Thread] = []

    @property
    def queue(self) -> WorkQueue:
        return self._queue

    def register(self, registry: HandlerRegistry, name: str = "vip") -> None:
        registry.register(name, build_vip_handler(self._propagator, self._queue.add))

    def resync(self) -> None:
        for service in self._store.list_services():
            self._queue.add(service.key)

    def sync_service(self, key: ObjectKey) -> bool:
        """Run one reconciliation pass for ``key``.

        Returns ``True`` when the Service carries a usable VIP.  Store
        failures propagate as :class:`VIPError`.
        """

        service = self._store.get_service(key.namespace, key.name)
        if service is None:
            LOG.debug("service %s no longer exists", key)
            return False

        try:
            result = self._reconciler.reconcile(
                service,
                self._store.get_address,
                self._config.provider_id,
                self._config.require_opt_in,
            )
            if result.changed and result.service is not None:
                stored = self._store.update_service(result.service)
                self._record_assignment(service, stored)
        except ConflictError:
            raise
        except VIPError as exc:
            raise self._recorder.fail(
                service, f"error syncing service '{key.namespace}-{key.name}': {exc}"
            ) from exc

        if result.proceed:
            LOG.info("service %s has VIP %s", key, get_annotation(result.service, ANN_VIP))
        return result.proceed

    def _record_assignment(self, before: Service, after: Service) -> None:
        vip = get_annotation(after, ANN_VIP)
        if vip and vip != get_annotation(before, ANN_VIP):
            self._recorder.notify(after, f"assigned VIP {vip}")

    def process_next_item(self, timeout: Optional[float] = None) -> bool:
        """Handle one key from the queue; ``False`` when nothing was handled."""

        key = self._queue.get(timeout)
        if key is None:
            return False

        try:
            self.sync_service(key)
        except ConflictError as exc:
            LOG.debug("conflict syncing %s, retrying: %s", key, exc)
            self._queue.add_rate_limited(key)
        except VIPError as exc:
            delay = self._queue.add_rate_limited(key)
            LOG.warning("retrying %s in %.1fs: %s", key, delay, exc)
        else:
            self._queue.forget(key)
        finally:
            self._queue.done(key)
        return True

    def run(self, stop_event: Event) -> None:
        """Start workers and the resync loop, returning once they are running."""

        for index in range(self._config.workers):
            thread = Thread(
                target=self._worker, args=(stop_event,), name=f"vip-worker-{index}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

        resync = Thread(target=self._resync_loop, args=(stop_event,), name="vip-resync", daemon=True)
        resync.start()
        self._threads.append(resync)
        LOG.info(
            "VIP controller started (provider=%s, workers=%d)",
            self._config.provider_id,
            self._config.workers,
        )

    def join(self, timeout: Optional[float] = None) -> None:
        self._queue.shutdown()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()

    def _worker(self, stop_event: Event) -> None:
        while not stop_event.is_set() and not self._queue.is_shutdown:
            try:
                self.process_next_item(timeout=1.0)
            except Exception:  # pragma: no cover - keep the worker alive
                LOG.exception("unexpected error in VIP worker")

    def _resync_loop(self, stop_event: Event) -> None:
        while not stop_event.is_set():
            try:
                self.resync()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("resync failed")
            stop_event.wait(self._config.resync_interval)
