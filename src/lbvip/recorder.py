"""Audit events for Services and IpAddresses."""

from __future__ import annotations

import logging
import time
from typing import Any

from .errors import StoreError, VIPError
from .model import EVENT_NORMAL, EVENT_WARNING, Event
from .store import ResourceStore

LOG = logging.getLogger(__name__)


class EventRecorder:
    """Write best-effort events through a :class:`ResourceStore`.

    A failure to record an event is logged and otherwise ignored; it must
    never undo a decision that has already been made.
    """

    def __init__(self, store: ResourceStore) -> None:
        self._store = store

    def notify(self, obj: Any, message: str, warning: bool = False) -> None:
        now = time.time()
        event = Event(
            namespace=obj.namespace,
            involved_kind=obj.kind,
            involved_api_version=obj.api_version,
            involved_name=obj.name,
            involved_uid=obj.uid,
            involved_resource_version=obj.resource_version,
            message=message,
            type=EVENT_WARNING if warning else EVENT_NORMAL,
            first_timestamp=now,
            last_timestamp=now,
        )
        try:
            self._store.create_event(event)
        except StoreError as exc:
            LOG.warning(
                "failed to record event for '%s-%s': %s", obj.namespace, obj.name, exc
            )

    def fail(self, obj: Any, message: str) -> VIPError:
        """Log ``message``, attach it as a warning and return it as an error."""

        LOG.error(message)
        self.notify(obj, message, warning=True)
        return VIPError(message)
