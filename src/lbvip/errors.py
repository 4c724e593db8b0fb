"""Exceptions raised by the VIP core.

Only store-layer faults raise.  Situations where a provider simply has
nothing to do ("not my service", "address still pending") are reported via
:class:`~lbvip.model.ReconcileResult` instead.  Every error here is
retryable: the caller is expected to requeue the Service with backoff.
"""

from __future__ import annotations


class VIPError(Exception):
    """Base class for all errors raised by :mod:`lbvip`."""


class StoreError(VIPError):
    """A read, write or create against the resource store failed."""


class NotFoundError(StoreError):
    """The resource does not exist."""


class AlreadyExistsError(StoreError):
    """A create collided with an existing resource of the same key."""


class ConflictError(StoreError):
    """An update targeted a stale resource version."""


class AddressRequestError(StoreError):
    """Creating the ``IpAddress`` request for a Service failed."""
