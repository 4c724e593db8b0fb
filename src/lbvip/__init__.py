"""VIP assignment core for load balancer controllers.

Several controllers ("providers") can compete for the same Service, and the
address itself is handed out asynchronously by an IPAM subsystem that
watches ``IpAddress`` resources.  This package holds the logic every
provider shares:

* the annotation protocol used between providers (:mod:`lbvip.annotations`);
* claiming a Service for a single provider;
* requesting an address by creating an ``IpAddress`` resource;
* copying the resolved address onto the Service, and resetting it when the
  address changes or disappears.

Everything here is synchronous and holds no session state.  The two watched
resources are the only source of truth, so the reconciler can be invoked
repeatedly with cached, possibly stale views and still converge.
"""

from .errors import (  # noqa: F401
    AddressRequestError,
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    StoreError,
    VIPError,
)
from .model import IpAddress, ObjectKey, OwnerReference, ReconcileResult, Service  # noqa: F401
from .propagator import AddressChangePropagator  # noqa: F401
from .reconciler import VIPReconciler  # noqa: F401
from .recorder import EventRecorder  # noqa: F401
from .request import AddressRequestIssuer  # noqa: F401

__all__ = [
    "AddressChangePropagator",
    "AddressRequestError",
    "AddressRequestIssuer",
    "AlreadyExistsError",
    "ConflictError",
    "EventRecorder",
    "IpAddress",
    "NotFoundError",
    "ObjectKey",
    "OwnerReference",
    "ReconcileResult",
    "Service",
    "StoreError",
    "VIPError",
    "VIPReconciler",
]
