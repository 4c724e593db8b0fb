"""The VIP reconciliation state machine.

Each pass looks at a Service and its ``IpAddress`` and performs at most one
transition: claim, request, store, clear or confirm.  Repeated passes
converge; there is no state outside the two resources themselves.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .annotations import (
    ANN_REQ_VIP,
    ANN_VIP,
    ANN_VIP_ACTIVE_PROVIDER,
    ANN_VIP_PROVIDER,
    get_annotation,
)
from .errors import AlreadyExistsError
from .model import DEFAULT_SERVICE_TYPES, IpAddress, ReconcileResult, Service
from .request import AddressRequestIssuer

LOG = logging.getLogger(__name__)

AddressLookup = Callable[[str, str], Optional[IpAddress]]

SKIP = ReconcileResult(proceed=False)


class VIPReconciler:
    """Decide the next VIP step for a Service.

    The reconciler never writes the Service.  Whenever ``result.changed`` is
    set the caller persists ``result.service`` (optimistically, against the
    version it read) and waits for the next pass; claiming in particular must
    be durable before any address work starts.  The only side effect here is
    creating the address request; recording that a VIP was assigned is left
    to the caller once the write has succeeded.
    """

    def __init__(
        self,
        issuer: AddressRequestIssuer,
        service_types: Iterable[str] = DEFAULT_SERVICE_TYPES,
    ) -> None:
        self._issuer = issuer
        self._service_types = frozenset(service_types)

    def reconcile(
        self,
        service: Service,
        lookup_address: AddressLookup,
        provider_id: str,
        require_opt_in: bool = False,
    ) -> ReconcileResult:
        ns, name = service.namespace, service.name

        if service.type not in self._service_types:
            LOG.debug("skipping '%s-%s': type %s is not handled", ns, name, service.type)
            return SKIP

        if require_opt_in and not get_annotation(service, ANN_REQ_VIP):
            LOG.debug(
                "skipping '%s-%s': opt-in is required and service does not have our annotation",
                ns,
                name,
            )
            return SKIP

        requested = get_annotation(service, ANN_VIP_PROVIDER)
        if requested and requested != provider_id:
            LOG.debug("skipping '%s-%s': service requests provider '%s'", ns, name, requested)
            return SKIP

        active = get_annotation(service, ANN_VIP_ACTIVE_PROVIDER)
        if active and active != provider_id:
            LOG.debug("skipping '%s-%s': service is managed by provider '%s'", ns, name, active)
            return SKIP

        if not active:
            LOG.info("claiming service '%s-%s' for provider '%s'", ns, name, provider_id)
            claimed = service.with_annotation(ANN_VIP_ACTIVE_PROVIDER, provider_id)
            return ReconcileResult(proceed=False, changed=True, service=claimed)

        # Store errors other than "not found" propagate and trigger a retry.
        address = lookup_address(ns, name)
        assigned = get_annotation(service, ANN_VIP)

        if not assigned:
            if address is None:
                LOG.debug("no address for '%s-%s' exists", ns, name)
                self._request_address(service)
                return SKIP

            if not address.address:
                LOG.debug("ip address '%s-%s' has no address yet", ns, name)
                return SKIP

            return ReconcileResult(
                proceed=True, changed=True, service=service.with_annotation(ANN_VIP, address.address)
            )

        if address is None:
            LOG.info(
                "assigned IP address for service '%s-%s' has disappeared (was %s)",
                ns,
                name,
                assigned,
            )
            return ReconcileResult(
                proceed=False, changed=True, service=service.with_annotation(ANN_VIP, "")
            )

        if not address.address:
            LOG.info(
                "assigned IP address for service '%s-%s' was withdrawn (was %s)",
                ns,
                name,
                assigned,
            )
            return ReconcileResult(
                proceed=False, changed=True, service=service.with_annotation(ANN_VIP, "")
            )

        if address.address != assigned:
            LOG.info(
                "assigned IP address for service '%s-%s' has changed (from %s to %s)",
                ns,
                name,
                assigned,
                address.address,
            )
            return ReconcileResult(
                proceed=True, changed=True, service=service.with_annotation(ANN_VIP, address.address)
            )

        return ReconcileResult(proceed=True, changed=False, service=service)

    def _request_address(self, service: Service) -> None:
        try:
            self._issuer.request_address(service)
        except AlreadyExistsError:
            # The next pass reads the request someone else just created.
            LOG.debug(
                "ip address request for '%s-%s' already exists", service.namespace, service.name
            )

