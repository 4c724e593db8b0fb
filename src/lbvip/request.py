"""Create ``IpAddress`` requests for Services."""

from __future__ import annotations

import logging

from .errors import AddressRequestError, AlreadyExistsError, StoreError
from .model import SERVICE_API_VERSION, SERVICE_KIND, IpAddress, OwnerReference, Service
from .store import ResourceStore

LOG = logging.getLogger(__name__)


def build_address_request(service: Service) -> IpAddress:
    """Return the ``IpAddress`` that requests a VIP for ``service``."""

    return IpAddress(
        namespace=service.namespace,
        name=service.name,
        description=f"created for service {service.name}",
        owner_references=(
            OwnerReference(
                kind=SERVICE_KIND,
                api_version=SERVICE_API_VERSION,
                name=service.name,
                uid=service.uid,
            ),
        ),
    )


class AddressRequestIssuer:
    def __init__(self, store: ResourceStore) -> None:
        self._store = store

    def request_address(self, service: Service) -> IpAddress:
        """Create the address request for ``service``.

        :class:`AlreadyExistsError` is passed through untouched so callers
        can tell a lost create race apart from a real failure.
        """

        try:
            created = self._store.create_address(build_address_request(service))
        except AlreadyExistsError:
            raise
        except StoreError as exc:
            raise AddressRequestError(
                f"failed to create ip address request for service "
                f"'{service.namespace}-{service.name}': {exc}"
            ) from exc

        LOG.info("created ip address request for '%s-%s'", service.namespace, service.name)
        return created
