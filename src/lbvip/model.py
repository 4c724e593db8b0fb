"""Resource values exchanged between the VIP core and the resource store.

All values are frozen.  Cached objects handed out by a store may be shared
between workers, so every mutation goes through a ``with_*`` helper that
returns a new instance and leaves the original untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Sequence, Tuple

from frozendict import frozendict

SERVICE_KIND = "Service"
SERVICE_API_VERSION = "v1"

ADDRESS_KIND = "IpAddress"
ADDRESS_API_VERSION = "ipam.nexinto.com/v1"


class ServiceType:
    """Service types known to the controllers."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    EXTERNAL_NAME = "ExternalName"


# Services fronted by an external loadbalancer are exposed as NodePorts.
DEFAULT_SERVICE_TYPES: Tuple[str, ...] = (ServiceType.NODE_PORT,)


@dataclass(frozen=True, order=True)
class ObjectKey:
    """Namespace/name pair identifying a namespaced resource."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "ObjectKey":
        namespace, sep, name = value.partition("/")
        if not sep or not namespace or not name:
            raise ValueError(f"Invalid object key '{value}'")
        return cls(namespace, name)


@dataclass(frozen=True)
class OwnerReference:
    kind: str
    api_version: str
    name: str
    uid: str = ""

    def is_service(self) -> bool:
        return self.kind == SERVICE_KIND and self.api_version == SERVICE_API_VERSION


@dataclass(frozen=True)
class Service:
    """The subset of a Service the VIP controllers care about."""

    namespace: str
    name: str
    type: str = ServiceType.CLUSTER_IP
    annotations: Mapping[str, str] = field(default_factory=frozendict)
    uid: str = ""
    resource_version: int = 0

    kind = SERVICE_KIND
    api_version = SERVICE_API_VERSION

    def __post_init__(self) -> None:
        if not isinstance(self.annotations, frozendict):
            object.__setattr__(self, "annotations", frozendict(self.annotations or {}))

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(self.namespace, self.name)

    def with_annotation(self, key: str, value: str) -> "Service":
        return replace(self, annotations=self.annotations.set(key, value))

    def with_annotations(self, annotations: Mapping[str, str]) -> "Service":
        return replace(self, annotations=frozendict(annotations))


@dataclass(frozen=True)
class IpAddress:
    """An address request and, once IPAM has resolved it, its address.

    ``address`` mirrors the resource status and stays empty until the IPAM
    subsystem fills it in.
    """

    namespace: str
    name: str
    description: str = ""
    address: str = ""
    owner_references: Sequence[OwnerReference] = ()
    uid: str = ""
    resource_version: int = 0

    kind = ADDRESS_KIND
    api_version = ADDRESS_API_VERSION

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner_references", tuple(self.owner_references))

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(self.namespace, self.name)

    def with_address(self, address: str) -> "IpAddress":
        return replace(self, address=address)

    def service_owners(self) -> list[ObjectKey]:
        """Keys of the Services owning this address (same namespace)."""

        return [
            ObjectKey(self.namespace, ref.name)
            for ref in self.owner_references
            if ref.is_service()
        ]


@dataclass(frozen=True)
class Event:
    """Audit notification attached to a resource."""

    namespace: str
    involved_kind: str
    involved_api_version: str
    involved_name: str
    involved_uid: str
    involved_resource_version: int
    message: str
    type: str
    first_timestamp: float
    last_timestamp: float
    name: str = ""

    @property
    def is_warning(self) -> bool:
        return self.type == EVENT_WARNING


EVENT_NORMAL = "Normal"
EVENT_WARNING = "Warning"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconciliation pass.

    ``proceed`` tells the caller whether the Service carries a usable VIP.
    When ``changed`` is set, ``service`` holds the updated copy the caller
    must persist; the cached original has not been modified.
    """

    proceed: bool
    changed: bool = False
    service: Optional[Service] = None
