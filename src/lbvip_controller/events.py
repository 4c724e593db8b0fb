"""Resource change events consumed by the handler registry."""

from __future__ import annotations

from dataclasses import dataclass

from lbvip.model import IpAddress, ObjectKey, Service


@dataclass(frozen=True)
class ServiceUpsert:
    """A Service was created or updated."""

    service: Service


@dataclass(frozen=True)
class ServiceDelete:
    key: ObjectKey


@dataclass(frozen=True)
class AddressUpsert:
    """An IpAddress was created or updated.

    Creation by the request issuer and status updates by IPAM both arrive as
    upserts; the handler decides whether the status is worth acting on.
    """

    address: IpAddress


@dataclass(frozen=True)
class AddressDelete:
    """An IpAddress was removed.  Carries the last known state."""

    address: IpAddress


ResourceEvent = ServiceUpsert | ServiceDelete | AddressUpsert | AddressDelete
