import pytest

from lbvip.annotations import ANN_VIP, ANN_VIP_ACTIVE_PROVIDER
from lbvip.errors import ConflictError, StoreError
from lbvip.model import IpAddress, ObjectKey, OwnerReference, Service, ServiceType
from lbvip.propagator import AddressChangePropagator
from lbvip.recorder import EventRecorder
from lbvip_controller.memory import InMemoryStore


def service_owner(name: str) -> OwnerReference:
    return OwnerReference(kind="Service", api_version="v1", name=name)


def build_service(store: InMemoryStore, name: str, vip: str) -> Service:
    return store.create_service(
        Service(
            namespace="ns1",
            name=name,
            type=ServiceType.NODE_PORT,
            annotations={ANN_VIP_ACTIVE_PROVIDER: "p1", ANN_VIP: vip},
        )
    )


def test_upsert_with_address_signals_owner():
    propagator = AddressChangePropagator(InMemoryStore())
    address = IpAddress(
        namespace="ns1",
        name="svc1",
        address="10.0.0.5",
        owner_references=[service_owner("svc1")],
    )

    assert propagator.on_address_upserted(address) == [ObjectKey("ns1", "svc1")]


def test_upsert_without_address_signals_nothing():
    propagator = AddressChangePropagator(InMemoryStore())
    address = IpAddress(namespace="ns1", name="svc1", owner_references=[service_owner("svc1")])

    assert propagator.on_address_upserted(address) == []


def test_upsert_ignores_foreign_owners():
    propagator = AddressChangePropagator(InMemoryStore())
    address = IpAddress(
        namespace="ns1",
        name="svc1",
        address="10.0.0.5",
        owner_references=[
            OwnerReference(kind="Ingress", api_version="networking.k8s.io/v1", name="web"),
            OwnerReference(kind="Service", api_version="v2", name="svc2"),
            service_owner("svc1"),
        ],
    )

    assert propagator.on_address_upserted(address) == [ObjectKey("ns1", "svc1")]


def test_delete_resets_assigned_vip():
    store = InMemoryStore()
    build_service(store, "svc1", "10.0.0.5")
    propagator = AddressChangePropagator(store, EventRecorder(store))
    address = IpAddress(namespace="ns1", name="svc1", address="10.0.0.5",
                        owner_references=[service_owner("svc1")])

    reset = propagator.on_address_deleted(address)

    assert reset == [ObjectKey("ns1", "svc1")]
    service = store.get_service("ns1", "svc1")
    assert service.annotations[ANN_VIP] == ""
    assert service.annotations[ANN_VIP_ACTIVE_PROVIDER] == "p1"
    assert [e.message for e in store.list_events()] == ["VIP 10.0.0.5 released"]


def test_delete_without_vip_does_not_write():
    store = InMemoryStore()
    before = build_service(store, "svc1", "")
    propagator = AddressChangePropagator(store)
    address = IpAddress(namespace="ns1", name="svc1", owner_references=[service_owner("svc1")])

    assert propagator.on_address_deleted(address) == []
    assert store.get_service("ns1", "svc1").resource_version == before.resource_version


def test_delete_skips_missing_service():
    store = InMemoryStore()
    propagator = AddressChangePropagator(store)
    address = IpAddress(namespace="ns1", name="gone", owner_references=[service_owner("gone")])

    assert propagator.on_address_deleted(address) == []


class FailingUpdateStore(InMemoryStore):
    def update_service(self, service):
        raise StoreError("etcd timeout")


def test_delete_surfaces_update_failure():
    store = FailingUpdateStore()
    build_service(store, "svc1", "10.0.0.5")
    propagator = AddressChangePropagator(store)
    address = IpAddress(namespace="ns1", name="svc1", owner_references=[service_owner("svc1")])

    with pytest.raises(StoreError, match="error updating service 'ns1-svc1': etcd timeout"):
        propagator.on_address_deleted(address)


class ConflictingUpdateStore(InMemoryStore):
    def update_service(self, service):
        raise ConflictError("resource version 3 is stale")


def test_delete_keeps_conflict_type():
    store = ConflictingUpdateStore()
    build_service(store, "svc1", "10.0.0.5")
    propagator = AddressChangePropagator(store)
    address = IpAddress(namespace="ns1", name="svc1", owner_references=[service_owner("svc1")])

    with pytest.raises(ConflictError, match="error updating service 'ns1-svc1'"):
        propagator.on_address_deleted(address)
