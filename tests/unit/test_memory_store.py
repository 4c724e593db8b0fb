import pytest

from lbvip.errors import AlreadyExistsError, ConflictError, NotFoundError
from lbvip.model import IpAddress, Service
from lbvip_controller import AddressDelete, AddressUpsert, HandlerRegistry, ServiceUpsert
from lbvip_controller.memory import InMemoryStore


class RecordingHandler:
    def __init__(self):
        self.events = []

    def on_service_upsert(self, service):
        self.events.append(ServiceUpsert(service))

    def on_service_delete(self, key):
        self.events.append(("service-delete", key))

    def on_address_upsert(self, address):
        self.events.append(AddressUpsert(address))

    def on_address_delete(self, address):
        self.events.append(AddressDelete(address))


def test_update_rejects_stale_version():
    store = InMemoryStore()
    original = store.create_service(Service(namespace="ns1", name="svc1"))
    store.update_service(original.with_annotation("a", "1"))

    with pytest.raises(ConflictError):
        store.update_service(original.with_annotation("b", "2"))


def test_update_keeps_uid_and_bumps_version():
    store = InMemoryStore()
    original = store.create_service(Service(namespace="ns1", name="svc1"))

    updated = store.update_service(original.with_annotation("a", "1"))

    assert updated.uid == original.uid
    assert updated.resource_version > original.resource_version


def test_create_and_delete_errors():
    store = InMemoryStore()
    store.create_address(IpAddress(namespace="ns1", name="svc1"))

    with pytest.raises(AlreadyExistsError):
        store.create_address(IpAddress(namespace="ns1", name="svc1"))
    with pytest.raises(NotFoundError):
        store.delete_address("ns1", "other")
    with pytest.raises(NotFoundError):
        store.update_service(Service(namespace="ns1", name="missing"))


def test_mutations_are_published():
    registry = HandlerRegistry()
    handler = RecordingHandler()
    registry.register("recorder", handler)
    store = InMemoryStore(registry)

    service = store.create_service(Service(namespace="ns1", name="svc1"))
    address = store.create_address(IpAddress(namespace="ns1", name="svc1"))
    store.delete_address("ns1", "svc1")
    store.delete_service("ns1", "svc1")

    assert handler.events == [
        ServiceUpsert(service),
        AddressUpsert(address),
        AddressDelete(address),
        ("service-delete", service.key),
    ]
    assert store.get_service("ns1", "svc1") is None
