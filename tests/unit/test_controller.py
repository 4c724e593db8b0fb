import pytest

from lbvip.annotations import ANN_REQ_VIP, ANN_VIP, ANN_VIP_ACTIVE_PROVIDER
from lbvip.errors import ConflictError, StoreError
from lbvip.model import ObjectKey, Service, ServiceType
from lbvip_agent.config import ControllerConfig
from lbvip_agent.controller import VIPController
from lbvip_controller import HandlerRegistry
from lbvip_controller.memory import InMemoryStore

KEY = ObjectKey("ns1", "svc1")


def build_controller(store_cls=InMemoryStore, **overrides):
    registry = HandlerRegistry()
    store = store_cls(registry)
    config = ControllerConfig(provider_id="p1", backoff_base=0.0, **overrides)
    controller = VIPController(store, config)
    controller.register(registry)
    return store, controller


def drain(controller: VIPController, limit: int = 20) -> int:
    handled = 0
    while handled < limit and controller.process_next_item(timeout=0):
        handled += 1
    return handled


def resolve(store: InMemoryStore, address: str) -> None:
    current = store.get_address("ns1", "svc1")
    store.update_address(current.with_address(address))


def test_controller_converges():
    store, controller = build_controller()
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))

    drain(controller)

    service = store.get_service("ns1", "svc1")
    assert service.annotations[ANN_VIP_ACTIVE_PROVIDER] == "p1"
    assert ANN_VIP not in service.annotations
    assert store.get_address("ns1", "svc1") is not None

    resolve(store, "10.0.0.7")
    drain(controller)

    assert store.get_service("ns1", "svc1").annotations[ANN_VIP] == "10.0.0.7"
    assert len(controller.queue) == 0


def test_controller_settles_without_extra_writes():
    store, controller = build_controller()
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))
    drain(controller)
    resolve(store, "10.0.0.7")
    drain(controller)
    version = store.get_service("ns1", "svc1").resource_version

    controller.resync()
    drain(controller)

    assert store.get_service("ns1", "svc1").resource_version == version
    assert controller.sync_service(KEY) is True


def test_controller_rerequests_after_address_deleted():
    store, controller = build_controller()
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))
    drain(controller)
    resolve(store, "10.0.0.7")
    drain(controller)

    store.delete_address("ns1", "svc1")
    drain(controller)

    assert store.get_service("ns1", "svc1").annotations[ANN_VIP] == ""
    replacement = store.get_address("ns1", "svc1")
    assert replacement is not None
    assert replacement.address == ""

    resolve(store, "10.0.0.8")
    drain(controller)
    assert store.get_service("ns1", "svc1").annotations[ANN_VIP] == "10.0.0.8"


def test_controller_ignores_services_of_other_providers():
    store, controller = build_controller()
    store.create_service(
        Service(
            namespace="ns1",
            name="svc1",
            type=ServiceType.NODE_PORT,
            annotations={ANN_VIP_ACTIVE_PROVIDER: "p2"},
        )
    )
    version = store.get_service("ns1", "svc1").resource_version

    drain(controller)

    assert store.get_service("ns1", "svc1").resource_version == version
    assert store.list_addresses() == []


def test_controller_requires_opt_in_when_configured():
    store, controller = build_controller(require_opt_in=True)
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))
    drain(controller)
    assert ANN_VIP_ACTIVE_PROVIDER not in store.get_service("ns1", "svc1").annotations

    current = store.get_service("ns1", "svc1")
    store.update_service(current.with_annotation(ANN_REQ_VIP, "true"))
    drain(controller)
    assert store.get_service("ns1", "svc1").annotations[ANN_VIP_ACTIVE_PROVIDER] == "p1"


def test_sync_of_missing_service_is_noop():
    _, controller = build_controller()

    assert controller.sync_service(ObjectKey("ns1", "missing")) is False


class FlakyStore(InMemoryStore):
    def __init__(self, registry=None):
        super().__init__(registry)
        self.fail_creates = 1

    def create_address(self, address):
        if self.fail_creates:
            self.fail_creates -= 1
            raise StoreError("apiserver unavailable")
        return super().create_address(address)


def test_failed_pass_is_retried_and_recorded():
    store, controller = build_controller(store_cls=FlakyStore)
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))

    drain(controller)

    assert store.get_address("ns1", "svc1") is not None
    assert controller.queue.failures(KEY) == 0
    warnings = [e for e in store.list_events("ns1") if e.is_warning]
    assert len(warnings) == 1
    assert "apiserver unavailable" in warnings[0].message


class RacingStore(InMemoryStore):
    """Loses the first write that stores a VIP to a concurrent writer."""

    def __init__(self, registry=None):
        super().__init__(registry)
        self.conflicts = 1

    def update_service(self, service):
        if self.conflicts and service.annotations.get(ANN_VIP):
            self.conflicts -= 1
            raise ConflictError("service 'ns1-svc1' was modified")
        return super().update_service(service)


def assigned_events(store: InMemoryStore) -> list:
    return [e.message for e in store.list_events("ns1") if e.message.startswith("assigned VIP")]


def test_assignment_event_follows_successful_write():
    store, controller = build_controller(store_cls=RacingStore)
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))
    drain(controller)
    current = store.get_address("ns1", "svc1")
    store.update_address(current.with_address("10.0.0.7"))

    with pytest.raises(ConflictError):
        controller.sync_service(KEY)
    assert assigned_events(store) == []
    assert ANN_VIP not in store.get_service("ns1", "svc1").annotations

    drain(controller)

    assert store.get_service("ns1", "svc1").annotations[ANN_VIP] == "10.0.0.7"
    assert assigned_events(store) == ["assigned VIP 10.0.0.7"]


def test_confirming_pass_records_no_event():
    store, controller = build_controller()
    store.create_service(Service(namespace="ns1", name="svc1", type=ServiceType.NODE_PORT))
    drain(controller)
    resolve(store, "10.0.0.7")
    drain(controller)

    controller.resync()
    drain(controller)

    assert assigned_events(store) == ["assigned VIP 10.0.0.7"]
