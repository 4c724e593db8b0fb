"""Event plumbing between a watched resource store and the VIP core.

A store publishes :mod:`~lbvip_controller.events` for every Service and
IpAddress change; the :class:`HandlerRegistry` fans them out to registered
handlers such as :class:`~lbvip_controller.handlers.VIPHandler`, which turns
them into "re-examine this Service" signals for a work queue.
"""

from .events import AddressDelete, AddressUpsert, ServiceDelete, ServiceUpsert  # noqa: F401
from .registry import HandlerRegistry  # noqa: F401

__all__ = [
    "AddressDelete",
    "AddressUpsert",
    "HandlerRegistry",
    "ServiceDelete",
    "ServiceUpsert",
]
