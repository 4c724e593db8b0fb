"""Handlers reacting to Service and IpAddress events."""

from .base import ResourceHandler  # noqa: F401
from .vip import VIPHandler, build_vip_handler  # noqa: F401

__all__ = [
    "ResourceHandler",
    "VIPHandler",
    "build_vip_handler",
]
