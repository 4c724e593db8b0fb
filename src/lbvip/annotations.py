"""Annotation protocol shared by all VIP providers.

The names below are the wire contract between independent controllers and
must not change.
"""

from __future__ import annotations

from typing import Any

# If set to any value, a VIP will be configured.
ANN_REQ_VIP = "nexinto.com/req-vip"

# Set to the VIP once it has been resolved.
ANN_VIP = "nexinto.com/vip"

# Explicitly choose a VIP provider.
ANN_VIP_PROVIDER = "nexinto.com/vip-provider"

# The provider that has claimed the Service.
ANN_VIP_ACTIVE_PROVIDER = "nexinto.com/vip-active-provider"

# One or more SSL profiles for the virtual server.
ANN_VIP_SSL_PROFILES = "nexinto.com/vip-ssl-profiles"

# VIP mode, ``http`` (default) or ``tcp``; read by the virtual server providers.
ANN_VIP_MODE = "nexinto.com/req-vip-mode"

# VIP as configured by the k8s-bigip-ctlr.
ANN_VIRTUAL_SERVER_IP = "virtual-server.f5.com/ip"

# Set by the k8s-bigip-ctlr once the VIP is live on the loadbalancer.
ANN_VIRTUAL_SERVER_IP_STATUS = "status.virtual-server.f5.com/ip"

PROVIDER_BIGIP = "bigip"
PROVIDER_FORTIGATE = "fortigate"


def get_annotation(obj: Any, key: str) -> str:
    """Return annotation ``key`` of ``obj``; a missing key reads as ``""``."""

    return obj.annotations.get(key, "") or ""

