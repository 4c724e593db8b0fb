from __future__ import annotations

import ipaddress
from typing import Any, Dict, Mapping, Tuple

from lbvip.model import DEFAULT_SERVICE_TYPES

ServiceSpec = Tuple[str, Tuple[Tuple[str, str], ...]]


def _key(entry: Mapping[str, Any], kind: str) -> Tuple[str, str]:
    namespace = entry.get("namespace")
    name = entry.get("name")
    if not namespace or not name:
        raise ValueError(f"{kind} entry requires 'namespace' and 'name'")
    return str(namespace), str(name)


def parse_services(entries) -> Dict[Tuple[str, str], ServiceSpec]:
    """Map ``(namespace, name)`` to ``(type, sorted annotation items)``."""

    services: Dict[Tuple[str, str], ServiceSpec] = {}
    for entry in entries or []:
        key = _key(entry, "service")
        annotations = entry.get("annotations") or {}
        if not isinstance(annotations, dict):
            raise ValueError(f"service {key[0]}/{key[1]}: 'annotations' must be a mapping")
        services[key] = (
            str(entry.get("type", DEFAULT_SERVICE_TYPES[0])),
            tuple(sorted((str(k), str(v)) for k, v in annotations.items())),
        )
    return services


def parse_addresses(entries) -> Dict[Tuple[str, str], str]:
    """Map ``(namespace, name)`` to the resolved address."""

    addresses: Dict[Tuple[str, str], str] = {}
    for entry in entries or []:
        key = _key(entry, "address")
        addresses[key] = normalize_address(str(entry.get("address", "")))
    return addresses


def normalize_address(value: str) -> str:
    if not value:
        return ""
    return str(ipaddress.ip_address(value.strip()))
