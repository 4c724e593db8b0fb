"""YAML configuration loader for the VIP agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

import yaml

from lbvip.model import DEFAULT_SERVICE_TYPES


@dataclass
class ControllerConfig:
    provider_id: str
    require_opt_in: bool = False
    service_types: Sequence[str] = DEFAULT_SERVICE_TYPES
    workers: int = 1
    resync_interval: float = 30.0
    backoff_base: float = 0.5
    backoff_max: float = 30.0


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    controller: ControllerConfig
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_service_types(raw) -> Sequence[str]:
    if raw is None:
        return DEFAULT_SERVICE_TYPES
    if isinstance(raw, str):
        raw = [raw]
    types = tuple(str(t) for t in raw)
    if not types:
        raise ValueError("'service_types' must not be empty")
    return types


def _parse_controller(section: dict) -> ControllerConfig:
    provider_id = section.get("provider_id")
    if not provider_id:
        raise ValueError("controller section missing 'provider_id'")

    workers = int(section.get("workers", 1))
    if workers < 1:
        raise ValueError("'workers' must be at least 1")

    return ControllerConfig(
        provider_id=str(provider_id),
        require_opt_in=bool(section.get("require_opt_in", False)),
        service_types=_parse_service_types(section.get("service_types")),
        workers=workers,
        resync_interval=float(section.get("resync_interval", 30.0)),
        backoff_base=float(section.get("backoff_base", 0.5)),
        backoff_max=float(section.get("backoff_max", 30.0)),
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("watcher 'options' must be a mapping if provided")
        watchers.append(
            WatcherConfig(
                type=str(entry["type"]),
                path=Path(entry.get("path", ".")),
                interval=float(entry.get("interval", entry.get("poll_interval", 5.0))),
                options=options,
            )
        )
    return watchers


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    controller_section = data.get("controller")
    if controller_section is None:
        raise ValueError("Configuration missing 'controller' section")
    controller = _parse_controller(controller_section)

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return AgentConfig(controller=controller, watchers=watchers)
