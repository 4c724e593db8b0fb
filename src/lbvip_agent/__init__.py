"""VIP agent runtime helpers."""

from .config import AgentConfig, ControllerConfig, load_config  # noqa: F401

__all__ = [
    "AgentConfig",
    "ControllerConfig",
    "load_config",
]
