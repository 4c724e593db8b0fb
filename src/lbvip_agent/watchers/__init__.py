"""Watcher implementations used by the VIP agent."""

from .file import FileStateWatcher  # noqa: F401

__all__ = ["FileStateWatcher"]
