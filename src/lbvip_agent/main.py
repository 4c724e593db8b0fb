"""Entry point for the standalone VIP agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from threading import Event

from oslo_config import cfg

from lbvip_controller import HandlerRegistry
from lbvip_controller.config_extensions import controller_config_from_conf, register_vip_opts
from lbvip_controller.memory import InMemoryStore

from .config import AgentConfig, load_config
from .controller import VIPController
from .watchers import FileStateWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _apply_oslo_config(config: AgentConfig, path: Path) -> AgentConfig:
    conf = cfg.ConfigOpts()
    register_vip_opts(conf)
    conf(args=[], project="lbvip", default_config_files=[str(path)])
    return replace(config, controller=controller_config_from_conf(conf))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the VIP agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/lbvip/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--oslo-config",
        type=Path,
        default=None,
        help="oslo.config ini file whose [vip] group overrides the controller section",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)
    if args.oslo_config is not None:
        config = _apply_oslo_config(config, args.oslo_config)

    registry = HandlerRegistry()
    store = InMemoryStore(registry)
    controller = VIPController(store, config.controller)
    controller.register(registry)

    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileStateWatcher(
                store=store,
                path=watcher_cfg.path,
                interval=watcher_cfg.interval,
                stop_event=stop_event,
            )
        else:
            raise ValueError(f"unsupported watcher type '{watcher_cfg.type}'")
        # Perform an initial poll so we react immediately
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for watcher %s", watcher_cfg.path)
        watcher.start()
        watchers.append(watcher)

    if not watchers:
        LOG.warning("no watchers configured; agent will idle")

    controller.run(stop_event)

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()
    controller.join()

    LOG.info("VIP agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
