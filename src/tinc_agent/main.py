"""Entry point for the standalone tinc agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from vkubelet import ProviderRegistry
from tinc_provider import factory

from .config import load_config, provider_settings
from .watchers import FileWorkloadWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the tinc virtual node agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/tinc-kubelet/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--provider-config-file",
        type=Path,
        default=None,
        help="oslo.config file whose [provider] group replaces the provider "
        "section of the agent configuration",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)
    provider_name, init_config = provider_settings(config, args.provider_config_file)

    registry = ProviderRegistry()
    factory.register(registry)
    provider = registry.build(provider_name, init_config)

    capacity = provider.capacity()
    LOG.info(
        "node %s ready: cpu=%s memory=%s pods=%s",
        init_config.node_name,
        capacity["cpu"],
        capacity["memory"],
        capacity["pods"],
    )

    stop_event = Event()

    watchers = []
    for watcher_cfg in config.watchers:
        if watcher_cfg.type == "file":
            watcher = FileWorkloadWatcher(
                provider=provider,
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

    LOG.info("tinc agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
