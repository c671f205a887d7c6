"""CLI entry point for AngorHub.

One-shot commands print JSON to stdout; ``watch`` runs the
[HealthRefresher][angorhub.services.refresher.HealthRefresher] continuously
with a Prometheus metrics server.

Examples:
    ```bash
    python -m angorhub health --network testnet
    python -m angorhub projects --pages 2
    python -m angorhub denylist
    python -m angorhub price
    python -m angorhub watch --config config/hub.yaml --log-level DEBUG
    ```
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from angorhub.core import start_metrics_server
from angorhub.core.exceptions import AngorHubError
from angorhub.core.logger import Logger, StructuredFormatter
from angorhub.core.yaml import load_yaml
from angorhub.models.constants import NetworkId
from angorhub.services.hub import Hub


DEFAULT_CONFIG = Path("config") / "hub.yaml"

COMMANDS = ("health", "projects", "denylist", "price", "watch")

MAX_PAGE_RESTARTS = 3

logger = Logger("cli")


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))  # noqa: T201


async def cmd_health(hub: Hub, _args: argparse.Namespace) -> int:
    network = hub.network.current
    status = await hub.monitor.test_all(network)
    _emit(
        {
            "network": network.value,
            "health": status.overall_health.value,
            "best": hub.monitor.select_best(network),
            "results": [result.to_dict() for result in status.results],
        }
    )
    return 0


async def cmd_projects(hub: Hub, args: argparse.Namespace) -> int:
    await hub.deny_list.load()
    aggregator = hub.aggregator
    loaded = restarts = 0
    while loaded < args.pages and aggregator.has_more:
        page = await aggregator.load_more()
        if page is not None:
            loaded += 1
            continue
        # A new best indexer reset pagination while the page was in flight
        restarts += 1
        if aggregator.is_loading or restarts > MAX_PAGE_RESTARTS:
            break
        logger.info(
            "projects_restarted",
            indexer=aggregator.key.indexer_url if aggregator.key else None,
        )
    if aggregator.error is not None:
        logger.warning("projects_incomplete", error=str(aggregator.error))
    _emit(
        {
            "network": hub.network.current.value,
            "indexer": aggregator.key.indexer_url if aggregator.key else None,
            "has_more": aggregator.has_more,
            "projects": aggregator.projects,
        }
    )
    return 0


async def cmd_denylist(hub: Hub, _args: argparse.Namespace) -> int:
    deny_list = await hub.deny_list.resolve()
    _emit({"source": deny_list.source.label, "ids": sorted(deny_list.ids)})
    return 0


async def cmd_price(hub: Hub, _args: argparse.Namespace) -> int:
    price = await hub.price.fetch()
    _emit(price.prices)
    return 0


async def cmd_watch(hub: Hub, _args: argparse.Namespace) -> int:
    """Run the health refresher until SIGINT or SIGTERM."""
    refresher = hub.refresher()
    metrics_config = refresher.config.metrics
    metrics_server = await start_metrics_server(metrics_config)

    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        refresher.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        async with refresher:
            await refresher.run_forever()
        return 0
    finally:
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")


HANDLERS = {
    "health": cmd_health,
    "projects": cmd_projects,
    "denylist": cmd_denylist,
    "price": cmd_price,
    "watch": cmd_watch,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="angorhub",
        description="AngorHub indexer and relay aggregation",
    )

    parser.add_argument("command", choices=COMMANDS, help="Command to run")

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Hub config path (default: {DEFAULT_CONFIG})",
    )

    parser.add_argument(
        "--network",
        choices=[network.value for network in NetworkId],
        help="Switch to this network before running (persisted)",
    )

    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Pages to load for 'projects' (default: 1)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Install a ``StructuredFormatter`` on a stderr root handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


async def main(argv: list[str] | None = None) -> int:
    """Parse args, build the hub and run one command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    hub = Hub.from_dict(_load_yaml_dict(args.config))

    try:
        async with hub:
            if args.network:
                hub.switch_network(NetworkId(args.network))
            return await HANDLERS[args.command](hub, args)
    except AngorHubError as e:
        logger.error(f"{args.command}_failed", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
