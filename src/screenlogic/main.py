"""Controller probe: connect, dump time/version/config/status, optionally toggle a circuit."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TextIO

from screenlogic import const
from screenlogic.adapter import Adapter
from screenlogic.circuit import Circuit
from screenlogic.config import AdapterConfig, ConfigError, load_config
from screenlogic.logging_abstraction import get_logger
from screenlogic.metrics import start_metrics_server
from screenlogic.protocol.exceptions import ScreenLogicError
from screenlogic.protocol.models import ControllerConfig, ControllerStatus

logger = logging.getLogger(__name__)


def on_off(state: bool | None) -> str:
    if state is None:
        return "unknown"
    return "on" if state else "off"


def setup_logging(log_level: str, log_format: str | None = None) -> None:
    """Configure the package logger for command-line use."""
    package_logger = get_logger("screenlogic", log_format=log_format)
    package_logger.set_level(getattr(logging, log_level.upper(), logging.INFO))


def build_config(args: argparse.Namespace) -> AdapterConfig:
    """Resolve adapter settings from --config, --host or the environment.

    Raises:
        ConfigError: If no usable configuration is found
    """
    if args.config:
        config = load_config(args.config)
    elif args.host:
        config = AdapterConfig(ip_address=args.host)
    else:
        config = AdapterConfig.from_env()

    overrides: dict[str, float] = {}
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.keep_alive is not None:
        overrides["keep_alive"] = args.keep_alive
    if overrides:
        config = AdapterConfig.model_validate({**config.model_dump(), **overrides})
    return config


def print_circuits(out: TextIO, cfg: ControllerConfig, status: ControllerStatus) -> None:
    for cs in status.circuits:
        circuit = cfg.circuit_by_id(cs.id)
        if circuit is None:
            out.write(f"{'?':>12}: {on_off(cs.state)} ({cs.id})\n")
            continue
        out.write(
            f"{circuit.name!r:>12}: {on_off(cs.state)} "
            f"({circuit.id}: {circuit.function}: {circuit.interface})\n",
        )


async def probe(adapter: Adapter, out: TextIO, toggle: str | None = None) -> int:
    """Run the full probe sequence against ``adapter``."""
    out.write(f"time: {await adapter.get_time()}\n")
    out.write(f"version: {await adapter.get_version()}\n")

    cfg = await adapter.get_config()
    adapter.format_config(out, cfg)

    status = await adapter.get_status()
    adapter.format_status(out, status)
    print_circuits(out, cfg, status)

    if toggle is None:
        return 0

    circuit = await Circuit.by_name(adapter, toggle)
    if circuit is None:
        logger.error("✗ Circuit not found", extra={"circuit": toggle})
        print(f"circuit not found: {toggle!r}", file=sys.stderr)
        return 1

    current = status.status_for_id(circuit.id)
    out.write(f"ID: {circuit.id} {on_off(current)} -> {on_off(not current)}\n")
    if current:
        await circuit.off()
    else:
        await circuit.on()

    status = await adapter.get_status()
    adapter.format_status(out, status)
    print_circuits(out, cfg, status)
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Async main entry point."""
    if args.metrics_port is not None:
        try:
            start_metrics_server(args.metrics_port)
        except OSError as e:
            logger.error("Failed to start metrics server: %s", e)
            return 1
        logger.info("Metrics server started on port %d", args.metrics_port)

    try:
        config = build_config(args)
    except (ConfigError, ValueError) as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2

    async with Adapter(config) as adapter:
        try:
            if args.operation:
                operations = adapter.operations()
                for name in args.operation:
                    await operations[name](sys.stdout)
                return 0
            return await probe(adapter, sys.stdout, args.toggle)
        except ScreenLogicError as e:
            logger.error(
                "✗ Probe failed",
                extra={"address": config.ip_address, "error": str(e), "error_type": type(e).__name__},
            )
            print(f"{config.ip_address}: {e}", file=sys.stderr)
            return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Probe a Pentair ScreenLogic controller",
    )
    parser.add_argument(
        "--host",
        default=const.SCREENLOGIC_HOST,
        help="Controller address, host or host:port (default: $SCREENLOGIC_HOST)",
    )
    parser.add_argument(
        "--config",
        help="YAML file with adapter settings (overrides --host)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help=f"Dial/send/read timeout in seconds (default: {const.SCREENLOGIC_TIMEOUT})",
    )
    parser.add_argument(
        "--keep-alive",
        type=float,
        help=f"Idle seconds before disconnecting (default: {const.SCREENLOGIC_KEEP_ALIVE})",
    )
    parser.add_argument(
        "--operation",
        action="append",
        choices=["gettime", "getversion", "getconfig", "getstatus"],
        help="Run only the named operation (repeatable)",
    )
    parser.add_argument(
        "--toggle",
        metavar="CIRCUIT",
        help="Toggle the named circuit after probing",
    )
    parser.add_argument(
        "--log-level",
        default="DEBUG" if const.SCREENLOGIC_DEBUG else "WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-format",
        choices=["human", "json", "both"],
        help=f"Log format (default: {const.SCREENLOGIC_LOG_FORMAT})",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=const.SCREENLOGIC_METRICS_PORT,
        help="Serve Prometheus metrics on this port (default: $SCREENLOGIC_METRICS_PORT, else disabled)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level, args.log_format)

    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
