"""Run an Event Hub relay that logs every accepted event. Use --help for usage."""

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from hubrelay.config import PackageInfo, load_config
from hubrelay.core.errors import ConfigurationError, WatermarkPersistenceError
from hubrelay.core.logging import setup_logging
from hubrelay.relay import EventHubRelay

DISTRIBUTION_NAME = "hubrelay"

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Relay events from one Event Hub partition",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with a config file, identifying as this package
    python -m hubrelay --config relay.yaml

    # Identify as another application
    python -m hubrelay --config relay.yaml --app-name billing --app-version 2.3.1

    # Container deployment
    python -m hubrelay --config relay.yaml --log-to-stdout
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("HUBRELAY_CONFIG", "relay.yaml")),
        help="Path to the YAML config file (default: HUBRELAY_CONFIG env var or ./relay.yaml)",
    )

    parser.add_argument(
        "--app-name",
        default=None,
        help="Client identity sent with every event (default: this package's name)",
    )

    parser.add_argument(
        "--app-version",
        default=None,
        help="X.Y.Z version answered to VERSION_REQUEST (default: this package's version)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        default=None,
        help="Log directory path (default: from LOG_DIR env var or ./logs)",
    )

    parser.add_argument(
        "--log-to-stdout",
        action="store_true",
        help="Send all log output to stdout only, skipping file handlers. "
        "Can also be set via LOG_TO_STDOUT environment variable.",
    )

    return parser.parse_args(argv)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def resolve_package_info(args: argparse.Namespace) -> PackageInfo:
    """Package info from --app-name/--app-version, falling back to this distribution."""
    if args.app_name and args.app_version:
        return PackageInfo.from_mapping({"name": args.app_name, "version": args.app_version})

    installed = PackageInfo.from_distribution(DISTRIBUTION_NAME)
    return PackageInfo(
        name=args.app_name or installed.name,
        version=args.app_version or installed.version,
    )


def log_event(name: str, data: dict[str, Any], enqueue_time: int) -> None:
    logger.info(
        f"Received {name}",
        extra={"event_name": name, "enqueue_time": enqueue_time, "sender": data.get("sender")},
    )


def setup_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event) -> None:
    """First signal asks for a graceful stop; the second cancels everything."""

    def handle_signal(sig):
        logger.info("Received signal, initiating graceful shutdown", extra={"signal": sig.name})
        if not shutdown_event.is_set():
            shutdown_event.set()
        else:
            logger.warning("Received second signal, forcing immediate shutdown...")
            for task in asyncio.all_tasks(loop):
                task.cancel()

    if sys.platform == "win32":
        logger.debug("Signal handlers not supported on Windows, using KeyboardInterrupt")
        return

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))


async def run_relay(relay: EventHubRelay, shutdown_event: asyncio.Event) -> None:
    """Run until a shutdown signal arrives or the receiver ends on its own."""
    await relay.start(on_event=log_event)

    receive_task = asyncio.create_task(relay.wait())
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    done: set = set()
    try:
        done, _ = await asyncio.wait(
            {receive_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        shutdown_task.cancel()
        await relay.stop()
        if receive_task not in done:
            receive_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await receive_task

    if receive_task in done:
        # Surfaces WatermarkPersistenceError
        receive_task.result()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    log_dir = args.log_dir or os.getenv("LOG_DIR") or "logs"
    setup_logging(
        name="hubrelay",
        log_dir=Path(log_dir),
        json_format=_env_flag("JSON_LOGS", "true"),
        console_level=getattr(logging, args.log_level),
        log_to_stdout=args.log_to_stdout or _env_flag("LOG_TO_STDOUT"),
    )

    relay = EventHubRelay()
    try:
        config = load_config(args.config)
        relay.configure(config, resolve_package_info(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    shutdown_event = asyncio.Event()
    setup_signal_handlers(loop, shutdown_event)

    try:
        loop.run_until_complete(run_relay(relay, shutdown_event))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down...")
        loop.run_until_complete(relay.stop())
    except WatermarkPersistenceError as e:
        logger.critical(f"Stopping: {e}")
        return 2
    finally:
        loop.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
