"""Command-line entry point: run the webhook and the hub session together."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import aiohttp

from platehandler import __version__
from platehandler._transport import HubTransport
from platehandler.config import HubConfig
from platehandler.exceptions import PlateHandlerError
from platehandler.plate_queue import PlateQueue
from platehandler.storage import SharedPlateStore, SqlitePlateStore
from platehandler.supervisor import ConnectionSupervisor
from platehandler.webhook import run_webhook

_logger = logging.getLogger(__name__)


async def run(config: HubConfig) -> None:
    """Run until either the webhook server or the supervisor stops."""
    gateway = SqlitePlateStore(config.db_path)
    store = SharedPlateStore(gateway)
    queue = PlateQueue(config.queue_size)
    try:
        async with aiohttp.ClientSession() as http:
            supervisor = ConnectionSupervisor(config, HubTransport(config, http), queue, store)
            tasks = {
                asyncio.create_task(supervisor.run_forever(), name="platehandler-websocket"),
                asyncio.create_task(run_webhook(config, queue), name="platehandler-webhook"),
            }
            try:
                done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    _logger.error("%s task failed", task.get_name(), exc_info=task.exception())
    finally:
        gateway.close()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="platehandler",
        description="Forward ALPR plate detections to Home Assistant.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Root log level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logger.info("Starting platehandler %s", __version__)

    try:
        config = HubConfig.from_env()
        asyncio.run(run(config))
    except PlateHandlerError as exc:
        _logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    _logger.info("Exiting platehandler")
    return 0


if __name__ == "__main__":
    sys.exit(main())
