
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import AsyncIterator, NoReturn

import uvicorn

from .api.main import create_app, set_store
from .capture import CaptureProcess, stdin_lines
from .config import settings
from .errors import StorageFailure
from .ingest import IngestionLoop
from .metrics import METRICS
from .storage import Database, FlowStore

logger = logging.getLogger("netlog.main")


# ---------------------------------------------------------------------------
# Periodic reporter
# ---------------------------------------------------------------------------

async def metrics_reporter(shutdown_event: asyncio.Event, interval: float) -> None:
    while not shutdown_event.is_set():
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            logger.info("METRICS ingest=%s", METRICS.as_dict())


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def _restore_signals(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


async def run(
    db_path: str,
    host: str,
    port: int,
    capture_command: list[str],
    use_stdin: bool = False,
) -> int:
    """
    Start ingestion and the HTTP server, wait for either the capture stream
    to end, a fatal storage error, or a shutdown signal, then tear down in
    order: stop accepting lines, stop serving, stop capture, close storage.

    Returns the process exit status.
    """
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler(_signum, _frame) -> None:
        logger.info("Shutdown signal received")
        loop.call_soon_threadsafe(shutdown_event.set)

    previous_handlers = {
        sig: signal.signal(sig, _signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    # Storage
    db = Database(db_path)
    db.init_schema()
    store = FlowStore(db)

    # Line source
    capture: CaptureProcess | None = None
    lines: AsyncIterator[str]
    if use_stdin:
        lines = stdin_lines()
    else:
        capture = CaptureProcess(capture_command)
        try:
            await capture.start()
        except OSError as exc:
            logger.critical("Cannot start capture command %r: %s", capture_command, exc)
            db.close()
            _restore_signals(previous_handlers)
            return 1
        lines = capture.lines()

    # FastAPI + uvicorn
    set_store(store)
    app = create_app()
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        loop="none",
    )
    uv_server = uvicorn.Server(uv_config)

    ingestion = IngestionLoop(store)
    ingest_task = asyncio.create_task(ingestion.run(lines), name="ingest")
    api_task = asyncio.create_task(uv_server.serve(), name="api")
    reporter_task = asyncio.create_task(
        metrics_reporter(shutdown_event, settings.METRICS_LOG_INTERVAL), name="metrics"
    )
    stop_task = asyncio.create_task(shutdown_event.wait(), name="shutdown")

    logger.info(
        "netlog — db=%r API=http://%s:%d source=%s",
        db_path, host, port, "stdin" if use_stdin else capture_command,
    )

    await asyncio.wait({ingest_task, api_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    exit_code = 0
    if ingest_task.done():
        exc = ingest_task.exception()
        if isinstance(exc, StorageFailure):
            logger.critical("Storage failure on write path — terminating: %s", exc)
            exit_code = 1
        elif exc is not None:
            logger.critical("Ingestion loop crashed", exc_info=exc)
            exit_code = 1
    else:
        # uvicorn handles SIGINT/SIGTERM itself while serving; its exit is a shutdown request
        ingest_task.cancel()
        if api_task.done() and api_task.exception() is not None:
            logger.critical("HTTP server crashed", exc_info=api_task.exception())
            exit_code = 1

    shutdown_event.set()
    uv_server.should_exit = True
    await asyncio.gather(ingest_task, api_task, reporter_task, stop_task, return_exceptions=True)
    if capture is not None:
        await capture.stop()
    db.close()
    logger.info("Final stats — ingest=%s", METRICS.as_dict())
    _restore_signals(previous_handlers)
    logger.info("netlog stopped (exit=%d)", exit_code)
    return exit_code


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="netlog — network flow telemetry collector")
    parser.add_argument("--db",   default=settings.DB_PATH, dest="db_path")
    parser.add_argument("--host", default=settings.API_HOST)
    parser.add_argument("--port", default=settings.PORT, type=int)
    parser.add_argument(
        "--stdin", action="store_true",
        help="read capture lines from stdin instead of spawning CAPTURE_COMMAND",
    )
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main() -> NoReturn:
    args = _parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    exit_code = asyncio.run(run(
        db_path=args.db_path,
        host=args.host,
        port=args.port,
        capture_command=settings.CAPTURE_COMMAND,
        use_stdin=args.stdin,
    ))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
