"""
Tutorials API: Lifecycle Controller
===================================

What:  Process entry point. Sequences startup and graceful shutdown.
How:   Connects the database BEFORE building and starting the uvicorn server,
       then lets uvicorn own SIGTERM/SIGINT.

Startup:
    1. Configure logging
    2. Connect to MongoDB. On failure log and exit 1; no socket is ever bound.
       A SIGTERM/SIGINT received while connecting cancels the connect and
       exits 0, again without binding a socket
    3. Build the FastAPI app around the connected connector
    4. Start uvicorn (binds the listener, runs the lifespan startup)

Shutdown (SIGTERM):
    1. uvicorn stops accepting new connections and closes the listener
    2. In-flight requests run to completion (bounded only when
       SHUTDOWN_TIMEOUT is set)
    3. The lifespan shutdown closes the database connection
    4. The process exits 0

Exit codes:
    0  graceful shutdown completed
    1  database unreachable at startup, or the server failed to start
"""

import asyncio
import logging
import signal
import sys
from types import FrameType
from typing import List, Optional

import uvicorn

from tutorials_api.config import Settings, settings
from tutorials_api.database import MongoConnector
from tutorials_api.exceptions import DatabaseConnectionError
from tutorials_api.main import create_app, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1

HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGINT)

# Signals seen by the process-level handlers since install_exit_handlers()
_received_signals: List[int] = []


def build_server(app_settings: Settings, connector: MongoConnector) -> uvicorn.Server:
    """Build a uvicorn server for an app wired to an already connected connector."""
    app = create_app(app_settings, connector=connector)
    config = uvicorn.Config(
        app,
        host=app_settings.host,
        port=app_settings.port,
        lifespan="on",
        log_config=None,
        access_log=False,
        log_level=app_settings.log_level.lower(),
        server_header=False,
        timeout_graceful_shutdown=app_settings.shutdown_timeout,
    )
    return uvicorn.Server(config)


async def connect_unless_stopped(connector: MongoConnector) -> bool:
    """
    Connect the database, giving up as soon as SIGTERM or SIGINT arrives.

    Returns:
        True once connected, False when a termination signal cancelled the connect.

    Raises:
        DatabaseConnectionError: The database could not be reached.
    """
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    def request_stop(sig: signal.Signals) -> None:
        logger.info("%s received while connecting to the database", sig.name)
        stop.set()

    for sig in HANDLED_SIGNALS:
        loop.add_signal_handler(sig, request_stop, sig)

    connecting = asyncio.ensure_future(connector.connect())
    stopping = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({connecting, stopping}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopping.cancel()
        for sig in HANDLED_SIGNALS:
            loop.remove_signal_handler(sig)

    if stop.is_set():
        connecting.cancel()
        try:
            await connecting
        except (asyncio.CancelledError, DatabaseConnectionError):
            pass
        await connector.close()
        return False

    connecting.result()
    return True


async def serve(app_settings: Settings) -> int:
    """
    Run the API until a termination signal arrives.

    Returns:
        The process exit status (see module docstring).
    """
    connector = MongoConnector.from_settings(app_settings)
    try:
        connected = await connect_unless_stopped(connector)
    except DatabaseConnectionError as e:
        logger.critical("%s %s", e.message, e.context.get("error", ""))
        return EXIT_STARTUP_FAILURE

    if not connected:
        logger.info("Shutdown requested before the server started")
        return EXIT_OK

    install_exit_handlers()
    server = build_server(app_settings, connector)
    if _received_signals:
        await connector.close()
        logger.info("Shutdown requested before the server started")
        return EXIT_OK

    try:
        await server.serve()
    finally:
        # No-op when the lifespan shutdown already closed it
        await connector.close()

    if not server.started:
        logger.critical("Server failed to start on %s:%d", app_settings.host, app_settings.port)
        return EXIT_STARTUP_FAILURE
    return EXIT_OK


def _log_handled_signal(signum: int, frame: Optional[FrameType]) -> None:
    _received_signals.append(signum)
    logger.info("%s received", signal.Signals(signum).name)


def install_exit_handlers() -> None:
    """
    Install process-level SIGTERM/SIGINT handlers for the serving phase.

    uvicorn replaces these while serving and, once its graceful shutdown has
    finished, restores them and re-raises the signal it caught. Without a
    handler in place that re-raise would terminate the process by signal
    instead of letting it exit 0. A signal caught before uvicorn takes over
    is recorded, and serve() stops instead of starting the server.
    """
    _received_signals.clear()
    for sig in HANDLED_SIGNALS:
        signal.signal(sig, _log_handled_signal)


def main() -> None:
    """Console entry point: `tutorials-api` or `python -m tutorials_api`."""
    setup_logging(settings.log_level)
    sys.exit(asyncio.run(serve(settings)))


if __name__ == "__main__":
    main()
