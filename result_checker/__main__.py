"""Process entry point: `python -m result_checker`.

Failure policy:
  - store/cache unreachable at startup      -> exit 1
  - uncaught exception on the main thread   -> logged, exit 1
  - exception reported to the event loop    -> logged, keep serving
  - SIGINT/SIGTERM                          -> close connections, exit 0
"""

import asyncio
import contextlib
import logging
import signal
import sys
import threading

import uvicorn

from result_checker.config import Settings, settings
from result_checker.database import MongoStore
from result_checker.errors import ServiceError, StartupError
from result_checker.main import close_dependencies, connect_dependencies, create_app
from result_checker.services.cache import build_cache

logger = logging.getLogger("result_checker")

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GracefulServer(uvicorn.Server):
    """uvicorn server that returns normally after a signal-triggered shutdown."""

    def handle_exit(self, sig: int, frame) -> None:
        if not self.should_exit:
            logger.info("Received %s, shutting down gracefully...", signal.Signals(sig).name)
        super().handle_exit(sig, frame)

    @contextlib.contextmanager
    def capture_signals(self):
        # uvicorn re-raises captured signals on exit; we want exit code 0 instead
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original = {sig: signal.signal(sig, self.handle_exit) for sig in HANDLED_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in original.items():
                signal.signal(sig, handler)


def _log_uncaught(exc_type, exc, tb) -> None:
    logger.critical("Uncaught exception, exiting", exc_info=(exc_type, exc, tb))


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    logger.error("Unhandled async error: %s", context.get("message", ""), exc_info=exc)


def install_failure_policy(loop: asyncio.AbstractEventLoop) -> None:
    sys.excepthook = _log_uncaught
    loop.set_exception_handler(_log_loop_exception)


async def serve(config: Settings) -> None:
    install_failure_policy(asyncio.get_running_loop())

    store = MongoStore(config.mongo_url, config.db_name)
    cache = build_cache(config)
    await connect_dependencies(store, cache)

    app = create_app(config, store=store, cache=cache)
    server = GracefulServer(
        uvicorn.Config(app, host=config.host, port=config.port, log_config=None)
    )
    try:
        logger.info("Server listening at http://%s:%d", config.host, config.port)
        await server.serve()
    finally:
        await close_dependencies(store, cache)
        logger.info("Database connections closed")


def main() -> int:
    logger.info("Starting Result Checker API | %s", settings.describe())
    try:
        asyncio.run(serve(settings))
    except StartupError:
        return 1
    except ServiceError as e:
        logger.error("Error during shutdown: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
