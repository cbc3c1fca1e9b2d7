"""Process supervisor: any failure escaping the server loop ends the process."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


class Supervisor:
    """
    Runs the server coroutine and turns escaping failures into exit status 1.

    Covers three paths:
    - exceptions raised out of the main coroutine
    - exceptions in background tasks nobody awaited (asyncio exception handler)
    - uncaught exceptions in worker threads (threading.excepthook)

    Usage:
        sys.exit(Supervisor().run(manager.run))
    """

    def __init__(self):
        self.fatal_error: BaseException | None = None
        self._main_task: asyncio.Task[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def run(self, main: Callable[[], Awaitable[None]]) -> int:
        """Run main() to completion. Returns the process exit status."""
        previous_hook = threading.excepthook
        threading.excepthook = self._thread_excepthook
        try:
            asyncio.run(self._supervise(main))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        except Exception as e:
            self._record_fatal(e, "Fatal error in main()")
        finally:
            threading.excepthook = previous_hook

        return EXIT_FATAL if self.fatal_error is not None else EXIT_OK

    async def _supervise(self, main: Callable[[], Awaitable[None]]) -> None:
        self._loop = loop = asyncio.get_running_loop()
        loop.set_exception_handler(self._on_loop_exception)
        self._main_task = asyncio.current_task()
        try:
            await main()
        except asyncio.CancelledError:
            # Cancelled by _on_loop_exception; anything else is a real cancel
            if self.fatal_error is None:
                raise

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        message = context.get("message", "Unhandled exception in event loop")
        exc = context.get("exception") or RuntimeError(message)
        self._record_fatal(exc, f"Unhandled asynchronous failure: {message}")
        if self._main_task is not None and not self._main_task.done():
            self._main_task.cancel()

    def _thread_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None or isinstance(args.exc_value, SystemExit):
            return
        thread_name = args.thread.name if args.thread is not None else "unknown"
        self._record_fatal(args.exc_value, f"Uncaught exception in thread {thread_name}")
        if self._loop is not None and self._main_task is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._main_task.cancel)

    def _record_fatal(self, exc: BaseException, message: str) -> None:
        logger.critical(f"[FATAL] {message}: {exc}", exc_info=exc)
        if self.fatal_error is None:
            self.fatal_error = exc
