"""
Queue ticker with background progress thread.

Drives QueueEngine.tick() on a fixed interval so jobs move through the
shop without anyone clicking. While an operator is logged in the ticker
idles (optional), leaving progress to the operator's explicit commands.

Thread Safety:
    - The ticker thread only calls engine.tick(), which takes the engine lock
    - A tick that raises is logged and the loop carries on

Usage:
    ticker = QueueTicker(engine, directory, interval_seconds=7.0)
    ticker.start()
    ...
    ticker.stop()
"""

from __future__ import annotations

import threading
from typing import Optional

from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)


class QueueTicker:
    """
    Periodic driver for the engine's autonomous progress step.

    Attributes:
        is_running: Whether the background thread is active
        ticks_run: Ticks attempted since start (skipped ones excluded)
    """

    def __init__(
        self,
        engine,
        directory=None,
        interval_seconds: float = 7.0,
        pause_while_operator: bool = True,
    ):
        """
        Args:
            engine: QueueEngine to tick
            directory: AdminDirectory consulted for an active session
            interval_seconds: Delay between ticks
            pause_while_operator: Skip ticks while an operator is logged in
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._engine = engine
        self._directory = directory
        self._interval = interval_seconds
        self._pause_while_operator = pause_while_operator

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False
        self.ticks_run = 0

        logger.info(f"QueueTicker initialized (interval: {interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        """Start the background thread. Calling it twice does nothing."""
        if self._is_running:
            logger.warning("QueueTicker already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="Ticker",
            daemon=True,
        )
        self._is_running = True
        self._thread.start()

        logger.info("Queue ticker started")

    def stop(self) -> None:
        """Signal the thread and wait for it. Safe to call multiple times."""
        if not self._is_running:
            return

        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("Ticker thread did not stop cleanly")

        self._is_running = False
        self._thread = None

        logger.info("Queue ticker stopped")

    def tick_once(self) -> bool:
        """
        Run one tick in the calling thread, honouring the operator pause.

        Returns:
            True if the engine was ticked, False if the tick was skipped
        """
        if self._should_pause():
            logger.debug("Operator logged in, skipping tick")
            return False

        self.ticks_run += 1
        try:
            self._engine.tick()
        except Exception as e:
            logger.error(f"Tick failed: {e}", exc_info=True)
        return True

    def _should_pause(self) -> bool:
        return (
            self._pause_while_operator
            and self._directory is not None
            and self._directory.is_authenticated
        )

    def _run_loop(self) -> None:
        set_thread_name("Ticker")
        logger.info("Ticker loop starting")

        while not self._stop_event.wait(timeout=self._interval):
            self.tick_once()

        logger.info("Ticker loop exiting")
