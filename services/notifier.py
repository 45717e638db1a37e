"""
Notification delivery collaborators.

The engine decides *whether* something is worth a notification (new job,
job ready) and hands a (title, body) pair to a Notifier. Delivery may fail
or be switched off; the engine treats every call as fire-and-forget.
"""

from __future__ import annotations

import threading
from typing import List, Tuple

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class Notifier:
    """Base notifier: delivers nothing."""

    def notify(self, title: str, body: str) -> None:
        pass


class NullNotifier(Notifier):
    """Used when notifications are disabled in configuration."""


class LogNotifier(Notifier):
    """Writes notifications to the application log."""

    def notify(self, title: str, body: str) -> None:
        logger.info(f"[notification] {title} {body}")


class RecordingNotifier(Notifier):
    """
    Keeps every notification in memory.

    Handy for a dashboard feed and for tests.
    """

    def __init__(self) -> None:
        self._sent: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def notify(self, title: str, body: str) -> None:
        with self._lock:
            self._sent.append((title, body))

    @property
    def sent(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._sent)

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
