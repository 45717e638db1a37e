"""
Services layer for PrintQueue.

This module contains the stateful services:
- QueueEngine: Owner of the job queue, rates and notification preferences
- AdminDirectory: Operator accounts and the login session
- QueueTicker: Background progress thread
- Stores and notifiers: Persistence and notification collaborators

Thread Model:
    Main Thread (Flask)
    ├── Request threads call QueueEngine / AdminDirectory (locked)
    └── QueueTicker thread (fixed-period tick loop)
"""

from .storage import KeyValueStore, MemoryStore, JsonFileStore, create_store
from .notifier import Notifier, NullNotifier, LogNotifier, RecordingNotifier
from .admin_directory import AdminDirectory
from .queue_engine import QueueEngine
from .ticker import QueueTicker

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "create_store",
    "Notifier",
    "NullNotifier",
    "LogNotifier",
    "RecordingNotifier",
    "AdminDirectory",
    "QueueEngine",
    "QueueTicker",
]
