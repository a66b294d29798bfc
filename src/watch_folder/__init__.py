"""
Arrival Watcher: folder observation, file-stability wait, dedup and retry.
"""

from .contracts import ObserverConfig, WatcherConfig
from .observer import FolderObserver, enumerate_files, is_hidden_path
from .registry import ProcessingRegistry
from .stability import wait_for_file_ready, wait_for_write_settled
from .watcher import ArrivalWatcher

__all__ = [
    "ArrivalWatcher",
    "FolderObserver",
    "ObserverConfig",
    "ProcessingRegistry",
    "WatcherConfig",
    "enumerate_files",
    "is_hidden_path",
    "wait_for_file_ready",
    "wait_for_write_settled",
]
