"""
Shared records passed between the conversion stages and the folder watcher.

Stage code produces and consumes these objects rather than ad-hoc dicts.
"""

from .conversion import ConversionResult, ImageSize, PageResult, ProcessingOutcome
from .watch import ObserverSignal, SignalKind, WatcherState, WatchEvent, WatchEventKind

__all__ = [
    "ConversionResult",
    "ImageSize",
    "ObserverSignal",
    "PageResult",
    "ProcessingOutcome",
    "SignalKind",
    "WatchEvent",
    "WatchEventKind",
    "WatcherState",
]
