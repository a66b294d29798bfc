from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class WatchEventKind(str, Enum):
    ADDED = "added"
    CHANGED = "changed"


class SignalKind(str, Enum):
    READY = "ready"
    ERROR = "error"


class WatcherState(str, Enum):
    INITIAL_SCAN = "initial_scan"
    STEADY_STATE = "steady_state"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    path: Path  # absolute
    kind: WatchEventKind
    observed_at: float  # time.time() when the observer surfaced the event


@dataclass(frozen=True, slots=True)
class ObserverSignal:
    """
    Observer lifecycle notification, delivered on the same channel as file events.

    READY marks the end of the enumeration of pre-existing entries.
    """

    kind: SignalKind
    error: str | None = None
