from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

WATCHED_SUFFIX = ".pdf"


@dataclass(frozen=True, slots=True)
class WatcherConfig:
    output_folder: Path
    retry_interval_s: float = 5.0
    max_retries: int = 3

    # File-stability wait before any processing
    ready_max_wait_s: float = 30.0
    ready_interval_s: float = 1.0
    ready_missing_retry_s: float = 0.5

    # Duplicate events for a path are ignored until this long after its
    # attempt finished.
    cooldown_s: float = 5.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_interval_s < 0 or self.cooldown_s < 0:
            raise ValueError("retry_interval_s and cooldown_s must be >= 0")


@dataclass(frozen=True, slots=True)
class ObserverConfig:
    watch_folder: Path
    use_polling: bool = False
    polling_interval_s: float = 1.0

    # Grace period before a new file is reported: its size must hold for
    # `settle_s`, checked every `settle_poll_s`.
    settle_s: float = 2.0
    settle_poll_s: float = 0.1
    settle_max_wait_s: float = 120.0

    health_check_interval_s: float = 5.0
