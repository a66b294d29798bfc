from __future__ import annotations

from pathlib import Path


class ProcessingRegistry:
    """
    Paths with a processing attempt in flight (or in its cool-down window).

    At most one registration exists per path. Each registration carries its
    own marker so that a delayed release from an earlier attempt cannot
    evict a newer one. Not thread-safe: all calls happen on the event loop
    that consumes the observer channel.
    """

    def __init__(self) -> None:
        self._entries: dict[Path, object] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def try_register(self, path: Path) -> object | None:
        """Register `path`; return its marker, or None if already registered."""

        if path in self._entries:
            return None
        marker = object()
        self._entries[path] = marker
        return marker

    def discard(self, path: Path) -> None:
        self._entries.pop(path, None)

    def release(self, path: Path, marker: object) -> bool:
        if self._entries.get(path) is marker:
            del self._entries[path]
            return True
        return False
