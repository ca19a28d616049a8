from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from hotwire.runtime.reload_contracts import (
    WatchChange,
    WatchEvent,
    WatcherEvent,
    WatcherState,
    transition_watcher_state,
)


def merge_watch_events(previous: Optional[WatchEvent], current: WatchEvent) -> Optional[WatchEvent]:
    """Fold two unsettled changes of one path into one. None means nothing happened."""
    if previous is None:
        return current

    if previous == WatchEvent.ADDED:
        if current == WatchEvent.REMOVED:
            return None
        return WatchEvent.ADDED

    if previous == WatchEvent.REMOVED and current == WatchEvent.ADDED:
        return WatchEvent.CHANGED

    return current


class PollingWatcher:
    """Polling-based file watcher with include/exclude filters and write-stability logic.

    A change is reported once its file has not changed again for ``stability_ms``, so a
    file that is still being written is not imported half-way.
    """

    def __init__(
        self,
        root_dir: Path,
        stability_ms: int = 500,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None,
    ) -> None:
        self.root_dir = root_dir
        self.stability_ms = stability_ms
        self.include_patterns = include_patterns or ["*.py"]
        self.exclude_patterns = exclude_patterns or []

        self.state: WatcherState = WatcherState.IDLE
        self._snapshot: Dict[str, int] = {}
        # relative path -> (pending event, time of the latest change)
        self._pending: Dict[str, Tuple[WatchEvent, float]] = {}

    def start(self) -> None:
        """Take the initial snapshot. Files already present never produce events."""
        self.state = transition_watcher_state(self.state, WatcherEvent.START)
        self._snapshot = self._build_snapshot()
        self._pending.clear()
        self.state = transition_watcher_state(self.state, WatcherEvent.SCAN_COMPLETE)

    def stop(self) -> None:
        self.state = transition_watcher_state(self.state, WatcherEvent.CLOSE)
        self._pending.clear()

    def poll(self, now: float) -> List[WatchChange]:
        """Execute one poll cycle and return the changes that have settled."""
        if self.state != WatcherState.ACTIVE:
            raise RuntimeError("PollingWatcher is not active. Call start() before poll().")

        current_snapshot = self._build_snapshot()
        for relative, event in self._detect_changes(self._snapshot, current_snapshot).items():
            previous = self._pending.get(relative)
            merged = merge_watch_events(previous[0] if previous else None, event)
            if merged is None:
                self._pending.pop(relative, None)
            else:
                self._pending[relative] = (merged, now)
        self._snapshot = current_snapshot

        stability_seconds = self.stability_ms / 1000.0
        ready: List[WatchChange] = []
        for relative in sorted(self._pending):
            event, changed_at = self._pending[relative]
            if (now - changed_at) >= stability_seconds:
                ready.append(WatchChange(event=event, path=str(self.root_dir / relative)))

        for change in ready:
            self._pending.pop(Path(change.path).relative_to(self.root_dir).as_posix(), None)

        return ready

    def tracked_paths(self) -> Set[str]:
        """Return current tracked relative paths from the latest snapshot."""
        return set(self._snapshot.keys())

    def pending_paths(self) -> Set[str]:
        return set(self._pending.keys())

    def _build_snapshot(self) -> Dict[str, int]:
        snapshot: Dict[str, int] = {}
        if not self.root_dir.exists():
            return snapshot

        for path in self.root_dir.rglob("*"):
            try:
                if not path.is_file():
                    continue
                relative = path.relative_to(self.root_dir).as_posix()
                if not self._is_tracked_path(relative, path.name):
                    continue
                snapshot[relative] = path.stat().st_mtime_ns
            except FileNotFoundError:
                # Deleted between listing and stat.
                continue

        return snapshot

    def _is_tracked_path(self, relative_path: str, filename: str) -> bool:
        included = any(
            fnmatch(relative_path, pattern) or fnmatch(filename, pattern)
            for pattern in self.include_patterns
        )
        if not included:
            return False

        excluded = any(
            fnmatch(relative_path, pattern) or fnmatch(filename, pattern)
            for pattern in self.exclude_patterns
        )
        return not excluded

    @staticmethod
    def _detect_changes(previous: Dict[str, int], current: Dict[str, int]) -> Dict[str, WatchEvent]:
        changes: Dict[str, WatchEvent] = {}

        previous_paths = set(previous.keys())
        current_paths = set(current.keys())

        for added in current_paths - previous_paths:
            changes[added] = WatchEvent.ADDED

        for removed in previous_paths - current_paths:
            changes[removed] = WatchEvent.REMOVED

        for existing in previous_paths & current_paths:
            if previous[existing] != current[existing]:
                changes[existing] = WatchEvent.CHANGED

        return changes
