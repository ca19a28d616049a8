from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class WatcherState(str, Enum):
    """Lifecycle states of the hot reload watcher."""

    IDLE = "idle"
    SCANNING = "scanning"
    ACTIVE = "active"
    CLOSED = "closed"


class WatcherEvent(str, Enum):
    """Events that drive watcher state transitions."""

    START = "start"
    SCAN_COMPLETE = "scan_complete"
    CLOSE = "close"


class WatchEvent(str, Enum):
    """Kinds of file system change reported to the reload handler."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True)
class WatchChange:
    """One settled change of one file."""

    event: WatchEvent
    path: str


class ReloadAction(str, Enum):
    RELOADED = "reloaded"
    UNLOADED = "unloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


class ReloadResult(BaseModel):
    """Outcome of handling one file change."""

    model_config = ConfigDict(extra="forbid")

    path: str
    event: WatchEvent
    action: ReloadAction
    component: Optional[str] = None
    replaced: bool = False
    message: Optional[str] = None


def transition_watcher_state(current: WatcherState, event: WatcherEvent) -> WatcherState:
    """Compute the next watcher state for a given event.

    Changes are only handled in ACTIVE: the initial scan of an already populated
    directory must not trigger reloads. Invalid transitions raise ValueError.
    """

    if event == WatcherEvent.CLOSE:
        return WatcherState.CLOSED

    if current in {WatcherState.IDLE, WatcherState.CLOSED}:
        if event == WatcherEvent.START:
            return WatcherState.SCANNING
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.SCANNING:
        if event == WatcherEvent.SCAN_COMPLETE:
            return WatcherState.ACTIVE
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    if current == WatcherState.ACTIVE:
        raise ValueError(f"Invalid watcher transition: {current} -> {event}")

    raise ValueError(f"Unknown watcher state: {current}")
