"""Runtime orchestration: controller, file watching and hot reload."""

from hotwire.runtime.controller import RuntimeController
from hotwire.runtime.hot_reload import HotReloadWatcher
from hotwire.runtime.polling_watcher import PollingWatcher
from hotwire.runtime.reload_contracts import (
	ReloadAction,
	ReloadResult,
	WatchChange,
	WatchEvent,
	WatcherEvent,
	WatcherState,
	transition_watcher_state,
)

__all__ = [
	"RuntimeController",
	"HotReloadWatcher",
	"PollingWatcher",
	"ReloadAction",
	"ReloadResult",
	"WatchChange",
	"WatchEvent",
	"WatcherEvent",
	"WatcherState",
	"transition_watcher_state",
]
