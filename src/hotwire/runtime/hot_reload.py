from __future__ import annotations

import asyncio
import time
from collections import deque
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING, Any, Deque, List, Optional

from hotwire.core.component import is_component_type
from hotwire.core.models import HotReloadSettings
from hotwire.core.naming import infer_component_name
from hotwire.discovery.loader import default_export, import_file
from hotwire.runtime.polling_watcher import PollingWatcher
from hotwire.runtime.reload_contracts import (
    ReloadAction,
    ReloadResult,
    WatchChange,
    WatchEvent,
    WatcherState,
)
from hotwire.utils.logger import Logger

if TYPE_CHECKING:
    from hotwire.core.registry import Registry


class HotReloadWatcher:
    """
    Replaces running components when their source files change.

    On add/change the file is imported afresh; when its default export is a class
    declared directly on ``Component``, any registered instance with the same identity
    is stopped and removed, then the new class is registered, initialized and started.
    On removal the identity is inferred from the file name. Failures are logged and the
    watcher keeps running. The watcher closes itself when the registry stops.
    """

    def __init__(
        self,
        registry: Registry,
        components_dir: Path,
        settings: Optional[HotReloadSettings] = None,
        export_name: str = "default",
        history_limit: int = 100,
    ) -> None:
        self.registry = registry
        self.components_dir = components_dir
        self.settings = settings or HotReloadSettings()
        self.export_name = export_name
        self.logger = Logger("HotReload")
        self.watcher = PollingWatcher(
            root_dir=components_dir,
            stability_ms=self.settings.stability_ms,
            include_patterns=self.settings.include_patterns,
            exclude_patterns=self.settings.exclude_patterns,
        )
        self.history: Deque[ReloadResult] = deque(maxlen=history_limit)
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> WatcherState:
        return self.watcher.state

    def start(self, background: bool = True) -> None:
        """Snapshot the directory, then start reacting to changes."""
        if self.state in {WatcherState.SCANNING, WatcherState.ACTIVE}:
            return

        self.watcher.start()
        self.registry.on("stop", self.close)
        self.logger.info(f"Watching for changes in: {self.components_dir}")

        if background:
            self._task = asyncio.get_running_loop().create_task(self._watch_loop())

    async def close(self, *_args: Any) -> None:
        if self.state in {WatcherState.IDLE, WatcherState.CLOSED}:
            return

        self.logger.info("Stopping file watcher.")
        self.watcher.stop()
        self.registry.off("stop", self.close)

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def poll_once(self, now: Optional[float] = None) -> List[ReloadResult]:
        """Run one poll cycle and handle every settled change."""
        if self.state != WatcherState.ACTIVE:
            return []

        timestamp = time.monotonic() if now is None else now
        changes = await asyncio.to_thread(self.watcher.poll, timestamp)

        results: List[ReloadResult] = []
        for change in changes:
            results.append(await self.handle_change(change))
        return results

    async def handle_change(self, change: WatchChange) -> ReloadResult:
        async with self._lock:
            if change.event == WatchEvent.REMOVED:
                result = await self.handle_unload(Path(change.path))
            else:
                result = await self.handle_reload(Path(change.path), change.event)

        self.history.append(result)
        return result

    async def handle_reload(self, file_path: Path, event: WatchEvent = WatchEvent.CHANGED) -> ReloadResult:
        self.logger.info(f"Detected change in: {file_path}. Attempting to reload...")

        try:
            module = import_file(file_path, "hotreload")
            component_type = default_export(module, self.export_name)
        except Exception as exc:
            self.logger.error(f"Failed to reload module for file: {file_path}", exc)
            return self._result(file_path, event, ReloadAction.FAILED, message=str(exc))

        if not is_component_type(component_type):
            self.logger.warning(f"Skipped {file_path}: does not export a class extending Component.")
            return self._result(
                file_path,
                event,
                ReloadAction.SKIPPED,
                message="default export is not a class extending Component",
            )

        name = component_type.identity()
        replaced = await self._unload(name)

        instance = None
        try:
            instance = self.registry.register(component_type)
            await self.registry.invoke(instance, "init")
            await self.registry.invoke(instance, "start")
        except Exception as exc:
            self.logger.error(f"Failed to reload module for file: {file_path}", exc)
            # a half-initialized instance must not stay registered
            if instance is not None and self.registry.get(name) is instance:
                await self._unload(name)
            return self._result(file_path, event, ReloadAction.FAILED, name, replaced, str(exc))

        self.logger.info(f"Successfully reloaded component: {name}")
        return self._result(file_path, event, ReloadAction.RELOADED, name, replaced)

    async def handle_unload(self, file_path: Path) -> ReloadResult:
        self.logger.info(f"Detected file deletion: {file_path}. Attempting to unload...")

        name = infer_component_name(file_path)
        if await self._unload(name):
            self.logger.info(f"Successfully unloaded component: {name}")
            return self._result(file_path, WatchEvent.REMOVED, ReloadAction.UNLOADED, name)

        self.logger.warning(f"Could not find a loaded component corresponding to deleted file: {file_path}")
        return self._result(file_path, WatchEvent.REMOVED, ReloadAction.SKIPPED, name)

    async def _unload(self, name: str) -> bool:
        """Stop and deregister ``name``. A failing stop still deregisters it."""
        component = self.registry.get(name)
        if component is None:
            return False

        try:
            await self.registry.invoke(component, "stop")
        except Exception as exc:
            self.logger.error(f"Component {name} failed to stop cleanly", exc)
        finally:
            self.registry.remove(name)

        self.logger.info(f"Unloaded existing component: {name}")
        return True

    async def _watch_loop(self) -> None:
        interval_seconds = max(self.settings.interval_ms / 1000.0, 0.05)
        while self.state == WatcherState.ACTIVE:
            try:
                await self.poll_once()
            except Exception as exc:
                self.logger.error("Watcher error", exc)
            await asyncio.sleep(interval_seconds)

    @staticmethod
    def _result(
        file_path: Path,
        event: WatchEvent,
        action: ReloadAction,
        component: Optional[str] = None,
        replaced: bool = False,
        message: Optional[str] = None,
    ) -> ReloadResult:
        return ReloadResult(
            path=str(file_path),
            event=event,
            action=action,
            component=component,
            replaced=replaced,
            message=message,
        )
