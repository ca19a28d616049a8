from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, List, Optional

from hotwire.components.commands import CommandComponent
from hotwire.components.events import EventComponent
from hotwire.config.loader import load_runtime_config
from hotwire.core.registry import Registry
from hotwire.discovery.loader import discover_components
from hotwire.gateway.contracts import ClientFactory
from hotwire.runtime.hot_reload import HotReloadWatcher
from hotwire.utils.logger import Logger, configure_logging


class RuntimeController:
    """Host-agnostic runtime: configuration, registry, components and hot reload."""

    BUILTIN_COMPONENTS = (EventComponent, CommandComponent)

    def __init__(
        self,
        root_dir: Path,
        client_factory: Optional[ClientFactory] = None,
        watch: Optional[bool] = None,
        token: Optional[str] = None,
    ) -> None:
        self.root_dir = root_dir
        self.config = load_runtime_config(root_dir)
        if watch is not None:
            self.config.hot_reload.enabled = watch

        configure_logging(self.config.settings.log_level)
        self.logger = Logger("Runtime")

        self.registry = Registry(client_factory=client_factory, token=token, config=self.config)
        self.watcher: Optional[HotReloadWatcher] = None
        self._stop_requested: Optional[asyncio.Event] = None

    async def setup(self) -> List[str]:
        """Register the built-in components and every component found on disk."""
        for component_type in self.BUILTIN_COMPONENTS:
            if component_type not in self.registry:
                self.registry.register(component_type)

        discovered = await discover_components(
            self.config.components_path,
            suffixes=self.config.discovery.suffixes,
            export_name=self.config.discovery.export_name,
        )
        for component_type in discovered:
            if component_type.identity() in self.registry:
                self.logger.warning(f"Component {component_type.identity()} is already registered. Skipping.")
                continue
            self.registry.register(component_type)

        return list(self.registry.components)

    async def start(self) -> None:
        await self.registry.init()
        await self.registry.start()

        if self.config.hot_reload.enabled:
            self.watcher = HotReloadWatcher(
                self.registry,
                self.config.components_path,
                settings=self.config.hot_reload,
                export_name=self.config.discovery.export_name,
            )
            self.watcher.start()

    async def stop(self) -> None:
        await self.registry.stop()

    def request_stop(self) -> None:
        if self._stop_requested is not None:
            self._stop_requested.set()

    async def run(self, until: Optional[Awaitable[object]] = None) -> None:
        """
        Set up, start, and keep running until ``until`` completes, ``request_stop`` is
        called, or the task is cancelled.
        """
        self._stop_requested = asyncio.Event()
        await self.setup()
        await self.start()

        try:
            waiters = [asyncio.ensure_future(self._stop_requested.wait())]
            if until is not None:
                waiters.append(asyncio.ensure_future(until))
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()
        finally:
            await self.stop()
