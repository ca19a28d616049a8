from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from hotwire.core.component import Component
from hotwire.core.models import Event
from hotwire.core.state import BaseState
from hotwire.discovery.loader import Loader, suffix_filter
from hotwire.utils.diagnostics import Diagnostic
from hotwire.utils.logger import Logger

if TYPE_CHECKING:
    from hotwire.core.registry import Registry

EventHandler = Callable[..., Any]
Wrapper = Callable[..., Any]


@dataclass
class EventState(BaseState):
    # event name -> handlers, in subscription order
    handlers: Dict[str, List[EventHandler]] = field(default_factory=dict)
    # event name -> handler -> wrapper attached to the client
    wrappers: Dict[str, Dict[EventHandler, Wrapper]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def clear(self) -> None:
        self.handlers.clear()
        self.wrappers.clear()
        self.diagnostics.clear()


class EventComponent(Component):
    """
    Bridges gateway events to handlers loaded from the events directory.

    Each handler is attached through a wrapper, at most one per (event name, handler),
    so adding the same subscription twice is a no-op and removal detaches exactly the
    wrapper that belongs to that handler.
    """

    def __init__(self, runtime: Registry):
        super().__init__(runtime)
        self.logger = Logger("EventComponent")

    @property
    def state(self) -> EventState:
        return self.runtime.state.get(EventState)

    async def init(self, runtime: Registry) -> None:
        self.state.clear()

        config = runtime.config
        loader: Loader[Any] = Loader(
            config.events_path,
            filter=suffix_filter(config.discovery.suffixes),
            logger_context="EventLoader",
            export_name=config.discovery.export_name,
        )
        loaded = await loader.load_with_sources()
        self.state.diagnostics.extend(loader.diagnostics)

        for item in loaded:
            definition = item.value
            if not isinstance(definition, Event) or not definition.event or not callable(definition.handler):
                self.logger.warning(f"Skipping invalid event file {item.path}.")
                self.state.diagnostics.append(
                    Diagnostic(
                        file_path=str(item.path),
                        error_code="ERR_INVALID_DEFINITION",
                        message="Default export is not an Event with an event name and a handler.",
                        severity="warning",
                    )
                )
                continue

            handlers = self.state.handlers.setdefault(definition.event, [])
            if definition.handler not in handlers:
                handlers.append(definition.handler)
            self.logger.info(f"Loaded event: {definition.event}")

    def start(self) -> None:
        for event_name, handlers in list(self.state.handlers.items()):
            for handler in list(handlers):
                self._attach(event_name, handler)

    def stop(self) -> None:
        client = self.runtime.client
        for event_name, event_wrappers in self.state.wrappers.items():
            for wrapper in event_wrappers.values():
                if client is not None:
                    client.remove_listener(event_name, wrapper)

        self.state.wrappers.clear()
        self.state.handlers.clear()

    def add_listener(self, event_name: str, handler: EventHandler) -> None:
        """
        Subscribe ``handler`` to ``event_name``. Idempotent per (event name, handler).
        """
        handlers = self.state.handlers.setdefault(event_name, [])
        if handler not in handlers:
            handlers.append(handler)

        self._attach(event_name, handler)

    def remove_listener(self, event_name: str, handler: EventHandler) -> None:
        handlers = self.state.handlers.get(event_name)
        if handlers is not None:
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                del self.state.handlers[event_name]

        event_wrappers = self.state.wrappers.get(event_name)
        if event_wrappers is None:
            return

        wrapper = event_wrappers.pop(handler, None)
        if wrapper is not None and self.runtime.client is not None:
            self.runtime.client.remove_listener(event_name, wrapper)

        if not event_wrappers:
            del self.state.wrappers[event_name]

    def add_event_listener(self, definition: Event) -> None:
        self.add_listener(definition.event, definition.handler)

    def remove_event_listener(self, definition: Event) -> None:
        self.remove_listener(definition.event, definition.handler)

    def has_listener(self, event_name: str, handler: EventHandler) -> bool:
        return handler in self.state.wrappers.get(event_name, {})

    def active_count(self, event_name: str) -> int:
        return len(self.state.wrappers.get(event_name, {}))

    def _attach(self, event_name: str, handler: EventHandler) -> None:
        client = self.runtime.client
        if client is None:
            # Attached later by start() once the registry built its client.
            return

        event_wrappers = self.state.wrappers.setdefault(event_name, {})
        if handler in event_wrappers:
            return

        wrapper = self._wrap(event_name, handler)
        event_wrappers[handler] = wrapper
        client.on(event_name, wrapper)

    def _wrap(self, event_name: str, handler: EventHandler) -> Wrapper:
        runtime = self.runtime
        logger = self.logger

        async def wrapper(*args: Any) -> None:
            try:
                result = handler(runtime, event_name, args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.error(f"Handler for event {event_name} failed", exc)

        return wrapper
