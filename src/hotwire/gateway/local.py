from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from typing import Any, DefaultDict, List, Optional

from hotwire.core.models import Message
from hotwire.gateway.contracts import InteractionExpiredError, Listener
from hotwire.gateway.events import INTERACTION_CREATE, READY


class LocalInteraction:
    """
    In-process interaction. Records every reply so callers can inspect what was sent.
    """

    def __init__(self, command_name: str, kind: str = "command", expired: bool = False):
        self.command_name = command_name
        self.kind = kind
        self.expired = expired
        self.replied = False
        self.deferred = False
        self.replies: List[Message] = []
        self.edits: List[Message] = []

    def is_command(self) -> bool:
        return self.kind == "command"

    async def defer(self) -> None:
        self._ensure_valid()
        self.deferred = True

    async def reply(self, message: Message) -> None:
        self._ensure_valid()
        if self.replied or self.deferred:
            raise RuntimeError("Interaction has already been acknowledged.")
        self.replies.append(message)
        self.replied = True

    async def edit_reply(self, message: Message) -> None:
        self._ensure_valid()
        if not (self.replied or self.deferred):
            raise RuntimeError("Interaction has not been replied to yet.")
        self.edits.append(message)

    @property
    def responses(self) -> List[Message]:
        return [*self.replies, *self.edits]

    def _ensure_valid(self) -> None:
        if self.expired:
            raise InteractionExpiredError()


class LocalClient:
    """
    Minimal gateway client living inside the process.

    Listeners are kept per event name in attachment order; ``emit`` calls each of them
    and awaits coroutine results.
    """

    def __init__(self, fail_login: Optional[BaseException] = None):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)
        self.fail_login = fail_login
        self.logged_in = False
        self.closed = False
        self.token: Optional[str] = None
        self.registered_commands: List[List[dict]] = []

    def on(self, event_name: str, callback: Listener) -> None:
        self._listeners[event_name].append(callback)

    def remove_listener(self, event_name: str, callback: Listener) -> None:
        listeners = self._listeners.get(event_name)
        if not listeners:
            return

        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._listeners.pop(event_name, None)

    def listeners(self, event_name: str) -> List[Listener]:
        return list(self._listeners.get(event_name, []))

    def listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is not None:
            return len(self._listeners.get(event_name, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    async def emit(self, event_name: str, *args: Any) -> None:
        pending = []
        for listener in self.listeners(event_name):
            result = listener(*args)
            if inspect.isawaitable(result):
                pending.append(result)

        if pending:
            await asyncio.gather(*pending)

    async def dispatch_command(self, command_name: str, **kwargs: Any) -> LocalInteraction:
        """Emit an interaction for ``command_name`` and return it once listeners finish."""
        interaction = LocalInteraction(command_name, **kwargs)
        await self.emit(INTERACTION_CREATE, interaction)
        return interaction

    async def login(self, token: str) -> None:
        if self.fail_login is not None:
            raise self.fail_login
        self.token = token
        self.logged_in = True
        self.closed = False
        await self.emit(READY, self)

    async def close(self) -> None:
        self.logged_in = False
        self.closed = True

    async def register_commands(self, commands: List[dict]) -> None:
        self.registered_commands.append(list(commands))
