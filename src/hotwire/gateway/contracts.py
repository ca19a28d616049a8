"""Interfaces the runtime needs from the external gateway connection."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from hotwire.core.models import Message

Listener = Callable[..., Any]

# Gateway error code for an interaction that expired or was already acknowledged.
UNKNOWN_INTERACTION_CODE = 10062


@runtime_checkable
class EventSource(Protocol):
    def on(self, event_name: str, callback: Listener) -> None:
        ...

    def remove_listener(self, event_name: str, callback: Listener) -> None:
        ...


@runtime_checkable
class Client(EventSource, Protocol):
    async def login(self, token: str) -> None:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class CommandSink(Protocol):
    async def register_commands(self, commands: List[dict]) -> None:
        ...


@runtime_checkable
class Interaction(Protocol):
    command_name: str
    replied: bool
    deferred: bool

    def is_command(self) -> bool:
        ...

    async def reply(self, message: Message) -> None:
        ...

    async def edit_reply(self, message: Message) -> None:
        ...


ClientFactory = Callable[[], Client]
RegisterCommands = Callable[[List[dict]], Awaitable[None]]


class InteractionExpiredError(Exception):
    """Raised by gateways when replying to an interaction that is no longer valid."""

    code = UNKNOWN_INTERACTION_CODE

    def __init__(self, message: str = "Unknown interaction"):
        super().__init__(message)


def is_interaction_expired(exc: BaseException) -> bool:
    """
    Whether a reply failure means the interaction can no longer be answered.
    """
    if getattr(exc, "code", None) == UNKNOWN_INTERACTION_CODE:
        return True
    return "Unknown interaction" in str(exc)


def command_sink(client: Optional[Any]) -> Optional[RegisterCommands]:
    """Return the client's command registration call, if it offers one."""
    register = getattr(client, "register_commands", None)
    if callable(register):
        return register
    return None
