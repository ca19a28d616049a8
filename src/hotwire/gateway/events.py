"""
Typed views over raw gateway event arguments.

Event handlers receive ``(runtime, event_name, args)`` with the raw argument tuple;
``parse_event`` turns that into one variant per known event, falling back to
``GenericEvent`` for anything the runtime does not model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple, Union

READY = "ready"
INTERACTION_CREATE = "interaction_create"
ERROR = "error"


@dataclass(frozen=True)
class Ready:
    client: Any
    name: str = READY


@dataclass(frozen=True)
class InteractionCreate:
    interaction: Any
    name: str = INTERACTION_CREATE


@dataclass(frozen=True)
class GatewayError:
    error: BaseException
    name: str = ERROR


@dataclass(frozen=True)
class GenericEvent:
    name: str
    args: Tuple[Any, ...]


GatewayEvent = Union[Ready, InteractionCreate, GatewayError, GenericEvent]


def parse_event(event_name: str, args: Tuple[Any, ...]) -> GatewayEvent:
    """Build the typed variant for ``event_name``; malformed argument tuples fall back."""
    if event_name == READY and len(args) == 1:
        return Ready(client=args[0])

    if event_name == INTERACTION_CREATE and len(args) == 1:
        return InteractionCreate(interaction=args[0])

    if event_name == ERROR and len(args) == 1 and isinstance(args[0], BaseException):
        return GatewayError(error=args[0])

    return GenericEvent(name=event_name, args=tuple(args))
