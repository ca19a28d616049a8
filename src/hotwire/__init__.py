from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal, TypeVar, overload

from hotwire.core.component import Component
from hotwire.core.models import Command, Event, Message
from hotwire.core.registry import Registry
from hotwire.core.state import BaseState, StateStore

__all__ = [
	"BaseState",
	"Command",
	"Component",
	"Event",
	"Message",
	"Registry",
	"StateStore",
	"command",
	"event",
]

DecoratedCallable = TypeVar("DecoratedCallable", bound=Callable[..., Any])


@overload
def command(func: DecoratedCallable, /) -> Command:
	...


@overload
def command(
	func: None = None,
	/,
	*,
	name: str | None = None,
	description: str = "No description provided",
	errors: Literal["hidden", "visible"] = "visible",
	**kwargs: Any,
) -> Callable[[DecoratedCallable], Command]:
	...


def command(
	func: DecoratedCallable | None = None,
	/,
	*,
	name: str | None = None,
	description: str = "No description provided",
	errors: Literal["hidden", "visible"] = "visible",
	**kwargs: Any,
) -> Command | Callable[[DecoratedCallable], Command]:
	"""Decorator that turns a handler into a Command definition.

	Supports both bare and configured usage:
	- ``@command``
	- ``@command(name="ping", errors="hidden")``

	The identifier defaults to the function name. Extra keyword arguments are passed
	to ``Command`` (``nsfw``, ``permissions``, ``contexts``, localizations).
	"""

	def decorator(target: DecoratedCallable) -> Command:
		return Command(
			identifier=name or target.__name__,
			description=description,
			handler=target,
			errors=errors,
			**kwargs,
		)

	if callable(func):
		return decorator(func)

	return decorator


@overload
def event(func: DecoratedCallable, /) -> Event:
	...


@overload
def event(
	func: None = None,
	/,
	*,
	name: str | None = None,
	once: bool = False,
) -> Callable[[DecoratedCallable], Event]:
	...


def event(
	func: DecoratedCallable | None = None,
	/,
	*,
	name: str | None = None,
	once: bool = False,
) -> Event | Callable[[DecoratedCallable], Event]:
	"""Decorator that turns a handler into an Event definition.

	- ``@event`` subscribes to the event named like the function.
	- ``@event(name="ready")`` subscribes to ``ready``.
	"""

	def decorator(target: DecoratedCallable) -> Event:
		return Event(event=name or target.__name__, handler=target, once=once)

	if callable(func):
		return decorator(func)

	return decorator
