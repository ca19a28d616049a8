from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from hotwire.core.component import Component, requirement_identity
from hotwire.core.models import HotwireConfig
from hotwire.core.state import StateStore
from hotwire.gateway.contracts import Client, ClientFactory
from hotwire.gateway.local import LocalClient
from hotwire.utils.diagnostics import ComponentRegistrationError, ConfigurationError, MissingRequirementError
from hotwire.utils.logger import Logger

C = TypeVar("C", bound=Component)

ComponentKey = Union[str, Type[Component]]

LIFECYCLE_PHASES = ("init", "start", "stop")
SIGNALS = ("initialized", "started", "stop", "error")


def component_identity(key: ComponentKey) -> str:
    if isinstance(key, str):
        return key
    return key.identity()


class Registry:
    """
    Owns component instances and sequences their lifecycle.

    Every component receives this registry as its runtime handle. ``init``, ``start``
    and ``stop`` fan out to all components concurrently and wait for every one of them
    before deciding: failures are logged per component, configuration errors end the
    process, and otherwise the first failure is re-raised.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        token: Optional[str] = None,
        config: Optional[HotwireConfig] = None,
    ):
        self.config = config or HotwireConfig()
        self.token = token if token is not None else self.config.settings.token
        self.client_factory: ClientFactory = client_factory or LocalClient
        self.client: Optional[Client] = None
        self.state = StateStore()
        self.logger = Logger("Registry")
        self._components: Dict[str, Component] = {}
        self._signals: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)

    # -- registration -------------------------------------------------------------

    def register(self, component_type: Type[C]) -> C:
        """
        Construct and register one instance of ``component_type``.
        Raises ComponentRegistrationError if its identity is already taken.
        """
        name = component_type.identity()
        if name in self._components:
            raise ComponentRegistrationError(f"Component '{name}' is already registered.")

        instance = component_type(self)
        self._components[name] = instance
        self.logger.debug(f"Registered component {name}")
        return instance

    def get(self, key: ComponentKey) -> Optional[Component]:
        return self._components.get(component_identity(key))

    def remove(self, key: ComponentKey) -> Optional[Component]:
        """Deregister without stopping; callers stop the instance first."""
        return self._components.pop(component_identity(key), None)

    @property
    def components(self) -> Dict[str, Component]:
        return dict(self._components)

    def __contains__(self, key: ComponentKey) -> bool:
        return component_identity(key) in self._components

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[Component]:
        return iter(list(self._components.values()))

    # -- signals ------------------------------------------------------------------

    def on(self, signal: str, callback: Callable[..., Any]) -> None:
        self._signals[signal].append(callback)

    def off(self, signal: str, callback: Callable[..., Any]) -> None:
        callbacks = self._signals.get(signal)
        if not callbacks:
            return
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks:
            self._signals.pop(signal, None)

    async def emit(self, signal: str, *args: Any) -> None:
        """Call every listener of ``signal`` in order. A failing listener is logged only."""
        for callback in list(self._signals.get(signal, [])):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self.logger.error(f"Listener for signal '{signal}' failed", exc)

    # -- lifecycle ----------------------------------------------------------------

    async def invoke(self, component: Component, phase: str) -> Any:
        """Run one lifecycle method of one component, awaiting it when it is async."""
        if phase not in LIFECYCLE_PHASES:
            raise ValueError(f"Unknown lifecycle phase: {phase}")

        method = getattr(component, phase, None)
        if not callable(method):
            return None

        result = method(self) if phase == "init" else method()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def init(self) -> None:
        await self._fan_out("init")

        self.client = self.client_factory()
        await self.emit("initialized", self.client)

    async def start(self) -> None:
        self.validate_requirements()

        await self._fan_out("start")

        if self.client is None:
            self.client = self.client_factory()

        try:
            await self.client.login(self.token)
        except Exception as exc:
            self.logger.error("Failed to login", exc)
            await self.emit("error", exc)

        await self.emit("started", self.client)

    async def stop(self) -> None:
        try:
            await self._fan_out("stop")
        finally:
            if self.client is not None:
                try:
                    await self.client.close()
                except Exception as exc:
                    self.logger.error("Failed to close client", exc)

            await self.emit("stop", self.client)

    def missing_requirements(self) -> Dict[str, List[str]]:
        """Map of component identity -> declared requirements that are not registered."""
        missing: Dict[str, List[str]] = {}
        for name, component in self._components.items():
            absent = [
                requirement_identity(requirement)
                for requirement in type(component).requirements
                if requirement_identity(requirement) not in self._components
            ]
            if absent:
                missing[name] = absent
        return missing

    def validate_requirements(self) -> None:
        """
        Terminate the process when any declared requirement is not registered.

        Requirements describe registration, not readiness: start order is not derived
        from them.
        """
        missing = self.missing_requirements()
        if not missing:
            return

        errors = [MissingRequirementError(name, absent) for name, absent in missing.items()]
        for error in errors:
            self.logger.critical(str(error))
        raise SystemExit(1) from errors[0]

    async def _fan_out(self, phase: str) -> None:
        targets: List[Tuple[str, Component]] = list(self._components.items())
        results = await asyncio.gather(
            *(self.invoke(component, phase) for _, component in targets),
            return_exceptions=True,
        )

        failures: List[BaseException] = []
        for (name, _), result in zip(targets, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Component {name} failed during {phase}", result)
                failures.append(result)

        if not failures:
            return

        fatal = next((failure for failure in failures if isinstance(failure, ConfigurationError)), None)
        if fatal is not None:
            self.logger.critical(f"Fatal configuration error during {phase}: {fatal}")
            raise SystemExit(1) from fatal

        raise failures[0]
