from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional, Tuple

if TYPE_CHECKING:
    from hotwire.core.registry import Registry


class Component:
    """
    Base contract for registrable units of behavior.

    Subclasses may implement ``init(runtime)``, ``start()`` and ``stop()``, each either
    a plain function or a coroutine. Mutable data belongs in ``runtime.state`` so that
    it survives replacement of the component's code.
    """

    # Components that must be registered (not necessarily started) before start().
    requirements: ClassVar[Tuple[type, ...]] = ()

    # Set on every subclass at class creation: the Component class it directly names
    # as a base, or None when it only derives from Component indirectly.
    __component_base__: ClassVar[Optional[type]] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__component_base__ = Component if Component in cls.__bases__ else None

    def __init__(self, runtime: Registry):
        self.runtime = runtime

    @classmethod
    def identity(cls) -> str:
        return cls.__name__

    def init(self, runtime: Registry) -> Any:
        return None

    def start(self) -> Any:
        return None

    def stop(self) -> Any:
        return None

    def __repr__(self) -> str:
        return f"<{self.identity()}>"


def is_component_type(candidate: Any) -> bool:
    """
    Return True when ``candidate`` is a class declared directly on top of ``Component``.

    ``Component`` itself and classes derived from another component are rejected.
    """
    if not isinstance(candidate, type) or candidate is Component:
        return False

    if not issubclass(candidate, Component):
        return False

    return candidate.__dict__.get("__component_base__") is Component


def requirement_identity(requirement: Any) -> str:
    """Requirements may be given as component classes or identity strings."""
    if isinstance(requirement, str):
        return requirement
    if isinstance(requirement, type) and issubclass(requirement, Component):
        return requirement.identity()
    raise TypeError(f"Invalid component requirement: {requirement!r}")
