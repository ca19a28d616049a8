import sys
from pathlib import Path
from typing import Any, Dict, Iterator, Type, TypeVar

S = TypeVar("S")

STATE_KEY_ATTR = "__state_key__"


def _defining_source(state_type: type) -> str:
    module = sys.modules.get(state_type.__module__)
    file_name = getattr(module, "__file__", None)
    if file_name:
        return str(Path(file_name).resolve())
    return state_type.__module__


def state_identity(state_type: type) -> str:
    """
    Stable identity of a state type: ``<defining file>:<qualified name>``.

    A hot-reloaded module re-creates its classes under a new module name but from the
    same file, so the new class resolves to the existing slot, while same-named classes
    from different files stay apart. A class may pin its slot with ``__state_key__``.
    The identity is cached on the class the first time it is seen, so a class whose
    module was since replaced keeps resolving to its slot.
    """
    key = state_type.__dict__.get(STATE_KEY_ATTR)
    if key is not None:
        return key

    key = f"{_defining_source(state_type)}:{state_type.__qualname__}"
    try:
        setattr(state_type, STATE_KEY_ATTR, key)
    except TypeError:
        # builtin and extension types
        pass
    return key


class BaseState:
    """Optional base class for component state types. Pins the identity at class creation."""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        state_identity(cls)


class StateStore:
    """
    One lazily-constructed instance per state type, for the lifetime of the store.

    Component instances are discarded on hot reload; their data lives here so the
    replacement instance picks it up again.
    """

    def __init__(self):
        self._slots: Dict[str, Any] = {}

    def get(self, state_type: Type[S]) -> S:
        """
        Return the instance for ``state_type``, constructing ``state_type()`` on first access.
        """
        key = state_identity(state_type)
        if key not in self._slots:
            self._slots[key] = state_type()
        return self._slots[key]

    def set(self, state_type: Type[S], value: S) -> None:
        """Overwrite the stored instance unconditionally."""
        self._slots[state_identity(state_type)] = value

    def reset(self, state_type: type) -> None:
        """Drop a slot so the next ``get`` constructs a fresh instance."""
        self._slots.pop(state_identity(state_type), None)

    def __contains__(self, state_type: type) -> bool:
        return state_identity(state_type) in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)
