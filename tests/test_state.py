from dataclasses import dataclass, field

from hotwire.core.state import BaseState, StateStore, state_identity
from hotwire.discovery.loader import import_file


@dataclass
class CounterState(BaseState):
    count: int = 0
    seen: list = field(default_factory=list)


class PinnedState:
    __state_key__ = "pinned"

    def __init__(self):
        self.value = None


STATE_MODULE = """
from dataclasses import dataclass
from hotwire import BaseState

@dataclass
class State(BaseState):
    {field}: int = 0

default = State
"""


def _load_state(path, field_name):
    path.write_text(STATE_MODULE.format(field=field_name))
    return import_file(path, "state").default


def test_get_constructs_once_and_returns_same_instance():
    store = StateStore()

    first = store.get(CounterState)
    first.count += 1

    assert store.get(CounterState) is first
    assert store.get(CounterState).count == 1
    assert len(store) == 1


def test_reloaded_class_from_same_file_maps_to_existing_slot(tmp_path):
    store = StateStore()
    state_file = tmp_path / "counter.py"

    first = _load_state(state_file, "hits")
    store.get(first).hits = 5
    reloaded = _load_state(state_file, "hits")

    assert reloaded is not first
    assert state_identity(reloaded) == state_identity(first)
    assert store.get(reloaded).hits == 5


def test_same_named_classes_from_different_files_get_separate_slots(tmp_path):
    store = StateStore()
    alpha = _load_state(tmp_path / "alpha.py", "hits")
    beta = _load_state(tmp_path / "beta.py", "errors")

    store.get(alpha).hits += 1
    store.get(beta).errors += 2

    assert alpha.__qualname__ == beta.__qualname__ == "State"
    assert state_identity(alpha) != state_identity(beta)
    assert store.get(alpha).hits == 1
    assert store.get(beta).errors == 2
    assert len(store) == 2


def test_replaced_module_class_keeps_its_identity(tmp_path):
    state_file = tmp_path / "counter.py"
    first = _load_state(state_file, "hits")
    identity = state_identity(first)

    # importing again drops the first module from sys.modules
    _load_state(state_file, "hits")

    assert state_identity(first) == identity


def test_explicit_state_key_pins_the_slot():
    store = StateStore()
    store.get(PinnedState).value = "kept"

    class PinnedState2:
        __state_key__ = "pinned"

    assert state_identity(PinnedState) == "pinned"
    assert store.get(PinnedState2).value == "kept"


def test_set_overwrites_and_reset_drops_slot():
    store = StateStore()
    replacement = CounterState(count=42)

    store.set(CounterState, replacement)
    assert store.get(CounterState) is replacement
    assert CounterState in store

    store.reset(CounterState)
    assert CounterState not in store
    assert store.get(CounterState).count == 0


def test_iterates_over_state_identities():
    store = StateStore()
    store.get(CounterState)

    assert list(store) == [state_identity(CounterState)]
    assert state_identity(CounterState).endswith("test_state.py:CounterState")
