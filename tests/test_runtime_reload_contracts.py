import pytest

from hotwire.runtime.reload_contracts import WatcherEvent, WatcherState, transition_watcher_state


def test_transition_watcher_state_happy_path():
    state = WatcherState.IDLE
    state = transition_watcher_state(state, WatcherEvent.START)
    assert state == WatcherState.SCANNING

    state = transition_watcher_state(state, WatcherEvent.SCAN_COMPLETE)
    assert state == WatcherState.ACTIVE

    state = transition_watcher_state(state, WatcherEvent.CLOSE)
    assert state == WatcherState.CLOSED


def test_closed_watcher_can_restart():
    assert transition_watcher_state(WatcherState.CLOSED, WatcherEvent.START) == WatcherState.SCANNING


def test_close_is_allowed_from_any_state():
    for state in WatcherState:
        assert transition_watcher_state(state, WatcherEvent.CLOSE) == WatcherState.CLOSED


@pytest.mark.parametrize(
    "state,event",
    [
        (WatcherState.IDLE, WatcherEvent.SCAN_COMPLETE),
        (WatcherState.SCANNING, WatcherEvent.START),
        (WatcherState.ACTIVE, WatcherEvent.START),
        (WatcherState.ACTIVE, WatcherEvent.SCAN_COMPLETE),
    ],
)
def test_transition_watcher_state_rejects_invalid_transition(state, event):
    with pytest.raises(ValueError, match="Invalid watcher transition"):
        transition_watcher_state(state, event)
