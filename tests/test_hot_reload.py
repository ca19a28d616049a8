import asyncio
import os
import textwrap
from pathlib import Path

from hotwire.core.models import HotReloadSettings
from hotwire.runtime.hot_reload import HotReloadWatcher
from hotwire.runtime.reload_contracts import ReloadAction, WatchEvent, WatcherState


class Journal:
    # shared with the loaded component files
    __state_key__ = "greeter-journal"

    def __init__(self):
        self.entries = []


GREETER_TEMPLATE = """
from hotwire import Component

class Journal:
    __state_key__ = "greeter-journal"

    def __init__(self):
        self.entries = []

class GreeterComponent(Component):
    version = {version}

    def init(self, runtime):
        runtime.state.get(Journal).entries.append(("init", self.version))

    async def start(self):
        runtime = self.runtime
        runtime.state.get(Journal).entries.append(("start", self.version))

    def stop(self):
        self.runtime.state.get(Journal).entries.append(("stop", self.version))

default = GreeterComponent
"""

_mtime = [1_000_000_000]


def _write(path: Path, source: str) -> None:
    path.write_text(textwrap.dedent(source))
    # filesystems with coarse timestamps would otherwise hide rapid rewrites
    _mtime[0] += 1_000_000_000
    os.utime(path, ns=(_mtime[0], _mtime[0]))


def _watcher(registry, root_dir):
    return HotReloadWatcher(
        registry,
        root_dir / "components",
        settings=HotReloadSettings(enabled=True, stability_ms=0),
    )


def test_added_component_is_registered_and_started(root_dir, registry):
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        watcher.start(background=False)
        _write(root_dir / "components" / "greeter.py", GREETER_TEMPLATE.format(version=1))
        return await watcher.poll_once(now=1.0)

    results = asyncio.run(scenario())

    assert [(r.event, r.action, r.component, r.replaced) for r in results] == [
        (WatchEvent.ADDED, ReloadAction.RELOADED, "GreeterComponent", False)
    ]
    assert "GreeterComponent" in registry
    assert registry.state.get(Journal).entries == [("init", 1), ("start", 1)]
    assert list(watcher.history) == results


def test_changed_component_replaces_running_instance(root_dir, registry):
    component_file = root_dir / "components" / "greeter.py"
    _write(component_file, GREETER_TEMPLATE.format(version=1))
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        watcher.start(background=False)
        await watcher.handle_reload(component_file, WatchEvent.ADDED)
        first = registry.get("GreeterComponent")

        _write(component_file, GREETER_TEMPLATE.format(version=2))
        results = await watcher.poll_once(now=2.0)
        return first, results

    first, results = asyncio.run(scenario())

    assert [(r.event, r.action, r.replaced) for r in results] == [
        (WatchEvent.CHANGED, ReloadAction.RELOADED, True)
    ]
    second = registry.get("GreeterComponent")
    assert second is not first
    assert type(second).version == 2
    assert registry.state.get(Journal).entries == [
        ("init", 1),
        ("start", 1),
        ("stop", 1),
        ("init", 2),
        ("start", 2),
    ]


def test_broken_file_keeps_previous_component_running(root_dir, registry):
    component_file = root_dir / "components" / "greeter.py"
    _write(component_file, GREETER_TEMPLATE.format(version=1))
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        watcher.start(background=False)
        await watcher.handle_reload(component_file)
        _write(component_file, "from hotwire import Component\nclass Broken(Component)\n")
        return await watcher.poll_once(now=3.0)

    results = asyncio.run(scenario())

    assert results[0].action == ReloadAction.FAILED
    assert type(registry.get("GreeterComponent")).version == 1
    assert ("stop", 1) not in registry.state.get(Journal).entries


def test_non_component_export_is_skipped(root_dir, registry):
    watcher = _watcher(registry, root_dir)

    async def scenario():
        watcher.start(background=False)
        _write(root_dir / "components" / "helper.py", "default = {'not': 'a component'}\n")
        return await watcher.poll_once(now=1.0)

    results = asyncio.run(scenario())

    assert results[0].action == ReloadAction.SKIPPED
    assert len(registry) == 0


def test_deleted_file_unloads_component_by_inferred_name(root_dir, registry):
    component_file = root_dir / "components" / "greeter.py"
    _write(component_file, GREETER_TEMPLATE.format(version=1))
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        await watcher.handle_reload(component_file)
        watcher.start(background=False)
        component_file.unlink()
        return await watcher.poll_once(now=4.0)

    results = asyncio.run(scenario())

    assert [(r.event, r.action, r.component) for r in results] == [
        (WatchEvent.REMOVED, ReloadAction.UNLOADED, "GreeterComponent")
    ]
    assert "GreeterComponent" not in registry
    assert registry.state.get(Journal).entries[-1] == ("stop", 1)


def test_deleted_file_without_component_is_skipped(root_dir, registry):
    watcher = _watcher(registry, root_dir)

    result = asyncio.run(watcher.handle_unload(root_dir / "components" / "chat-log.py"))

    assert result.action == ReloadAction.SKIPPED
    assert result.component == "ChatLogComponent"


def test_watcher_closes_when_registry_stops(root_dir, registry):
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        watcher.start()
        assert watcher.state == WatcherState.ACTIVE
        await registry.stop()
        return watcher.state

    assert asyncio.run(scenario()) == WatcherState.CLOSED
    assert watcher._task is None


def test_poll_once_is_noop_when_inactive(root_dir, registry):
    watcher = _watcher(registry, root_dir)

    assert asyncio.run(watcher.poll_once(now=1.0)) == []


COUNTER_TEMPLATE = """
from dataclasses import dataclass
from hotwire import BaseState, Component

@dataclass
class State(BaseState):
    {field}: int = 0

class {name}(Component):
    def start(self):
        self.runtime.state.get(State).{field} += 1

default = {name}
"""


def test_same_named_state_classes_in_different_components_stay_separate(root_dir, registry):
    alpha = root_dir / "components" / "alpha.py"
    beta = root_dir / "components" / "beta.py"
    _write(alpha, COUNTER_TEMPLATE.format(field="hits", name="AlphaComponent"))
    _write(beta, COUNTER_TEMPLATE.format(field="errors", name="BetaComponent"))
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        return [await watcher.handle_reload(alpha), await watcher.handle_reload(beta)]

    results = asyncio.run(scenario())

    assert [r.action for r in results] == [ReloadAction.RELOADED, ReloadAction.RELOADED]
    assert len(registry.state) == 2


FAILING_INIT = """
from hotwire import Component

class GreeterComponent(Component):
    def init(self, runtime):
        raise RuntimeError("boom")

default = GreeterComponent
"""


def test_failed_init_leaves_component_unregistered(root_dir, registry):
    component_file = root_dir / "components" / "greeter.py"
    _write(component_file, FAILING_INIT)
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        return await watcher.handle_reload(component_file, WatchEvent.ADDED)

    result = asyncio.run(scenario())

    assert result.action == ReloadAction.FAILED
    assert result.message == "boom"
    assert "GreeterComponent" not in registry


def test_indirect_component_subclass_keeps_previous_component_running(root_dir, registry):
    component_file = root_dir / "components" / "greeter.py"
    _write(component_file, GREETER_TEMPLATE.format(version=1))
    watcher = _watcher(registry, root_dir)

    async def scenario():
        await registry.init()
        watcher.start(background=False)
        await watcher.handle_reload(component_file)
        first = registry.get("GreeterComponent")
        _write(
            component_file,
            """
            from hotwire import Component

            class Base(Component):
                pass

            class GreeterComponent(Base):
                pass

            default = GreeterComponent
            """,
        )
        return first, await watcher.poll_once(now=5.0)

    first, results = asyncio.run(scenario())

    assert [r.action for r in results] == [ReloadAction.SKIPPED]
    assert registry.get("GreeterComponent") is first
    assert registry.state.get(Journal).entries == [("init", 1), ("start", 1)]
