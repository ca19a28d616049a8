from dataclasses import dataclass

from hotwire import BaseState, Component


@dataclass
class GreeterState(BaseState):
    count: int = 0


class GreeterComponent(Component):
    """Counts gateway logins. The count survives hot reloads of this file."""

    requirements = ("EventComponent",)

    @property
    def count(self) -> int:
        return self.runtime.state.get(GreeterState).count

    def start(self):
        self.runtime.get("EventComponent").add_listener("ready", self.greet)

    def stop(self):
        events = self.runtime.get("EventComponent")
        if events is not None:
            events.remove_listener("ready", self.greet)

    def greet(self, runtime, event_name, args):
        runtime.state.get(GreeterState).count += 1


default = GreeterComponent
