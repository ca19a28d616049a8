from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from hotwire.components.events import EventComponent
from hotwire.components.registration import CommandRegistrar
from hotwire.core.component import Component
from hotwire.core.models import Command, Message
from hotwire.core.state import BaseState
from hotwire.discovery.loader import Loader, suffix_filter
from hotwire.gateway.contracts import Interaction, command_sink, is_interaction_expired
from hotwire.gateway.events import INTERACTION_CREATE, InteractionCreate, parse_event
from hotwire.utils.diagnostics import Diagnostic, DuplicateDefinitionError, HotwireError
from hotwire.utils.logger import Logger

if TYPE_CHECKING:
    from hotwire.core.registry import Registry


class CommandError(HotwireError):
    """A command handler failed. ``hidden`` keeps the message out of the user reply."""

    def __init__(self, command_identifier: str, interaction: Any, message: str, hidden: bool = False):
        super().__init__(message)
        self.command_identifier = command_identifier
        self.interaction = interaction
        self.message = message
        self.hidden = hidden


@dataclass
class CommandState(BaseState):
    commands: Dict[str, Command] = field(default_factory=dict)
    subscription: Optional[Callable[..., Any]] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)


class CommandComponent(Component):
    """
    Loads command definitions and dispatches inbound interactions to them.
    """

    requirements = (EventComponent,)

    def __init__(self, runtime: Registry):
        super().__init__(runtime)
        self.logger = Logger("CommandComponent")

    @property
    def state(self) -> CommandState:
        return self.runtime.state.get(CommandState)

    @property
    def commands(self) -> Dict[str, Command]:
        return self.state.commands

    async def init(self, runtime: Registry) -> None:
        self.state.commands.clear()
        self.state.diagnostics.clear()

        config = runtime.config
        loader: Loader[Any] = Loader(
            config.commands_path,
            filter=suffix_filter(config.discovery.suffixes),
            logger_context="CommandLoader",
            export_name=config.discovery.export_name,
        )
        loaded = await loader.load_with_sources()
        self.state.diagnostics.extend(loader.diagnostics)

        duplicates: List[DuplicateDefinitionError] = []
        for item in loaded:
            definition = item.value
            if not isinstance(definition, Command) or not callable(definition.handler):
                self.logger.warning(f"Skipping invalid command file {item.path}.")
                self.state.diagnostics.append(
                    Diagnostic(
                        file_path=str(item.path),
                        error_code="ERR_INVALID_DEFINITION",
                        message="Default export is not a Command with a handler.",
                        severity="warning",
                    )
                )
                continue

            if definition.identifier in self.state.commands:
                error = DuplicateDefinitionError(definition.identifier, str(item.path))
                self.logger.error(str(error))
                self.state.diagnostics.append(
                    Diagnostic(
                        file_path=str(item.path),
                        error_code="ERR_DUPLICATE_IDENTIFIER",
                        message=str(error),
                        severity="critical",
                        suggestion="Command identifiers must be unique across the commands directory.",
                    )
                )
                duplicates.append(error)
                continue

            self.state.commands[definition.identifier] = definition

        if duplicates:
            raise duplicates[0]

    async def start(self) -> None:
        events = self.runtime.get(EventComponent)
        if not isinstance(events, EventComponent):
            self.logger.error("EventComponent is not registered. Cannot start CommandComponent.")
            return

        subscription = self.state.subscription or self.handle_interaction
        if events.has_listener(INTERACTION_CREATE, subscription):
            self.logger.debug("Event listener already registered, skipping")
        else:
            events.add_listener(INTERACTION_CREATE, subscription)
            self.logger.debug(f"Registered {INTERACTION_CREATE} event listener")
        self.state.subscription = subscription

        self.logger.info(f"Loaded {len(self.state.commands)} commands from {self.runtime.config.discovery.commands_dir}.")

        if self.runtime.config.commands.register_commands:
            await self.register_commands()

        self.logger.info("CommandComponent started successfully.")

    def stop(self) -> None:
        subscription = self.state.subscription
        if subscription is not None:
            events = self.runtime.get(EventComponent)
            if isinstance(events, EventComponent):
                events.remove_listener(INTERACTION_CREATE, subscription)
                self.logger.debug(f"Removed {INTERACTION_CREATE} event listener")
            self.state.subscription = None

        self.state.commands.clear()
        self.logger.debug("Cleared commands map")

    def resolve(self, command_name: str) -> Optional[Command]:
        """
        Find the command for an interaction. ``prefix`` mode only looks at the part of
        the name before the configured separator.
        """
        settings = self.runtime.config.commands
        if settings.match_mode == "prefix":
            command_name = command_name.split(settings.prefix_separator, 1)[0]
        return self.state.commands.get(command_name)

    async def handle_interaction(self, runtime: Registry, event_name: str, args: tuple) -> None:
        payload = parse_event(event_name, args)
        if not isinstance(payload, InteractionCreate):
            return
        await self.dispatch(payload.interaction)

    async def dispatch(self, interaction: Interaction) -> None:
        is_command = getattr(interaction, "is_command", None)
        if not callable(is_command) or not is_command():
            return

        definition = self.resolve(interaction.command_name)
        if definition is None:
            # May belong to another dispatcher generation.
            return

        try:
            result = definition.handler(self.runtime, interaction)
            if inspect.isawaitable(result):
                result = await result

            reply = Message.coerce(result)
            if reply is not None:
                await self._respond(interaction, reply)
        except Exception as exc:
            await self.handle_command_error(
                CommandError(
                    definition.identifier,
                    interaction,
                    str(exc),
                    hidden=definition.hidden_errors,
                )
            )

    async def handle_command_error(self, error: CommandError) -> None:
        content = f"Error occurred while handling command {error.command_identifier}"
        if not error.hidden:
            content += f": {error.message}"

        try:
            await self._respond(error.interaction, Message(content=content, ephemeral=True))
        except Exception as reply_error:
            if is_interaction_expired(reply_error):
                self.logger.warning(
                    f"Could not send error reply for command {error.command_identifier}: "
                    "interaction is no longer valid (possibly expired or already acknowledged)."
                )
            else:
                self.logger.error(
                    f"Failed to send error reply for command {error.command_identifier}",
                    reply_error,
                )

    def payloads(self) -> List[Dict[str, Any]]:
        return [
            command.to_payload()
            for command in sorted(self.state.commands.values(), key=lambda c: c.identifier)
        ]

    async def register_commands(self) -> bool:
        config = self.runtime.config
        registrar = CommandRegistrar(
            config.cache_path,
            hash_file=config.commands.hash_file,
            sink=command_sink(self.runtime.client),
        )
        return await registrar.sync(self.payloads())

    async def _respond(self, interaction: Interaction, message: Message) -> None:
        if interaction.replied or interaction.deferred:
            await interaction.edit_reply(message)
        else:
            await interaction.reply(message)
