import asyncio
import importlib
import json
from pathlib import Path
from typing import Any, List, Optional

import typer

from hotwire.cli.formatter import OutputFormatter
from hotwire.components.commands import CommandComponent, CommandState
from hotwire.components.events import EventComponent, EventState
from hotwire.config.loader import load_runtime_config
from hotwire.core.models import HotwireConfig
from hotwire.core.registry import Registry
from hotwire.discovery.loader import discover_components
from hotwire.gateway.contracts import ClientFactory
from hotwire.runtime.controller import RuntimeController
from hotwire.utils.diagnostics import ConfigurationError, Diagnostic, DuplicateDefinitionError
from hotwire.utils.logger import configure_logging

app = typer.Typer(name="hotwire", help="Hotwire CLI Interface", rich_markup_mode=None)


def _coerce_bool_like(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off", ""}:
            return False
    return bool(value)


def _resolve_optional_bool_flag(enabled: object, disabled: object, flag_name: str) -> Optional[bool]:
    enabled_bool = _coerce_bool_like(enabled)
    disabled_bool = _coerce_bool_like(disabled)
    if enabled_bool and disabled_bool:
        raise typer.BadParameter(f"Cannot use --{flag_name} and --no-{flag_name} together.")
    if enabled_bool:
        return True
    if disabled_bool:
        return False
    return None


def _read_option_value(tokens: list[str], index: int, option_name: str) -> tuple[str, int]:
    if index + 1 >= len(tokens):
        raise typer.BadParameter(f"Option {option_name} requires a value.")
    return tokens[index + 1], index + 2


def _parse_root_only(tokens: list[str]) -> Path:
    root_dir = Path(".")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ("--root", "-r"):
            root_value, index = _read_option_value(tokens, index, token)
            root_dir = Path(root_value)
            continue
        if token.startswith("--root="):
            root_dir = Path(token.split("=", 1)[1])
            index += 1
            continue
        if token.startswith("-"):
            raise typer.BadParameter(f"Unknown option: {token}")
        raise typer.BadParameter(f"Unexpected arguments: {token}")
    return root_dir


def _load_client_factory(reference: str) -> ClientFactory:
    """Resolve ``module:attr`` to a zero-argument client factory."""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter("Option --client must look like 'package.module:ClientClass'.")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import client module '{module_name}': {exc}")

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise typer.BadParameter(f"'{reference}' is not a callable client factory.")
    return factory


def _load_config_or_exit(root_dir: Path) -> HotwireConfig:
    try:
        return load_runtime_config(root_dir)
    except ValueError as exc:
        OutputFormatter.log(f"Invalid configuration: {exc}", severity="error")
        raise typer.Exit(code=1)


async def _collect_definitions(config: HotwireConfig) -> tuple[Registry, List[Diagnostic]]:
    """
    Run the init phase of the built-in components without logging in, and gather
    every diagnostic the loaders produced.
    """
    registry = Registry(config=config)
    diagnostics: List[Diagnostic] = []

    for component_type in (EventComponent, CommandComponent):
        component = registry.register(component_type)
        try:
            await registry.invoke(component, "init")
        except DuplicateDefinitionError:
            # Already recorded as a critical diagnostic by the component.
            pass

    diagnostics.extend(registry.state.get(EventState).diagnostics)
    diagnostics.extend(registry.state.get(CommandState).diagnostics)

    await discover_components(
        config.components_path,
        suffixes=config.discovery.suffixes,
        export_name=config.discovery.export_name,
        diagnostics=diagnostics,
    )
    return registry, diagnostics


def _diagnostic_to_validation_issue(diagnostic: Diagnostic, root_dir: Path) -> dict:
    location = diagnostic.file_path
    try:
        location = str(Path(diagnostic.file_path).resolve().relative_to(root_dir))
    except ValueError:
        pass

    return {
        "name": Path(diagnostic.file_path).stem if diagnostic.file_path else "unknown",
        "source_location": location,
        "severity": diagnostic.severity,
        "code": diagnostic.error_code,
        "message": diagnostic.message,
        "remediation_hint": diagnostic.suggestion,
    }


def _render_validation_text_report(payload: dict) -> str:
    summary = payload["summary"]
    lines: list[str] = [
        "Hotwire Validation Report",
        (
            "Summary: "
            f"commands={summary['commands']}, events={summary['events']}, "
            f"errors={summary['errors']}, warnings={summary['warnings']}, total={summary['total']}"
        ),
    ]

    issues = payload["issues"]
    if not issues:
        lines.append("No diagnostics found.")
        return "\n".join(lines)

    lines.append("Issues:")
    for issue in issues:
        lines.append(
            f"- [{issue['severity'].upper()}] {issue['code']} ({issue['name']}) "
            f"at {issue['source_location']}: {issue['message']}"
        )
    return "\n".join(lines)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    ctx: typer.Context,
):
    """Start the runtime and keep it running until interrupted."""
    root_dir = Path(".")
    client_reference: Optional[str] = None
    watch_enabled = False
    watch_disabled = False

    tokens = list(ctx.args)
    extras: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ("--root", "-r"):
            root_value, index = _read_option_value(tokens, index, token)
            root_dir = Path(root_value)
            continue
        if token.startswith("--root="):
            root_dir = Path(token.split("=", 1)[1])
            index += 1
            continue
        if token == "--client":
            client_reference, index = _read_option_value(tokens, index, token)
            continue
        if token.startswith("--client="):
            client_reference = token.split("=", 1)[1]
            index += 1
            continue
        if token == "--watch":
            watch_enabled = True
            index += 1
            continue
        if token == "--no-watch":
            watch_disabled = True
            index += 1
            continue
        if token.startswith("-"):
            raise typer.BadParameter(f"Unknown option: {token}")
        extras.append(token)
        index += 1

    if extras:
        raise typer.BadParameter(f"Unexpected arguments: {' '.join(extras)}")

    watch = _resolve_optional_bool_flag(watch_enabled, watch_disabled, "watch")
    client_factory = _load_client_factory(client_reference) if client_reference else None

    if not root_dir.exists():
        OutputFormatter.log(f"Root directory '{root_dir}' does not exist.", severity="error")
        raise typer.Exit(code=1)

    try:
        controller = RuntimeController(root_dir, client_factory=client_factory, watch=watch)
    except ValueError as exc:
        OutputFormatter.log(f"Invalid configuration: {exc}", severity="error")
        raise typer.Exit(code=1)

    OutputFormatter.log(f"Starting {controller.config.settings.app_name} from {controller.config.root_dir}")

    try:
        asyncio.run(controller.run())
    except KeyboardInterrupt:
        OutputFormatter.log("Interrupted. Shutting down.", severity="warning")
    except ConfigurationError as exc:
        OutputFormatter.log(f"Configuration error: {exc}", severity="critical")
        raise typer.Exit(code=1)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            raise typer.Exit(code=1)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def validate(
    ctx: typer.Context,
):
    """Load events, commands and components and emit a diagnostics report."""
    root_dir = Path(".")
    output_format = "text"

    tokens = list(ctx.args)
    extras: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ("--root", "-r"):
            root_value, index = _read_option_value(tokens, index, token)
            root_dir = Path(root_value)
            continue
        if token.startswith("--root="):
            root_dir = Path(token.split("=", 1)[1])
            index += 1
            continue
        if token == "--format":
            output_format, index = _read_option_value(tokens, index, token)
            continue
        if token.startswith("--format="):
            output_format = token.split("=", 1)[1]
            index += 1
            continue
        if token.startswith("-"):
            raise typer.BadParameter(f"Unknown option: {token}")
        extras.append(token)
        index += 1

    if extras:
        raise typer.BadParameter(f"Unexpected arguments: {' '.join(extras)}")

    output_format = output_format.lower()
    if output_format not in {"text", "json"}:
        raise typer.BadParameter("Option --format must be one of: text, json")

    config = _load_config_or_exit(root_dir)
    configure_logging(config.settings.log_level)

    registry, diagnostics = asyncio.run(_collect_definitions(config))

    issues = [_diagnostic_to_validation_issue(diag, config.root_dir) for diag in diagnostics]
    summary = {
        "commands": len(registry.state.get(CommandState).commands),
        "events": sum(len(handlers) for handlers in registry.state.get(EventState).handlers.values()),
        "errors": sum(1 for diag in diagnostics if diag.severity in {"error", "critical"}),
        "warnings": sum(1 for diag in diagnostics if diag.severity == "warning"),
        "total": len(diagnostics),
    }
    payload = {
        "root": str(config.root_dir),
        "summary": summary,
        "issues": issues,
    }

    if output_format == "json":
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(_render_validation_text_report(payload))

    if summary["errors"]:
        raise typer.Exit(code=1)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def commands(
    ctx: typer.Context,
):
    """Print the command registration payload as JSON."""
    root_dir = _parse_root_only(list(ctx.args))

    config = _load_config_or_exit(root_dir)
    configure_logging(config.settings.log_level)

    registry, diagnostics = asyncio.run(_collect_definitions(config))
    if any(diag.severity in {"error", "critical"} for diag in diagnostics):
        OutputFormatter.print_diagnostics(diagnostics)
        OutputFormatter.log("Command definitions contain errors.", severity="error")
        raise typer.Exit(code=1)

    command_component: Any = registry.get(CommandComponent)
    OutputFormatter.print_data(command_component.payloads())


if __name__ == "__main__":
    app()
