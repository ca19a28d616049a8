import json
import typer
from typing import Any, List
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from hotwire.utils.diagnostics import Diagnostic

# Create a stderr console for logging
error_console = Console(stderr=True)

class OutputFormatter:
    """
    Handles output formatting for the CLI.
    System messages go to stderr, data goes to stdout.
    """

    @staticmethod
    def log(message: str, severity: str = "info") -> None:
        """
        Print system messages to stderr with color coding.
        """
        style = "white"
        prefix = "[SYSTEM]"

        if severity == "warning":
            style = "yellow"
        elif severity == "error":
            style = "red"
        elif severity == "critical":
            style = "bold red"
        elif severity == "success":
            style = "green"

        error_console.print(f"[{style}]{prefix} {escape(message)}[/{style}]")

    @staticmethod
    def print_diagnostics(diagnostics: List[Diagnostic]) -> None:
        """
        Prints a table of load/validation diagnostics.
        """
        if not diagnostics:
            return

        table = Table(title="Hotwire Diagnostics", border_style="red", header_style="bold red")
        table.add_column("Severity", style="bold", no_wrap=True)
        table.add_column("Code", no_wrap=True)
        table.add_column("Message")
        table.add_column("Location", overflow="fold")

        for diag in diagnostics:
            color = "red"
            if diag.severity == "warning":
                color = "yellow"
            elif diag.severity == "critical":
                color = "bold red"

            table.add_row(
                f"[{color}]{diag.severity.upper()}[/{color}]",
                diag.error_code,
                escape(diag.message),
                escape(diag.file_path),
            )

        error_console.print(table)
        error_console.print() # spacing

    @staticmethod
    def print_data(data: Any) -> None:
        """
        Print data to stdout as JSON (plain strings are echoed as-is).
        """
        if isinstance(data, str):
            typer.echo(data)
            return

        def json_serializer(obj):
            if isinstance(obj, BaseModel):
                return obj.model_dump(mode='json')
            return str(obj)

        try:
            output = json.dumps(data, indent=2, default=json_serializer)
            typer.echo(output)
        except TypeError as e:
            OutputFormatter.log(f"JSON Serialization failed: {e}", severity="error")
            typer.echo(str(data))
