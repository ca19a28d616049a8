from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.traceback import Traceback

# Runtime logs go to stderr; stdout is reserved for command data.
log_console = Console(stderr=True, soft_wrap=True)

LEVELS: dict[str, int] = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "error": 40,
    "critical": 50,
}

LEVEL_STYLES: dict[str, str] = {
    "debug": "magenta",
    "info": "blue",
    "warning": "yellow",
    "error": "red",
    "critical": "bold red",
}

_threshold = LEVELS["info"]


def configure_logging(level: str) -> None:
    """Set the process-wide minimum severity. Unknown names fall back to INFO."""
    global _threshold
    _threshold = LEVELS.get(level.lower(), LEVELS["info"])


def is_enabled(level: str) -> bool:
    return LEVELS[level] >= _threshold


class Logger:
    """
    Contextual logger: ``<timestamp> [LEVEL] [context] message``.
    """

    def __init__(self, context: str):
        self.context = context

    def debug(self, message: str) -> None:
        self._log("debug", message)

    def info(self, message: str) -> None:
        self._log("info", message)

    def warning(self, message: str) -> None:
        self._log("warning", message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self._log("error", message, exc)

    def critical(self, message: str, exc: BaseException | None = None) -> None:
        self._log("critical", message, exc)

    def _log(self, level: str, message: str, exc: BaseException | None = None) -> None:
        if not is_enabled(level):
            return

        style = LEVEL_STYLES[level]
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        line = (
            f"[grey50]{timestamp}[/grey50] "
            f"[{style}]\\[{level.upper()}][/{style}] "
            f"[cyan]\\[{escape(self.context)}][/cyan] {escape(message)}"
        )
        if exc is not None:
            line += f" [{style}]({escape(type(exc).__name__)}: {escape(str(exc))})[/{style}]"

        log_console.print(line, highlight=False)

        # Full tracebacks only when debugging.
        if exc is not None and exc.__traceback__ is not None and is_enabled("debug"):
            log_console.print(
                Traceback.from_exception(type(exc), exc, exc.__traceback__, show_locals=False)
            )
