from enum import Enum
from typing import Optional

import click


class LogLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    MESSAGE = "MESSAGE"


_STYLES = {
    LogLevel.INFO: {"fg": "blue"},
    LogLevel.WARNING: {"fg": "yellow"},
    LogLevel.ERROR: {"fg": "red", "bold": True},
    LogLevel.MESSAGE: {},
}


class ConsoleLogger:
    """Writes user facing CLI output; errors and warnings go to stderr."""

    def log(
        self, message: str, level: LogLevel = LogLevel.MESSAGE, fg: Optional[str] = None
    ) -> None:
        style = dict(_STYLES[level])
        if fg:
            style["fg"] = fg

        prefix = "" if level is LogLevel.MESSAGE else f"{level.value}: "
        click.secho(
            f"{prefix}{message}",
            err=level in (LogLevel.WARNING, LogLevel.ERROR),
            **style,
        )

    def info(self, message: str) -> None:
        self.log(message, LogLevel.INFO)

    def warning(self, message: str) -> None:
        self.log(message, LogLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, LogLevel.ERROR)

    def message(self, message: str) -> None:
        self.log(message, LogLevel.MESSAGE)

    def success(self, message: str) -> None:
        self.log(message, LogLevel.MESSAGE, fg="green")
