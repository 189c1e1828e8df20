"""
Console logging for deployment runs.

`LOGGER` is the default sink of every `ExecuteContext`. Records are written to
stderr as `time - logger - LEVEL - message`, optionally coloured by level
(`LOG_COLOUR_ENABLED`).
"""

import logging
from enum import StrEnum

from src import settings

_RECORD_FORMAT = "{asctime} - {name} - {levelname} - {message}"


class ConsoleFormat(StrEnum):
    """ANSI SGR codes used for console output.

    <https://en.wikipedia.org/wiki/ANSI_escape_code#Select_Graphic_Rendition_parameters>
    """

    RESET = "\033[0m"
    BOLD = "\033[1m"

    BLACK = "\033[30m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    LIGHT_GREY = "\033[37m"
    HIGHLIGHT_RED = "\033[41m"


LEVEL_COLOURS: dict[int, str] = {
    logging.DEBUG: ConsoleFormat.LIGHT_GREY,
    logging.INFO: ConsoleFormat.BLUE,
    logging.WARNING: ConsoleFormat.YELLOW,
    logging.ERROR: ConsoleFormat.RED,
    logging.CRITICAL: ConsoleFormat.BOLD + ConsoleFormat.HIGHLIGHT_RED + ConsoleFormat.BLACK,
}


class ConsoleFormatter(logging.Formatter):
    """Formatter that wraps each record in its level colour when `colour` is set."""

    def __init__(self, colour: bool = False) -> None:
        super().__init__(_RECORD_FORMAT, style="{")
        self.colour = colour
        self._by_level = {
            level: logging.Formatter(f"{code}{_RECORD_FORMAT}{ConsoleFormat.RESET}", style="{")
            for level, code in LEVEL_COLOURS.items()
        }

    def format(self, record: logging.LogRecord) -> str:
        if self.colour and record.levelno in self._by_level:
            return self._by_level[record.levelno].format(record)
        return super().format(record)


def build_console_handler(level: str, colour: bool) -> logging.Handler:
    """Stream handler at `level` with a `ConsoleFormatter`."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter(colour=colour))
    return handler


LOGGER = logging.getLogger(settings.LOGGER_NAME)
LOGGER.setLevel(settings.LOG_LEVEL)
LOGGER.addHandler(build_console_handler(settings.LOG_LEVEL, settings.LOG_COLOUR_ENABLED))
