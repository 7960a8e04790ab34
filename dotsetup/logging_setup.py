"""Console and log-file output for a setup run."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger("dotsetup")


def setup_logging(log_file: Path, level: int = logging.DEBUG) -> logging.Handler:
    """Start the run log and attach a file handler to the dotsetup logger."""
    log_file = Path(log_file)
    for handler in logger.handlers:
        if (
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == log_file.resolve()
        ):
            return handler

    log_file.parent.mkdir(parents=True, exist_ok=True)
    with open(log_file, "w") as f:
        f.write(f"Dotfiles setup log {datetime.now():%a %b %d %H:%M:%S %Y}\n")
        f.write("===========================\n")

    handler = logging.FileHandler(log_file, mode="a")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return handler


def close_logging() -> None:
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)


class Reporter:
    """Writes colored status lines to the console and mirrors them to the log."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console(highlight=False)
        self.verbose = verbose

    def section(self, message: str):
        self.console.print(f"\n[blue]==>[/blue] {escape(message)}")
        logger.info(f"==> {message}")

    def status(self, message: str):
        self.console.print(f"[green][*][/green] {escape(message)}")
        logger.info(message)

    def warning(self, message: str):
        self.console.print(f"[yellow][!][/yellow] {escape(message)}")
        logger.warning(message)

    def error(self, message: str):
        self.console.print(f"[red][!][/red] {escape(message)}")
        logger.error(message)

    def debug(self, message: str):
        if self.verbose:
            self.console.print(f"[dim]{escape(message)}[/dim]")
        logger.debug(message)

    def echo(self, line: str):
        self.console.print(escape(line))
