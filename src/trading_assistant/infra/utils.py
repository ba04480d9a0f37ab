import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Console | None = None) -> logging.Logger:
    """
    Configures the root logger with Rich formatting and returns the package logger.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )
    return logging.getLogger("trading_assistant")
