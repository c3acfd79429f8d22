import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that drown out job / request logs at INFO
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "sqlalchemy.orm": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "urllib3": logging.WARNING,
    "pypdf": logging.ERROR,
}


def _rich_handler() -> RichHandler:
    console = Console(force_terminal=True, color_system="truecolor")
    return RichHandler(
        console=console,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        show_path=True,
        log_time_format="%H:%M:%S.%f",
    )


class CustomLogger:
    """
    Rich console logging for the whole vault.

    The root configuration is installed once, on first use; every logger
    handed out afterwards is a child of `app_name` and inherits it.
    Level comes from LOG_LEVEL (default INFO).
    """

    _configured = False

    def __init__(self, app_name: str = "doc_vault"):
        self.app_name = app_name
        self._configure()

    @classmethod
    def _configure(cls) -> None:
        if cls._configured:
            return
        logging.basicConfig(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[_rich_handler()],
        )
        for name, level in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(level)
        cls._configured = True

    def get_logger(self, name: str | None = None) -> logging.Logger:
        if name is None:
            return logging.getLogger(self.app_name)
        return logging.getLogger(f"{self.app_name}.{name}")
