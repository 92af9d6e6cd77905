import logging
import logging.config

from rich.console import Console


def configure_logging(level: int | str = logging.INFO, *, console: Console | None = None):
    """Send the package's logs to stderr, through rich."""
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": "{name}: {message}", "style": "{"},
        },
        "handlers": {
            "console": {
                "()": "rich.logging.RichHandler",
                "level": "DEBUG",
                "formatter": "simple",
                "console": console or Console(stderr=True),
                "show_time": False,
                "show_path": False,
            },
        },
        "loggers": {
            "interfacegen": {
                "handlers": ["console"],
                "level": level,
            },
            # Hides per-module indexing messages.
            "interfacegen._analyzer.oracle": {
                "level": "INFO",
            },
        },
    }
    logging.config.dictConfig(config)
