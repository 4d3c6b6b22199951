import logging
import logging.config

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "info") -> None:
    """Configure root logging once at startup.

    Unknown level names fall back to INFO.
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "custom": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "custom"},
            },
            "root": {"level": resolved, "handlers": ["console"]},
            # SQL echo stays off unless explicitly asked for
            "loggers": {"sqlalchemy.engine": {"level": logging.WARNING}},
        }
    )
