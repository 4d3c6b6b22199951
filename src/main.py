"""Run the read API and the APR scheduler.

Usage: `python -m src.main` from the directory holding `config.json`.
"""

import logging

import uvicorn

from src.api.app import SHUTDOWN_TIMEOUT_SECONDS, create_app
from src.core.config import settings
from src.core.logging_setup import configure_logging

log = logging.getLogger(__name__)


def main() -> int:
    configure_logging(settings.log_level)
    log.info(
        f"Config loaded: port={settings.port} networks={[n.title for n in settings.networks]} "
        f"apr_update_minutes={settings.apr_update_minutes}"
    )

    app = create_app(settings)
    log.info(f"Starting server on port {settings.port}")
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(settings.port),
        timeout_graceful_shutdown=int(SHUTDOWN_TIMEOUT_SECONDS),
        # keep the logging configured above
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
