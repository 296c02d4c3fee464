"""
Booking API entry point.

Builds the application from ``settings`` and serves it with uvicorn.
The housekeeping sweeps (reminders, no-shows, unpaid cleanup) run for
the lifetime of the server unless HOUSEKEEPING_ENABLED is false.

Usage:
    python main.py                 # serve on 0.0.0.0:8000
    python main.py 127.0.0.1 5000  # custom host and port
"""

import logging
import sys

import uvicorn

from autoglass.api import create_app
from autoglass.config import settings

logger = logging.getLogger(__name__)


def get_app():
    """Application factory for ``uvicorn --factory main:get_app``."""
    return create_app(settings, run_housekeeping=True)


def _run_server(host: str, port: int) -> None:
    logger.info("Starting %s booking API on %s:%d", settings.business.name, host, port)
    uvicorn.run(get_app(), host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    host = sys.argv[1] if len(sys.argv) > 1 else "0.0.0.0"
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 8000
    _run_server(host, port)
