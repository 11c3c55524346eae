"""
Entrypoint serving the gym plan API with uvicorn.
"""

from __future__ import annotations

import logging

import uvicorn

from .config import SETTINGS
from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    logger.info("Starting API on %s:%d", SETTINGS.HOST, SETTINGS.PORT)
    uvicorn.run(
        "gym_plan.server.main:app",
        host=SETTINGS.HOST,
        port=SETTINGS.PORT,
        log_level=SETTINGS.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
