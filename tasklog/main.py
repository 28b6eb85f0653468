from __future__ import annotations

import logging
import sys

import uvicorn

from tasklog.api.app import create_app
from tasklog.config import SETTINGS
from tasklog.infra.db import init_db
from tasklog.infra.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    try:
        init_db()
    except Exception:  # noqa: BLE001
        logger.exception("Database is not reachable at startup")
        sys.exit(1)

    app = create_app()
    logger.info("Serving tasklog on %s:%s", SETTINGS.host, SETTINGS.port)
    uvicorn.run(app, host=SETTINGS.host, port=SETTINGS.port, log_config=None)


if __name__ == "__main__":
    main()
