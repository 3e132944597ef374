from __future__ import annotations

import logging
import os

from aiohttp import web

from config import (
    HOST,
    LOG_BACKUP_COUNT,
    LOG_FILE,
    LOG_LEVEL,
    LOG_MAX_BYTES,
    PORT,
)
from server import create_app


def setup_logging() -> None:
    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    log_dir = os.path.dirname(LOG_FILE) or "."

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    handlers = []
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    handlers.append(console)
    try:
        from logging.handlers import RotatingFileHandler

        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except OSError:
        # fallback to console only
        pass

    logging.basicConfig(level=level, handlers=handlers)


logger = logging.getLogger("leetscore")


def main() -> None:
    setup_logging()
    app = create_app()
    logger.info("Server running on port %d", PORT)
    web.run_app(app, host=HOST, port=PORT, print=None)


if __name__ == "__main__":
    main()
