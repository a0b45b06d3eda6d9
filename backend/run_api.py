#!/usr/bin/env python3
"""
Start the SteadyLab API with uvicorn for local development.

Host, port and auto-reload come from config.settings.
"""

import logging

import uvicorn

from config.settings import APP_NAME, APP_VERSION, API_HOST, API_PORT, API_RELOAD, LOGGING_CONFIG

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(**LOGGING_CONFIG)
    logger.info(f"{APP_NAME} {APP_VERSION} listening on {API_HOST}:{API_PORT} "
                f"(docs at /docs, reload={'on' if API_RELOAD else 'off'})")

    uvicorn.run("api.main:app", host=API_HOST, port=API_PORT, reload=API_RELOAD)


if __name__ == "__main__":
    main()
