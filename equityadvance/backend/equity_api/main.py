# equity_api/main.py
from __future__ import annotations

import logging

from .config import settings
from .entrypoints.fastapi_app import create_app


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s:%(name)s:%(message)s",
    )
    # vendor URLs carry API keys in query strings (Google); keep httpx quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


_configure_logging()

app = create_app()
