"""ASGI entry point: ``uvicorn main:app``."""

import logging

from app.core.app import create_app
from app.core.config import load_settings

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = create_app(settings)
