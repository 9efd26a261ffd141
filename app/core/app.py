"""Application factory for the FastAPI service."""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import routes
from app.core.config import Settings, load_settings
from app.core.errors import unhandled_exception_handler


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = settings or load_settings()
    app = FastAPI(
        title="Vision Architect Studio",
        description="Craft cinematic image prompts, video storyboards and loop sequences with OpenAI and Gemini",
    )

    origins = list(settings.cors_allow_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests against a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(routes.router)
    return app
