"""Environment-driven settings for the Vision Architect API."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

GEMINI_V1BETA_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/"


def _env(name: str, default: str = "") -> str:
    value = os.getenv(name, "").strip()
    return value or default


def _truthy_env(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off", ""}


def parse_model_list(value: str | None, fallback: list[str]) -> list[str]:
    """Split a comma or whitespace separated model list, falling back when empty."""
    if not value:
        return list(fallback)
    entries = [entry.strip() for entry in re.split(r"[,\s]+", value) if entry.strip()]
    return entries or list(fallback)


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None
    openai_model: str
    gemini_api_key: str | None
    gemini_api_base_url: str
    director_require_api_key: bool
    director_model: str
    gemini_image_models: tuple[str, ...]
    gemini_video_model: str
    video_plan_default_model: str
    loop_assistant_system_prompt: str | None
    cors_allow_origins: tuple[str, ...]
    log_level: str


def load_settings() -> Settings:
    openai_model = _env("OPENAI_MODEL", "gpt-4o-mini")
    origins = [origin.strip() for origin in _env("CORS_ALLOW_ORIGINS", "*").split(",") if origin.strip()]

    return Settings(
        openai_api_key=_env("OPENAI_API_KEY") or None,
        openai_model=openai_model,
        gemini_api_key=_env("GEMINI_API_KEY") or _env("GOOGLE_API_KEY") or None,
        gemini_api_base_url=_env("GEMINI_API_BASE_URL", GEMINI_V1BETA_BASE_URL),
        director_require_api_key=_truthy_env("DIRECTOR_CORE_REQUIRE_API_KEY", "0"),
        director_model=_env("DIRECTOR_CORE_MODEL", "gemini-1.5-pro"),
        gemini_image_models=tuple(
            parse_model_list(os.getenv("GEMINI_IMAGE_MODELS"), ["gemini-2.5-flash-image"])
        ),
        gemini_video_model=_env("GEMINI_VIDEO_MODEL", "veo-3.0-generate-001"),
        # The video-plan route falls back to this id when the caller omits llmModel.
        video_plan_default_model=_env("VIDEO_PLAN_DEFAULT_MODEL", openai_model),
        loop_assistant_system_prompt=_env("LOOP_ASSISTANT_SYSTEM_PROMPT") or None,
        cors_allow_origins=tuple(origins or ["*"]),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )


def get_settings() -> Settings:
    """FastAPI dependency; reads the environment on every request."""
    return load_settings()


__all__ = ["GEMINI_V1BETA_BASE_URL", "Settings", "get_settings", "load_settings", "parse_model_list"]
