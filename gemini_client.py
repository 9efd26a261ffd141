"""Thin REST wrapper around the Gemini ``generateContent``/``generateVideo`` endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from app.core.config import GEMINI_V1BETA_BASE_URL

logger = logging.getLogger(__name__)


class GeminiConfigurationError(RuntimeError):
    """Raised when no Gemini API key is available; never retryable."""


class GeminiAPIError(RuntimeError):
    """Non-2xx or unparsable response from Gemini."""

    def __init__(self, message: str, status: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class GeminiResponseFormatError(GeminiAPIError):
    """Gemini answered with a body that is not JSON."""


def normalize_base_url(base_url: Optional[str]) -> str:
    value = (base_url or "").strip()
    if not value:
        return GEMINI_V1BETA_BASE_URL
    return value if value.endswith("/") else f"{value}/"


def user_content(text: str) -> dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


def system_content(text: str) -> dict[str, Any]:
    return {"role": "system", "parts": [{"text": text}]}


def extract_text(response: Any) -> str:
    """Concatenate every text part across every candidate."""
    if not isinstance(response, dict):
        return ""
    chunks: list[str] = []
    for candidate in response.get("candidates") or []:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content")
        if not isinstance(content, dict):
            continue
        for part in content.get("parts") or []:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                chunks.append(part["text"])
    return "".join(chunks)


def _error_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return f"Gemini request failed with status {status}"


class GeminiClient:
    """Posts JSON to Gemini with the API key attached as ``?key=``."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = normalize_base_url(base_url)
        self._transport = transport
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _ensure_api_key(self) -> str:
        if not self._api_key:
            raise GeminiConfigurationError("Missing GEMINI_API_KEY env variable")
        return self._api_key

    async def _request(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        api_key = self._ensure_api_key()
        url = f"{self._base_url}{path}"

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(url, params={"key": api_key}, json=payload)

        # Read as text first so the raw body survives a JSON parse failure.
        text = response.text
        data: Any = None
        if text:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as exc:
                logger.error("Gemini %s returned a non-JSON body with %s: %s", path, response.status_code, text)
                raise GeminiResponseFormatError(
                    "Gemini response could not be parsed as JSON",
                    502 if response.is_success else response.status_code,
                    {"raw": text, "parse_error": str(exc)},
                ) from exc

        if not response.is_success:
            message = _error_message(data, response.status_code)
            logger.warning("Gemini %s returned %s: %s", path, response.status_code, message)
            raise GeminiAPIError(message, response.status_code, data)

        return data if isinstance(data, dict) else {}

    async def generate_content(
        self,
        *,
        model: str,
        contents: list[dict[str, Any]],
        system_instruction: Optional[dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        generation_config: Optional[dict[str, Any]] = None,
        safety_settings: Any = None,
        tools: Any = None,
    ) -> dict[str, Any]:
        merged_config = dict(generation_config or {})
        if response_mime_type:
            merged_config["responseMimeType"] = response_mime_type
        if response_schema:
            merged_config["responseSchema"] = response_schema

        payload: dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["system_instruction"] = system_instruction
        if safety_settings:
            payload["safety_settings"] = safety_settings
        if tools:
            payload["tools"] = tools
        if merged_config:
            payload["generationConfig"] = merged_config

        logger.info("Gemini generateContent targeting %s with model %s", self._base_url, model)
        return await self._request(f"models/{quote(model, safe='')}:generateContent", payload)

    async def generate_video(self, *, model: str, request: dict[str, Any]) -> dict[str, Any]:
        logger.info("Gemini generateVideo targeting %s with model %s", self._base_url, model)
        return await self._request(f"models/{quote(model, safe='')}:generateVideo", request)


__all__ = [
    "GeminiAPIError",
    "GeminiClient",
    "GeminiConfigurationError",
    "GeminiResponseFormatError",
    "extract_text",
    "normalize_base_url",
    "system_content",
    "user_content",
]
