"""Director core: one Gemini call per director request, folded into a success/error result."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from google.genai import errors as genai_errors

import image_service
from app.core.config import Settings
from director_types import (
    DirectorCoreError,
    DirectorCoreResult,
    DirectorCoreSuccess,
    DirectorImage,
    DirectorMediaAsset,
    DirectorRequest,
    DirectorResponse,
    DirectorVideo,
    LoopSequencePayload,
    VideoPlanFormatError,
    parse_video_plan_response,
)
from gemini_client import (
    GeminiAPIError,
    GeminiClient,
    GeminiConfigurationError,
    GeminiResponseFormatError,
    extract_text,
    system_content,
)
from image_prompt_parser import parse_structured_text
from model_registry import JSON_MIME_TYPE
from openai_chat import strip_code_fence
from prompts import (
    DIRECTOR_CORE_SYSTEM_PROMPT,
    DIRECTOR_VIDEO_PLAN_SCHEMA,
    build_director_prompt,
    build_render_request,
)

logger = logging.getLogger(__name__)

PROVIDER = "gemini"
CALLER_KEY_HEADERS = ("x-gemini-api-key", "x-google-api-key", "x-provider-api-key")
RAW_EXCERPT_LIMIT = 500


@dataclass(frozen=True)
class DirectorCredentials:
    gemini_api_key: Optional[str] = None
    from_caller: bool = False


def caller_api_key(headers: Mapping[str, str]) -> Optional[str]:
    """First non-blank provider key supplied by the caller, checked in header priority order."""
    for name in CALLER_KEY_HEADERS:
        value = headers.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_credentials(headers: Mapping[str, str], settings: Settings) -> DirectorCredentials:
    key = caller_api_key(headers)
    if key:
        return DirectorCredentials(gemini_api_key=key, from_caller=True)
    return DirectorCredentials(gemini_api_key=settings.gemini_api_key)


def _error(message: str, status: int, details: Any = None) -> DirectorCoreError:
    return DirectorCoreError(provider=PROVIDER, error=message, status=status, details=details)


def _format_error(raw_text: str, reason: str, status: int = 502) -> DirectorCoreError:
    logger.error("Director response had an invalid format (%s): %s", reason, raw_text)
    return _error(
        "Director response had an invalid format",
        status,
        {"reason": reason, "raw": raw_text[:RAW_EXCERPT_LIMIT]},
    )


def _request_payload(request: DirectorRequest) -> dict[str, Any]:
    data = request.payload.model_dump(by_alias=True, exclude_none=True)
    if isinstance(request.payload, LoopSequencePayload):
        # Loop requests carry the option lists flat on the payload.
        data.update(data.pop("selected_options", {}))
    return data


def _selection(request: DirectorRequest) -> dict[str, list[str]]:
    payload = request.payload
    options = getattr(payload, "selected_options", None) or getattr(payload, "cinematic_control_options", None)
    return options.by_category() if options is not None else {}


def _user_turn(prompt: str, images: list[str]) -> dict[str, Any]:
    parts: list[dict[str, Any]] = [{"text": prompt}]
    for image in images:
        mime_type, data = image_service.split_data_url(image)
        parts.append({"inlineData": {"mimeType": mime_type or "image/png", "data": data}})
    return {"role": "user", "parts": parts}


async def _generate_json(
    client: GeminiClient,
    settings: Settings,
    request: DirectorRequest,
    response_schema: Optional[dict[str, Any]] = None,
) -> tuple[str, Any]:
    prompt = build_director_prompt(request.mode, _request_payload(request), _selection(request), len(request.images))
    response = await client.generate_content(
        model=settings.director_model,
        contents=[_user_turn(prompt, request.images)],
        system_instruction=system_content(DIRECTOR_CORE_SYSTEM_PROMPT),
        response_mime_type=JSON_MIME_TYPE,
        response_schema=response_schema,
    )
    text = extract_text(response).strip()
    if not text:
        return "", None
    return text, json.loads(strip_code_fence(text))


async def _image_prompt(
    request: DirectorRequest, credentials: DirectorCredentials, settings: Settings, client: GeminiClient
) -> DirectorCoreResult:
    if not settings.gemini_image_models:
        return _error("No Gemini image model is configured.", 500)
    model = settings.gemini_image_models[0]

    references = [image_service.decode_reference_image(image) for image in request.images]
    prompt = build_director_prompt(request.mode, _request_payload(request), _selection(request), len(references))
    result = await image_service.generate_images(
        api_key=credentials.gemini_api_key,
        model=model,
        prompt=prompt,
        references=references,
        system_instruction=DIRECTOR_CORE_SYSTEM_PROMPT,
    )
    if not result.images and not result.text:
        return _error("Gemini returned no image or prompt text", 502)

    metadata: dict[str, Any] = {"model": model}
    sections = parse_structured_text(result.text) if result.text else None
    if sections:
        metadata["sections"] = sections

    caption = sections.get("summary") if sections else None
    return DirectorCoreSuccess(
        mode=request.mode,
        provider=PROVIDER,
        images=[DirectorImage(mime_type=image.mime_type, data=image.data, alt_text=caption or None) for image in result.images],
        prompt_text=result.text or None,
        metadata=metadata,
    )


def _render_job(data: dict[str, Any]) -> DirectorVideo:
    eta = data.get("etaSeconds")
    if eta is None:
        eta = data.get("eta")
    return DirectorVideo(
        job_id=data.get("jobId") or data.get("name") or "gemini-job",
        status=data.get("status") or data.get("state") or "submitted",
        eta_seconds=eta,
        raw=data,
    )


async def _video_plan(
    request: DirectorRequest, credentials: DirectorCredentials, settings: Settings, client: GeminiClient
) -> DirectorCoreResult:
    try:
        text, parsed = await _generate_json(client, settings, request, DIRECTOR_VIDEO_PLAN_SCHEMA)
    except json.JSONDecodeError as exc:
        return _format_error(getattr(exc, "doc", ""), "response was not valid JSON")
    if not text:
        return _error("Gemini returned an empty response", 502)

    try:
        plan = parse_video_plan_response(parsed)
    except VideoPlanFormatError as exc:
        return _format_error(text, str(exc))

    storyboard = plan.model_dump(exclude_none=True)
    videos = None
    if request.payload.render:
        job = await client.generate_video(
            model=settings.gemini_video_model,
            request=build_render_request(storyboard, request.payload.aspect_ratio),
        )
        videos = [_render_job(job)]

    return DirectorCoreSuccess(
        mode=request.mode,
        provider=PROVIDER,
        storyboard=storyboard,
        videos=videos,
        text=text,
        metadata={"model": settings.director_model},
    )


async def _loop_sequence(
    request: DirectorRequest, credentials: DirectorCredentials, settings: Settings, client: GeminiClient
) -> DirectorCoreResult:
    try:
        text, parsed = await _generate_json(client, settings, request)
    except json.JSONDecodeError as exc:
        return _format_error(getattr(exc, "doc", ""), "response was not valid JSON")
    if not text:
        return _error("Gemini returned an empty response", 502)

    cycles = parsed.get("cycles") if isinstance(parsed, dict) else parsed
    if not isinstance(cycles, list) or not cycles:
        return _format_error(text, "response did not include loop cycles")

    loop = {"cycles": cycles, "loopLength": request.payload.loop_length or len(cycles)}
    return DirectorCoreSuccess(
        mode=request.mode,
        provider=PROVIDER,
        loop=loop,
        text=text,
        metadata={"model": settings.director_model},
    )


_Handler = Callable[[DirectorRequest, DirectorCredentials, Settings, GeminiClient], Awaitable[DirectorCoreResult]]

_HANDLERS: dict[str, _Handler] = {
    "image_prompt": _image_prompt,
    "video_plan": _video_plan,
    "loop_sequence": _loop_sequence,
}


async def call_director_core(
    request: DirectorRequest,
    credentials: DirectorCredentials,
    settings: Settings,
    gemini_client: Optional[GeminiClient] = None,
) -> DirectorCoreResult:
    """Run one director request. Provider failures come back as ``DirectorCoreError``, never raised."""
    if not credentials.gemini_api_key:
        return _error(
            "Missing credentials for Gemini. Provide an API key or configure GEMINI_API_KEY or GOOGLE_API_KEY.",
            500,
        )

    client = gemini_client or GeminiClient(credentials.gemini_api_key, settings.gemini_api_base_url)
    try:
        return await _HANDLERS[request.mode](request, credentials, settings, client)
    except GeminiConfigurationError as exc:
        return _error(str(exc), 500)
    except GeminiResponseFormatError as exc:
        return _format_error(exc.details["raw"], "response body was not JSON", exc.status)
    except GeminiAPIError as exc:
        return _error(exc.message, exc.status or 502, exc.details)
    except genai_errors.APIError as exc:
        logger.warning("Gemini image call failed with %s: %s", exc.code, exc.message)
        return _error(exc.message or str(exc), exc.code or 502, exc.details)
    except image_service.ReferenceImageError as exc:
        return _error(str(exc), 400)


def _image_media(success: DirectorCoreSuccess) -> list[DirectorMediaAsset]:
    return [
        DirectorMediaAsset(
            id=f"image-{index}",
            kind="image",
            mime_type=image.mime_type,
            base64=image.data,
            caption=image.alt_text,
        )
        for index, image in enumerate(success.images or [], start=1)
    ]


def _video_media(success: DirectorCoreSuccess) -> list[DirectorMediaAsset]:
    media = []
    for index, video in enumerate(success.videos or [], start=1):
        details = {"status": video.status, "etaSeconds": video.eta_seconds}
        media.append(
            DirectorMediaAsset(
                id=video.job_id or f"video-{index}",
                kind="video",
                mime_type=video.mime_type,
                url=video.url,
                poster_url=video.poster_image,
                frames=[{"url": frame} for frame in video.frames],
                metadata={key: value for key, value in details.items() if value is not None} or None,
            )
        )
    return media


def map_director_core_success(success: DirectorCoreSuccess) -> DirectorResponse:
    """Flatten a mode-specific success into the text/result/media shape the builders render."""
    if success.mode == "image_prompt":
        return DirectorResponse(
            mode=success.mode,
            provider=success.provider,
            text=success.prompt_text,
            result=success.prompt_text,
            media=_image_media(success),
            fallback_text=success.prompt_text,
            metadata=success.metadata,
        )

    if success.mode == "video_plan":
        text = json.dumps(success.storyboard, indent=2) if success.storyboard is not None else success.text
        return DirectorResponse(
            mode=success.mode,
            provider=success.provider,
            text=text,
            result=success.storyboard,
            media=_video_media(success),
            fallback_text=success.text,
            metadata=success.metadata,
        )

    text = json.dumps(success.loop, indent=2) if success.loop is not None else success.text
    return DirectorResponse(
        mode=success.mode,
        provider=success.provider,
        text=text,
        result=success.loop,
        media=[],
        fallback_text=success.text,
        metadata=success.metadata,
    )


__all__ = [
    "CALLER_KEY_HEADERS",
    "DirectorCredentials",
    "call_director_core",
    "caller_api_key",
    "map_director_core_success",
    "resolve_credentials",
]
