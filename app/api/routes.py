"""Router definitions for the Vision Architect FastAPI service."""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional, Tuple

import openai
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

import director_client
import openai_chat
from app.core.config import Settings, get_settings
from app.core.errors import error_response
from director_types import DIRECTOR_MODES
from gemini_client import (
    GeminiAPIError,
    GeminiClient,
    GeminiConfigurationError,
    GeminiResponseFormatError,
    extract_text,
    system_content,
    user_content,
)
from image_prompt_parser import extract_section, parse_settings
from model_registry import CAPABILITIES, JSON_MIME_TYPE, MODEL_DEFINITIONS, VIDEO_PLAN_RESPONSE_SCHEMA
from prompts import (
    IMAGE_PROMPT_BUILDER_SYSTEM_PROMPT,
    LOOP_ASSISTANT_OPENING_TURN,
    LOOP_ASSISTANT_SYSTEM_PROMPT,
    LOOP_CYCLE_SYSTEM_PROMPT,
    VIDEO_PLAN_SYSTEM_PROMPT,
    build_confirm_stage_prompt,
    build_generate_stage_prompt,
    build_loop_cycle_prompt,
    build_seed_stage_prompt,
    build_video_plan_prompt,
)
from validators import (
    ImagePromptStage,
    VideoPlanRequest,
    validate_chat_messages,
    validate_director_request,
    validate_image_prompt_stage,
    validate_loop_cycle_request,
    validate_video_plan_request,
)
from visual_options import CATEGORIES, find_visual_snippet, group_options, search_options

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "Vision Architect Studio"
CONTEXT_COOKIE_NAME = "vision_context"
CONTEXT_TTL_SECONDS = 60 * 60 * 12  # 12 hours
OPENAI_NOT_CONFIGURED = "OpenAI API key not configured"


# --- Dependencies ---
def get_gemini_client(request: Request, settings: Settings = Depends(get_settings)) -> GeminiClient:
    """Gemini REST client keyed by the caller's header key, else the server key."""
    api_key = director_client.caller_api_key(request.headers) or settings.gemini_api_key
    return GeminiClient(api_key, settings.gemini_api_base_url)


# --- Utilities ---
async def _read_json(request: Request) -> Tuple[Any, bool]:
    try:
        return await request.json(), True
    except ValueError:
        return None, False


def _parse_json_object(text: str, label: str) -> Optional[Dict[str, Any]]:
    """Parse provider text as a JSON object; log the raw text and return ``None`` otherwise."""
    try:
        parsed = json.loads(openai_chat.strip_code_fence(text))
    except json.JSONDecodeError:
        logger.error("Failed to parse %s response as JSON: %s", label, text)
        return None
    if not isinstance(parsed, dict):
        logger.error("%s response was not a JSON object: %s", label, text)
        return None
    return parsed


def _director_error(
    status: int,
    message: str,
    mode: Optional[str] = None,
    provider: Optional[str] = None,
    details: Any = None,
) -> JSONResponse:
    extra: Dict[str, Any] = {"success": False}
    if mode:
        extra["mode"] = mode
    if provider:
        extra["provider"] = provider
    extra["status"] = status
    return error_response(message, status, details, **extra)


# --- Service status ---
@router.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "openai_configured": bool(settings.openai_api_key),
        "gemini_configured": bool(settings.gemini_api_key),
        "director_model": settings.director_model,
        "video_plan_default_model": settings.video_plan_default_model,
    }


@router.get("/api/models")
async def list_models(capability: Optional[str] = Query(None, description="imagePrompt or videoPlan")):
    if capability is not None and capability not in CAPABILITIES:
        return error_response(f"Unknown capability: {capability}", 400)

    models = [
        {
            "id": definition.id,
            "label": definition.label,
            "provider": definition.provider,
            "description": definition.description,
            "capabilities": list(definition.capabilities),
        }
        for definition in MODEL_DEFINITIONS
        if capability is None or definition.supports(capability)
    ]
    return {"models": models}


@router.get("/api/visual-options")
async def visual_options(q: Optional[str] = Query(None, description="Filter by label, tooltip or alias")):
    categories = {}
    for category, options in CATEGORIES.items():
        matched = search_options(options, q) if q else options
        categories[category] = group_options(matched)
    return {"categories": categories}


# --- Director ---
@router.post("/api/director")
async def director(
    request: Request,
    settings: Settings = Depends(get_settings),
    gemini: GeminiClient = Depends(get_gemini_client),
):
    body, ok = await _read_json(request)
    if not ok:
        return _director_error(400, "Invalid JSON body")

    raw_mode = body.get("mode") if isinstance(body, dict) else None
    mode = raw_mode if raw_mode in DIRECTOR_MODES else None

    validation = validate_director_request(body)
    if not validation.ok:
        return _director_error(validation.status, validation.error, mode)

    credentials = director_client.resolve_credentials(request.headers, settings)
    if settings.director_require_api_key and not credentials.from_caller:
        return _director_error(401, "A provider API key is required for director requests", mode)

    try:
        result = await director_client.call_director_core(validation.value, credentials, settings, gemini)
    except Exception:
        logger.exception("Unhandled error running director request for %s", mode)
        return _director_error(500, "Director request failed", mode, director_client.PROVIDER)

    if not result.success:
        status = result.status or 500
        logger.warning("Director core failed for %s with %s: %s", mode, status, result.error)
        return _director_error(status, result.error, mode, result.provider, result.details)

    return director_client.map_director_core_success(result).to_json()


# --- Video plan ---
async def _video_plan_with_gemini(plan: VideoPlanRequest, prompt: str, gemini: GeminiClient) -> Any:
    try:
        response = await gemini.generate_content(
            model=plan.model,
            contents=[user_content(prompt)],
            system_instruction=system_content(VIDEO_PLAN_SYSTEM_PROMPT),
            response_mime_type=plan.capability.response_mime_type or JSON_MIME_TYPE,
            response_schema=plan.capability.response_schema or VIDEO_PLAN_RESPONSE_SCHEMA,
        )
    except GeminiConfigurationError:
        logger.error("Gemini API key is not configured")
        return error_response("Gemini API key not configured", 500)
    except GeminiResponseFormatError:
        return error_response("Failed to generate video plan", 502)
    except GeminiAPIError as exc:
        return error_response(exc.message, exc.status or 502, exc.details)

    text = extract_text(response).strip()
    if not text:
        logger.error("Gemini returned no text for video plan with model %s", plan.model)
        return error_response("Gemini returned an empty response", 502)

    parsed = _parse_json_object(text, "Gemini video plan")
    if parsed is None:
        return error_response("Failed to generate video plan", 502)
    return parsed


async def _video_plan_with_openai(plan: VideoPlanRequest, prompt: str, settings: Settings) -> Any:
    if not settings.openai_api_key:
        logger.error("Missing OPENAI_API_KEY env variable")
        return error_response(OPENAI_NOT_CONFIGURED, 500)

    try:
        content = await openai_chat.complete_json(
            VIDEO_PLAN_SYSTEM_PROMPT, prompt, model=plan.model, api_key=settings.openai_api_key
        )
    except openai.APIStatusError as exc:
        return error_response(exc.message, exc.status_code)

    if not content:
        logger.error("No content returned from OpenAI for video plan")
        return error_response("OpenAI returned an empty response", 502)

    parsed = _parse_json_object(content, "OpenAI video plan")
    if parsed is None:
        return error_response("Failed to generate video plan", 502)
    return parsed


@router.post("/api/generate-video-plan")
async def generate_video_plan(
    request: Request,
    settings: Settings = Depends(get_settings),
    gemini: GeminiClient = Depends(get_gemini_client),
):
    body, ok = await _read_json(request)
    if not ok:
        return error_response("Invalid JSON body", 400)

    validation = validate_video_plan_request(body, settings.video_plan_default_model)
    if not validation.ok:
        return error_response(validation.error, validation.status)

    plan = validation.value
    prompt = build_video_plan_prompt(
        plan.script_text,
        plan.tone,
        plan.visual_style,
        plan.aspect_ratio,
        vision_seed=plan.vision_seed,
        lighting=plan.lighting,
        composition=plan.composition,
    )
    logger.info("Generating video plan with %s model %s", plan.provider, plan.model)

    try:
        if plan.provider == "gemini":
            return await _video_plan_with_gemini(plan, prompt, gemini)
        return await _video_plan_with_openai(plan, prompt, settings)
    except Exception:
        logger.exception("Unhandled error generating video plan")
        return error_response("Failed to generate video plan", 500)


# --- Loop cycle ---
@router.post("/api/generate-loop-cycle")
async def generate_loop_cycle(request: Request, settings: Settings = Depends(get_settings)):
    failure = "Failed to generate loop cycle"

    body, ok = await _read_json(request)
    if not ok:
        return error_response("Invalid JSON body", 400)

    validation = validate_loop_cycle_request(body)
    if not validation.ok:
        return error_response(validation.error, validation.status)

    if not settings.openai_api_key:
        logger.error("Missing OPENAI_API_KEY env variable")
        return error_response(OPENAI_NOT_CONFIGURED, 500)

    cycle = validation.value
    prompt = build_loop_cycle_prompt(
        cycle.vision_seed,
        cycle.inspiration_references,
        cycle.start_frames,
        cycle.previous_cycles,
        cycle.predictive_mode,
    )

    try:
        content = await openai_chat.complete_json(
            LOOP_CYCLE_SYSTEM_PROMPT, prompt, model=settings.openai_model, api_key=settings.openai_api_key
        )
    except Exception:
        logger.exception("Unhandled error generating loop cycle")
        return error_response(failure, 500)

    if not content:
        logger.error("No content returned from OpenAI for loop cycle")
        return error_response(failure, 500)

    parsed = _parse_json_object(content, "OpenAI loop cycle")
    if parsed is None:
        return error_response(failure, 500)
    return parsed


# --- Loop assistant ---
@router.post("/api/loop-assistant")
async def loop_assistant(
    request: Request,
    settings: Settings = Depends(get_settings),
    gemini: GeminiClient = Depends(get_gemini_client),
):
    body, ok = await _read_json(request)
    if not ok:
        return error_response("Invalid JSON body", 400)
    if not isinstance(body, dict):
        return error_response("Body must be an object", 400)

    messages = body.get("messages")
    if messages is None:
        messages = body.get("history")
    validation = validate_chat_messages(messages)
    if not validation.ok:
        return error_response(validation.error, validation.status)

    contents = [
        {"role": "model" if message.role == "assistant" else "user", "parts": [{"text": message.content}]}
        for message in validation.value
    ] or [user_content(LOOP_ASSISTANT_OPENING_TURN)]

    system_prompt = settings.loop_assistant_system_prompt or LOOP_ASSISTANT_SYSTEM_PROMPT
    try:
        response = await gemini.generate_content(
            model=settings.director_model,
            contents=contents,
            system_instruction=system_content(system_prompt),
        )
    except GeminiConfigurationError:
        return error_response(
            "Missing credentials for Gemini chat. Provide an API key or configure GEMINI_API_KEY or GOOGLE_API_KEY.",
            401,
        )
    except GeminiResponseFormatError:
        return error_response("Gemini returned an unreadable reply", 502)
    except GeminiAPIError as exc:
        return error_response(exc.message, exc.status or 502, exc.details)

    reply = extract_text(response).strip()
    if not reply:
        return error_response("Gemini returned an empty reply", 502)
    return {"reply": reply}


# --- Conversational image prompt builder ---
def _base64url_encode(value: str) -> str:
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")


def _base64url_decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def _read_context(request: Request) -> Dict[str, Any]:
    raw = request.cookies.get(CONTEXT_COOKIE_NAME)
    if not raw:
        return {"refinementCommands": []}
    try:
        parsed = json.loads(_base64url_decode(raw))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        logger.warning("Failed to parse conversation context cookie: %s", exc)
        return {"refinementCommands": []}
    if not isinstance(parsed, dict):
        return {"refinementCommands": []}
    parsed["refinementCommands"] = parsed.get("refinementCommands") or []
    return parsed


def _with_context(body: Dict[str, Any], context: Dict[str, Any]) -> JSONResponse:
    response = JSONResponse(content=body)
    response.set_cookie(
        CONTEXT_COOKIE_NAME,
        _base64url_encode(json.dumps(context)),
        max_age=CONTEXT_TTL_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return response


def _stage_snippets(stage: ImagePromptStage) -> Dict[str, Optional[str]]:
    snippets = {}
    for category, option_id in stage.option_ids.items():
        option = find_visual_snippet(CATEGORIES[category], option_id)
        snippets[category] = option.prompt_snippet if option else None
    return snippets


async def _builder_completion(prompt: str, settings: Settings) -> str:
    return await openai_chat.complete_text(
        IMAGE_PROMPT_BUILDER_SYSTEM_PROMPT, prompt, model=settings.openai_model, api_key=settings.openai_api_key
    )


@router.post("/api/generate-image-prompt")
async def generate_image_prompt(request: Request, settings: Settings = Depends(get_settings)):
    body, ok = await _read_json(request)
    if not ok:
        return error_response("Invalid JSON body", 400)

    validation = validate_image_prompt_stage(body)
    if not validation.ok:
        return error_response(validation.error, validation.status)

    stage = validation.value
    context = _read_context(request)
    needs_model = stage.stage in ("seed", "generate") or (stage.stage == "confirm" and not stage.confirmed)
    if needs_model and not settings.openai_api_key:
        logger.error("Missing OPENAI_API_KEY env variable")
        return error_response(OPENAI_NOT_CONFIGURED, 500)

    try:
        if stage.stage == "seed":
            snippets = _stage_snippets(stage)
            content = await _builder_completion(
                build_seed_stage_prompt(stage.vision_seed_text, stage.model_choice, snippets), settings
            )
            summary = extract_section(content, "Summary")
            mood_memory = extract_section(content, "Mood Memory") or ""
            if not summary:
                logger.error("Missing summary in seed stage response: %s", content)
                return error_response("Failed to generate summary", 500)

            context = {
                "visionSeedText": stage.vision_seed_text,
                "modelChoice": stage.model_choice,
                "snippets": snippets,
                "summary": summary,
                "summaryConfirmed": False,
                "refinementCommands": [],
                "moodMemory": mood_memory,
            }
            return _with_context(
                {"stage": "seed", "summary": summary, "moodMemory": mood_memory, "summaryConfirmed": False},
                context,
            )

        if stage.stage == "confirm":
            if not context.get("summary"):
                return error_response("No summary to confirm", 400)

            if stage.confirmed:
                context["summaryConfirmed"] = True
                return _with_context(
                    {
                        "stage": "confirm",
                        "summary": context["summary"],
                        "moodMemory": context.get("moodMemory") or "",
                        "summaryConfirmed": True,
                    },
                    context,
                )

            if not stage.feedback:
                return error_response("Feedback is required to revise the summary", 400)

            content = await _builder_completion(
                build_confirm_stage_prompt(
                    context.get("visionSeedText") or "",
                    context.get("modelChoice"),
                    context["summary"],
                    stage.feedback,
                    context.get("snippets") or {},
                ),
                settings,
            )
            summary = extract_section(content, "Summary")
            mood_memory = extract_section(content, "Mood Memory") or context.get("moodMemory") or ""
            if not summary:
                logger.error("Missing summary in confirm stage response: %s", content)
                return error_response("Failed to refine summary", 500)

            context.update(summary=summary, summaryConfirmed=False, moodMemory=mood_memory)
            return _with_context(
                {"stage": "confirm", "summary": summary, "moodMemory": mood_memory, "summaryConfirmed": False},
                context,
            )

        if stage.stage == "refine":
            if not context.get("summary"):
                return error_response("No active conversation", 400)

            context["refinementCommands"] = stage.refinement_commands
            if stage.mood_memory:
                context["moodMemory"] = stage.mood_memory
            return _with_context(
                {
                    "stage": "refine",
                    "summary": context["summary"],
                    "moodMemory": context.get("moodMemory") or "",
                    "summaryConfirmed": bool(context.get("summaryConfirmed")),
                    "refinementCommands": context["refinementCommands"],
                },
                context,
            )

        # generate
        if not (context.get("summary") and context.get("modelChoice") and context.get("visionSeedText")):
            return error_response("Missing required context to generate prompts", 400)

        content = await _builder_completion(
            build_generate_stage_prompt(
                context["visionSeedText"],
                context["modelChoice"],
                context["summary"],
                context.get("moodMemory"),
                context["refinementCommands"],
                context.get("snippets") or {},
            ),
            settings,
        )
        positive = extract_section(content, "Positive Prompt")
        negative = extract_section(content, "Negative Prompt")
        settings_section = extract_section(content, "Settings")
        if not (positive and negative and settings_section):
            logger.error("Incomplete generate stage response: %s", content)
            return error_response("Failed to generate image prompt", 500)

        summary = extract_section(content, "Summary") or context["summary"]
        mood_memory = extract_section(content, "Mood Memory") or context.get("moodMemory") or ""
        generated_settings = parse_settings(settings_section)
        context.update(
            positivePrompt=positive,
            negativePrompt=negative,
            settings=generated_settings,
            summary=summary,
            moodMemory=mood_memory,
        )
        return _with_context(
            {
                "stage": "generate",
                "summary": summary,
                "moodMemory": mood_memory,
                "refinementCommands": context["refinementCommands"],
                "positivePrompt": positive,
                "negativePrompt": negative,
                "settings": generated_settings,
            },
            context,
        )
    except Exception:
        logger.exception("Unhandled error generating image prompt")
        return error_response("Failed to generate image prompt", 500)
