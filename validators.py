"""Request validators: turn arbitrary JSON bodies into typed, provider-resolved values.

Each inbound body is parsed by a pydantic model that carries its own constraints.
The first reported ``ValidationError`` entry becomes a 400 whose message names the
offending field. None of them touch a provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

from director_types import (
    ASPECT_RATIOS,
    DIRECTOR_MODES,
    IMAGE_MODEL_CHOICES,
    TONES,
    VISUAL_STYLES,
    AspectRatio,
    DirectorMode,
    DirectorRequest,
    ImageModelChoice,
    ImagePromptPayload,
    LoopSequencePayload,
    OptionalText,
    RequiredText,
    TextList,
    Tone,
    VideoPlanPayload,
    VisualStyle,
)
from model_registry import CapabilityConfig, ModelProvider, get_model_definition

T = TypeVar("T")

CycleList = Annotated[list[dict[str, Any]], BeforeValidator(lambda value: [] if value is None else value)]


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    status: int = 200

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult[T]":
        return cls(ok=False, error=error, status=400)


class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _VideoPlanBody(_CamelBody):
    script_text: RequiredText
    tone: Tone
    visual_style: VisualStyle
    aspect_ratio: AspectRatio
    llm_model: OptionalText = None
    vision_seed: OptionalText = None
    lighting: OptionalText = None
    composition: OptionalText = None


@dataclass(frozen=True)
class VideoPlanRequest:
    script_text: str
    tone: str
    visual_style: str
    aspect_ratio: str
    model: str
    provider: ModelProvider
    capability: CapabilityConfig
    vision_seed: Optional[str] = None
    lighting: Optional[str] = None
    composition: Optional[str] = None


class LoopCycleRequest(_CamelBody):
    vision_seed: RequiredText
    inspiration_references: OptionalText = None
    start_frames: TextList = Field(default_factory=list)
    previous_cycles: CycleList = Field(default_factory=list)
    predictive_mode: StrictBool = False


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


_CHAT_MESSAGES = TypeAdapter(
    Annotated[list[ChatMessage], BeforeValidator(lambda value: [] if value is None else value)]
)


@dataclass(frozen=True)
class ImagePromptStage:
    stage: str
    vision_seed_text: Optional[str] = None
    model_choice: Optional[str] = None
    option_ids: dict[str, Optional[str]] = field(default_factory=dict)
    confirmed: bool = False
    feedback: Optional[str] = None
    refinement_commands: list[str] = field(default_factory=list)
    mood_memory: Optional[str] = None


class _SeedStageBody(_CamelBody):
    vision_seed_text: RequiredText
    model_choice: ImageModelChoice
    camera_angle_id: OptionalText = None
    shot_size_id: OptionalText = None
    lighting_style_id: OptionalText = None
    color_palette_id: OptionalText = None

    def to_stage(self) -> ImagePromptStage:
        return ImagePromptStage(
            stage="seed",
            vision_seed_text=self.vision_seed_text,
            model_choice=self.model_choice,
            option_ids={
                "cameraAngles": self.camera_angle_id,
                "shotSizes": self.shot_size_id,
                "lightingStyles": self.lighting_style_id,
                "colorPalettes": self.color_palette_id,
            },
        )


class _ConfirmStageBody(_CamelBody):
    confirmed: StrictBool = False
    feedback: OptionalText = None

    def to_stage(self) -> ImagePromptStage:
        return ImagePromptStage(stage="confirm", confirmed=self.confirmed, feedback=self.feedback)


class _RefineStageBody(_CamelBody):
    refinement_commands: TextList = Field(default_factory=list)
    mood_memory: OptionalText = None

    def to_stage(self) -> ImagePromptStage:
        return ImagePromptStage(
            stage="refine", refinement_commands=self.refinement_commands, mood_memory=self.mood_memory
        )


class _GenerateStageBody(BaseModel):
    def to_stage(self) -> ImagePromptStage:
        return ImagePromptStage(stage="generate")


_STAGE_BODIES: dict[str, type[BaseModel]] = {
    "seed": _SeedStageBody,
    "confirm": _ConfirmStageBody,
    "refine": _RefineStageBody,
    "generate": _GenerateStageBody,
}


class _DirectorEnvelope(BaseModel):
    mode: DirectorMode
    payload: dict[str, Any]
    images: TextList = Field(default_factory=list)


_PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "image_prompt": ImagePromptPayload,
    "video_plan": VideoPlanPayload,
    "loop_sequence": LoopSequencePayload,
}

# Last location segment -> allowed values, for "must be one of" messages.
_CHOICES: dict[str, tuple[str, ...]] = {
    "mode": DIRECTOR_MODES,
    "model": IMAGE_MODEL_CHOICES,
    "modelChoice": IMAGE_MODEL_CHOICES,
    "tone": TONES,
    "visualStyle": VISUAL_STYLES,
    "visual_style": VISUAL_STYLES,
    "aspectRatio": ASPECT_RATIOS,
    "aspect_ratio": ASPECT_RATIOS,
}

_LABELS = {"visionSeed": "Vision Seed"}
_OBJECT_LISTS = {"previousCycles"}
_REQUIRED_TYPES = {"missing", "string_too_short"}


def _is_required_error(error: dict[str, Any]) -> bool:
    if error["type"] in _REQUIRED_TYPES:
        return True
    value = error.get("input")
    if error["type"] == "literal_error":
        return value is None or (isinstance(value, str) and not value.strip())
    return False


def _describe(error: dict[str, Any], prefix: Optional[str] = None) -> str:
    """Render one pydantic error entry as a field-named message."""
    # Loop payloads gather their flat option lists under selected_options.
    loc = [part for part in error["loc"] if part != "selected_options"]
    names = [str(part) for part in loc if not isinstance(part, int)]
    if prefix:
        names.insert(0, prefix)
    if not names:
        return "Request body must be a JSON object"

    label = ".".join(names)
    label = _LABELS.get(label, label)
    last = names[-1]
    kind = error["type"]

    if _is_required_error(error):
        return f"{label} is required"
    if kind == "literal_error":
        allowed = _CHOICES.get(last)
        expected = ", ".join(allowed) if allowed else error.get("ctx", {}).get("expected", "")
        return f"{label} must be one of: {expected}"
    if kind == "list_type" or any(isinstance(part, int) for part in loc):
        items = "objects" if kind in ("dict_type", "model_type") or last in _OBJECT_LISTS else "strings"
        return f"{label} must be an array of {items}"
    if kind.startswith("bool_"):
        return f"{label} must be a boolean"
    if kind.startswith("int_") or kind == "greater_than":
        return f"{label} must be a positive integer"
    if kind.startswith("string_"):
        return f"{label} must be a string"
    if kind in ("dict_type", "model_type", "model_attributes_type"):
        return f"{label} must be an object"
    return f"{label} is invalid"


def _first_error(exc: ValidationError) -> dict[str, Any]:
    return exc.errors()[0]


def validate_video_plan_request(body: Any, default_model: str) -> ValidationResult[VideoPlanRequest]:
    try:
        parsed = _VideoPlanBody.model_validate(body)
    except ValidationError as exc:
        return ValidationResult.fail(_describe(_first_error(exc)))

    model_id = parsed.llm_model or default_model
    definition = get_model_definition(model_id)
    if definition is None:
        return ValidationResult.fail(f"Unknown model: {model_id}")

    capability = definition.capabilities.get("videoPlan")
    if capability is None:
        return ValidationResult.fail(f"Model {model_id} does not support video plans")

    return ValidationResult.success(
        VideoPlanRequest(
            script_text=parsed.script_text,
            tone=parsed.tone,
            visual_style=parsed.visual_style,
            aspect_ratio=parsed.aspect_ratio,
            model=definition.id,
            provider=definition.provider,
            capability=capability,
            vision_seed=parsed.vision_seed,
            lighting=parsed.lighting,
            composition=parsed.composition,
        )
    )


def validate_director_request(body: Any) -> ValidationResult[DirectorRequest]:
    try:
        envelope = _DirectorEnvelope.model_validate(body)
    except ValidationError as exc:
        return ValidationResult.fail(_describe(_first_error(exc)))

    try:
        payload = _PAYLOAD_MODELS[envelope.mode].model_validate(envelope.payload)
    except ValidationError as exc:
        return ValidationResult.fail(_describe(_first_error(exc), prefix="payload"))

    return ValidationResult.success(DirectorRequest(mode=envelope.mode, payload=payload, images=envelope.images))


def validate_loop_cycle_request(body: Any) -> ValidationResult[LoopCycleRequest]:
    try:
        return ValidationResult.success(LoopCycleRequest.model_validate(body))
    except ValidationError as exc:
        return ValidationResult.fail(_describe(_first_error(exc)))


def validate_chat_messages(value: Any) -> ValidationResult[list[ChatMessage]]:
    try:
        return ValidationResult.success(_CHAT_MESSAGES.validate_python(value))
    except ValidationError as exc:
        error = _first_error(exc)

    loc = error["loc"]
    if not loc:
        return ValidationResult.fail("messages must be an array")
    if len(loc) == 1:
        return ValidationResult.fail("Each message must be an object")
    if loc[1] == "role":
        return ValidationResult.fail("message role must be user or assistant")
    return ValidationResult.fail("message content must be a string")


def validate_image_prompt_stage(body: Any) -> ValidationResult[ImagePromptStage]:
    if not isinstance(body, dict):
        return ValidationResult.fail("Request body must be a JSON object")

    stage = body.get("stage")
    stage_body = _STAGE_BODIES.get(stage) if isinstance(stage, str) else None
    if stage_body is None:
        return ValidationResult.fail("Unsupported stage")

    try:
        parsed = stage_body.model_validate(body)
    except ValidationError as exc:
        error = _first_error(exc)
        if stage_body is _SeedStageBody and _is_required_error(error):
            return ValidationResult.fail("Missing required fields")
        return ValidationResult.fail(_describe(error))
    return ValidationResult.success(parsed.to_stage())


__all__ = [
    "ChatMessage",
    "ImagePromptStage",
    "LoopCycleRequest",
    "ValidationResult",
    "VideoPlanRequest",
    "validate_chat_messages",
    "validate_director_request",
    "validate_image_prompt_stage",
    "validate_loop_cycle_request",
    "validate_video_plan_request",
]
