"""Static table of the LLM models the studio can route a capability to."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ModelProvider = Literal["openai", "gemini"]
ModelCapability = Literal["imagePrompt", "videoPlan"]

CAPABILITIES: tuple[str, ...] = ("imagePrompt", "videoPlan")
JSON_MIME_TYPE = "application/json"

IMAGE_PROMPT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "positivePrompt": {"type": "string"},
        "negativePrompt": {"type": "string"},
        "settings": {
            "type": "object",
            "properties": {
                "model": {"type": "string"},
                "resolution": {"type": "string"},
                "sampler": {"type": "string"},
                "steps": {"type": "integer"},
                "cfg": {"type": "number"},
                "seed": {"type": "string"},
            },
            "required": ["model", "resolution", "sampler", "steps", "cfg", "seed"],
        },
        "summary": {"type": "string"},
    },
    "required": ["positivePrompt", "negativePrompt", "settings", "summary"],
}

CONTINUITY_LOCK_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "subject_identity": {"type": "string"},
        "lighting_and_palette": {"type": "string"},
        "camera_grammar": {"type": "string"},
        "environment_motif": {"type": "string"},
    },
    "required": ["subject_identity", "lighting_and_palette", "camera_grammar", "environment_motif"],
}

SCENE_TEXT_FIELDS: tuple[str, ...] = (
    "segment_title",
    "scene_description",
    "main_subject",
    "camera_movement",
    "visual_tone",
    "motion",
    "mood",
    "narrative",
    "sound_suggestion",
    "text_overlay",
    "voice_timing_hint",
    "broll_suggestions",
    "graphics_callouts",
    "editor_notes",
)

VIDEO_PLAN_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "scenes": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    **{name: {"type": "string"} for name in SCENE_TEXT_FIELDS},
                    "continuity_lock": CONTINUITY_LOCK_SCHEMA,
                    "acceptance_check": {"type": "array", "items": {"type": "string"}},
                },
                "required": [*SCENE_TEXT_FIELDS, "continuity_lock", "acceptance_check"],
            },
        },
        "thumbnailConcept": {"type": "string"},
    },
    "required": ["scenes", "thumbnailConcept"],
}

DEFAULT_SCHEMAS: Mapping[str, dict[str, Any]] = MappingProxyType(
    {
        "imagePrompt": IMAGE_PROMPT_RESPONSE_SCHEMA,
        "videoPlan": VIDEO_PLAN_RESPONSE_SCHEMA,
    }
)


class CapabilityConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["chat", "video"] = "chat"
    response_mime_type: Optional[str] = None
    response_schema: Optional[dict[str, Any]] = None


class ModelDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    provider: ModelProvider
    description: Optional[str] = None
    capabilities: dict[str, CapabilityConfig] = Field(default_factory=dict)

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities


def _gemini_json(capability: str) -> CapabilityConfig:
    return CapabilityConfig(
        kind="chat",
        response_mime_type=JSON_MIME_TYPE,
        response_schema=DEFAULT_SCHEMAS[capability],
    )


MODEL_DEFINITIONS: tuple[ModelDefinition, ...] = (
    ModelDefinition(
        id="gpt-4o-mini",
        label="GPT-4o mini",
        provider="openai",
        capabilities={"imagePrompt": CapabilityConfig(), "videoPlan": CapabilityConfig()},
    ),
    ModelDefinition(
        id="gpt-4.1",
        label="GPT-4.1",
        provider="openai",
        capabilities={"imagePrompt": CapabilityConfig(), "videoPlan": CapabilityConfig()},
    ),
    ModelDefinition(
        id="gemini-1.5-pro",
        label="Gemini 1.5 Pro",
        provider="gemini",
        capabilities={"imagePrompt": _gemini_json("imagePrompt"), "videoPlan": _gemini_json("videoPlan")},
    ),
    ModelDefinition(
        id="gemini-1.5-flash",
        label="Gemini 1.5 Flash",
        provider="gemini",
        capabilities={"imagePrompt": _gemini_json("imagePrompt"), "videoPlan": _gemini_json("videoPlan")},
    ),
    ModelDefinition(
        id="gemini-1.5-nano-banana",
        label="Gemini Nano Banana",
        provider="gemini",
        description="Optimized for lightweight prompt engineering flows.",
        capabilities={"imagePrompt": _gemini_json("imagePrompt")},
    ),
    ModelDefinition(
        id="veo-3",
        label="Veo 3",
        provider="gemini",
        description="Video-native Gemini endpoint for cinematic planning and renders.",
        capabilities={"videoPlan": _gemini_json("videoPlan")},
    ),
)

# Built once at import; read-only afterwards.
MODEL_REGISTRY: Mapping[str, ModelDefinition] = MappingProxyType(
    {definition.id: definition for definition in MODEL_DEFINITIONS}
)


def get_model_definition(model_id: str) -> Optional[ModelDefinition]:
    return MODEL_REGISTRY.get(model_id)


def get_capability_config(model_id: str, capability: str) -> Optional[CapabilityConfig]:
    definition = get_model_definition(model_id)
    if definition is None:
        return None
    return definition.capabilities.get(capability)


def list_models_for_capability(capability: str) -> list[ModelDefinition]:
    """Return every model supporting ``capability`` in registry order."""
    return [definition for definition in MODEL_DEFINITIONS if definition.supports(capability)]


def is_gemini_model(model_id: str) -> bool:
    definition = get_model_definition(model_id)
    return definition is not None and definition.provider == "gemini"


def is_openai_model(model_id: str) -> bool:
    definition = get_model_definition(model_id)
    return definition is not None and definition.provider == "openai"


__all__ = [
    "CAPABILITIES",
    "CapabilityConfig",
    "DEFAULT_SCHEMAS",
    "IMAGE_PROMPT_RESPONSE_SCHEMA",
    "MODEL_DEFINITIONS",
    "ModelCapability",
    "ModelDefinition",
    "ModelProvider",
    "VIDEO_PLAN_RESPONSE_SCHEMA",
    "get_capability_config",
    "get_model_definition",
    "is_gemini_model",
    "is_openai_model",
    "list_models_for_capability",
]
