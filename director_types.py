"""Director request/response contracts and the video-plan normaliser."""

from __future__ import annotations

from typing import Any, Literal, Mapping, Optional, Union, get_args

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

DirectorMode = Literal["image_prompt", "video_plan", "loop_sequence"]
DIRECTOR_MODES: tuple[str, ...] = get_args(DirectorMode)

ImageModelChoice = Literal["sdxl", "flux", "illustrious"]
IMAGE_MODEL_CHOICES: tuple[str, ...] = get_args(ImageModelChoice)

Tone = Literal["informative", "hype", "calm", "dark", "inspirational"]
TONES: tuple[str, ...] = get_args(Tone)

VisualStyle = Literal["realistic", "stylized", "anime", "mixed-media"]
VISUAL_STYLES: tuple[str, ...] = get_args(VisualStyle)

AspectRatio = Literal["16:9", "9:16"]
ASPECT_RATIOS: tuple[str, ...] = get_args(AspectRatio)

OPTION_CATEGORIES: tuple[str, ...] = (
    "cameraAngles",
    "shotSizes",
    "composition",
    "cameraMovement",
    "lightingStyles",
    "colorPalettes",
    "atmosphere",
)

# Request field types shared by every inbound body.
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Annotated[
    Optional[Annotated[str, StringConstraints(strip_whitespace=True)]],
    AfterValidator(lambda value: value or None),
]
TextList = Annotated[
    list[Annotated[str, StringConstraints(strip_whitespace=True)]],
    BeforeValidator(lambda value: [] if value is None else value),
    AfterValidator(lambda items: [item for item in items if item]),
]
PositiveCount = Annotated[StrictInt, Field(gt=0)]


class SelectedOptions(BaseModel):
    """Option ids picked in the builder, one list per glossary category."""

    model_config = ConfigDict(populate_by_name=True)

    camera_angles: TextList = Field(default_factory=list, alias="cameraAngles")
    shot_sizes: TextList = Field(default_factory=list, alias="shotSizes")
    composition: TextList = Field(default_factory=list)
    camera_movement: TextList = Field(default_factory=list, alias="cameraMovement")
    lighting_styles: TextList = Field(default_factory=list, alias="lightingStyles")
    color_palettes: TextList = Field(default_factory=list, alias="colorPalettes")
    atmosphere: TextList = Field(default_factory=list)

    def by_category(self) -> dict[str, list[str]]:
        return self.model_dump(by_alias=True)


class ImagePromptPayload(BaseModel):
    vision_seed_text: RequiredText
    model: ImageModelChoice
    selected_options: SelectedOptions = Field(default_factory=SelectedOptions, alias="selectedOptions")
    mood_profile: OptionalText = None
    constraints: OptionalText = None

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


class VideoPlanPayload(BaseModel):
    vision_seed_text: RequiredText
    script_text: RequiredText
    tone: Tone
    visual_style: VisualStyle
    aspect_ratio: AspectRatio
    mood_profile: OptionalText = None
    cinematic_control_options: SelectedOptions = Field(default_factory=SelectedOptions)
    planner_context: OptionalText = None
    render: StrictBool = False


class LoopSequencePayload(BaseModel):
    vision_seed_text: RequiredText
    start_frame_description: RequiredText
    loop_length: Optional[PositiveCount] = None
    mood_profile: OptionalText = None
    selected_options: SelectedOptions = Field(default_factory=SelectedOptions)

    @model_validator(mode="before")
    @classmethod
    def _gather_flat_options(cls, data: Any) -> Any:
        # Loop payloads carry the option lists at the top level of the payload.
        if isinstance(data, dict) and "selected_options" not in data:
            flat = {category: data[category] for category in OPTION_CATEGORIES if category in data}
            if flat:
                data = {**data, "selected_options": flat}
        return data


class DirectorRequest(BaseModel):
    mode: DirectorMode
    payload: Union[ImagePromptPayload, VideoPlanPayload, LoopSequencePayload]
    images: TextList = Field(default_factory=list)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DirectorImage(_CamelModel):
    mime_type: str
    data: str
    alt_text: Optional[str] = None


class DirectorVideo(_CamelModel):
    url: Optional[str] = None
    mime_type: Optional[str] = None
    poster_image: Optional[str] = None
    frames: list[str] = Field(default_factory=list)
    duration_seconds: Optional[float] = None
    frame_rate: Optional[float] = None
    job_id: Optional[str] = None
    status: Optional[str] = None
    eta_seconds: Optional[float] = None
    raw: Optional[dict[str, Any]] = None


class DirectorCoreSuccess(_CamelModel):
    success: Literal[True] = True
    mode: DirectorMode
    provider: str
    images: Optional[list[DirectorImage]] = None
    prompt_text: Optional[str] = None
    videos: Optional[list[DirectorVideo]] = None
    storyboard: Optional[dict[str, Any]] = None
    loop: Optional[dict[str, Any]] = None
    text: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class DirectorCoreError(_CamelModel):
    success: Literal[False] = False
    provider: Optional[str] = None
    error: str
    status: Optional[int] = None
    details: Optional[Any] = None


DirectorCoreResult = Union[DirectorCoreSuccess, DirectorCoreError]


class DirectorMediaAsset(_CamelModel):
    id: Optional[str] = None
    kind: Literal["image", "video", "audio", "unknown"] = "unknown"
    mime_type: Optional[str] = None
    url: Optional[str] = None
    base64: Optional[str] = None
    caption: Optional[str] = None
    description: Optional[str] = None
    poster_url: Optional[str] = None
    frames: list[dict[str, Any]] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None


class DirectorResponse(_CamelModel):
    success: Literal[True] = True
    mode: DirectorMode
    provider: str
    text: Optional[str] = None
    result: Any = None
    media: list[DirectorMediaAsset] = Field(default_factory=list)
    fallback_text: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class VideoPlanThumbnail(BaseModel):
    prompt: str
    title: Optional[str] = None
    description: Optional[str] = None


class VideoPlanScene(BaseModel):
    id: str
    title: str
    prompt: str
    summary: Optional[str] = None
    description: Optional[str] = None
    voiceover: Optional[str] = None
    duration: Optional[Union[str, float]] = None


class VideoPlanResponse(BaseModel):
    mode: Literal["video_plan"] = "video_plan"
    thumbnail: VideoPlanThumbnail
    scenes: list[VideoPlanScene]


class VideoPlanFormatError(ValueError):
    """Provider output could not be normalised into a video plan."""


# Canonical scene field -> accepted names, in lookup order.
SCENE_FIELD_SYNONYMS: Mapping[str, tuple[str, ...]] = {
    "prompt": ("prompt", "visual_prompt"),
    "title": ("title", "segment_title"),
    "description": ("description", "scene_description"),
    "voiceover": ("voiceover", "voice_over"),
    "duration": ("duration", "length"),
    "summary": ("summary", "synopsis"),
}

THUMBNAIL_FIELD_SYNONYMS: Mapping[str, tuple[str, ...]] = {
    "description": ("description", "summary"),
}


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _first_present(data: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    # First key that is present and not null wins, even when it is blank.
    for name in names:
        value = data.get(name)
        if value is not None:
            return value
    return None


def _optional_string(value: Any) -> Optional[str]:
    return value if _is_non_empty_string(value) else None


def _duration(value: Any) -> Optional[Union[str, float]]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return _optional_string(value)


def parse_video_plan_response(payload: Any) -> VideoPlanResponse:
    """Validate provider output and map every synonym onto canonical field names."""
    if not isinstance(payload, dict):
        raise VideoPlanFormatError("Director response is not an object")

    if payload.get("mode") != "video_plan":
        raise VideoPlanFormatError("Director response mode mismatch")

    thumbnail_data = payload.get("thumbnail")
    if not isinstance(thumbnail_data, dict):
        raise VideoPlanFormatError("Director response is missing a thumbnail plan")

    thumbnail_prompt = thumbnail_data.get("prompt")
    if not _is_non_empty_string(thumbnail_prompt):
        raise VideoPlanFormatError("Director thumbnail prompt is required")

    raw_scenes = payload.get("scenes")
    if not isinstance(raw_scenes, list) or not raw_scenes:
        raise VideoPlanFormatError("Director response must include at least one scene")

    scenes: list[VideoPlanScene] = []
    for index, entry in enumerate(raw_scenes, start=1):
        if not isinstance(entry, dict):
            raise VideoPlanFormatError(f"Scene {index} is not an object")

        prompt = _first_present(entry, SCENE_FIELD_SYNONYMS["prompt"])
        if not _is_non_empty_string(prompt):
            raise VideoPlanFormatError(f"Scene {index} is missing a prompt")

        scene_id = entry.get("id")
        title = _first_present(entry, SCENE_FIELD_SYNONYMS["title"])
        scenes.append(
            VideoPlanScene(
                id=scene_id if _is_non_empty_string(scene_id) else f"scene-{index}",
                title=title if _is_non_empty_string(title) else f"Scene {index}",
                prompt=prompt,
                summary=_optional_string(_first_present(entry, SCENE_FIELD_SYNONYMS["summary"])),
                description=_optional_string(_first_present(entry, SCENE_FIELD_SYNONYMS["description"])),
                voiceover=_optional_string(_first_present(entry, SCENE_FIELD_SYNONYMS["voiceover"])),
                duration=_duration(_first_present(entry, SCENE_FIELD_SYNONYMS["duration"])),
            )
        )

    return VideoPlanResponse(
        thumbnail=VideoPlanThumbnail(
            prompt=thumbnail_prompt,
            title=_optional_string(thumbnail_data.get("title")),
            description=_optional_string(
                _first_present(thumbnail_data, THUMBNAIL_FIELD_SYNONYMS["description"])
            ),
        ),
        scenes=scenes,
    )


__all__ = [
    "ASPECT_RATIOS",
    "DIRECTOR_MODES",
    "DirectorCoreError",
    "DirectorCoreResult",
    "DirectorCoreSuccess",
    "DirectorImage",
    "DirectorMediaAsset",
    "DirectorRequest",
    "DirectorResponse",
    "DirectorVideo",
    "IMAGE_MODEL_CHOICES",
    "ImagePromptPayload",
    "LoopSequencePayload",
    "OPTION_CATEGORIES",
    "SCENE_FIELD_SYNONYMS",
    "SelectedOptions",
    "TONES",
    "VISUAL_STYLES",
    "VideoPlanFormatError",
    "VideoPlanPayload",
    "VideoPlanResponse",
    "parse_video_plan_response",
]
