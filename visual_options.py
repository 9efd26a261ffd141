"""Cinematic option glossary shared by the builders and the prompt templates."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Iterable, Mapping, Optional

DEFAULT_GROUP_LABEL = "General"


@dataclass(frozen=True)
class VisualOption:
    id: str
    label: str
    tooltip: str
    prompt_snippet: str
    group: Optional[str] = None
    aliases: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["promptSnippet"] = data.pop("prompt_snippet")
        data["aliases"] = list(self.aliases)
        return data


def _opt(option_id: str, label: str, tooltip: str, snippet: str, group: str, *aliases: str) -> VisualOption:
    return VisualOption(option_id, label, tooltip, snippet, group, tuple(aliases))


CAMERA_ANGLES: tuple[VisualOption, ...] = (
    _opt("eye_level", "Eye level", "Camera at the subject's eye line for a neutral, conversational perspective.",
         "eye-level composition, natural conversational perspective", "Foundation angles", "neutral", "balanced"),
    _opt("low_angle", "Low angle", "Camera looks up to empower the subject with scale and authority.",
         "low angle shot, camera looking up to emphasize power", "Foundation angles", "powerful", "dominant"),
    _opt("high_angle", "High angle", "Camera looks down to create vulnerability or survey the environment.",
         "high angle view, camera above the subject for a vulnerable tone", "Foundation angles", "vulnerable", "survey"),
    _opt("birdseye", "Bird's-eye", "Top-down perspective that maps choreography and spatial layout.",
         "bird's-eye overhead angle, graphic layout of the scene", "Foundation angles", "overhead", "map"),
    _opt("dutch_tilt", "Dutch tilt", "Canted horizon introduces tension, imbalance, or unease.",
         "Dutch angle, canted horizon for off-kilter tension", "Expressive angles", "tension", "unease"),
    _opt("pov", "Point of view", "See the world through the character's eyes.",
         "subjective POV framing, immersive first-person view", "Expressive angles", "first person", "immersive"),
    _opt("aerial_drone", "Aerial drone", "High flying vantage for sweeping scale.",
         "aerial drone angle, sweeping cinematic overview", "Dynamic vantage", "drone", "epic"),
)

SHOT_SIZES: tuple[VisualOption, ...] = (
    _opt("establishing", "Establishing wide", "Sets the world and geography before the story moves in.",
         "establishing wide shot, expansive environment storytelling", "Wide coverage", "world", "context"),
    _opt("wide", "Wide shot", "Full figure inside the environment.",
         "wide shot framing, full figure within the environment", "Wide coverage", "full body"),
    _opt("medium", "Medium shot", "Waist-up framing for conversation and gesture.",
         "medium shot, waist-up conversational framing", "Character coverage", "waist up"),
    _opt("medium_close", "Medium close-up", "Chest-up framing that reads emotion clearly.",
         "medium close-up, chest-up framing for emotional clarity", "Character coverage", "emotion"),
    _opt("close_up", "Close-up", "Intimate focus on expression or a key detail.",
         "close-up shot, intimate focus on expression or detail", "Detail coverage", "intimate"),
    _opt("extreme_close_up", "Extreme close-up", "Hyper-detailed texture and micro expression.",
         "extreme close-up, hyper-detailed tactile emphasis", "Detail coverage", "macro", "texture"),
)

COMPOSITION: tuple[VisualOption, ...] = (
    _opt("rule_of_thirds", "Rule of thirds", "Place the subject on the thirds grid for natural balance.",
         "rule of thirds composition, subject on intersection points", "Classical balance", "thirds", "balanced"),
    _opt("golden_ratio", "Golden ratio spiral", "Proportional spiral that guides the eye gracefully.",
         "golden ratio spiral composition, elegant proportional flow", "Classical balance", "spiral"),
    _opt("symmetry", "Symmetrical frame", "Mirrored balance for formal, iconic frames.",
         "perfect symmetry, centered subject with mirrored balance", "Classical balance", "mirror", "formal"),
    _opt("leading_lines", "Leading lines", "Lines in the scene converge toward the subject.",
         "leading lines composition, converging architecture toward the subject", "Guided focus", "lines"),
    _opt("frame_within_frame", "Frame within frame", "Foreground elements encircle the subject.",
         "frame within a frame, foreground elements encircling the subject", "Guided focus", "framing"),
    _opt("negative_space", "Negative space", "Isolate the subject against open emptiness.",
         "negative space composition, isolated subject against open void", "Minimal design", "minimal", "isolation"),
)

CAMERA_MOVEMENT: tuple[VisualOption, ...] = (
    _opt("tracking_glide", "Tracking glide", "Camera glides alongside the subject for immersive momentum.",
         "tracking glide motion, camera pacing the subject in fluid motion", "Cinematic movement", "tracking", "glide"),
    _opt("steady_push", "Steady push-in", "Slow dolly inward that builds focus and anticipation.",
         "slow push-in, deliberate dolly drawing closer to the subject", "Cinematic movement", "dolly", "focus"),
    _opt("reveal_pullback", "Reveal pullback", "Camera pulls out to reveal new context or scale.",
         "pullback reveal, camera drifting backward to unveil context", "Cinematic movement", "reveal", "scale"),
    _opt("crane_rise", "Crane rise", "Vertical lift or descent to dramatize geography.",
         "crane rise, vertical sweep showcasing geography", "Cinematic movement", "vertical", "sweep"),
    _opt("aerial_sweep", "Aerial sweep", "Sweeping drone arc for epic spectacle.",
         "aerial sweep, dramatic drone arc over the scene", "Cinematic movement", "drone", "epic"),
    _opt("orbit_drift", "Orbit drift", "Camera circles the subject to reveal dimension.",
         "orbit drift, camera circling the subject with smooth parallax", "Dynamic movement", "orbit", "parallax"),
)

LIGHTING_STYLES: tuple[VisualOption, ...] = (
    _opt("three_point", "Three-point setup", "Key, fill and rim for clean, balanced modeling.",
         "three-point lighting, balanced key fill and rim separation", "Studio craft", "balanced", "studio"),
    _opt("soft_wrap", "Soft wrap", "Large diffused source with gentle falloff.",
         "soft diffused lighting, gentle wrap and airy highlights", "Studio craft", "soft", "diffused"),
    _opt("low_key", "Low-key noir", "Deep shadows with isolated pools of light.",
         "low-key lighting, moody pools of light in deep shadow", "Mood sculpting", "noir", "moody"),
    _opt("rembrandt", "Rembrandt pocket", "Triangular cheek highlight for painterly drama.",
         "Rembrandt lighting, triangular cheek highlight for painterly drama", "Mood sculpting", "painterly"),
    _opt("volumetric", "Volumetric beams", "Light through haze reveals dramatic god rays and atmosphere.",
         "volumetric lighting, cinematic god rays through mist", "Mood sculpting", "atmosphere", "god rays"),
    _opt("neon_bounce", "Neon bounce", "Electric signage paints faces with saturated gradients.",
         "neon bounce lighting, saturated signage reflecting on the subject", "Color artistry", "neon", "electric"),
    _opt("candlelight", "Candlelight flicker", "Flickering flame sources create warm, intimate falloff.",
         "candlelit ambience, warm flicker with soft falloff", "Mood sculpting", "warm", "intimate"),
)

COLOR_PALETTES: tuple[VisualOption, ...] = (
    _opt("sunset_glow", "Sunset glow", "Amber, peach, and magenta gradients for romantic warmth.",
         "sunset glow palette, amber to magenta warmth", "Warm & radiant", "warm", "romantic"),
    _opt("ember_night", "Ember night", "Coal blacks with embers of orange and copper.",
         "ember night palette, charcoal shadows with copper highlights", "Warm & radiant", "fire", "contrast"),
    _opt("desert_ochre", "Desert ochre", "Dusty oranges, clay reds, and sun-bleached neutrals.",
         "desert ochre palette, earthy sun-baked tones", "Warm & radiant", "earthy", "sun"),
    _opt("arctic_teal", "Arctic teal", "Blue-teal gradients with crisp whites for icy calm.",
         "arctic teal palette, icy cyan with crystalline whites", "Cool & moody", "icy", "cool"),
    _opt("midnight_indigo", "Midnight indigo", "Deep blues and violets with silver highlights for nocturne moods.",
         "midnight indigo palette, velvety blues with silver glints", "Cool & moody", "night", "velvet"),
)

ATMOSPHERE: tuple[VisualOption, ...] = (
    _opt("neo_noir", "Neo noir", "Glistening streets, stark contrast, and moody urban drama.",
         "neo-noir styling, rain-soaked streets with razor contrast", "Cinematic treatments", "noir", "urban"),
    _opt("analog_film", "Analog film", "35mm grain, soft halation, and nostalgic imperfection.",
         "analog film aesthetic, 35mm grain and halation bloom", "Cinematic treatments", "35mm", "grain"),
    _opt("documentary_realism", "Documentary realism", "Naturalistic texture with observational authenticity.",
         "documentary realism, candid textures and honest detail", "Cinematic treatments", "natural", "authentic"),
    _opt("concept_painting", "Concept art painting", "Brushy painterly rendering with atmospheric depth.",
         "concept art style, painterly strokes with atmospheric depth", "Illustrated looks", "painterly", "concept"),
    _opt("rain_mist", "Rain and mist", "Falling rain and drifting mist soften the frame.",
         "drifting mist and fine rain, diffused atmospheric depth", "Weather", "rain", "fog"),
)

# Payload keys used by the builders mapped to their option lists.
CATEGORIES: Mapping[str, tuple[VisualOption, ...]] = {
    "cameraAngles": CAMERA_ANGLES,
    "shotSizes": SHOT_SIZES,
    "composition": COMPOSITION,
    "cameraMovement": CAMERA_MOVEMENT,
    "lightingStyles": LIGHTING_STYLES,
    "colorPalettes": COLOR_PALETTES,
    "atmosphere": ATMOSPHERE,
}


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def find_visual_snippet(options: Iterable[VisualOption], option_id: Optional[str]) -> Optional[VisualOption]:
    if not option_id:
        return None
    return next((option for option in options if option.id == option_id), None)


def find_visual_snippets(options: Iterable[VisualOption], ids: Optional[list[str]]) -> list[VisualOption]:
    """Return the options matching ``ids`` in the caller's order; unknown ids are dropped."""
    if not ids:
        return []
    order = {value: index for index, value in enumerate(ids)}
    matched = [option for option in options if option.id in order]
    return sorted(matched, key=lambda option: order[option.id])


def search_options(options: Iterable[VisualOption], query: str) -> list[VisualOption]:
    terms = query.strip().lower().split()
    if not terms:
        return list(options)

    def haystack(option: VisualOption) -> str:
        return " ".join([option.label, option.tooltip, *option.aliases]).lower()

    return [option for option in options if all(term in haystack(option) for term in terms)]


def group_options(options: Iterable[VisualOption]) -> list[dict]:
    groups: dict[str, dict] = {}
    for option in options:
        label = option.group or DEFAULT_GROUP_LABEL
        group_id = _slugify(label) or "general"
        groups.setdefault(group_id, {"id": group_id, "label": label, "options": []})["options"].append(option)

    result = []
    for group in sorted(groups.values(), key=lambda item: item["label"]):
        ordered = sorted(group["options"], key=lambda option: option.label)
        result.append({**group, "options": [option.to_dict() for option in ordered]})
    return result


def describe_selection(selection: Mapping[str, list[str]]) -> list[str]:
    """Render ``category: label -> snippet`` lines for every selected option id."""
    lines: list[str] = []
    for category, options in CATEGORIES.items():
        for option in find_visual_snippets(options, list(selection.get(category) or [])):
            lines.append(f"{category}: {option.label} -> {option.prompt_snippet}")
    return lines


__all__ = [
    "CATEGORIES",
    "VisualOption",
    "describe_selection",
    "find_visual_snippet",
    "find_visual_snippets",
    "group_options",
    "search_options",
]
