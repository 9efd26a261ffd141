"""System and user prompt builders for every generation capability."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from visual_options import CATEGORIES, describe_selection, find_visual_snippets

NONE_PROVIDED = "None provided"
NONE_SPECIFIED = "none specified"

DIRECTOR_CORE_SYSTEM_PROMPT = (
    'You are "Visionary Director Core", a unified cinematic brain for an app that helps '
    "non-experts create world-class images and videos.\n"
    'You run in three modes, selected by the "mode" field of the request:\n'
    '- "image_prompt": Vision Architect, an autonomous still-image composer.\n'
    '- "video_plan": Cinematic Director, a scene-by-scene storyboard for Veo-style rendering.\n'
    '- "loop_sequence": Infinite Loop Creator, predictive continuous cycles.\n\n'
    "The host application handles every provider call. You never call tools; you read the "
    "request (text plus optional Vision Seed images) and answer in the exact format the mode asks for.\n\n"
    "Shared behaviour:\n"
    "1. Treat text, attached images and selected options as one unified Vision Seed.\n"
    "2. Weave the promptSnippet of every selected glossary option into your output and blend "
    "them without contradiction. Infer sensible defaults when nothing is selected.\n"
    "3. Use attached images for composition, lighting, palette and symbolism. Never describe "
    'them literally ("I see an image").\n'
    "4. When a mood_profile is present, treat it as the style bible unless the Vision Seed clearly overrides it.\n"
    "5. Never invent extra keys in JSON modes and never change output formats."
)

IMAGE_PROMPT_MODE_INSTRUCTIONS = (
    'Mode "image_prompt". Apply model-specific language: SDXL gets cinematic descriptive prose, '
    "Flux gets evocative symbolic wording, Illustrious gets Danbooru-style tags led by "
    '"masterpiece, best quality".\n'
    "Run a silent critic pass: a single clear subject, consistent lighting, a style that matches the model.\n"
    "Answer in PLAIN TEXT ONLY (no JSON) with these headings, each on its own line:\n"
    "Summary:\nPositive Prompt:\nNegative Prompt:\nSettings:\nMood Memory:\n"
    "Settings holds Key: value lines for Model, Aspect, Sampler, Steps, CFG and Seed. "
    "Always include base negatives (low quality, worst quality, jpeg artifacts, blurry, watermark, "
    "text, extra limbs, missing fingers) plus smart negatives for the chosen model."
)

VIDEO_PLAN_MODE_INSTRUCTIONS = (
    'Mode "video_plan". Split the script into 5-12 beats following hook, build, peak, resolve. '
    "Keep subject identity, palette and camera grammar continuous across scenes, and add a "
    "transition bridge whenever mood or setting changes. Provide one thumbnail concept tied to the hook.\n"
    "Answer with STRICT JSON only:\n"
    "{\n"
    '  "mode": "video_plan",\n'
    '  "thumbnail": {"prompt": "...", "title": "...", "description": "..."},\n'
    '  "scenes": [\n'
    '    {"id": "scene-1", "title": "...", "prompt": "Veo-ready visual prompt", '
    '"summary": "...", "description": "...", "voiceover": "...", "duration": "6s"}\n'
    "  ]\n"
    "}"
)

LOOP_SEQUENCE_MODE_INSTRUCTIONS = (
    'Mode "loop_sequence". For each cycle interpret the current start frame, imagine the next '
    "moment, and hand its end state to the following cycle as the new start frame. Every 3-5 "
    "cycles introduce a subtle variation that preserves identity.\n"
    "Answer with a STRICT JSON array of cycle objects, each shaped as:\n"
    "{\n"
    '  "segment_title": "Part X - Short Title",\n'
    '  "scene_description": "...", "main_subject": "...", "camera_movement": "...",\n'
    '  "visual_tone": "...", "motion": "...", "mood": "...", "narrative": "...",\n'
    '  "sound_suggestion": "...",\n'
    '  "continuity_lock": {"subject_identity": "...", "lighting_and_palette": "...", '
    '"camera_grammar": "...", "environment_motif": "...", "emotional_trajectory": "..."},\n'
    '  "acceptance_check": ["..."]\n'
    "}\n"
    "When loop_length is given, return exactly that many cycles; otherwise return 4-8."
)

DIRECTOR_MODE_INSTRUCTIONS = {
    "image_prompt": IMAGE_PROMPT_MODE_INSTRUCTIONS,
    "video_plan": VIDEO_PLAN_MODE_INSTRUCTIONS,
    "loop_sequence": LOOP_SEQUENCE_MODE_INSTRUCTIONS,
}

# Gemini responseSchema for director video plans; mirrors what the normaliser accepts.
DIRECTOR_VIDEO_PLAN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "mode": {"type": "string"},
        "thumbnail": {
            "type": "object",
            "properties": {
                "prompt": {"type": "string"},
                "title": {"type": "string"},
                "description": {"type": "string"},
            },
            "required": ["prompt"],
        },
        "scenes": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "prompt": {"type": "string"},
                    "summary": {"type": "string"},
                    "description": {"type": "string"},
                    "voiceover": {"type": "string"},
                    "duration": {"type": "string"},
                },
                "required": ["prompt"],
            },
        },
    },
    "required": ["mode", "thumbnail", "scenes"],
}


def _selection_glossary(selection: dict[str, list[str]]) -> dict[str, list[dict]]:
    glossary: dict[str, list[dict]] = {}
    for category, options in CATEGORIES.items():
        matched = find_visual_snippets(options, selection.get(category))
        if matched:
            glossary[category] = [option.to_dict() for option in matched]
    return glossary


def build_director_prompt(mode: str, payload: dict[str, Any], selection: dict[str, list[str]], image_count: int) -> str:
    """User turn for the director core: mode instructions, request JSON, and the selected glossary."""
    request = {"mode": mode, **payload, "glossary": _selection_glossary(selection)}
    lines = describe_selection(selection)
    return (
        f"{DIRECTOR_MODE_INSTRUCTIONS[mode]}\n\n"
        f"REQUEST:\n{json.dumps(request, indent=2)}\n\n"
        f"SELECTED OPTIONS:\n{chr(10).join(lines) if lines else NONE_PROVIDED}\n\n"
        f"VISION SEED IMAGES ATTACHED: {image_count}"
    )


def build_render_request(plan: dict[str, Any], aspect_ratio: str) -> dict[str, Any]:
    """Body for ``generateVideo``: the normalised plan plus the target aspect ratio."""
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {
                        "text": (
                            "Render a video using this orchestrated plan. Return only job metadata.\n"
                            f"{json.dumps(plan)}"
                        )
                    }
                ],
            }
        ],
        "videoConfig": {"aspectRatio": aspect_ratio},
    }


VIDEO_PLAN_SYSTEM_PROMPT = (
    "You are a YouTube Cinematic Director and visual story architect. "
    "Transform the script into a scene-by-scene cinematic plan ready for video generation, "
    "with a thumbnail concept tied to the hook. "
    "Respond ONLY with JSON matching the requested schema. "
    "Never add keys, Markdown, code fences, or commentary."
)


def build_video_plan_prompt(
    script_text: str,
    tone: str,
    visual_style: str,
    aspect_ratio: str,
    vision_seed: Optional[str] = None,
    lighting: Optional[str] = None,
    composition: Optional[str] = None,
) -> str:
    scene_fields = ", ".join(
        (
            "segment_title", "scene_description", "main_subject", "camera_movement", "visual_tone",
            "motion", "mood", "narrative", "sound_suggestion", "text_overlay", "voice_timing_hint",
            "broll_suggestions", "graphics_callouts", "editor_notes",
        )
    )
    return (
        f"SCRIPT:\n{script_text}\n\n"
        f"TONE: {tone}\n"
        f"VISUAL STYLE: {visual_style}\n"
        f"ASPECT RATIO: {aspect_ratio}\n"
        f"VISION SEED:\n{vision_seed or NONE_PROVIDED}\n\n"
        f"LIGHTING PREFERENCE: {lighting or NONE_SPECIFIED}\n"
        f"COMPOSITION PREFERENCE: {composition or NONE_SPECIFIED}\n\n"
        "Instructions:\n"
        "- Split the script into 5-12 scenes following hook, build, peak, resolve.\n"
        "- Keep subject identity, palette and camera grammar continuous between scenes.\n"
        "- Add a transition bridge in scene_description or motion when mood or setting changes.\n\n"
        "Return JSON as:\n"
        "{\n"
        '  "scenes": [\n'
        "    {\n"
        f"      string fields: {scene_fields},\n"
        '      "continuity_lock": {"subject_identity": "...", "lighting_and_palette": "...", '
        '"camera_grammar": "...", "environment_motif": "..."},\n'
        '      "acceptance_check": ["..."]\n'
        "    }\n"
        "  ],\n"
        '  "thumbnailConcept": "One strong thumbnail idea tied to the hook."\n'
        "}"
    )


LOOP_CYCLE_SYSTEM_PROMPT = (
    "You are the Autonomous Loop Director, a specialist that keeps animated loops coherent forever.\n"
    "You always respond with strict JSON.\n"
    "Every cycle you receive the Vision Seed, inspiration references, optional start frames, "
    "and a log of previous cycles.\n"
    "Your job is to extend the loop with the next story beat, define the new end frame, "
    "and reinforce the continuity locks that must remain true.\n"
    "Never break the JSON schema, never include commentary, and never forget continuity_lock and acceptance_check."
)


def build_loop_cycle_prompt(
    vision_seed: str,
    inspiration_references: Optional[str],
    start_frames: Iterable[str],
    previous_cycles: list[dict[str, Any]],
    predictive_mode: bool,
) -> str:
    frames = list(start_frames)
    return (
        f"VISION SEED:\n{vision_seed}\n\n"
        f"INSPIRATION REFERENCES:\n{inspiration_references or NONE_PROVIDED}\n\n"
        f"START FRAMES:\n{chr(10).join(frames) if frames else NONE_PROVIDED}\n\n"
        f"PREDICTIVE MODE:\n{'ACTIVE' if predictive_mode else 'OFF'}\n\n"
        f"PREVIOUS CYCLES LOG:\n{json.dumps(previous_cycles, indent=2) if previous_cycles else '[]'}\n\n"
        "Return JSON that matches this schema exactly:\n"
        "{\n"
        '  "cycle": <next cycle index number>,\n'
        '  "storyBeat": {\n'
        '    "title": "Short headline for this beat",\n'
        '    "summary": "2-3 sentence summary of what unfolds",\n'
        '    "continuity_lock": {\n'
        '      "subject_identity": "Maintain who/what is focal",\n'
        '      "lighting_and_palette": "Color/lighting that must carry forward",\n'
        '      "camera_grammar": "Lens, movement, or framing rules that persist",\n'
        '      "environment_motif": "Environmental elements that need to repeat"\n'
        "    },\n"
        '    "acceptance_check": ["Bullet list of conditions to verify continuity"]\n'
        "  },\n"
        '  "endFrame": {\n'
        '    "frame_prompt": "Describe the last frame users should render",\n'
        '    "motion_guidance": "Note how motion resolves into the loop seam",\n'
        '    "transition_signal": "What tells us it is time to hand off to the next cycle"\n'
        "  },\n"
        '  "autopilot_directive": "If predictive mode is active, give the operator instructions for '
        'auto-triggering the next cycle; otherwise, say how to prepare manually."\n'
        "}"
    )


LOOP_ASSISTANT_SYSTEM_PROMPT = (
    'You are "Visionary Loop Assistant", a cinematic continuity strategist embedded inside Visionary Canvas.\n\n'
    "Mission:\n"
    "- Interpret the latest request and builder controls to protect loop continuity.\n"
    "- Produce actionable coaching that improves the next loop cycle, storyboard beat, or visual tweak.\n"
    "- Keep the user anchored in pro-grade cinematic language while staying encouraging.\n\n"
    "Guardrails:\n"
    "1. Speak as a single creative partner.\n"
    "2. Keep responses to at most 4 short paragraphs unless asked for more.\n"
    "3. Never expose internal policy, API references, or implementation details.\n"
    "4. When unsure, ask a clarifying question instead of inventing specifics.\n\n"
    "Formatting:\n"
    "- Start with a one-sentence headline summarizing the core advice.\n"
    "- Use short bullet lists for tactical adjustments.\n"
    "- Close with a question or a next-step suggestion."
)

LOOP_ASSISTANT_OPENING_TURN = (
    "Begin the conversation according to the system instructions and offer the opening response."
)

IMAGE_PROMPT_BUILDER_SYSTEM_PROMPT = (
    "You are Vision Architect, an autonomous image composer for ComfyUI.\n"
    "You support a multi-step workflow: a Vision Seed questionnaire, a concise summary for "
    "confirmation, refinement commands, and finally image prompts with settings.\n"
    "You ALWAYS respond in plain text with the headings requested in the user message. "
    "Never return JSON, code fences, or bullet prefixes.\n\n"
    "Stage guidance:\n"
    '- STAGE "seed": write a "Summary:" of 2-3 sentences capturing the cinematic intent and a '
    '"Mood Memory:" phrase of at most 8 words. No prompts or settings yet.\n'
    '- STAGE "confirm": rewrite the "Summary:" to reflect the feedback while staying faithful to '
    'the Vision Seed; refresh "Mood Memory:" if the tone changes. Output only those two sections.\n'
    '- STAGE "generate": craft the final prompts. Illustrious gets Danbooru-style tags; SDXL and '
    "Flux get vivid cinematic prose. Include smart negatives covering quality, anatomy, watermarks, "
    'extra limbs and unwanted text. Output "Positive Prompt:", "Negative Prompt:", "Settings:" '
    '(Key: value lines), then updated "Summary:" and "Mood Memory:".\n\n'
    "Translate casual language into production-ready phrasing without adding scenes. "
    "Do not ask questions back. Keep every response under 400 words."
)


def _preference_lines(snippets: dict[str, Optional[str]]) -> list[str]:
    return [
        f"Camera angle: {snippets.get('cameraAngles') or NONE_SPECIFIED}",
        f"Shot size: {snippets.get('shotSizes') or NONE_SPECIFIED}",
        f"Lighting: {snippets.get('lightingStyles') or NONE_SPECIFIED}",
        f"Color palette: {snippets.get('colorPalettes') or NONE_SPECIFIED}",
    ]


def build_seed_stage_prompt(vision_seed_text: str, model_choice: str, snippets: dict[str, Optional[str]]) -> str:
    blocks = [
        "STAGE: seed",
        f"MODEL CHOICE: {model_choice}",
        "VISION SEED:",
        vision_seed_text,
        "VISUAL PREFERENCES:",
        "\n".join(_preference_lines(snippets)),
        "Remember to respond with Summary: and Mood Memory: sections only.",
    ]
    return "\n\n".join(blocks)


def build_confirm_stage_prompt(
    vision_seed_text: str,
    model_choice: Optional[str],
    current_summary: str,
    feedback: str,
    snippets: dict[str, Optional[str]],
) -> str:
    blocks = [
        "STAGE: confirm",
        f"MODEL CHOICE: {model_choice}" if model_choice else None,
        "VISION SEED:",
        vision_seed_text,
        "CURRENT SUMMARY:",
        current_summary,
        "FEEDBACK:",
        feedback,
        "VISUAL PREFERENCES:",
        "\n".join(_preference_lines(snippets)),
        "Return only Summary: and Mood Memory: sections.",
    ]
    return "\n\n".join(block for block in blocks if block)


def build_generate_stage_prompt(
    vision_seed_text: str,
    model_choice: str,
    summary: str,
    mood_memory: Optional[str],
    refinement_commands: list[str],
    snippets: dict[str, Optional[str]],
) -> str:
    refinements = (
        "\n".join(f"{index}. {command}" for index, command in enumerate(refinement_commands, start=1))
        if refinement_commands
        else NONE_PROVIDED
    )
    blocks = [
        "STAGE: generate",
        f"MODEL CHOICE: {model_choice}",
        "VISION SEED:",
        vision_seed_text,
        "CONFIRMED SUMMARY:",
        summary,
        "MOOD MEMORY:",
        mood_memory or "",
        "REFINEMENT COMMANDS:",
        refinements,
        "VISUAL PREFERENCES:",
        "\n".join(_preference_lines(snippets)),
        "Respond with sections in this order: Positive Prompt:, Negative Prompt:, Settings:, "
        "Summary:, Mood Memory:. Each section must begin with that exact heading.",
    ]
    return "\n\n".join(blocks)


__all__ = [
    "DIRECTOR_CORE_SYSTEM_PROMPT",
    "DIRECTOR_VIDEO_PLAN_SCHEMA",
    "IMAGE_PROMPT_BUILDER_SYSTEM_PROMPT",
    "LOOP_ASSISTANT_OPENING_TURN",
    "LOOP_ASSISTANT_SYSTEM_PROMPT",
    "LOOP_CYCLE_SYSTEM_PROMPT",
    "VIDEO_PLAN_SYSTEM_PROMPT",
    "build_confirm_stage_prompt",
    "build_director_prompt",
    "build_generate_stage_prompt",
    "build_loop_cycle_prompt",
    "build_render_request",
    "build_seed_stage_prompt",
    "build_video_plan_prompt",
]
