import pytest

from director_types import ImagePromptPayload, LoopSequencePayload, VideoPlanPayload
from model_registry import VIDEO_PLAN_RESPONSE_SCHEMA
from validators import (
    validate_chat_messages,
    validate_director_request,
    validate_image_prompt_stage,
    validate_loop_cycle_request,
    validate_video_plan_request,
)

DEFAULT_MODEL = "gpt-4o-mini"


def _video_body(**overrides):
    body = {"scriptText": "A story about rain.", "tone": "calm", "visualStyle": "realistic", "aspectRatio": "16:9"}
    body.update(overrides)
    return body


@pytest.mark.parametrize("field", ["scriptText", "tone", "visualStyle", "aspectRatio"])
def test_video_plan_requires_each_field(field):
    result = validate_video_plan_request(_video_body(**{field: "   "}), DEFAULT_MODEL)
    assert not result.ok
    assert result.status == 400
    assert result.error == f"{field} is required"


def test_video_plan_rejects_non_object():
    result = validate_video_plan_request(["scriptText"], DEFAULT_MODEL)
    assert not result.ok
    assert result.status == 400


@pytest.mark.parametrize(
    "field, value",
    [("tone", "angry"), ("visualStyle", "claymation"), ("aspectRatio", "4:3")],
)
def test_video_plan_rejects_values_outside_enums(field, value):
    result = validate_video_plan_request(_video_body(**{field: value}), DEFAULT_MODEL)
    assert not result.ok
    assert result.error.startswith(f"{field} must be one of")


def test_video_plan_unknown_model_names_the_id():
    result = validate_video_plan_request(_video_body(llmModel="gpt-9-ultra"), DEFAULT_MODEL)
    assert not result.ok
    assert result.status == 400
    assert "gpt-9-ultra" in result.error


def test_video_plan_model_without_capability():
    result = validate_video_plan_request(_video_body(llmModel="gemini-1.5-nano-banana"), DEFAULT_MODEL)
    assert not result.ok
    assert "does not support video plans" in result.error


def test_video_plan_non_string_model():
    result = validate_video_plan_request(_video_body(llmModel=42), DEFAULT_MODEL)
    assert not result.ok
    assert result.error == "llmModel must be a string"


@pytest.mark.parametrize("llm_model", [None, "", "   "])
def test_video_plan_falls_back_to_default_model(llm_model):
    body = _video_body()
    if llm_model is not None:
        body["llmModel"] = llm_model
    result = validate_video_plan_request(body, DEFAULT_MODEL)
    assert result.ok
    assert result.value.model == DEFAULT_MODEL
    assert result.value.provider == "openai"


def test_video_plan_resolves_gemini_capability():
    result = validate_video_plan_request(
        _video_body(llmModel="gemini-1.5-flash", visionSeed="  neon rain  ", lighting="low_key"),
        DEFAULT_MODEL,
    )
    assert result.ok
    value = result.value
    assert value.provider == "gemini"
    assert value.capability.response_schema == VIDEO_PLAN_RESPONSE_SCHEMA
    assert value.vision_seed == "neon rain"
    assert value.lighting == "low_key"
    assert value.composition is None


def _image_body(**payload):
    base = {"vision_seed_text": "A lighthouse keeper", "model": "sdxl"}
    base.update(payload)
    return {"mode": "image_prompt", "payload": base}


def test_director_rejects_unknown_mode():
    result = validate_director_request({"mode": "audio", "payload": {}})
    assert not result.ok
    assert "mode must be one of" in result.error


def test_director_requires_payload_object():
    result = validate_director_request({"mode": "image_prompt", "payload": "text"})
    assert not result.ok
    assert result.error == "payload must be an object"


def test_director_image_prompt_payload():
    body = _image_body(selectedOptions={"lightingStyles": ["volumetric"], "cameraAngles": []}, constraints=" SFW ")
    body["images"] = ["data:image/png;base64,AAAA"]

    result = validate_director_request(body)

    assert result.ok
    payload = result.value.payload
    assert isinstance(payload, ImagePromptPayload)
    assert payload.selected_options.lighting_styles == ["volumetric"]
    assert payload.constraints == "SFW"
    assert result.value.images == ["data:image/png;base64,AAAA"]


def test_director_image_prompt_rejects_unknown_image_model():
    result = validate_director_request(_image_body(model="midjourney"))
    assert not result.ok
    assert result.error.startswith("payload.model must be one of")


def test_director_image_prompt_requires_seed_text():
    result = validate_director_request(_image_body(vision_seed_text=""))
    assert not result.ok
    assert result.error == "payload.vision_seed_text is required"


def test_director_selected_options_must_be_string_lists():
    result = validate_director_request(_image_body(selectedOptions={"shotSizes": "wide"}))
    assert not result.ok
    assert result.error == "payload.selectedOptions.shotSizes must be an array of strings"


def _video_director_body(**payload):
    base = {
        "vision_seed_text": "Desert odyssey",
        "script_text": "We crossed the dunes.",
        "tone": "inspirational",
        "visual_style": "stylized",
        "aspect_ratio": "9:16",
    }
    base.update(payload)
    return {"mode": "video_plan", "payload": base}


def test_director_video_plan_trims_planner_context():
    result = validate_director_request(
        _video_director_body(planner_context="  keep the hook  ", cinematic_control_options={"atmosphere": ["rain_mist"]})
    )
    assert result.ok
    payload = result.value.payload
    assert isinstance(payload, VideoPlanPayload)
    assert payload.planner_context == "keep the hook"
    assert payload.cinematic_control_options.atmosphere == ["rain_mist"]
    assert payload.render is False


def test_director_video_plan_render_must_be_boolean():
    result = validate_director_request(_video_director_body(render="yes"))
    assert not result.ok
    assert result.error == "payload.render must be a boolean"


def test_director_video_plan_checks_enums():
    result = validate_director_request(_video_director_body(aspect_ratio="1:1"))
    assert not result.ok
    assert result.error.startswith("payload.aspect_ratio must be one of")


def test_director_loop_sequence_reads_flat_option_lists():
    result = validate_director_request(
        {
            "mode": "loop_sequence",
            "payload": {
                "vision_seed_text": "Endless city",
                "start_frame_description": "Skater on a rooftop",
                "loop_length": 4,
                "cameraMovement": ["orbit_drift"],
            },
        }
    )
    assert result.ok
    payload = result.value.payload
    assert isinstance(payload, LoopSequencePayload)
    assert payload.loop_length == 4
    assert payload.selected_options.camera_movement == ["orbit_drift"]


@pytest.mark.parametrize("loop_length", [0, -2, True, "4", 2.5])
def test_director_loop_length_must_be_positive_integer(loop_length):
    result = validate_director_request(
        {
            "mode": "loop_sequence",
            "payload": {"vision_seed_text": "x", "start_frame_description": "y", "loop_length": loop_length},
        }
    )
    assert not result.ok
    assert result.error == "payload.loop_length must be a positive integer"


def test_loop_cycle_requires_vision_seed():
    result = validate_loop_cycle_request({"visionSeed": "   "})
    assert not result.ok
    assert result.error == "Vision Seed is required"


def test_loop_cycle_defaults():
    result = validate_loop_cycle_request({"visionSeed": " Endless tide "})
    assert result.ok
    value = result.value
    assert value.vision_seed == "Endless tide"
    assert value.predictive_mode is False
    assert value.start_frames == []
    assert value.previous_cycles == []


def test_loop_cycle_validates_previous_cycles():
    result = validate_loop_cycle_request({"visionSeed": "x", "previousCycles": ["cycle one"]})
    assert not result.ok
    assert result.error == "previousCycles must be an array of objects"


def test_loop_cycle_predictive_mode_must_be_boolean():
    result = validate_loop_cycle_request({"visionSeed": "x", "predictiveMode": "on"})
    assert not result.ok


def test_chat_messages():
    assert validate_chat_messages(None).value == []

    result = validate_chat_messages([{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}])
    assert result.ok
    assert [m.role for m in result.value] == ["user", "assistant"]

    assert validate_chat_messages("hi").error == "messages must be an array"
    assert validate_chat_messages([{"role": "system", "content": "x"}]).error == "message role must be user or assistant"
    assert validate_chat_messages([{"role": "user", "content": 3}]).error == "message content must be a string"


def test_image_prompt_stage_seed():
    result = validate_image_prompt_stage(
        {"stage": "seed", "visionSeedText": "Foggy harbour", "modelChoice": "flux", "lightingStyleId": "volumetric"}
    )
    assert result.ok
    assert result.value.model_choice == "flux"
    assert result.value.option_ids["lightingStyles"] == "volumetric"
    assert result.value.option_ids["cameraAngles"] is None


def test_image_prompt_stage_seed_requires_fields():
    result = validate_image_prompt_stage({"stage": "seed", "visionSeedText": "Foggy harbour"})
    assert not result.ok
    assert result.error == "Missing required fields"


def test_image_prompt_stage_refine_cleans_commands():
    result = validate_image_prompt_stage({"stage": "refine", "refinementCommands": [" warmer ", "", "closer"]})
    assert result.ok
    assert result.value.refinement_commands == ["warmer", "closer"]


def test_image_prompt_stage_unsupported():
    result = validate_image_prompt_stage({"stage": "publish"})
    assert not result.ok
    assert result.error == "Unsupported stage"


def test_video_plan_missing_field_reads_as_required():
    body = _video_body()
    del body["visualStyle"]
    result = validate_video_plan_request(body, DEFAULT_MODEL)
    assert result.error == "visualStyle is required"


def test_video_plan_enum_message_lists_choices():
    result = validate_video_plan_request(_video_body(tone=7), DEFAULT_MODEL)
    assert result.error == "tone must be one of: informative, hype, calm, dark, inspirational"


def test_video_plan_non_object_message():
    result = validate_video_plan_request("scriptText", DEFAULT_MODEL)
    assert result.error == "Request body must be a JSON object"


def test_director_requires_payload():
    result = validate_director_request({"mode": "image_prompt"})
    assert result.error == "payload is required"


def test_director_loop_flat_options_keep_payload_label():
    result = validate_director_request(
        {
            "mode": "loop_sequence",
            "payload": {"vision_seed_text": "x", "start_frame_description": "y", "atmosphere": "fog"},
        }
    )
    assert result.error == "payload.atmosphere must be an array of strings"


def test_loop_cycle_accepts_null_lists_and_drops_blank_frames():
    result = validate_loop_cycle_request(
        {"visionSeed": "Tide", "startFrames": ["  pier  ", " "], "previousCycles": None, "predictiveMode": True}
    )
    assert result.ok
    assert result.value.start_frames == ["pier"]
    assert result.value.previous_cycles == []
    assert result.value.predictive_mode is True


def test_loop_cycle_previous_cycles_must_be_a_list():
    result = validate_loop_cycle_request({"visionSeed": "x", "previousCycles": {"title": "one"}})
    assert result.error == "previousCycles must be an array of objects"


def test_chat_message_entries_must_be_objects():
    assert validate_chat_messages(["hi"]).error == "Each message must be an object"


def test_image_prompt_stage_seed_rejects_unknown_model():
    result = validate_image_prompt_stage({"stage": "seed", "visionSeedText": "Harbour", "modelChoice": "dalle"})
    assert result.error == "modelChoice must be one of: sdxl, flux, illustrious"


def test_image_prompt_stage_confirm_flag_must_be_boolean():
    result = validate_image_prompt_stage({"stage": "confirm", "confirmed": "yes"})
    assert result.error == "confirmed must be a boolean"
