import pytest

from director_types import (
    DirectorCoreError,
    DirectorCoreSuccess,
    DirectorImage,
    VideoPlanFormatError,
    parse_video_plan_response,
)


def _plan(scenes, **extra):
    return {"mode": "video_plan", "thumbnail": {"prompt": "Hero at dawn"}, "scenes": scenes, **extra}


def test_canonical_plan_passes_through():
    plan = parse_video_plan_response(
        _plan([{"id": "intro", "title": "Intro", "prompt": "Wide skyline", "duration": "6s"}])
    )

    assert plan.mode == "video_plan"
    assert plan.thumbnail.prompt == "Hero at dawn"
    scene = plan.scenes[0]
    assert (scene.id, scene.title, scene.prompt, scene.duration) == ("intro", "Intro", "Wide skyline", "6s")


def test_synonym_fields_map_to_canonical_names():
    plan = parse_video_plan_response(
        {
            "mode": "video_plan",
            "thumbnail": {"prompt": "Neon storm", "title": "Storm", "summary": "Lightning over towers"},
            "scenes": [
                {
                    "visual_prompt": "Rain on glass",
                    "segment_title": "Opening",
                    "scene_description": "Slow drift across the window",
                    "voice_over": "It started with rain.",
                    "length": "8s",
                    "synopsis": "Set the mood",
                }
            ],
        }
    )

    scene = plan.scenes[0].model_dump()
    assert scene == {
        "id": "scene-1",
        "title": "Opening",
        "prompt": "Rain on glass",
        "summary": "Set the mood",
        "description": "Slow drift across the window",
        "voiceover": "It started with rain.",
        "duration": "8s",
    }
    assert plan.thumbnail.description == "Lightning over towers"
    assert "visual_prompt" not in scene


def test_missing_ids_and_titles_fall_back_to_position():
    plan = parse_video_plan_response(_plan([{"prompt": "one"}, {"prompt": "two", "title": "   "}]))

    assert [s.id for s in plan.scenes] == ["scene-1", "scene-2"]
    assert [s.title for s in plan.scenes] == ["Scene 1", "Scene 2"]


def test_canonical_key_wins_even_when_blank():
    plan = parse_video_plan_response(_plan([{"prompt": "x", "title": "", "segment_title": "Ignored"}]))
    assert plan.scenes[0].title == "Scene 1"


def test_zero_scenes_is_rejected():
    with pytest.raises(VideoPlanFormatError, match="at least one scene"):
        parse_video_plan_response(_plan([]))


@pytest.mark.parametrize(
    "payload, message",
    [
        ([], "not an object"),
        ({"mode": "image_prompt"}, "mode mismatch"),
        ({"mode": "video_plan", "scenes": [{"prompt": "x"}]}, "missing a thumbnail plan"),
        ({"mode": "video_plan", "thumbnail": {"prompt": "  "}, "scenes": [{"prompt": "x"}]}, "thumbnail prompt is required"),
        (_plan({"prompt": "x"}), "at least one scene"),
        (_plan([{"prompt": "x"}, "oops"]), "Scene 2 is not an object"),
        (_plan([{"prompt": "x"}, {"title": "No prompt"}]), "Scene 2 is missing a prompt"),
    ],
)
def test_invalid_plans_name_the_problem(payload, message):
    with pytest.raises(VideoPlanFormatError, match=message):
        parse_video_plan_response(payload)


def test_core_results_serialise_with_camel_case():
    success = DirectorCoreSuccess(
        mode="image_prompt",
        provider="gemini",
        images=[DirectorImage(mime_type="image/png", data="abc", alt_text="Hero")],
        prompt_text="Hero prompt",
    )
    assert success.to_json() == {
        "success": True,
        "mode": "image_prompt",
        "provider": "gemini",
        "images": [{"mimeType": "image/png", "data": "abc", "altText": "Hero"}],
        "promptText": "Hero prompt",
    }

    error = DirectorCoreError(provider="gemini", error="Quota exceeded", status=429)
    assert error.success is False
    assert error.to_json() == {"success": False, "provider": "gemini", "error": "Quota exceeded", "status": 429}


def test_numeric_length_is_kept_as_duration():
    plan = parse_video_plan_response(_plan([{"prompt": "x", "length": 6}]))
    assert plan.scenes[0].duration == 6
