import json

import pytest

import openai_chat
from conftest import gemini_text_response
from prompts import LOOP_ASSISTANT_OPENING_TURN, LOOP_ASSISTANT_SYSTEM_PROMPT, LOOP_CYCLE_SYSTEM_PROMPT

CYCLE_BODY = {
    "visionSeed": "A city that rebuilds itself every night",
    "inspirationReferences": "Blade Runner rooftops",
    "startFrames": ["Crane silhouettes at dusk"],
    "previousCycles": [{"title": "Cycle 1"}],
    "predictiveMode": True,
}

CYCLE = {"cycleTitle": "Cycle 2", "scenes": [{"description": "Scaffolds bloom like vines"}]}


@pytest.fixture
def openai_calls(monkeypatch):
    class Recorder(list):
        content = ""
        error = None

    calls = Recorder()

    async def fake_complete_json(system, prompt, *, model=None, api_key=None):
        calls.append({"system": system, "prompt": prompt, "model": model})
        if calls.error is not None:
            raise calls.error
        return calls.content

    monkeypatch.setattr(openai_chat, "complete_json", fake_complete_json)
    return calls


# --- Loop cycle ---
def test_loop_cycle_success(make_client, openai_calls):
    openai_calls.content = json.dumps(CYCLE)

    response = make_client().post("/api/generate-loop-cycle", json=CYCLE_BODY)

    assert response.status_code == 200
    assert response.json() == CYCLE
    call = openai_calls[0]
    assert call["system"] == LOOP_CYCLE_SYSTEM_PROMPT
    assert call["model"] == "gpt-4o-mini"
    assert "A city that rebuilds itself every night" in call["prompt"]
    assert "Crane silhouettes at dusk" in call["prompt"]


def test_loop_cycle_validation_runs_before_key_check(make_client, make_settings, openai_calls):
    client = make_client(make_settings(openai_api_key=None))

    response = client.post("/api/generate-loop-cycle", json={**CYCLE_BODY, "visionSeed": "   "})

    assert response.status_code == 400
    assert response.json() == {"error": "Vision Seed is required"}


def test_loop_cycle_rejects_malformed_previous_cycles(make_client, openai_calls):
    response = make_client().post("/api/generate-loop-cycle", json={**CYCLE_BODY, "previousCycles": ["x"]})

    assert response.status_code == 400
    assert openai_calls == []


def test_loop_cycle_missing_key_is_500(make_client, make_settings, openai_calls):
    response = make_client(make_settings(openai_api_key=None)).post("/api/generate-loop-cycle", json=CYCLE_BODY)

    assert response.status_code == 500
    assert response.json() == {"error": "OpenAI API key not configured"}
    assert openai_calls == []


@pytest.mark.parametrize("content", ["", "not json", "[1, 2]"])
def test_loop_cycle_unusable_content_is_500(make_client, openai_calls, content):
    openai_calls.content = content

    response = make_client().post("/api/generate-loop-cycle", json=CYCLE_BODY)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate loop cycle"}


def test_loop_cycle_provider_failure_is_500(make_client, openai_calls):
    openai_calls.error = RuntimeError("connection reset")

    response = make_client().post("/api/generate-loop-cycle", json=CYCLE_BODY)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate loop cycle"}


# --- Loop assistant ---
def test_loop_assistant_maps_roles(make_client, gemini):
    gemini.queue(200, gemini_text_response("  Try a slower dolly.  "))
    messages = [
        {"role": "user", "content": "How do I open the loop?"},
        {"role": "assistant", "content": "Start on the skyline."},
        {"role": "user", "content": "And then?"},
    ]

    response = make_client().post("/api/loop-assistant", json={"messages": messages})

    assert response.status_code == 200
    assert response.json() == {"reply": "Try a slower dolly."}
    body = gemini.body()
    assert [content["role"] for content in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][1]["parts"] == [{"text": "Start on the skyline."}]
    assert body["system_instruction"]["parts"][0]["text"] == LOOP_ASSISTANT_SYSTEM_PROMPT
    assert gemini.requests[0].url.path.endswith("models/gemini-1.5-pro:generateContent")


def test_loop_assistant_accepts_history_and_opens_empty_chats(make_client, gemini):
    gemini.queue(200, gemini_text_response("Welcome to the loop."))

    response = make_client().post("/api/loop-assistant", json={"history": []})

    assert response.status_code == 200
    assert gemini.body()["contents"] == [{"role": "user", "parts": [{"text": LOOP_ASSISTANT_OPENING_TURN}]}]


def test_loop_assistant_system_prompt_override(make_client, make_settings, gemini):
    gemini.queue(200, gemini_text_response("ok"))
    settings = make_settings(loop_assistant_system_prompt="Answer in haiku.")

    make_client(settings).post("/api/loop-assistant", json={"messages": []})

    assert gemini.body()["system_instruction"]["parts"][0]["text"] == "Answer in haiku."


@pytest.mark.parametrize(
    "messages",
    [
        "hello",
        [{"role": "system", "content": "x"}],
        [{"role": "user", "content": 42}],
        ["not an object"],
    ],
)
def test_loop_assistant_rejects_bad_messages(make_client, gemini, messages):
    response = make_client().post("/api/loop-assistant", json={"messages": messages})

    assert response.status_code == 400
    assert gemini.requests == []


def test_loop_assistant_forwards_provider_errors(make_client, gemini):
    gemini.queue(503, {"error": {"message": "The model is overloaded"}})

    response = make_client().post("/api/loop-assistant", json={"messages": []})

    assert response.status_code == 503
    assert response.json()["error"] == "The model is overloaded"


def test_loop_assistant_empty_reply_is_502(make_client, gemini):
    gemini.queue(200, gemini_text_response("   "))

    response = make_client().post("/api/loop-assistant", json={"messages": []})

    assert response.status_code == 502


def test_loop_assistant_without_key_is_401(make_client, gemini):
    response = make_client(gemini_api_key=None).post("/api/loop-assistant", json={"messages": []})

    assert response.status_code == 401
    assert "Missing credentials" in response.json()["error"]
    assert gemini.requests == []


def test_loop_assistant_non_json_body_is_502(make_client, gemini):
    gemini.queue(200, text="<html>proxy page</html>")

    response = make_client().post("/api/loop-assistant", json={"messages": []})

    assert response.status_code == 502
    assert response.json() == {"error": "Gemini returned an unreadable reply"}
