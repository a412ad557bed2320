# tests/unit/test_request_builder.py

from __future__ import annotations
import sys
from pathlib import Path

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from solarcode.core.types import Content, GenerateContentConfig, GenerateContentParameters, Part
from solarcode.providers.request_builder import JSON_RESPONSE_INSTRUCTION, RequestBuilder


def test_hello_request_body(solar_config):
    req = GenerateContentParameters(contents="Hello", config=GenerateContentConfig())
    body = RequestBuilder(solar_config).build(req, stream=False).to_body()
    assert body == {
        "model": "solar-pro2",
        "messages": [{"role": "user", "content": "Hello"}],
        "max_tokens": 4096,
        "stream": False,
    }


def test_model_always_comes_from_config(solar_config):
    req = GenerateContentParameters(contents="Hello", model="gemini-2.5-pro")
    built = RequestBuilder(solar_config).build(req, stream=True)
    assert built.model == "solar-pro2"
    assert built.stream is True


def test_temperature_passes_through(solar_config):
    req = GenerateContentParameters(contents="Hi", config=GenerateContentConfig(temperature=0.2))
    body = RequestBuilder(solar_config).build(req, stream=False).to_body()
    assert body["temperature"] == 0.2


def test_json_mime_type_appends_instruction_to_last_user_message(solar_config):
    history = [
        Content(role="user", parts=[Part(text="first")]),
        Content(role="model", parts=[Part(text="reply")]),
        Content(role="user", parts=[Part(text="give me json")]),
    ]
    req = GenerateContentParameters(contents=history, config=GenerateContentConfig(response_mime_type="application/json"))
    msgs = RequestBuilder(solar_config).build(req, stream=False).messages
    assert msgs[0].content == "first"
    assert msgs[1].content == "reply"
    assert msgs[2].content == "give me json" + JSON_RESPONSE_INSTRUCTION


def test_schema_request_skips_trailing_non_user_turns(solar_config):
    history = [
        Content(role="user", parts=[Part(text="list colours")]),
        Content(role="model", parts=[Part(text="{")]),
    ]
    req = GenerateContentParameters(
        contents=history, config=GenerateContentConfig(response_schema={"type": "object"})
    )
    msgs = RequestBuilder(solar_config).build(req, stream=False).messages
    assert msgs[0].content.endswith(JSON_RESPONSE_INSTRUCTION)
    assert msgs[1].content == "{"


def test_schema_request_without_user_message_is_left_alone(solar_config):
    history = [Content(role="system", parts=[Part(text="sys")])]
    req = GenerateContentParameters(contents=history, config=GenerateContentConfig(response_mime_type="application/json"))
    msgs = RequestBuilder(solar_config).build(req, stream=False).messages
    assert [m.content for m in msgs] == ["sys"]


def test_plain_text_request_has_no_instruction(solar_config):
    req = GenerateContentParameters(contents="Hi", config=GenerateContentConfig(response_mime_type="text/plain"))
    msgs = RequestBuilder(solar_config).build(req, stream=False).messages
    assert msgs[0].content == "Hi"
