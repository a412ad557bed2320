# tests/unit/test_solar_adapter.py

from __future__ import annotations
import json
import sys
from pathlib import Path

import httpx
import pytest

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from conftest import TrackingStream
from solarcode.core.errors import CapabilityError, QuotaError, TransportError
from solarcode.core.types import (
    CountTokensParameters,
    EmbedContentParameters,
    FinishReason,
    GenerateContentConfig,
    GenerateContentParameters,
)
from solarcode.providers.solar_adapter import SolarContentGenerator
from solarcode.providers.transport import ChatCompletionsTransport


def sse_body(*texts, usage=None) -> bytes:
    out = b""
    for i, t in enumerate(texts):
        event = {"choices": [{"index": 0, "delta": {"content": t}, "finish_reason": None}]}
        if i == 0:
            event["choices"][0]["delta"]["role"] = "assistant"
        out += b"data: " + json.dumps(event).encode() + b"\n\n"
    final = {"choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}]}
    if usage:
        final["usage"] = usage
    out += b"data: " + json.dumps(final).encode() + b"\n\n"
    return out + b"data: [DONE]\n\n"


def make_generator(solar_config, mock_client, handler):
    client, seen = mock_client(handler)
    transport = ChatCompletionsTransport(solar_config, client=client)
    return SolarContentGenerator(solar_config, transport=transport), seen


def test_generate_content_end_to_end(solar_config, mock_client):
    body = {
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hello there"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 4, "completion_tokens": 2, "total_tokens": 6},
    }
    gen, seen = make_generator(solar_config, mock_client, lambda req: httpx.Response(200, json=body))

    resp = gen.generate_content(GenerateContentParameters(contents="Hello", model="some-other-model"), "p1")

    assert resp.text == "Hello there"
    assert resp.candidates[0].finish_reason is FinishReason.STOP
    assert resp.usage_metadata.total_token_count == 6
    sent = json.loads(seen[0].content)
    assert sent["model"] == "solar-pro2"
    assert sent["max_tokens"] == 4096
    assert sent["stream"] is False
    assert gen.model == "solar-pro2"


def test_generate_content_quota_error_gets_backend_prefix(solar_config, mock_client):
    gen, _ = make_generator(
        solar_config, mock_client,
        lambda req: httpx.Response(403, json={"error": {"code": "api_key_is_not_allowed"}}),
    )
    with pytest.raises(QuotaError) as ei:
        gen.generate_content(GenerateContentParameters(contents="Hello"))
    assert str(ei.value).startswith("Solar API error: ")
    assert "console.upstage.ai/billing" in str(ei.value)


def test_generate_content_transport_error_gets_backend_prefix(solar_config, mock_client):
    gen, _ = make_generator(solar_config, mock_client, lambda req: httpx.Response(500, text="upstream down"))
    with pytest.raises(TransportError) as ei:
        gen.generate_content(GenerateContentParameters(contents="Hello"))
    assert str(ei.value).startswith("Solar API error: request failed: 500")
    assert ei.value.body == "upstream down"


def test_stream_yields_increments_in_order(solar_config, mock_client):
    usage = {"prompt_tokens": 3, "completion_tokens": 3, "total_tokens": 6}
    body = TrackingStream([sse_body("Hel", "lo", "!", usage=usage)])
    gen, seen = make_generator(solar_config, mock_client, lambda req: httpx.Response(200, stream=body))

    req = GenerateContentParameters(contents="Hi", config=GenerateContentConfig(temperature=0.3))
    out = list(gen.generate_content_stream(req, "p2"))

    assert [r.text for r in out] == ["Hel", "lo", "!", ""]
    assert out[-1].candidates[0].finish_reason is FinishReason.STOP
    assert out[-1].usage_metadata.total_token_count == 6
    sent = json.loads(seen[0].content)
    assert sent["stream"] is True
    assert sent["temperature"] == 0.3
    assert body.closed


def test_stream_is_lazy_until_first_iteration(solar_config, mock_client):
    body = TrackingStream([sse_body("x")])
    gen, seen = make_generator(solar_config, mock_client, lambda req: httpx.Response(200, stream=body))
    it = gen.generate_content_stream(GenerateContentParameters(contents="Hi"))
    assert seen == []
    assert next(it).text == "x"
    assert len(seen) == 1
    it.close()


def test_stream_abandoned_by_consumer_releases_connection(solar_config, mock_client):
    chunks = [b'data: {"choices":[{"delta":{"content":"a"}}]}\n', b'data: {"choices":[{"delta":{"content":"b"}}]}\n']
    body = TrackingStream(chunks + [b"data: [DONE]\n"])
    gen, _ = make_generator(solar_config, mock_client, lambda req: httpx.Response(200, stream=body))

    it = gen.generate_content_stream(GenerateContentParameters(contents="Hi"))
    assert next(it).text == "a"
    it.close()

    assert body.closed
    assert body.pulled == 1


def test_stream_survives_malformed_event(solar_config, mock_client):
    raw = (
        b'data: {"choices":[{"delta":{"content":"one"}}]}\n'
        b"data: not-json\n"
        b'data: {"choices":[{"delta":{"content":"two"}}]}\n'
        b"data: [DONE]\n"
    )
    gen, _ = make_generator(solar_config, mock_client, lambda req: httpx.Response(200, stream=TrackingStream([raw])))
    out = list(gen.generate_content_stream(GenerateContentParameters(contents="Hi")))
    assert [r.text for r in out] == ["one", "two"]


def test_stream_error_gets_streaming_prefix(solar_config, mock_client):
    gen, _ = make_generator(
        solar_config, mock_client,
        lambda req: httpx.Response(403, json={"error": {"message": "insufficient credit"}}),
    )
    with pytest.raises(QuotaError) as ei:
        list(gen.generate_content_stream(GenerateContentParameters(contents="Hi")))
    assert str(ei.value).startswith("Solar streaming API error: ")


def test_count_tokens_estimates_without_network(solar_config, mock_client):
    gen, seen = make_generator(solar_config, mock_client, lambda req: httpx.Response(500))
    resp = gen.count_tokens(CountTokensParameters(contents="x" * 400))
    assert resp.total_tokens == 100
    assert seen == []


def test_embed_content_is_not_supported(solar_config, mock_client):
    gen, seen = make_generator(solar_config, mock_client, lambda req: httpx.Response(500))
    with pytest.raises(CapabilityError):
        gen.embed_content(EmbedContentParameters(contents="embed me"))
    assert seen == []


def test_create_reads_environment(monkeypatch):
    from conftest import TEST_API_KEY
    monkeypatch.setenv("UPSTAGE_API_KEY", TEST_API_KEY)
    monkeypatch.setenv("UPSTAGE_MODEL", "solar-mini")
    gen = SolarContentGenerator.create(provider_cfg={})
    try:
        assert gen.model == "solar-mini"
        assert gen.transport.url == "https://api.upstage.ai/v1/solar/chat/completions"
    finally:
        gen.close()
