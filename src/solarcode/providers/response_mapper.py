# src/solarcode/providers/response_mapper.py
from __future__ import annotations
from typing import Optional

from solarcode.core.types import (
    Candidate,
    Content,
    FinishReason,
    GenerateContentResponse,
    Part,
    UsageMetadata,
)
from solarcode.providers.message_mapper import from_backend_content, to_uniform_role
from solarcode.providers.solar_types import ChatCompletion, ChatCompletionChunk, Usage

_FINISH_REASONS = {
    "stop": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
}


def map_finish_reason(reason: Optional[str]) -> FinishReason:
    return _FINISH_REASONS.get(reason or "", FinishReason.FINISH_REASON_UNSPECIFIED)


def _usage(usage: Optional[Usage]) -> Optional[UsageMetadata]:
    if usage is None:
        return None
    return UsageMetadata(
        prompt_token_count=usage.prompt_tokens,
        candidates_token_count=usage.completion_tokens,
        total_token_count=usage.total_tokens,
    )


def from_completion(completion: ChatCompletion) -> GenerateContentResponse:
    # Only the first choice is used, even if the backend returned more
    choice = completion.choices[0]
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=from_backend_content(choice.message.content or "", choice.message.role),
                finish_reason=map_finish_reason(choice.finish_reason),
                index=choice.index,
            )
        ],
        usage_metadata=_usage(completion.usage),
    )


def from_stream_chunk(chunk: ChatCompletionChunk) -> GenerateContentResponse:
    choice = chunk.choices[0]
    text = choice.delta.content or ""
    role = to_uniform_role(choice.delta.role)
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role=role, parts=[Part(text=text)] if text else []),
                finish_reason=map_finish_reason(choice.finish_reason) if choice.finish_reason else None,
                index=choice.index,
            )
        ],
        # usually only the last event before [DONE] carries usage
        usage_metadata=_usage(chunk.usage),
    )
