# src/solarcode/providers/logging_generator.py
from __future__ import annotations
import time
from contextlib import closing
from typing import Iterator, Optional

import structlog

from solarcode.core.ports import ContentGenerator
from solarcode.core.types import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
    UsageMetadata,
)


def _usage_dict(usage: Optional[UsageMetadata]) -> Optional[dict]:
    if usage is None:
        return None
    return {
        "prompt": usage.prompt_token_count,
        "candidates": usage.candidates_token_count,
        "total": usage.total_token_count,
    }


class LoggingContentGenerator:
    """
    Wraps any ContentGenerator and emits one structured event per request,
    response and failure. Adds no behaviour of its own.
    """

    def __init__(self, inner: ContentGenerator, logger=None):
        self.inner = inner
        self.model = getattr(inner, "model", "unknown")
        self.log = logger or structlog.get_logger(__name__)

    def generate_content(self, request: GenerateContentParameters, user_prompt_id: str = "") -> GenerateContentResponse:
        log = self.log.bind(model=self.model, prompt_id=user_prompt_id, stream=False)
        log.info("generate_content_request")
        start = time.monotonic()
        try:
            response = self.inner.generate_content(request, user_prompt_id)
        except Exception as e:
            log.error("generate_content_error", error=str(e), duration_ms=int((time.monotonic() - start) * 1000))
            raise
        log.info(
            "generate_content_response",
            duration_ms=int((time.monotonic() - start) * 1000),
            usage=_usage_dict(response.usage_metadata),
        )
        return response

    def generate_content_stream(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> Iterator[GenerateContentResponse]:
        log = self.log.bind(model=self.model, prompt_id=user_prompt_id, stream=True)
        log.info("generate_content_request")
        start = time.monotonic()
        increments = 0
        usage: Optional[UsageMetadata] = None
        outcome: Optional[str] = "generate_content_abandoned"
        try:
            # an abandoned outer stream closes the inner one immediately
            with closing(self.inner.generate_content_stream(request, user_prompt_id)) as stream:
                for response in stream:
                    increments += 1
                    usage = response.usage_metadata or usage
                    yield response
            outcome = "generate_content_response"
        except Exception as e:
            outcome = None
            log.error("generate_content_error", error=str(e), increments=increments,
                      duration_ms=int((time.monotonic() - start) * 1000))
            raise
        finally:
            if outcome:
                log.info(
                    outcome,
                    increments=increments,
                    duration_ms=int((time.monotonic() - start) * 1000),
                    usage=_usage_dict(usage),
                )

    def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        return self.inner.count_tokens(request)

    def embed_content(self, request: EmbedContentParameters) -> EmbedContentResponse:
        return self.inner.embed_content(request)
