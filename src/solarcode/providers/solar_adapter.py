# src/solarcode/providers/solar_adapter.py
from __future__ import annotations
from typing import Any, Dict, Iterator, Optional

import structlog

from solarcode.config import SolarConfig, load_solar_config
from solarcode.core.errors import CapabilityError, ProviderError
from solarcode.core.types import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)
from solarcode.providers.message_mapper import estimate_tokens
from solarcode.providers.registry import ProviderRegistry
from solarcode.providers.request_builder import RequestBuilder
from solarcode.providers.response_mapper import from_completion
from solarcode.providers.stream_decoder import StreamDecoder
from solarcode.providers.transport import ChatCompletionsTransport

UNARY_ERROR_PREFIX = "Solar API error"
STREAM_ERROR_PREFIX = "Solar streaming API error"


@ProviderRegistry.register("solar")
class SolarContentGenerator:
    """
    ContentGenerator over Upstage Solar's OpenAI-compatible chat-completions API.
    - model and max_tokens always come from SolarConfig
    - streaming is decoded from raw SSE bytes by StreamDecoder
    - provider errors reach the caller with a "Solar ..." prefix
    """

    def __init__(
        self,
        config: SolarConfig,
        *,
        transport: Optional[ChatCompletionsTransport] = None,
        logger=None,
    ):
        self.config = config
        self.log = logger or structlog.get_logger(__name__)
        self.transport = transport or ChatCompletionsTransport(config, logger=self.log)
        self.builder = RequestBuilder(config)

    @property
    def model(self) -> str:
        return self.config.model

    @classmethod
    def create(cls, *, provider_cfg: Dict[str, Any], logger=None) -> "SolarContentGenerator":
        # Raises ConfigurationError before any network traffic
        config = load_solar_config(secrets=(provider_cfg or {}).get("secrets"))
        return cls(config, logger=logger)

    def generate_content(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> GenerateContentResponse:
        backend_request = self.builder.build(request, stream=False)
        try:
            completion = self.transport.call(backend_request)
        except ProviderError as e:
            e.add_prefix(UNARY_ERROR_PREFIX)
            raise
        return from_completion(completion)

    def generate_content_stream(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> Iterator[GenerateContentResponse]:
        backend_request = self.builder.build(request, stream=True)
        decoder = StreamDecoder(logger=self.log)
        try:
            # Leaving the with-block (done, error, or consumer close()) releases the connection
            with self.transport.open_stream(backend_request) as chunks:
                yield from decoder.decode(chunks)
        except ProviderError as e:
            e.add_prefix(STREAM_ERROR_PREFIX)
            raise
        finally:
            if decoder.warnings:
                self.log.warning("stream_malformed_events", count=len(decoder.warnings))

    def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        # No counting endpoint; ~4 characters per token
        return CountTokensResponse(total_tokens=estimate_tokens(request.contents))

    def embed_content(self, request: EmbedContentParameters) -> EmbedContentResponse:
        raise CapabilityError("Solar API does not support embedContent operation")

    def close(self) -> None:
        self.transport.close()
