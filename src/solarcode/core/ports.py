from __future__ import annotations
from typing import Iterator, Protocol

from .types import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)


class ContentGenerator(Protocol):
    """
    Interface the rest of the client uses to talk to any content backend.
    """

    # Surface the model name for logging/headers
    model: str

    def generate_content(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> GenerateContentResponse:
        """
        Blocking call. Returns one complete response.
        """
        ...

    def generate_content_stream(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> Iterator[GenerateContentResponse]:
        """
        Streaming call. Yields response increments as they arrive.
        Closing the iterator early must release the underlying connection.
        """
        ...

    def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        ...

    def embed_content(self, request: EmbedContentParameters) -> EmbedContentResponse:
        """
        Backends without an embedding endpoint raise CapabilityError.
        """
        ...
