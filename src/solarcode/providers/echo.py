from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional
import time

from solarcode.core.errors import CapabilityError
from solarcode.core.types import (
    Candidate,
    Content,
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    FinishReason,
    GenerateContentParameters,
    GenerateContentResponse,
    Part,
)
from solarcode.providers.message_mapper import estimate_tokens
from solarcode.providers.registry import ProviderRegistry

_LOREM_50 = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua Curabitur non nulla sit amet nisl "
    "tempor convallis quis ac lectus Phasellus viverra nulla ut metus varius laoreet "
    "Quisque rutrum Aenean imperdiet Etiam ultricies nisi vel augue Curabitur ullamcorper ultricies nisi"
).split()


def _response(text: str, finish: Optional[FinishReason]) -> GenerateContentResponse:
    parts = [Part(text=text)] if text else []
    return GenerateContentResponse(
        candidates=[Candidate(content=Content(role="model", parts=parts), finish_reason=finish)]
    )


@ProviderRegistry.register("echo")
class EchoContentGenerator:
    """
    Offline stub that returns a fixed 50-word lorem ipsum.
    Streaming yields one word per increment with a small delay to simulate tokens.
    """
    model = "echo-lorem"

    def __init__(self, token_delay: float = 0.125, words: Optional[List[str]] = None):
        self.token_delay = float(token_delay)
        self.words = list(words) if words is not None else list(_LOREM_50)

    @classmethod
    def create(cls, *, provider_cfg: Dict[str, Any], logger=None) -> "EchoContentGenerator":
        return cls(token_delay=(provider_cfg or {}).get("token_delay", 0.125))

    def generate_content(self, request: GenerateContentParameters, user_prompt_id: str = "") -> GenerateContentResponse:
        return _response(" ".join(self.words), FinishReason.STOP)

    def generate_content_stream(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> Iterator[GenerateContentResponse]:
        last_idx = len(self.words) - 1
        for i, w in enumerate(self.words):
            yield _response(w + ("" if i == last_idx else " "), FinishReason.STOP if i == last_idx else None)
            if self.token_delay > 0:
                time.sleep(self.token_delay)

    def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        return CountTokensResponse(total_tokens=estimate_tokens(request.contents))

    def embed_content(self, request: EmbedContentParameters) -> EmbedContentResponse:
        raise CapabilityError("Echo provider does not support embedContent operation")
