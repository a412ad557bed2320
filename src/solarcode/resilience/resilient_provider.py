from __future__ import annotations
import time, random
from contextlib import closing
from typing import Iterator

import structlog

from solarcode.core.ports import ContentGenerator
from solarcode.core.types import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)


class ResiliencePolicy:
    def __init__(self, max_retries=3, base_delay=0.5, max_delay=8.0, total_timeout=300.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.total_timeout = total_timeout

    @classmethod
    def from_retry_count(cls, retry_count: int) -> "ResiliencePolicy":
        return cls(max_retries=int(retry_count))

    def compute_backoff(self, attempt: int) -> float:
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)) + random.random() * 0.1)


class ResilientContentGenerator:
    """
    Retries retryable failures (timeouts, network errors, 408/429/5xx) with
    exponential backoff. The original exception is re-raised once retries
    are exhausted so callers still see QuotaError/TransportError.
    """

    def __init__(self, inner: ContentGenerator, policy: ResiliencePolicy, logger=None):
        self.inner = inner
        self.policy = policy
        self.model = getattr(inner, "model", "unknown")
        self.log = logger or structlog.get_logger(__name__)

    def _should_retry(self, exc: Exception) -> bool:
        # Providers mark transient failures (timeouts, network, 408/429/5xx) as retryable
        return bool(getattr(exc, "retryable", False))

    def _give_up(self, exc: Exception, attempt: int, start: float) -> bool:
        return (
            not self._should_retry(exc)
            or attempt > self.policy.max_retries
            or (time.monotonic() - start) > self.policy.total_timeout
        )

    def _backoff(self, exc: Exception, attempt: int) -> None:
        delay = self.policy.compute_backoff(attempt)
        self.log.warning("provider_retry", attempt=attempt, max_retries=self.policy.max_retries,
                         delay=round(delay, 3), error=str(exc))
        time.sleep(delay)

    def generate_content(self, request: GenerateContentParameters, user_prompt_id: str = "") -> GenerateContentResponse:
        start = time.monotonic()
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.inner.generate_content(request, user_prompt_id)
            except KeyboardInterrupt:
                raise
            except Exception as e:
                if self._give_up(e, attempt, start):
                    raise
                self._backoff(e, attempt)

    def generate_content_stream(
        self, request: GenerateContentParameters, user_prompt_id: str = ""
    ) -> Iterator[GenerateContentResponse]:
        start = time.monotonic()
        attempt = 0
        yielded_any = False
        while True:
            attempt += 1
            try:
                with closing(self.inner.generate_content_stream(request, user_prompt_id)) as stream:
                    for chunk in stream:
                        yielded_any = True
                        yield chunk
                return
            except KeyboardInterrupt:
                raise
            except Exception as e:
                # Only retry before first chunk is yielded
                if yielded_any or self._give_up(e, attempt, start):
                    raise
                self._backoff(e, attempt)

    def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        return self.inner.count_tokens(request)

    def embed_content(self, request: EmbedContentParameters) -> EmbedContentResponse:
        return self.inner.embed_content(request)
