# src/solarcode/providers/transport.py
from __future__ import annotations
import json
import time
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx
import structlog
from pydantic import ValidationError

from solarcode.config import SolarConfig
from solarcode.core.errors import QuotaError, TransportError
from solarcode.providers.solar_types import ChatCompletion, ChatCompletionRequest

_QUOTA_CODES = ("api_key_is_not_allowed",)
_QUOTA_MARKERS = ("insufficient credit", "insufficient balance")


def _preview(request: ChatCompletionRequest) -> str:
    if not request.messages:
        return "none"
    return request.messages[-1].content[:100]


def classify_error_response(status_code: int, reason: str, body: str) -> Exception:
    """
    Map a non-2xx response to QuotaError (billing/access restriction) or TransportError.
    The raw body is kept verbatim when it is not a JSON error object.
    """
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    # {"error": {"code", "message"}}, {"error": "..."} or {"message": "..."}
    code, message = "", ""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            code = str(error.get("code") or "")
            message = str(error.get("message") or "")
        elif isinstance(error, str):
            message = error
        if not message and isinstance(data.get("message"), str):
            message = data["message"]
    if code in _QUOTA_CODES or any(m in message.lower() for m in _QUOTA_MARKERS):
        return QuotaError(message or body)

    return TransportError(
        f"request failed: {status_code} {reason} - {body}",
        status_code=status_code,
        reason=reason,
        body=body,
    )


class ChatCompletionsTransport:
    """
    One HTTP POST per call to {base_url}/chat/completions.
    No retries here; see ResilientContentGenerator.
    """

    def __init__(
        self,
        config: SolarConfig,
        *,
        client: Optional[httpx.Client] = None,
        logger=None,
    ):
        self.config = config
        self.url = f"{config.base_url}/chat/completions"
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=httpx.Timeout(config.timeout_seconds))
        self.log = logger or structlog.get_logger(__name__)

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    def _check(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        body = response.text
        self.log.error("solar_api_error_response", status=response.status_code, body=body[:500])
        raise classify_error_response(response.status_code, response.reason_phrase, body)

    def call(self, request: ChatCompletionRequest) -> ChatCompletion:
        started = time.monotonic()
        self.log.debug(
            "solar_api_request",
            url=self.url,
            model=request.model,
            messages=len(request.messages),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            stream=False,
            last_user_message=_preview(request),
        )
        try:
            response = self.client.post(self.url, json=request.to_body(), headers=self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out after {self.config.timeout_seconds:g}s: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"network error: {e}") from e

        self._check(response)
        try:
            completion = ChatCompletion.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(
                f"malformed completion response: {e}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
            ) from e

        self.log.debug(
            "solar_api_response",
            status=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
            model=completion.model,
            usage=completion.usage.model_dump() if completion.usage else None,
            finish_reason=completion.choices[0].finish_reason,
        )
        return completion

    @contextmanager
    def open_stream(self, request: ChatCompletionRequest) -> Iterator[Iterator[bytes]]:
        """
        Issue a streaming POST and yield the raw body as an iterator of byte chunks.
        The response is closed when the with-block exits, however it exits.
        """
        started = time.monotonic()
        self.log.debug(
            "solar_api_stream_request",
            url=self.url,
            model=request.model,
            messages=len(request.messages),
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            last_user_message=_preview(request),
        )
        http_request = self.client.build_request(
            "POST", self.url, json=request.to_body(), headers=self._headers()
        )
        try:
            response = self.client.send(http_request, stream=True)
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out after {self.config.timeout_seconds:g}s: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"network error: {e}") from e

        try:
            if not response.is_success:
                response.read()
                self._check(response)
            self.log.debug(
                "solar_api_stream_opened",
                status=response.status_code,
                duration_ms=int((time.monotonic() - started) * 1000),
                content_type=response.headers.get("content-type"),
            )
            yield self._iter_bytes(response)
        finally:
            response.close()

    def _iter_bytes(self, response: httpx.Response) -> Iterator[bytes]:
        try:
            yield from response.iter_bytes()
        except httpx.TimeoutException as e:
            raise TransportError(f"stream timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"stream interrupted: {e}") from e

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
