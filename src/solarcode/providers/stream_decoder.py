# src/solarcode/providers/stream_decoder.py
"""
Incremental Server-Sent-Events decoder for chat-completion streams.

Bytes arrive in arbitrary network-sized pieces. They are decoded, appended to a
pending buffer, and split on newlines; the last piece of every split is kept
back because it may be an incomplete line. Only `data: ` lines matter. The
stream ends on a `data: [DONE]` line or when the transport runs out of bytes.
"""
from __future__ import annotations
import codecs
import json
from typing import Iterable, Iterator, List, Optional

import structlog
from pydantic import ValidationError

from solarcode.core.errors import DecodeWarning
from solarcode.core.types import GenerateContentResponse
from solarcode.providers.response_mapper import from_stream_chunk
from solarcode.providers.solar_types import ChatCompletionChunk

SSE_DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class StreamDecoder:
    """
    One decoder per streaming call; the buffer is never shared.
    Malformed events are recorded in `warnings`, logged, and skipped.
    """

    def __init__(self, logger=None):
        self.log = logger or structlog.get_logger(__name__)
        self.warnings: List[DecodeWarning] = []
        self.events = 0
        self.terminated = False
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def decode(self, chunks: Iterable[bytes]) -> Iterator[GenerateContentResponse]:
        if self.terminated:
            return
        try:
            for chunk in chunks:
                self._buffer += self._utf8.decode(chunk)
                *lines, self._buffer = self._buffer.split("\n")
                for line in lines:
                    if not line.startswith(SSE_DATA_PREFIX):
                        continue
                    payload = line[len(SSE_DATA_PREFIX):].strip()
                    if payload == DONE_SENTINEL:
                        self.log.debug("stream_done_sentinel", events=self.events)
                        return
                    increment = self._parse(payload)
                    if increment is not None:
                        self.events += 1
                        yield increment
            if self._buffer.strip():
                self.log.debug("stream_ended_with_partial_line", pending=self._buffer[:100])
            self.log.debug("stream_reader_done", events=self.events)
        finally:
            self.terminated = True
            self._buffer = ""

    def _parse(self, payload: str) -> Optional[GenerateContentResponse]:
        try:
            chunk = ChatCompletionChunk.model_validate(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            warning = DecodeWarning(payload[:100], str(e).splitlines()[0] if str(e) else type(e).__name__)
            self.warnings.append(warning)
            self.log.warning("stream_event_skipped", line=warning.line, error=warning.error)
            return None
        return from_stream_chunk(chunk)
