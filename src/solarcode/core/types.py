# src/solarcode/core/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass
class Part:
    """
    One content fragment. Only text is understood by chat-completion backends;
    the other payloads exist so callers can build richer turns.
    """
    text: Optional[str] = None
    inline_data: Optional[Dict[str, Any]] = None
    function_call: Optional[Dict[str, Any]] = None


@dataclass
class Content:
    role: str = "user"
    parts: List[Part] = field(default_factory=list)


ContentListUnion = Union[str, Part, Content, Sequence[Union[str, Part, Content]]]


class FinishReason(str, Enum):
    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"


@dataclass
class GenerateContentConfig:
    temperature: Optional[float] = None
    response_mime_type: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None

    @property
    def wants_json(self) -> bool:
        return bool(self.response_schema) or self.response_mime_type == "application/json"


@dataclass
class GenerateContentParameters:
    contents: ContentListUnion
    config: GenerateContentConfig = field(default_factory=GenerateContentConfig)
    # Informational only; adapters always address their configured model
    model: Optional[str] = None


@dataclass
class Candidate:
    content: Content
    finish_reason: Optional[FinishReason] = None
    index: int = 0


@dataclass
class UsageMetadata:
    prompt_token_count: int
    candidates_token_count: int
    total_token_count: int


@dataclass
class GenerateContentResponse:
    candidates: List[Candidate] = field(default_factory=list)
    usage_metadata: Optional[UsageMetadata] = None

    @property
    def text(self) -> str:
        if not self.candidates:
            return ""
        return "".join(p.text or "" for p in self.candidates[0].content.parts)


@dataclass
class CountTokensParameters:
    contents: ContentListUnion
    model: Optional[str] = None


@dataclass
class CountTokensResponse:
    total_tokens: int


@dataclass
class EmbedContentParameters:
    contents: ContentListUnion
    model: Optional[str] = None


@dataclass
class EmbedContentResponse:
    embeddings: List[List[float]] = field(default_factory=list)
