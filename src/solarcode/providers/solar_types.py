# src/solarcode/providers/solar_types.py
"""
Wire shapes of the OpenAI-compatible chat-completions dialect spoken by Solar.
Unknown response fields (id, created, logprobs, ...) are ignored.
"""
from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

BackendRole = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    role: BackendRole
    content: str


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    max_tokens: int
    temperature: Optional[float] = None
    stream: bool = False

    def to_body(self) -> dict:
        # temperature is omitted, not sent as null, when the caller left it unset
        return self.model_dump(exclude_none=True)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    index: int = 0
    message: CompletionMessage
    finish_reason: Optional[str] = None


class ChatCompletion(BaseModel):
    model: Optional[str] = None
    choices: List[CompletionChoice] = Field(min_length=1)
    usage: Optional[Usage] = None


class Delta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChunkChoice(BaseModel):
    index: int = 0
    delta: Delta
    finish_reason: Optional[str] = None


class ChatCompletionChunk(BaseModel):
    choices: List[ChunkChoice] = Field(min_length=1)
    usage: Optional[Usage] = None
