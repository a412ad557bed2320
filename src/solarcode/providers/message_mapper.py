# src/solarcode/providers/message_mapper.py
from __future__ import annotations
import math
from typing import Iterable, List, Optional

from solarcode.core.types import Content, ContentListUnion, Part
from solarcode.providers.solar_types import ChatMessage

_ROLE_TO_BACKEND = {
    "model": "assistant",
    "assistant": "assistant",
    "user": "user",
    "system": "system",
}
_ROLE_FROM_BACKEND = {"assistant": "model", "user": "user", "system": "system"}


def _as_part(item) -> Part:
    return Part(text=item) if isinstance(item, str) else item


def normalize_contents(contents: ContentListUnion) -> List[Content]:
    """
    Turn every accepted input shape into an ordered list of turns:
      str               -> one user turn with one text part
      Content           -> [content]
      Part              -> one user turn with that part
      [Content, ...]    -> as given
      [Part | str, ...] -> one user turn with those parts ([] -> one empty user turn)
    Anything else (including mixed sequences) is rejected.
    """
    if isinstance(contents, str):
        return [Content(role="user", parts=[Part(text=contents)])]
    if isinstance(contents, Content):
        return [contents]
    if isinstance(contents, Part):
        return [Content(role="user", parts=[contents])]
    if isinstance(contents, (list, tuple)):
        items = list(contents)
        if items and all(isinstance(i, Content) for i in items):
            return items
        if all(isinstance(i, (Part, str)) for i in items):
            return [Content(role="user", parts=[_as_part(i) for i in items])]
        raise TypeError("contents must be a sequence of Content or a sequence of Part/str, not a mix")
    raise TypeError(f"Unsupported contents type: {type(contents).__name__}")


def extract_text(parts: Iterable[Part]) -> str:
    # Non-text parts (inline data, function calls) are dropped for now
    return "".join(p.text or "" for p in parts)


def to_backend_messages(contents: ContentListUnion) -> List[ChatMessage]:
    messages: List[ChatMessage] = []
    for turn in normalize_contents(contents):
        role = _ROLE_TO_BACKEND.get(turn.role)
        if role is None:
            raise ValueError(f"Unknown role '{turn.role}' (expected 'user', 'model' or 'system')")
        messages.append(ChatMessage(role=role, content=extract_text(turn.parts or [])))
    return messages


def to_uniform_role(role: Optional[str]) -> str:
    # Replies come back as "assistant"; anything unrecognised is still the model speaking
    return _ROLE_FROM_BACKEND.get(role or "assistant", "model")


def from_backend_content(text: str, role: str = "assistant") -> Content:
    return Content(role=to_uniform_role(role), parts=[Part(text=text)])


def estimate_tokens(contents: ContentListUnion) -> int:
    """
    Rough count: about 4 characters per token. Advisory only;
    the backend has no counting endpoint.
    """
    total_text = "".join(extract_text(turn.parts or []) for turn in normalize_contents(contents))
    return math.ceil(len(total_text) / 4)
