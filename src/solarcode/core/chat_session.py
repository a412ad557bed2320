from __future__ import annotations
from contextlib import closing
from typing import List, Optional

from .ports import ContentGenerator
from .types import Content, GenerateContentConfig, GenerateContentParameters, Part


class ChatSession:
    """
    Ordered conversation history in the uniform Content shape.
    A system prompt, when given, is always the first turn.
    """

    def __init__(self, model: ContentGenerator, system_prompt: Optional[str] = None,
                 config: Optional[GenerateContentConfig] = None):
        self.model = model
        self.config = config or GenerateContentConfig()
        self.history: List[Content] = []
        if system_prompt:
            self.history.append(Content(role="system", parts=[Part(text=system_prompt)]))
        self._turns = 0

    def _request(self) -> GenerateContentParameters:
        return GenerateContentParameters(contents=list(self.history), config=self.config)

    def _prompt_id(self) -> str:
        self._turns += 1
        return f"turn-{self._turns}"

    def run_turn(self, user_text: str) -> str:
        self.history.append(Content(role="user", parts=[Part(text=user_text)]))
        reply = self.model.generate_content(self._request(), self._prompt_id())
        content = reply.text
        self.history.append(Content(role="model", parts=[Part(text=content)]))
        return content

    def run_turn_stream(self, user_text: str):
        self.history.append(Content(role="user", parts=[Part(text=user_text)]))
        request = self._request()
        prompt_id = self._prompt_id()
        partial: list[str] = []

        def gen():
            try:
                with closing(self.model.generate_content_stream(request, prompt_id)) as stream:
                    for increment in stream:
                        piece = increment.text
                        if piece:
                            partial.append(piece)
                            yield piece
            finally:
                if partial:
                    self.history.append(Content(role="model", parts=[Part(text="".join(partial))]))
        return gen()
