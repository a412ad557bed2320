# src/solarcode/providers/request_builder.py
from __future__ import annotations

from solarcode.config import SolarConfig
from solarcode.core.types import GenerateContentParameters
from solarcode.providers.message_mapper import to_backend_messages
from solarcode.providers.solar_types import ChatCompletionRequest

# Solar has no response_format/schema parameter, so structured output is asked for in prose
JSON_RESPONSE_INSTRUCTION = (
    "\n\nPlease respond with a valid JSON object only. "
    "Do not include any text before or after the JSON. "
    "The response should be parseable as JSON."
)


class RequestBuilder:
    def __init__(self, config: SolarConfig):
        self.config = config

    def build(self, request: GenerateContentParameters, stream: bool) -> ChatCompletionRequest:
        messages = to_backend_messages(request.contents)
        cfg = request.config

        if cfg.wants_json:
            last_user = next((m for m in reversed(messages) if m.role == "user"), None)
            if last_user is not None:
                last_user.content += JSON_RESPONSE_INSTRUCTION

        # model and max_tokens always come from config, never from the caller
        return ChatCompletionRequest(
            model=self.config.model,
            messages=messages,
            max_tokens=self.config.max_tokens,
            temperature=cfg.temperature,
            stream=stream,
        )
