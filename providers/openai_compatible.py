"""
Shared implementation for chat-completion APIs that speak the OpenAI wire
format (Groq, DeepSeek). Uses the official openai SDK with a custom base_url.

These providers are text only: the schema prompt goes in the system turn and
the user's query in the user turn, with JSON mode switched on.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from openai import AsyncOpenAI

from providers.base import (
    ELECTROLENS_SCHEMA_PROMPT, build_user_prompt,
    GenerationProvider, GenerationResult, ImagePayload, UnsupportedInputError,
    parse_json_response,
)

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(GenerationProvider):

    base_url: str = ""

    def __init__(self, name: str, api_key: str, model: str):
        self.name     = name
        self.model_id = model
        self._client  = AsyncOpenAI(api_key=api_key, base_url=self.base_url)

    async def generate(
        self,
        query_text: str,
        image: Optional[ImagePayload] = None,
    ) -> GenerationResult:
        if image is not None:
            raise UnsupportedInputError(f"{self.name} is text-only and cannot analyse images")

        t0 = time.monotonic()

        response = await self._client.chat.completions.create(
            model=self.model_id,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": ELECTROLENS_SCHEMA_PROMPT},
                {"role": "user",   "content": build_user_prompt(query_text, has_image=False)},
            ],
        )

        latency_ms    = int((time.monotonic() - t0) * 1000)
        raw           = response.choices[0].message.content if response.choices else ""
        usage         = response.usage
        input_tokens  = usage.prompt_tokens     if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        if not raw:
            raise ValueError(f"[{self.full_name}] Empty completion")

        data = parse_json_response(raw, self.full_name)

        return GenerationResult(
            provider_name = self.full_name,
            model_id      = self.model_id,
            data          = data,
            latency_ms    = latency_ms,
            input_tokens  = input_tokens,
            output_tokens = output_tokens,
        )
