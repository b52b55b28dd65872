"""
Google Gemini provider — uses the google-genai SDK.

The only provider that accepts photos: the image is sent inline next to the
schema prompt, with the user's label text (if any) as a hint.
JSON mode (response_mime_type="application/json") keeps the output parseable.
"""
from __future__ import annotations

import base64
import logging
import time
from typing import Optional

from google import genai
from google.genai import types as genai_types

from providers.base import (
    ELECTROLENS_SCHEMA_PROMPT, build_user_prompt,
    GenerationProvider, GenerationResult, ImagePayload, parse_json_response,
)

logger = logging.getLogger(__name__)


class GeminiProvider(GenerationProvider):

    supports_images = True

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.name     = "gemini"
        self.model_id = model
        self._client  = genai.Client(api_key=api_key)

    async def generate(
        self,
        query_text: str,
        image: Optional[ImagePayload] = None,
    ) -> GenerationResult:
        contents: list = []
        if image is not None:
            contents.append(
                genai_types.Part.from_bytes(
                    data=base64.b64decode(image.base64),
                    mime_type=image.mime_type,
                )
            )
        prompt = build_user_prompt(query_text, has_image=image is not None)
        if prompt:
            contents.append(prompt)

        gen_config = genai_types.GenerateContentConfig(
            system_instruction=ELECTROLENS_SCHEMA_PROMPT,
            response_mime_type="application/json",
        )

        t0 = time.monotonic()

        response = await self._client.aio.models.generate_content(
            model=self.model_id,
            contents=contents,
            config=gen_config,
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = response.text or ""

        usage         = response.usage_metadata
        input_tokens  = getattr(usage, "prompt_token_count",     0) or 0
        output_tokens = getattr(usage, "candidates_token_count", 0) or 0

        data = parse_json_response(raw, self.full_name)

        return GenerationResult(
            provider_name = self.full_name,
            model_id      = self.model_id,
            data          = data,
            latency_ms    = latency_ms,
            input_tokens  = input_tokens,
            output_tokens = output_tokens,
        )
