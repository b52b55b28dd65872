"""
Groq provider — chat completions via Groq's OpenAI-compatible API.

Groq offers extremely fast inference (LPU hardware) and a free tier.
Get an API key at console.groq.com
"""
from __future__ import annotations

from providers.openai_compatible import OpenAICompatibleProvider

_GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class GroqProvider(OpenAICompatibleProvider):

    base_url = _GROQ_BASE_URL

    def __init__(self, api_key: str, model: str = "mixtral-8x7b-32768"):
        super().__init__("groq", api_key, model)
