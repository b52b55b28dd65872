"""
DeepSeek provider — deepseek-chat via DeepSeek's OpenAI-compatible API.
Last resort in the text fallback chain.
"""
from __future__ import annotations

from providers.openai_compatible import OpenAICompatibleProvider

_DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class DeepSeekProvider(OpenAICompatibleProvider):

    base_url = _DEEPSEEK_BASE_URL

    def __init__(self, api_key: str, model: str = "deepseek-chat"):
        super().__init__("deepseek", api_key, model)
