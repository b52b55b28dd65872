"""
key_store.py — single source of truth for all API keys.

Every key is read from the environment (or .env) on each call. Callers
cache what they build from them: providers.manager and web_search keep
their clients until the process restarts, so a rotated key needs a restart.

Key names (env vars are the uppercase equivalent):
  google_api_key    →  GOOGLE_API_KEY     (Gemini)
  groq_api_key      →  GROQ_API_KEY
  deepseek_api_key  →  DEEPSEEK_API_KEY
  cse_api_key       →  CSE_API_KEY        (Google Custom Search)
  cse_cx            →  CSE_CX             (Custom Search engine id)
  serper_api_key    →  SERPER_API_KEY
"""
from __future__ import annotations

import os
from typing import Optional

KEY_NAMES = (
    "google_api_key",
    "groq_api_key",
    "deepseek_api_key",
    "cse_api_key",
    "cse_cx",
    "serper_api_key",
)


def get(key_name: str) -> Optional[str]:
    """Return the value for key_name, or None if not set (blank counts as unset)."""
    value = os.getenv(key_name.upper(), "").strip()
    return value or None


def get_all_keys() -> dict[str, Optional[str]]:
    """Return all known keys with their current values."""
    return {name: get(name) for name in KEY_NAMES}


def mask(value: Optional[str]) -> str:
    """Return a masked version safe to log or expose on /health."""
    if not value:
        return "not set"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"
