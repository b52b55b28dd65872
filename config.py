"""
Central configuration — reads from .env file.

API keys are not stored here; they come from key_store.py. Provider and
search clients are built once per process, so a rotated key needs a restart.
Tests override the attributes below with monkeypatch.setattr(config, ...).
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── HTTP server ───────────────────────────────────────────────────────────────
HOST: str        = os.getenv("HOST", "0.0.0.0")
PORT: int        = int(os.getenv("PORT", "3000"))
LOOKUP_PATH: str = os.getenv("LOOKUP_PATH", "/api/electro-lookup")

# Requests with a bigger body are rejected with 413 (base64 photos are large)
MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(8 * 1024 * 1024)))

# ── Generation providers ──────────────────────────────────────────────────────
# The service uses only the providers whose keys are present
# (GOOGLE_API_KEY, GROQ_API_KEY, DEEPSEEK_API_KEY, see key_store.py).
GEMINI_MODEL: str   = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GROQ_MODEL: str     = os.getenv("GROQ_MODEL", "mixtral-8x7b-32768")
DEEPSEEK_MODEL: str = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")

# ── Search backends ───────────────────────────────────────────────────────────
# Google Custom Search needs CSE_API_KEY + CSE_CX, Serper needs SERPER_API_KEY.
SEARCH_TIMEOUT_SECONDS: float = float(os.getenv("SEARCH_TIMEOUT_SECONDS", "15"))

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str       = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE: str | None = os.getenv("LOG_FILE", "").strip() or None
