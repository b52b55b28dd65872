"""
Shared pytest fixtures.

Every test starts with no API keys in the environment and with empty
provider / search-backend caches, so tests are fully isolated from each
other and from a developer's real .env.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import key_store  # noqa: E402


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove every API key and provider toggle from the environment."""
    for name in key_store.KEY_NAMES:
        monkeypatch.delenv(name.upper(), raising=False)
    for flag in ("ENABLE_GEMINI", "ENABLE_GROQ", "ENABLE_DEEPSEEK"):
        monkeypatch.delenv(flag, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_caches():
    """Each test starts with a clean provider and backend cache."""
    import providers.manager as manager_mod
    import web_search
    manager_mod._providers = {}
    web_search._backends = []
    yield
    manager_mod._providers = {}
    web_search._backends = []
