"""
Provider Manager — initialises the enabled generation providers and runs the
fallback chain that produces the base JSON for a lookup.

Keys are read from key_store (environment) whenever the provider cache is
empty, so a process that started without keys picks them up on the next call.

preferredModel:
  auto      — try gemini → groq → deepseek until one returns usable JSON.
              Photos only go to image-capable providers (gemini).
  gemini    — use only that provider; missing key → 500, quota → 429,
  groq        any other failure → placeholder record.
  deepseek

Per-provider enable/disable via environment variables (all default to true):
  ENABLE_GEMINI=true/false
  ENABLE_GROQ=true/false
  ENABLE_DEEPSEEK=true/false
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import config
import key_store
from encyclopedia import QuotaWarning
from providers.base import (
    GenerationProvider, ImagePayload, ProviderNotConfiguredError, ProviderQuotaError,
    UnsupportedInputError, is_quota_status, status_of,
)

logger = logging.getLogger(__name__)

AUTO = "auto"
FALLBACK = "fallback"
DEFAULT_ORDER: tuple[str, ...] = ("gemini", "groq", "deepseek")

# Module-level cache; tests reset it to {}
_providers: dict[str, GenerationProvider] = {}


def _model_enabled(env_key: str, default: bool = True) -> bool:
    """
    Check whether a provider is enabled via an environment variable.
    Default is True; pass default=False to require explicit opt-in.
    """
    raw = os.getenv(env_key, "true" if default else "false")
    return raw.strip().lower() not in ("false", "0", "no")


def _make_gemini(api_key: str) -> GenerationProvider:
    from providers.gemini_provider import GeminiProvider
    return GeminiProvider(api_key, config.GEMINI_MODEL)


def _make_groq(api_key: str) -> GenerationProvider:
    from providers.groq_provider import GroqProvider
    return GroqProvider(api_key, config.GROQ_MODEL)


def _make_deepseek(api_key: str) -> GenerationProvider:
    from providers.deepseek_provider import DeepSeekProvider
    return DeepSeekProvider(api_key, config.DEEPSEEK_MODEL)


_FACTORIES = {
    # name: (key_store key, enable flag, factory)
    "gemini":   ("google_api_key",   "ENABLE_GEMINI",   _make_gemini),
    "groq":     ("groq_api_key",     "ENABLE_GROQ",     _make_groq),
    "deepseek": ("deepseek_api_key", "ENABLE_DEEPSEEK", _make_deepseek),
}


def _build_providers() -> dict[str, GenerationProvider]:
    """
    Instantiate every provider whose API key is set AND whose toggle is on.
    Returns dict keyed by short name, in DEFAULT_ORDER.
    """
    providers: dict[str, GenerationProvider] = {}

    for name in DEFAULT_ORDER:
        key_name, env_flag, factory = _FACTORIES[name]
        api_key = key_store.get(key_name)
        if not api_key:
            continue
        if not _model_enabled(env_flag):
            logger.info("Skipped provider %s (disabled by %s)", name, env_flag)
            continue
        try:
            p = factory(api_key)
        except Exception as exc:
            logger.warning("Could not load %s: %s", name, exc)
            continue
        providers[name] = p
        logger.info("Loaded provider: %s", p.full_name)

    if not providers:
        logger.warning(
            "No generation providers configured — lookups will return placeholder records. "
            "Set GOOGLE_API_KEY, GROQ_API_KEY or DEEPSEEK_API_KEY."
        )

    return providers


def get_providers() -> dict[str, GenerationProvider]:
    global _providers
    if not _providers:
        _providers = _build_providers()
    return _providers


def normalize_preference(preferred_model: Optional[str]) -> str:
    """Map the request's preferredModel onto 'auto' or a known provider name."""
    if not isinstance(preferred_model, str) or not preferred_model.strip():
        return AUTO
    value = preferred_model.strip().lower()
    if value == AUTO or value in DEFAULT_ORDER:
        return value
    logger.warning("Unknown preferredModel %r — using auto", preferred_model)
    return AUTO


# ── Core generation function ──────────────────────────────────────────────────

async def generate_base_json(
    query_text: str,
    image: Optional[ImagePayload],
    preferred_model: Optional[str],
    quota_warnings: list[QuotaWarning],
) -> tuple[Optional[dict], str]:
    """
    Run the generation chain for one request.

    Returns:
        (base_json or None, name of the provider that produced it / "fallback")
    """
    providers = get_providers()
    preference = normalize_preference(preferred_model)

    if preference != AUTO:
        return await _run_single(providers, preference, query_text, image, quota_warnings)

    for name in DEFAULT_ORDER:
        provider = providers.get(name)
        if provider is None:
            continue
        if image is not None and not provider.supports_images:
            continue
        try:
            data = await _attempt(provider, query_text, image)
        except Exception as exc:
            _record_failure(provider, exc, quota_warnings)
            continue
        if data is not None:
            return data, name

    return None, FALLBACK


async def _run_single(
    providers: dict[str, GenerationProvider],
    name: str,
    query_text: str,
    image: Optional[ImagePayload],
    quota_warnings: list[QuotaWarning],
) -> tuple[Optional[dict], str]:
    provider = providers.get(name)
    if provider is None:
        key_name, _, _ = _FACTORIES[name]
        raise ProviderNotConfiguredError(
            f"Provider '{name}' is not configured on the server (missing {key_name.upper()})."
        )
    if image is not None and not provider.supports_images:
        raise UnsupportedInputError(f"Provider '{name}' is text-only; send queryText without an image.")

    try:
        data = await _attempt(provider, query_text, image)
    except Exception as exc:
        warning = _record_failure(provider, exc, quota_warnings)
        if is_quota_status(warning.status):
            raise ProviderQuotaError(name, warning.status, warning.message) from exc
        return None, FALLBACK

    if data is None:
        return None, FALLBACK
    return data, name


async def _attempt(
    provider: GenerationProvider,
    query_text: str,
    image: Optional[ImagePayload],
) -> Optional[dict]:
    result = await provider.generate(query_text, image)
    if not result.is_usable:
        logger.warning("[%s] Response has no 'name' field — discarded", provider.full_name)
        return None
    logger.info("[%s] OK — latency=%dms tokens=%d/%d",
                provider.full_name, result.latency_ms, result.input_tokens, result.output_tokens)
    return result.data


def _record_failure(
    provider: GenerationProvider,
    exc: Exception,
    quota_warnings: list[QuotaWarning],
) -> QuotaWarning:
    logger.error("[%s] Failed: %s", provider.full_name, exc)
    warning = QuotaWarning(source=provider.name, status=status_of(exc), message=str(exc)[:500])
    quota_warnings.append(warning)
    return warning
