"""
web_search.py — public interface for image and datasheet search.

The rest of the service imports only from here:
  from web_search import fetch_images, fetch_datasheet_and_references

Backends are tried in priority order, based on which keys are present:
  1. Google Custom Search   (CSE_API_KEY + CSE_CX)
  2. Serper                 (SERPER_API_KEY)

A failing backend never fails the lookup: errors are logged, quota/billing
statuses (429/402/403) are appended to the request's quota warnings, and the
next backend is tried. With no backend configured every field stays empty.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import key_store
from encyclopedia import QuotaWarning
from providers.base import is_quota_status
from search_backends.base import SearchBackend, SearchHit, SearchHTTPError

logger = logging.getLogger(__name__)

MAX_REFERENCES = 4

_QUOTA_MESSAGES = {
    "google_cse_images": "Google Custom Search image quota or billing limit reached.",
    "google_cse_search": "Google Custom Search quota or billing limit reached.",
    "serper_images":     "Serper image search quota or billing limit reached.",
    "serper_search":     "Serper search quota or billing limit reached.",
}

_backends: list[SearchBackend] = []


@dataclass
class ImageSet:
    real_image: Optional[str]
    usage_image: Optional[str]
    pinout_image: Optional[str]


def get_backends() -> list[SearchBackend]:
    """Return the configured backends, building them on first call."""
    global _backends
    if not _backends:
        _backends = _build_backends()
    return _backends


def _build_backends() -> list[SearchBackend]:
    backends: list[SearchBackend] = []

    cse_key = key_store.get("cse_api_key")
    cse_cx  = key_store.get("cse_cx")
    if cse_key and cse_cx:
        from search_backends.google_cse_backend import GoogleCSEBackend
        backends.append(GoogleCSEBackend(api_key=cse_key, cx=cse_cx))

    serper_key = key_store.get("serper_api_key")
    if serper_key:
        from search_backends.serper_backend import SerperBackend
        backends.append(SerperBackend(api_key=serper_key))

    if backends:
        logger.info("Search backends: %s", " → ".join(b.name for b in backends))
    else:
        logger.warning("No search backend configured — images and datasheets will be empty")
    return backends


def _handle_failure(
    backend: SearchBackend,
    source: str,
    exc: Exception,
    quota_warnings: list[QuotaWarning],
) -> None:
    logger.error("[%s] %s failed: %s", backend.name, source, exc)
    if isinstance(exc, SearchHTTPError) and is_quota_status(exc.status):
        quota_warnings.append(QuotaWarning(
            source=exc.source,
            status=exc.status,
            message=_QUOTA_MESSAGES.get(exc.source, f"{backend.name} quota or billing limit reached."),
        ))


# ── Images ────────────────────────────────────────────────────────────────────

async def smart_image_search(query: str, quota_warnings: list[QuotaWarning]) -> Optional[str]:
    """First image URL any backend finds for `query`, else None."""
    if not query:
        return None
    for backend in get_backends():
        try:
            url = await backend.image_search(query)
        except Exception as exc:
            _handle_failure(backend, backend.image_source, exc, quota_warnings)
            continue
        if url:
            return url
        logger.warning("[%s] no image for '%s' — trying next backend", backend.name, query)
    return None


async def fetch_images(name_or_query: str, quota_warnings: list[QuotaWarning]) -> ImageSet:
    """Fetch the product photo, an application example and a pinout diagram concurrently."""
    real, usage, pinout = await asyncio.gather(
        smart_image_search(name_or_query, quota_warnings),
        smart_image_search(f"{name_or_query} application circuit electronics example", quota_warnings),
        smart_image_search(f"{name_or_query} pinout diagram", quota_warnings),
    )
    return ImageSet(real_image=real, usage_image=usage, pinout_image=pinout)


# ── Datasheet & references ────────────────────────────────────────────────────

def pick_datasheet(hits: list[SearchHit]) -> Optional[str]:
    """First link that looks like a datasheet: a PDF or 'datasheet' in the URL."""
    for hit in hits:
        link = hit.url or ""
        if link.endswith(".pdf") or "datasheet" in link.lower():
            return link
    return None


async def fetch_datasheet_and_references(
    name: str,
    quota_warnings: list[QuotaWarning],
) -> tuple[Optional[str], list[dict]]:
    """
    Search '<name> datasheet pdf'.

    The first backend supplying both a datasheet URL and references wins;
    otherwise later backends fill in whichever part is still missing.

    Returns:
        (datasheet_url or None, up to MAX_REFERENCES {title, url, snippet} dicts)
    """
    if not name:
        return None, []

    query = f"{name} datasheet pdf"
    datasheet_url: Optional[str] = None
    references: list[dict] = []

    for backend in get_backends():
        if datasheet_url and references:
            break
        try:
            hits = await backend.web_search(query, num=5)
        except Exception as exc:
            _handle_failure(backend, backend.search_source, exc, quota_warnings)
            continue

        if not datasheet_url:
            datasheet_url = pick_datasheet(hits)
        if not references:
            references = [hit.to_dict() for hit in hits[:MAX_REFERENCES]]

        if not (datasheet_url and references):
            logger.warning("[%s] datasheet search insufficient for '%s'", backend.name, name)

    return datasheet_url, references
