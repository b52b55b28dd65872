"""
Serper (https://serper.dev) backend — Google results through a paid proxy API.

Used as the fallback when Google Custom Search is not configured, out of
quota, or returns nothing. Both endpoints take a POST JSON body {q, num}
and authenticate with the X-API-KEY header.

  /images → {"images":  [{"imageUrl", "thumbnailUrl", "link", ...}]}
  /search → {"organic": [{"title", "link", "snippet", ...}]}
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp

import config
from search_backends.base import SearchBackend, SearchHit, SearchHTTPError

logger = logging.getLogger(__name__)

SERPER_HOST = "https://google.serper.dev"
IMAGES_URL  = f"{SERPER_HOST}/images"
SEARCH_URL  = f"{SERPER_HOST}/search"


class SerperBackend(SearchBackend):

    def __init__(self, api_key: str) -> None:
        self._headers = {
            "X-API-KEY":    api_key,
            "Content-Type": "application/json",
        }

    @property
    def name(self) -> str:
        return "Serper"

    @property
    def source_prefix(self) -> str:
        return "serper"

    async def image_search(self, query: str) -> Optional[str]:
        data = await self._post(IMAGES_URL, {"q": query, "num": 1}, source=self.image_source)
        images = data.get("images")
        if not isinstance(images, list) or not images:
            return None
        first = images[0] or {}
        return first.get("imageUrl") or first.get("thumbnailUrl") or first.get("link") or None

    async def web_search(self, query: str, num: int = 5) -> list[SearchHit]:
        data = await self._post(SEARCH_URL, {"q": query, "num": num}, source=self.search_source)
        organic = data.get("organic")
        if not isinstance(organic, list):
            return []
        hits = [
            SearchHit(
                title=item.get("title") or "",
                url=item.get("link") or "",
                snippet=item.get("snippet") or "",
            )
            for item in organic
            if isinstance(item, dict)
        ]
        logger.info("Serper returned %d results for '%s'", len(hits), query)
        return hits[:num]

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _post(self, url: str, payload: dict, source: str) -> dict:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                headers=self._headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=config.SEARCH_TIMEOUT_SECONDS),
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise SearchHTTPError(source, resp.status, text)
                data = await resp.json()
        return data if isinstance(data, dict) else {}
