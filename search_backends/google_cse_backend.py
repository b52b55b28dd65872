"""
Google Custom Search JSON API backend.

Setup:
  1. Create a Programmable Search Engine at https://programmablesearchengine.google.com
     (enable "Image search" and "Search the entire web")
  2. Copy its id into CSE_CX
  3. Create an API key with the Custom Search API enabled → CSE_API_KEY

Free tier: 100 queries/day. Over quota the API answers 429 (or 403 when
billing is disabled), which web_search.py reports as a quota warning and
falls through to Serper.

Google sometimes answers 200 with an {"error": {...}} body instead of an
HTTP error; that is treated the same as a non-200 status.
"""
from __future__ import annotations

import logging
from typing import Optional

import aiohttp

import config
from search_backends.base import SearchBackend, SearchHit, SearchHTTPError

logger = logging.getLogger(__name__)

CSE_URL = "https://www.googleapis.com/customsearch/v1"


class GoogleCSEBackend(SearchBackend):

    def __init__(self, api_key: str, cx: str) -> None:
        self._key = api_key
        self._cx  = cx

    @property
    def name(self) -> str:
        return "Google Custom Search"

    @property
    def source_prefix(self) -> str:
        return "google_cse"

    async def image_search(self, query: str) -> Optional[str]:
        data = await self._fetch(
            {"q": query, "searchType": "image", "num": "1"},
            source=self.image_source,
        )
        for item in data.get("items") or []:
            link = item.get("link")
            if link:
                return link
        return None

    async def web_search(self, query: str, num: int = 5) -> list[SearchHit]:
        data = await self._fetch({"q": query, "num": str(num)}, source=self.search_source)
        hits = [_parse_item(item) for item in data.get("items") or []]
        logger.info("Google CSE returned %d results for '%s'", len(hits), query)
        return hits[:num]

    # ── HTTP helper ───────────────────────────────────────────────────────────

    async def _fetch(self, params: dict, source: str) -> dict:
        params = {**params, "key": self._key, "cx": self._cx}
        async with aiohttp.ClientSession() as session:
            async with session.get(
                CSE_URL,
                params=params,
                timeout=aiohttp.ClientTimeout(total=config.SEARCH_TIMEOUT_SECONDS),
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise SearchHTTPError(source, resp.status, text)
                data = await resp.json()

        if not isinstance(data, dict):
            return {}
        error = data.get("error")
        if error:
            status = error.get("code", 500) if isinstance(error, dict) else 500
            message = error.get("message", "") if isinstance(error, dict) else str(error)
            raise SearchHTTPError(source, int(status), message)
        return data


def _parse_item(item: dict) -> SearchHit:
    return SearchHit(
        title=item.get("title") or "",
        url=item.get("link") or "",
        snippet=item.get("snippet") or "",
    )
