"""
Abstract base for all web/image search backends.
Every backend returns the same SearchHit list — web_search.py doesn't care
which backend answered.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Optional


@dataclass
class SearchHit:
    title: str
    url: str
    snippet: str

    def to_dict(self) -> dict:
        return asdict(self)


class SearchHTTPError(RuntimeError):
    """Non-success answer from a search API. `status` decides whether it is a quota warning."""

    def __init__(self, source: str, status: int, message: str):
        super().__init__(f"{source} error {status}: {message[:200]}")
        self.source = source
        self.status = status


class SearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    async def image_search(self, query: str) -> Optional[str]:
        """Return the URL of the best image for `query`, or None."""
        ...

    @abstractmethod
    async def web_search(self, query: str, num: int = 5) -> list[SearchHit]:
        """Return up to `num` organic web results for `query`."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...

    @property
    @abstractmethod
    def source_prefix(self) -> str:
        """Prefix for quota-warning sources, e.g. 'serper' → 'serper_images'."""
        ...

    @property
    def image_source(self) -> str:
        return f"{self.source_prefix}_images"

    @property
    def search_source(self) -> str:
        return f"{self.source_prefix}_search"
