"""
encyclopedia.py — canonical home of the response record.

The generation providers produce a loose JSON dict ("base JSON");
normalize_record() turns it into a ComponentRecord with every field present
and non-empty, and lookup.py fills in the search-derived fields afterwards.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

UNKNOWN_NAME = "Unknown electronics item"

# ── Generic filler text for fields the model left empty ───────────────────────

FALLBACK_DESCRIPTION = (
    "Auto-generated encyclopedia entry for this electronics-related item. "
    "For exact electrical ratings, pinouts, and timing, always confirm with the official datasheet."
)

LIST_FALLBACKS: dict[str, str] = {
    "typical_uses": (
        "Typical applications depend on the exact variant; see the description "
        "and datasheet for detailed use cases."
    ),
    "where_to_buy": (
        "Available from common electronics suppliers, local electronics shops, and online "
        "marketplaces such as Shopee, Lazada, Amazon, or AliExpress."
    ),
    "key_specs": (
        "Key electrical specifications should be taken from the official datasheet "
        "for the specific part number."
    ),
    "project_ideas": (
        "Use this device in a small lab project or prototype to learn its behavior "
        "before integrating it into a larger system."
    ),
    "common_mistakes": (
        "Using this device without checking the datasheet for voltage, current, and pinout "
        "limits can damage both the device and the rest of the circuit."
    ),
}

PLACEHOLDER_DESCRIPTION = (
    "Basic auto-generated entry. No AI model was available on the server. "
    "Configure at least one provider (Gemini, Groq, or DeepSeek) for richer content."
)


@dataclass
class QuotaWarning:
    """A provider failure surfaced to the client in meta.quotaWarnings."""
    source: str         # e.g. "gemini", "serper_images"
    status: int         # HTTP status, 500 for non-HTTP failures
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ComponentRecord:
    """The encyclopedia entry returned by the lookup endpoint."""
    name: str
    category: str
    description: str
    typical_uses: list[Any]
    where_to_buy: list[Any]
    key_specs: list[Any]
    project_ideas: list[Any]
    common_mistakes: list[Any]
    datasheet_hint: str
    image_search_query: str

    # Filled in from search results after generation
    real_image: Optional[str] = None
    usage_image: Optional[str] = None
    pinout_image: Optional[str] = None
    datasheet_url: Optional[str] = None
    references: list[dict] = field(default_factory=list)
    shop_links: dict[str, str] = field(default_factory=dict)

    def to_dict(self, meta: Optional[dict] = None) -> dict:
        data = asdict(self)
        if meta is not None:
            data["meta"] = meta
        return data


def placeholder_data(safe_name: str) -> dict:
    """Minimal base JSON used when no generation provider produced anything."""
    name = safe_name or UNKNOWN_NAME
    return {
        "name": name,
        "category": "Other",
        "description": PLACEHOLDER_DESCRIPTION,
        "typical_uses": [],
        "where_to_buy": [],
        "key_specs": [],
        "project_ideas": [],
        "common_mistakes": [],
        "datasheet_hint": f"{name} datasheet pdf",
        "image_search_query": name,
    }


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _json_list(value: Any) -> list[Any]:
    # Items keep their JSON shape (models sometimes return {"param": ..., "value": ...})
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, str):
            item = item.strip()
            if not item:
                continue
        elif item is None:
            continue
        items.append(item)
    return items


def normalize_record(data: Any, safe_name: str = "") -> ComponentRecord:
    """
    Coerce a provider's JSON into a ComponentRecord and make sure every
    field carries meaningful content.
    """
    if not isinstance(data, dict):
        data = {}

    name = _text(data.get("name")) or safe_name.strip() or UNKNOWN_NAME
    lists = {key: _json_list(data.get(key)) or [fallback] for key, fallback in LIST_FALLBACKS.items()}

    return ComponentRecord(
        name=name,
        category=_text(data.get("category")) or "Other",
        description=_text(data.get("description")) or FALLBACK_DESCRIPTION,
        datasheet_hint=_text(data.get("datasheet_hint")) or f"{name} datasheet pdf",
        image_search_query=_text(data.get("image_search_query")) or name,
        **lists,
    )
