"""
shop_links.py — marketplace search URLs for the identified component.

The links are plain search pages (no affiliate tags); they are rebuilt from
the resolved name on every response.
"""
from __future__ import annotations

from urllib.parse import quote

# Characters JavaScript's encodeURIComponent leaves untouched
_SAFE = "-_.!~*'()"

SHOP_TEMPLATES: dict[str, str] = {
    "shopee":     "https://shopee.ph/search?keyword={q}",
    "lazada":     "https://www.lazada.com.ph/tag/{q}/",
    "amazon":     "https://www.amazon.com/s?k={q}",
    "aliexpress": "https://www.aliexpress.com/wholesale?SearchText={q}",
}


def encode_query(text: str) -> str:
    # Lone surrogates (valid in JSON strings) cannot be UTF-8 encoded
    return quote(text or "", safe=_SAFE, errors="replace")


def generate_shop_links(name_or_query: str) -> dict[str, str]:
    """Return exactly one search URL per marketplace in SHOP_TEMPLATES."""
    q = encode_query(name_or_query)
    return {shop: template.format(q=q) for shop, template in SHOP_TEMPLATES.items()}
