"""
lookup.py — one electronics lookup, end to end.

  1. Validate input       image (base64 data URL) and/or queryText
  2. Generate base JSON   providers.manager fallback chain
  3. Placeholder          when no provider produced usable JSON
  4. Normalize            every field present and non-empty
  5. Enrich               three images (parallel), datasheet + references
  6. Shop links           four fixed marketplace searches
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from encyclopedia import ComponentRecord, QuotaWarning, normalize_record, placeholder_data
from providers import manager
from providers.base import parse_data_url
from shop_links import generate_shop_links
from web_search import fetch_datasheet_and_references, fetch_images

logger = logging.getLogger(__name__)


class LookupInputError(ValueError):
    """The request body cannot be looked up (→ HTTP 400)."""


@dataclass
class LookupResult:
    record: ComponentRecord
    preferred_model: str
    quota_warnings: list[QuotaWarning] = field(default_factory=list)

    @property
    def meta(self) -> dict:
        return {
            "quotaWarnings":  [w.to_dict() for w in self.quota_warnings],
            "preferredModel": self.preferred_model,
        }

    def to_dict(self) -> dict:
        return self.record.to_dict(meta=self.meta)


async def lookup_component(body: Any, quota_warnings: list[QuotaWarning]) -> LookupResult:
    """
    Run a lookup for a parsed request body.

    `quota_warnings` is owned by the caller so that error responses raised from
    here (quota, missing credentials) can still report what was collected.

    Raises:
        LookupInputError                       — bad or missing input
        providers.base.UnsupportedInputError   — image sent to a text-only provider
        providers.base.ProviderNotConfiguredError
        providers.base.ProviderQuotaError
    """
    if not isinstance(body, dict):
        body = {}

    image = body.get("image")
    raw_query = body.get("queryText")
    safe_query = raw_query.strip() if isinstance(raw_query, str) else ""

    if not image and not safe_query:
        raise LookupInputError("Provide an image or queryText.")

    image_payload = None
    if image:
        image_payload = parse_data_url(image)
        if image_payload is None:
            raise LookupInputError("Image must be a base64 data URL like data:image/jpeg;base64,...")

    logger.info(
        "Lookup: mode=%s query=%r preferred=%r",
        "image" if image_payload else "text", safe_query[:80], body.get("preferredModel"),
    )

    # ── Generation ────────────────────────────────────────────────────────────
    base_json, model_used = await manager.generate_base_json(
        safe_query, image_payload, body.get("preferredModel"), quota_warnings,
    )
    if base_json is None:
        logger.warning("No generation provider produced JSON — serving placeholder record")
        base_json = placeholder_data(safe_query)
        model_used = manager.FALLBACK

    record = normalize_record(base_json, safe_query)

    # ── Images ────────────────────────────────────────────────────────────────
    name_or_query = record.image_search_query or record.name or safe_query or "electronics component"
    images = await fetch_images(name_or_query, quota_warnings)
    record.real_image   = images.real_image
    record.usage_image  = images.usage_image
    record.pinout_image = images.pinout_image

    # ── Datasheet & references ────────────────────────────────────────────────
    record.datasheet_url, record.references = await fetch_datasheet_and_references(
        record.name or safe_query, quota_warnings,
    )

    record.shop_links = generate_shop_links(record.name or safe_query or "electronics")

    logger.info(
        "Lookup done: name=%r model=%s images=%d datasheet=%s warnings=%d",
        record.name, model_used,
        sum(1 for u in (record.real_image, record.usage_image, record.pinout_image) if u),
        "yes" if record.datasheet_url else "no",
        len(quota_warnings),
    )

    return LookupResult(record=record, preferred_model=model_used, quota_warnings=quota_warnings)
