"""
Shared types and base class for all generation providers.
"""
from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ── Prompt (shared across all providers) ──────────────────────────────────────

ELECTROLENS_SCHEMA_PROMPT = """
You are ElectroLens PRO, an engineering-grade electronics encyclopedia AI.

You must RETURN STRICT JSON ONLY with this exact schema:

{
  "name": "",
  "category": "",
  "description": "",
  "typical_uses": [],
  "where_to_buy": [],
  "key_specs": [],
  "project_ideas": [],
  "common_mistakes": [],
  "datasheet_hint": "",
  "image_search_query": ""
}

DETAILED RULES:

- "name":
  • Short but specific, e.g. "ESP32 DevKitC development board", "LM7805 linear regulator TO-220".
  • Do not invent fake part numbers.

- "category":
  • One of: "Component", "Microcontroller", "Module", "Tool", "Test Equipment", "Power Supply", "Other".

- "description":
  • 3–6 detailed paragraphs.
  • Cover:
    1) What this device is and what it's used for.
    2) High-level principle of operation.
    3) Typical electrical characteristics (voltages, currents, logic levels, etc.).
    4) Typical use cases in real circuits or lab setups.
    5) Important limitations and design caveats (heat, noise, switching speed, accuracy, etc.).

- "typical_uses":
  • 4–8 bullet-style strings.
  • Each one is a clear, concrete application or use case.

- "where_to_buy":
  • 4–8 bullet-style strings.
  • Mention generic local shops, online marketplaces (Shopee, Lazada, Amazon, AliExpress),
    and professional distributors (Mouser, Digi-Key, RS, element14) if appropriate.

- "key_specs":
  • 6–12 bullet-style strings.
  • Include key voltages, currents, power rating, frequency range, tolerances, package type, etc.
  • If exact values are unknown, use realistic typical ranges and say "typically" or "commonly".

- "project_ideas":
  • 3–6 student-friendly project ideas.
  • Each describes how this device is used in the project.

- "common_mistakes":
  • 5–10 realistic mistakes or warnings (wrong supply voltage, missing flyback diode,
    wrong pinout, insufficient heatsinking, etc.).

- "datasheet_hint":
  • ONE realistic search string the user can paste into Google to find the official datasheet.

- "image_search_query":
  • A phrase to find good images of this exact device.
  • Example: "ESP32 DevKitC board", "LM7805 TO-220 pinout".

GENERAL RULES:
- FOCUS ONLY on electronics-related items. If the query is not electronics-related,
  set "category": "Other" and explain briefly.
- ALWAYS fill every field with meaningful content. Do NOT return empty arrays unless the item is truly unknown.
- RETURN PURE JSON ONLY. No markdown, no explanation sentences, no extra keys.
"""


def build_user_prompt(query_text: str, has_image: bool) -> Optional[str]:
    """
    The user turn that follows the schema prompt.
    In image mode the text is only a label hint and may be absent (→ None).
    """
    if has_image:
        if not query_text:
            return None
        return f'User label or part number: "{query_text}"'
    return f'User typed query describing an electronics item: "{query_text}". Generate the JSON.'


# ── Image input ────────────────────────────────────────────────────────────────

_DATA_URL_RE = re.compile(r"^data:(.+?);base64,(.*)$", re.DOTALL)


@dataclass
class ImagePayload:
    """A photo decoded from a base64 data URL."""
    mime_type: str      # e.g. "image/jpeg"
    base64: str         # raw base64 body, not decoded


def parse_data_url(value: Any) -> Optional[ImagePayload]:
    """Split 'data:image/jpeg;base64,...' into an ImagePayload. None if malformed."""
    if not isinstance(value, str) or not value.startswith("data:"):
        return None
    match = _DATA_URL_RE.match(value)
    if not match:
        return None
    return ImagePayload(mime_type=match.group(1), base64=match.group(2))


# ── Shared result type ─────────────────────────────────────────────────────────

@dataclass
class GenerationResult:
    """Result from a single generation provider."""
    provider_name: str          # e.g. "gemini/gemini-2.5-flash"
    model_id: str
    data: Any                   # parsed JSON, normally a dict
    latency_ms: int
    input_tokens: int = 0
    output_tokens: int = 0

    is_usable: bool = field(init=False)

    def __post_init__(self) -> None:
        self.is_usable = isinstance(self.data, dict) and bool(self.data.get("name"))


_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def parse_json_response(raw: str, provider_name: str) -> dict:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure or when the JSON is not an object.
    """
    # Fence markers can sit anywhere, including on the same line as the JSON
    text = _FENCE_RE.sub("", raw or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", provider_name, (raw or "")[:300])
        raise ValueError(f"[{provider_name}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"[{provider_name}] Expected a JSON object, got {type(data).__name__}")
    return data


# ── Error helpers ──────────────────────────────────────────────────────────────

QUOTA_STATUSES = (429, 402, 403)


def is_quota_status(status: Optional[int]) -> bool:
    """429 rate limit, 402 payment required, 403 billing/quota disabled."""
    return status in QUOTA_STATUSES


def status_of(exc: BaseException) -> int:
    """
    HTTP status carried by an SDK exception.
    openai.APIStatusError exposes .status_code, google.genai APIError exposes .code.
    """
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 500


class ProviderNotConfiguredError(RuntimeError):
    """The caller asked for a provider whose API key is missing or disabled."""


class ProviderQuotaError(RuntimeError):
    """The requested provider refused the call because of quota or billing."""

    def __init__(self, provider: str, status: int, message: str):
        super().__init__(f"{provider} quota or billing limit reached ({status}): {message}")
        self.provider = provider
        self.status = status


class UnsupportedInputError(ValueError):
    """The requested provider cannot handle this input (e.g. image on a text-only model)."""


# ── Abstract base ──────────────────────────────────────────────────────────────

class GenerationProvider(ABC):
    """Base class all generation providers must implement."""

    name: str                       # e.g. "gemini"
    model_id: str                   # e.g. "gemini-2.5-flash"
    supports_images: bool = False

    @abstractmethod
    async def generate(
        self,
        query_text: str,
        image: Optional[ImagePayload] = None,
    ) -> GenerationResult:
        """Produce the base JSON for a text query and/or photo."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
