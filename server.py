"""
server.py — the HTTP surface of the lookup service (aiohttp).

Endpoints:
  POST {LOOKUP_PATH}   → encyclopedia record for an image and/or queryText
  *    {LOOKUP_PATH}   → 405 (Allow: POST)
  GET  /health         → JSON: which providers / search backends are configured

Request body (application/json):
  {"image": "data:image/jpeg;base64,...", "queryText": "LM7805",
   "preferredModel": "auto" | "gemini" | "groq" | "deepseek"}

Status codes:
  200  record (possibly a placeholder when every provider failed)
  400  missing/invalid input, image sent to a text-only provider
  405  method other than POST
  413  body larger than MAX_BODY_BYTES
  429  explicitly requested provider hit its quota / billing limit
  500  explicitly requested provider not configured, or unexpected error
"""
from __future__ import annotations

import json
import logging

from aiohttp import web

import config
from encyclopedia import QuotaWarning
from lookup import LookupInputError, lookup_component
from providers import manager
from providers.base import ProviderNotConfiguredError, ProviderQuotaError, UnsupportedInputError
import web_search

logger = logging.getLogger(__name__)


class BadRequestBody(ValueError):
    """The body could not be parsed as a JSON object."""


def _error(status: int, message: str, quota_warnings: list[QuotaWarning], **extra) -> web.Response:
    body = {
        "error": message,
        **extra,
        "meta": {
            "quotaWarnings":  [w.to_dict() for w in quota_warnings],
            "preferredModel": manager.FALLBACK,
        },
    }
    return web.json_response(body, status=status)


async def _read_json_body(request: web.Request) -> dict:
    """
    Parse the body as JSON only when it is declared as JSON; anything else
    counts as an empty body. aiohttp enforces client_max_size inside read().
    """
    raw = await request.read()
    if not raw or "application/json" not in (request.content_type or ""):
        return {}
    try:
        data = json.loads(raw.decode(request.charset or "utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestBody(f"Request body is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise BadRequestBody("Request body must be a JSON object.")
    return data


# ── Request handlers ───────────────────────────────────────────────────────────

async def handle_lookup(request: web.Request) -> web.Response:
    if request.method != "POST":
        return web.json_response(
            {"error": "Method not allowed"},
            status=405,
            headers={"Allow": "POST"},
        )

    quota_warnings: list[QuotaWarning] = []

    try:
        body = await _read_json_body(request)
    except web.HTTPRequestEntityTooLarge:
        logger.warning("Rejected body over %d bytes", config.MAX_BODY_BYTES)
        return _error(413, "Request body too large", quota_warnings)
    except BadRequestBody as exc:
        return _error(400, str(exc), quota_warnings)

    try:
        result = await lookup_component(body, quota_warnings)
    except (LookupInputError, UnsupportedInputError) as exc:
        return _error(400, str(exc), quota_warnings)
    except ProviderNotConfiguredError as exc:
        logger.error("Lookup failed: %s", exc)
        return _error(500, str(exc), quota_warnings)
    except ProviderQuotaError as exc:
        logger.error("Lookup failed: %s", exc)
        return _error(429, str(exc), quota_warnings)
    except Exception as exc:
        logger.exception("Error in %s", config.LOOKUP_PATH)
        return _error(500, "Internal server error in electro-lookup.", quota_warnings, details=str(exc))

    return web.json_response(result.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    """Health check — returns 200 with the configured providers. Use with uptime monitors."""
    return web.json_response({
        "status":          "ok",
        "providers":       list(manager.get_providers()),
        "search_backends": [b.name for b in web_search.get_backends()],
    })


# ── App factory ────────────────────────────────────────────────────────────────

def build_web_app() -> web.Application:
    app = web.Application(client_max_size=config.MAX_BODY_BYTES)
    app.router.add_get("/health",               handle_health)
    app.router.add_route("*", config.LOOKUP_PATH, handle_lookup)
    return app


async def start_server() -> web.AppRunner:
    """Start the web server. Returns runner so caller can shut it down cleanly."""
    app    = build_web_app()
    runner = web.AppRunner(app, access_log=logger)
    await runner.setup()
    site = web.TCPSite(runner, config.HOST, config.PORT)
    await site.start()
    logger.info("Lookup endpoint listening on http://%s:%d%s", config.HOST, config.PORT, config.LOOKUP_PATH)
    return runner
