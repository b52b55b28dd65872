"""
Tests for server.py — the aiohttp endpoint, driven through a real test server.

No API keys are set (see conftest), so the provider chain and both search
backends are empty unless a test patches them.
"""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

import config
import lookup
import server
from encyclopedia import QuotaWarning
from providers.base import ProviderQuotaError
from providers.openai_compatible import OpenAICompatibleProvider
from search_backends.base import SearchHTTPError
from search_backends.serper_backend import SerperBackend

PATH = config.LOOKUP_PATH


@pytest_asyncio.fixture
async def client():
    async with TestClient(TestServer(server.build_web_app())) as test_client:
        yield test_client


@pytest.mark.asyncio
class TestMethodAndBody:
    async def test_get_not_allowed(self, client):
        resp = await client.get(PATH)
        assert resp.status == 405
        assert resp.headers["Allow"] == "POST"
        assert await resp.json() == {"error": "Method not allowed"}

    async def test_put_not_allowed(self, client):
        resp = await client.put(PATH, json={"queryText": "LM7805"})
        assert resp.status == 405

    async def test_missing_input(self, client):
        resp = await client.post(PATH, json={})
        assert resp.status == 400
        data = await resp.json()
        assert data["error"] == "Provide an image or queryText."
        assert data["meta"] == {"quotaWarnings": [], "preferredModel": "fallback"}

    async def test_bad_image_format(self, client):
        resp = await client.post(PATH, json={"image": "not-a-data-url"})
        assert resp.status == 400
        assert "base64 data URL" in (await resp.json())["error"]

    async def test_invalid_json(self, client):
        resp = await client.post(PATH, data=b"{not json",
                                 headers={"Content-Type": "application/json"})
        assert resp.status == 400
        assert "not valid JSON" in (await resp.json())["error"]

    async def test_json_array_rejected(self, client):
        resp = await client.post(PATH, data=b'["LM7805"]',
                                 headers={"Content-Type": "application/json"})
        assert resp.status == 400

    async def test_non_json_content_type_is_empty_body(self, client):
        resp = await client.post(PATH, data=json.dumps({"queryText": "LM7805"}),
                                 headers={"Content-Type": "text/plain"})
        assert resp.status == 400
        assert (await resp.json())["error"] == "Provide an image or queryText."


@pytest.mark.asyncio
class TestBodyLimit:
    async def test_oversized_body(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_BODY_BYTES", 1024)
        async with TestClient(TestServer(server.build_web_app())) as small_client:
            payload = {"image": "data:image/jpeg;base64," + "A" * 4096}
            resp = await small_client.post(PATH, json=payload)
            assert resp.status == 413
            assert (await resp.json())["error"] == "Request body too large"


@pytest.mark.asyncio
class TestLookup:
    async def test_placeholder_when_nothing_configured(self, client):
        resp = await client.post(PATH, json={"queryText": "LM7805"})
        assert resp.status == 200
        data = await resp.json()

        assert data["name"] == "LM7805"
        assert "No AI model was available" in data["description"]
        assert data["real_image"] is None
        assert data["datasheet_url"] is None
        assert data["references"] == []
        assert set(data["shop_links"]) == {"shopee", "lazada", "amazon", "aliexpress"}
        assert data["meta"] == {"quotaWarnings": [], "preferredModel": "fallback"}

    async def test_placeholder_when_every_provider_fails(self, client, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "groq-key")
        monkeypatch.setenv("SERPER_API_KEY", "serper-key")

        with patch.object(OpenAICompatibleProvider, "generate",
                          AsyncMock(side_effect=RuntimeError("groq unavailable"))), \
             patch.object(SerperBackend, "image_search",
                          AsyncMock(side_effect=SearchHTTPError("serper_images", 429, "quota"))), \
             patch.object(SerperBackend, "web_search",
                          AsyncMock(side_effect=TimeoutError())):
            resp = await client.post(PATH, json={"queryText": "LM7805"})

        assert resp.status == 200
        data = await resp.json()
        assert data["name"] == "LM7805"
        assert "No AI model was available" in data["description"]
        assert all(data[key] for key in ("typical_uses", "key_specs", "common_mistakes"))
        assert data["real_image"] is None
        assert data["datasheet_url"] is None
        assert len(data["shop_links"]) == 4

        meta = data["meta"]
        assert meta["preferredModel"] == "fallback"
        groq_warnings = [w for w in meta["quotaWarnings"] if w["source"] == "groq"]
        assert groq_warnings == [{"source": "groq", "status": 500, "message": "groq unavailable"}]
        assert any(w["source"] == "serper_images" and w["status"] == 429 for w in meta["quotaWarnings"])

    async def test_generated_record(self, client):
        async def fake_generate(query_text, image, preferred, quota_warnings):
            quota_warnings.append(QuotaWarning("gemini", 429, "quota"))
            return {"name": "LM7805 regulator", "key_specs": ["5 V"]}, "groq"

        with patch.object(lookup.manager, "generate_base_json", AsyncMock(side_effect=fake_generate)):
            resp = await client.post(PATH, json={"queryText": "7805"})

        assert resp.status == 200
        data = await resp.json()
        assert data["name"] == "LM7805 regulator"
        assert data["key_specs"] == ["5 V"]
        assert data["meta"]["preferredModel"] == "groq"
        assert data["meta"]["quotaWarnings"] == [{"source": "gemini", "status": 429, "message": "quota"}]

    async def test_explicit_provider_without_key(self, client):
        resp = await client.post(PATH, json={"queryText": "LM7805", "preferredModel": "groq"})
        assert resp.status == 500
        assert "GROQ_API_KEY" in (await resp.json())["error"]

    async def test_explicit_provider_quota(self, client):
        async def raise_quota(query_text, image, preferred, quota_warnings):
            quota_warnings.append(QuotaWarning("deepseek", 402, "Insufficient Balance"))
            raise ProviderQuotaError("deepseek", 402, "Insufficient Balance")

        with patch.object(lookup.manager, "generate_base_json", AsyncMock(side_effect=raise_quota)):
            resp = await client.post(PATH, json={"queryText": "LM7805", "preferredModel": "deepseek"})

        assert resp.status == 429
        data = await resp.json()
        assert data["meta"]["quotaWarnings"][0]["status"] == 402
        assert data["meta"]["preferredModel"] == "fallback"

    async def test_unexpected_error(self, client):
        with patch.object(lookup.manager, "generate_base_json", AsyncMock(side_effect=KeyError("boom"))):
            resp = await client.post(PATH, json={"queryText": "LM7805"})

        assert resp.status == 500
        data = await resp.json()
        assert data["error"] == "Internal server error in electro-lookup."
        assert "boom" in data["details"]


@pytest.mark.asyncio
class TestHealth:
    async def test_health_lists_configured(self, client, monkeypatch):
        monkeypatch.setenv("SERPER_API_KEY", "serper-key")
        resp = await client.get("/health")
        assert resp.status == 200
        data = await resp.json()
        assert data["status"] == "ok"
        assert data["providers"] == []
        assert data["search_backends"] == ["Serper"]
