"""
Tests for providers/base.py.

Covers:
  - parse_json_response: plain JSON, markdown-fenced JSON, invalid JSON, non-object JSON
  - parse_data_url: valid data URLs, malformed input
  - build_user_prompt: image vs text mode
  - GenerationResult.is_usable
  - is_quota_status / status_of
"""
from __future__ import annotations

import pytest

from providers.base import (
    GenerationResult,
    build_user_prompt,
    is_quota_status,
    parse_data_url,
    parse_json_response,
    status_of,
)


# ── parse_json_response ───────────────────────────────────────────────────────

class TestParseJsonResponse:
    def test_plain_json(self):
        data = parse_json_response('{"name": "LM7805", "category": "Component"}', "test")
        assert data["name"] == "LM7805"
        assert data["category"] == "Component"

    def test_json_fenced_with_backticks(self):
        data = parse_json_response("```json\n{\"name\": \"ESP32\"}\n```", "test")
        assert data["name"] == "ESP32"

    def test_json_fenced_without_language_hint(self):
        data = parse_json_response("```\n{\"name\": \"ESP32\"}\n```", "test")
        assert data["name"] == "ESP32"

    def test_closing_fence_on_same_line(self):
        data = parse_json_response('```json\n{"name": "LM7805"}```', "test")
        assert data["name"] == "LM7805"

    def test_single_line_fence(self):
        data = parse_json_response('```json {"name": "LM7805"} ```', "test")
        assert data["name"] == "LM7805"

    def test_leading_trailing_whitespace(self):
        data = parse_json_response('  \n  {"name": "NE555"}  \n  ', "test")
        assert data["name"] == "NE555"

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError, match="JSON parse error"):
            parse_json_response("This is not JSON at all.", "test")

    def test_truncated_json_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_json_response('{"name": "LM78', "test")

    def test_array_is_rejected(self):
        with pytest.raises(ValueError, match="Expected a JSON object"):
            parse_json_response('[{"name": "LM7805"}]', "test")

    def test_empty_string_raises(self):
        with pytest.raises(ValueError):
            parse_json_response("", "test")


# ── parse_data_url ────────────────────────────────────────────────────────────

class TestParseDataUrl:
    def test_jpeg_data_url(self):
        payload = parse_data_url("data:image/jpeg;base64,/9j/4AAQSk")
        assert payload is not None
        assert payload.mime_type == "image/jpeg"
        assert payload.base64 == "/9j/4AAQSk"

    def test_png_data_url(self):
        payload = parse_data_url("data:image/png;base64,iVBORw0KGgo=")
        assert payload.mime_type == "image/png"
        assert payload.base64 == "iVBORw0KGgo="

    def test_plain_base64_without_prefix_is_rejected(self):
        assert parse_data_url("/9j/4AAQSk") is None

    def test_missing_base64_marker_is_rejected(self):
        assert parse_data_url("data:image/jpeg,/9j/4AAQSk") is None

    def test_http_url_is_rejected(self):
        assert parse_data_url("https://example.com/photo.jpg") is None

    def test_non_string_is_rejected(self):
        assert parse_data_url({"uri": "data:image/jpeg;base64,abc"}) is None
        assert parse_data_url(None) is None


# ── build_user_prompt ─────────────────────────────────────────────────────────

class TestBuildUserPrompt:
    def test_text_mode_quotes_query(self):
        prompt = build_user_prompt("LM7805", has_image=False)
        assert '"LM7805"' in prompt
        assert "Generate the JSON" in prompt

    def test_image_mode_with_label(self):
        prompt = build_user_prompt("ESP32", has_image=True)
        assert prompt == 'User label or part number: "ESP32"'

    def test_image_mode_without_label_is_none(self):
        assert build_user_prompt("", has_image=True) is None


# ── GenerationResult ──────────────────────────────────────────────────────────

class TestGenerationResult:
    def _make(self, data) -> GenerationResult:
        return GenerationResult(provider_name="test/model", model_id="model", data=data, latency_ms=10)

    def test_usable_with_name(self):
        assert self._make({"name": "LM7805"}).is_usable is True

    def test_not_usable_without_name(self):
        assert self._make({"category": "Component"}).is_usable is False

    def test_not_usable_with_empty_name(self):
        assert self._make({"name": ""}).is_usable is False

    def test_not_usable_when_not_dict(self):
        assert self._make(["LM7805"]).is_usable is False
        assert self._make(None).is_usable is False


# ── Error helpers ─────────────────────────────────────────────────────────────

class TestQuotaStatus:
    @pytest.mark.parametrize("status", [429, 402, 403])
    def test_quota_statuses(self, status):
        assert is_quota_status(status) is True

    @pytest.mark.parametrize("status", [200, 400, 401, 404, 500, None])
    def test_other_statuses(self, status):
        assert is_quota_status(status) is False


class TestStatusOf:
    def test_status_code_attribute(self):
        exc = Exception("rate limited")
        exc.status_code = 429
        assert status_of(exc) == 429

    def test_integer_code_attribute(self):
        exc = Exception("quota")
        exc.code = 403
        assert status_of(exc) == 403

    def test_string_code_is_ignored(self):
        exc = Exception("weird")
        exc.code = "RESOURCE_EXHAUSTED"
        assert status_of(exc) == 500

    def test_plain_exception_is_500(self):
        assert status_of(RuntimeError("boom")) == 500
