"""
Tests for transports/rest_transport.py and the shared submit() retry loop.

Covers:
  - build_request_body(): text part, inline image part, response schema
  - extract_candidate_text(): good and malformed envelopes
  - send(): 200 / 429 / 5xx / connection error / non-JSON body classification
  - submit(): backoff delays, retries exhausted, shape errors never retried
"""
from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from conftest import reply_text
from prompts import QueryRequest, build_prompt
from product_schema import PRODUCT_SCHEMA
from transports.base import TransportError, TransportErrorKind, extract_candidate_text
from transports.rest_transport import GeminiRestTransport, build_request_body

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def fake_response(status: int = 200, body=None, json_error: Exception | None = None):
    """Build a fake aiohttp response object."""
    mock_resp = MagicMock()
    mock_resp.status = status
    if json_error is not None:
        mock_resp.json = AsyncMock(side_effect=json_error)
    else:
        mock_resp.json = AsyncMock(return_value=body)
    mock_resp.text = AsyncMock(return_value="error text")
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=False)
    return mock_resp


def fake_session(*outcomes):
    """ClientSession whose post() yields each outcome in turn (response or exception)."""
    mock_session = MagicMock()
    mock_session.post = MagicMock(side_effect=list(outcomes))
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return mock_session


@pytest.fixture
def transport(fake_sleep):
    return GeminiRestTransport(api_key="test_google_key", model="gemini-test", sleep=fake_sleep)


@pytest.fixture
def payload():
    return build_prompt(QueryRequest.by_name("Coca-Cola", "en-US"))


# ── Request body ──────────────────────────────────────────────────────────────

class TestBuildRequestBody:
    def test_by_name_body(self, payload):
        body = build_request_body(payload, PRODUCT_SCHEMA)
        parts = body["contents"][0]["parts"]
        assert len(parts) == 1
        assert "Coca-Cola" in parts[0]["text"]
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["generationConfig"]["responseSchema"] is PRODUCT_SCHEMA

    def test_by_image_body_has_inline_data_second(self):
        payload = build_prompt(QueryRequest.by_image(PNG_BYTES, "en-US"))
        parts = build_request_body(payload, PRODUCT_SCHEMA)["contents"][0]["parts"]
        assert len(parts) == 2
        assert "text" in parts[0]
        assert parts[1]["inlineData"]["mimeType"] == "image/png"
        assert parts[1]["inlineData"]["data"] == payload.image.base64_data

    def test_url_and_key_header(self, transport):
        assert transport.url.endswith("/models/gemini-test:generateContent")
        assert transport._headers["x-goog-api-key"] == "test_google_key"


# ── Envelope extraction ───────────────────────────────────────────────────────

class TestExtractCandidateText:
    def test_good_envelope(self):
        assert extract_candidate_text(envelope('{"a": 1}')) == '{"a": 1}'

    @pytest.mark.parametrize("bad", [
        {},
        {"candidates": []},
        {"candidates": [{}]},
        {"candidates": [{"content": {}}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
        ["not", "an", "object"],
    ])
    def test_malformed_envelopes(self, bad):
        with pytest.raises(TransportError) as err:
            extract_candidate_text(bad)
        assert err.value.kind is TransportErrorKind.INVALID_RESPONSE_SHAPE


# ── send() / submit() ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestSubmit:
    async def test_success(self, transport, payload, fake_sleep):
        session = fake_session(fake_response(200, envelope(reply_text())))
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            raw = await transport.submit(payload, PRODUCT_SCHEMA)
        assert json.loads(raw)["productName"] == "Coca-Cola"
        assert fake_sleep.delays == []
        sent = session.post.call_args.kwargs["json"]
        assert sent["generationConfig"]["responseSchema"] is PRODUCT_SCHEMA

    async def test_three_rate_limits_then_success(self, transport, payload, fake_sleep):
        session = fake_session(
            fake_response(429), fake_response(429), fake_response(429),
            fake_response(200, envelope(reply_text())),
        )
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            raw = await transport.submit(payload, PRODUCT_SCHEMA)
        assert json.loads(raw)["productName"] == "Coca-Cola"
        assert session.post.call_count == 4
        assert fake_sleep.delays == [1.0, 2.0, 4.0]

    async def test_five_rate_limits_exhaust(self, transport, payload, fake_sleep):
        session = fake_session(*[fake_response(429) for _ in range(6)])
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            with pytest.raises(TransportError) as err:
                await transport.submit(payload, PRODUCT_SCHEMA)
        assert err.value.kind is TransportErrorKind.RETRIES_EXHAUSTED
        assert err.value.last_cause.kind is TransportErrorKind.RATE_LIMITED
        assert session.post.call_count == 5
        assert fake_sleep.delays == [1.0, 2.0, 4.0, 8.0]

    async def test_connection_error_is_retried(self, transport, payload, fake_sleep):
        session = fake_session(
            aiohttp.ClientConnectionError("connection refused"),
            fake_response(200, envelope(reply_text())),
        )
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            await transport.submit(payload, PRODUCT_SCHEMA)
        assert session.post.call_count == 2
        assert fake_sleep.delays == [1.0]

    async def test_server_error_is_transient(self, transport, payload, fake_sleep):
        session = fake_session(*[fake_response(503) for _ in range(5)])
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            with pytest.raises(TransportError) as err:
                await transport.submit(payload, PRODUCT_SCHEMA)
        assert err.value.kind is TransportErrorKind.RETRIES_EXHAUSTED
        assert err.value.last_cause.kind is TransportErrorKind.TRANSIENT_FAILURE
        assert err.value.last_cause.status == 503

    async def test_malformed_envelope_not_retried(self, transport, payload, fake_sleep):
        session = fake_session(fake_response(200, {"candidates": []}))
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            with pytest.raises(TransportError) as err:
                await transport.submit(payload, PRODUCT_SCHEMA)
        assert err.value.kind is TransportErrorKind.INVALID_RESPONSE_SHAPE
        assert session.post.call_count == 1
        assert fake_sleep.delays == []

    async def test_non_json_body_is_shape_error(self, transport, payload, fake_sleep):
        bad = fake_response(200, json_error=json.JSONDecodeError("Expecting value", "<html>", 0))
        session = fake_session(bad)
        with patch("transports.rest_transport.aiohttp.ClientSession", return_value=session):
            with pytest.raises(TransportError) as err:
                await transport.submit(payload, PRODUCT_SCHEMA)
        assert err.value.kind is TransportErrorKind.INVALID_RESPONSE_SHAPE
        assert session.post.call_count == 1
