"""
Gemini REST transport — plain HTTPS call to generateContent with aiohttp.

Status handling:
  200 + candidates[0].content.parts[0].text  → success
  200 without that structure / non-JSON body → INVALID_RESPONSE_SHAPE (not retried)
  429                                        → RATE_LIMITED (retried)
  any other status, connection error         → TRANSIENT_FAILURE (retried)
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import aiohttp

from backoff_policy import BackoffPolicy
from prompts import PromptPayload
from transports.base import (
    GEMINI_API_BASE, InferenceTransport,
    extract_candidate_text, invalid_shape, rate_limited, transient,
)

logger = logging.getLogger(__name__)


def build_request_body(payload: PromptPayload, schema: dict) -> dict:
    """generateContent body: instruction text first, optional image second."""
    parts: list[dict] = [{"text": payload.instruction_text}]
    if payload.image is not None:
        parts.append({
            "inlineData": {
                "mimeType": payload.image.mime_type,
                "data":     payload.image.base64_data,
            }
        })
    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema":   schema,
        },
    }


class GeminiRestTransport(InferenceTransport):

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        policy: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(policy=policy, sleep=sleep)
        self.name     = "rest"
        self.model_id = model
        self._headers = {
            "x-goog-api-key": api_key,
            "Content-Type":   "application/json",
        }

    @property
    def url(self) -> str:
        return f"{GEMINI_API_BASE}/models/{self.model_id}:generateContent"

    async def send(self, payload: PromptPayload, schema: dict) -> str:
        body = build_request_body(payload, schema)
        t0 = time.monotonic()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, headers=self._headers, json=body) as resp:
                    if resp.status == 429:
                        raise rate_limited(f"Gemini rate limit (HTTP 429) for {self.model_id}")
                    if resp.status < 200 or resp.status >= 300:
                        text = await resp.text()
                        raise transient(
                            f"Gemini error {resp.status}: {text[:200]}", status=resp.status
                        )
                    try:
                        envelope = await resp.json(content_type=None)
                    except ValueError as exc:
                        raise invalid_shape(f"Gemini reply body is not JSON: {exc}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise transient(f"Connection to Gemini failed: {exc!r}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        text = extract_candidate_text(envelope)
        logger.info("[%s] Reply received in %dms (%d chars)", self.full_name, latency_ms, len(text))
        return text
