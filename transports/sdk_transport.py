"""
Gemini SDK transport — same contract as the REST transport, through the
google-genai SDK.

Error mapping:
  errors.APIError with code 429      → RATE_LIMITED
  any other errors.APIError          → TRANSIENT_FAILURE
  httpx transport errors / timeouts  → TRANSIENT_FAILURE
  reply without candidate text       → INVALID_RESPONSE_SHAPE
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from backoff_policy import BackoffPolicy
from prompts import PromptPayload
from transports.base import (
    InferenceTransport, invalid_shape, rate_limited, transient,
)

logger = logging.getLogger(__name__)


def candidate_text(response: Any) -> str:
    """candidates[0].content.parts[0].text from an SDK response object."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise invalid_shape("Reply has no candidates")
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None)
    if not parts:
        raise invalid_shape("Reply candidate has no content parts")
    text = getattr(parts[0], "text", None)
    if not isinstance(text, str):
        raise invalid_shape("Reply text part is missing")
    return text


class GeminiSdkTransport(InferenceTransport):

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        policy: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(policy=policy, sleep=sleep)
        self.name     = "sdk"
        self.model_id = model
        self._client  = genai.Client(api_key=api_key)

    def _contents(self, payload: PromptPayload) -> list:
        contents: list = [payload.instruction_text]
        if payload.image is not None:
            contents.append(
                genai_types.Part.from_bytes(data=payload.image.data, mime_type=payload.image.mime_type)
            )
        return contents

    async def send(self, payload: PromptPayload, schema: dict) -> str:
        gen_config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )

        t0 = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_id,
                contents=self._contents(payload),
                config=gen_config,
            )
        except genai_errors.APIError as exc:
            if exc.code == 429:
                raise rate_limited(f"Gemini rate limit (429) for {self.model_id}") from exc
            raise transient(f"Gemini error {exc.code}: {exc}", status=exc.code) from exc
        except (httpx.TransportError, asyncio.TimeoutError) as exc:
            raise transient(f"Connection to Gemini failed: {exc!r}") from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        text = candidate_text(response)
        logger.info("[%s] Reply received in %dms (%d chars)", self.full_name, latency_ms, len(text))
        return text
