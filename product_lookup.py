"""
product_lookup.py — public interface for product lookups.

The rest of the bot imports only from here:
  from product_lookup import lookup_product

Transport is chosen by INFERENCE_TRANSPORT in .env:

  INFERENCE_TRANSPORT=rest  →  aiohttp call to the Gemini REST API (default)
  INFERENCE_TRANSPORT=sdk   →  google-genai SDK
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import config
from backoff_policy import BackoffPolicy
from product_record import ProductRecord
from prompts import QueryRequest, build_prompt
from product_schema import PRODUCT_SCHEMA
from transports.base import InferenceTransport
from validator import validate

logger = logging.getLogger(__name__)

__all__ = ["lookup_product", "get_transport", "transport_name"]

_transport: Optional[InferenceTransport] = None


def get_transport() -> InferenceTransport:
    """Return the active transport, building it once on first call."""
    global _transport
    if _transport is None:
        _transport = _build_transport()
        logger.info("Inference transport: %s", _transport.full_name)
    return _transport


def transport_name() -> str:
    try:
        return get_transport().full_name
    except RuntimeError:
        return "not configured"


def _build_transport() -> InferenceTransport:
    if not config.GOOGLE_API_KEY:
        raise RuntimeError(
            "GOOGLE_API_KEY is not set.\n"
            "Get a key at https://aistudio.google.com and add it to .env."
        )

    policy = BackoffPolicy(max_attempts=config.MAX_ATTEMPTS, base_delay=config.BASE_DELAY_SECS)
    mode = config.INFERENCE_TRANSPORT.lower()

    if mode == "sdk":
        from transports.sdk_transport import GeminiSdkTransport
        return GeminiSdkTransport(config.GOOGLE_API_KEY, config.GEMINI_MODEL, policy=policy)
    if mode == "rest":
        from transports.rest_transport import GeminiRestTransport
        return GeminiRestTransport(config.GOOGLE_API_KEY, config.GEMINI_MODEL, policy=policy)

    raise RuntimeError(f"Unknown INFERENCE_TRANSPORT={config.INFERENCE_TRANSPORT!r} (use rest or sdk)")


async def lookup_product(
    request: QueryRequest,
    transport: Optional[InferenceTransport] = None,
) -> ProductRecord:
    """
    Run one lookup end to end: prompt → Gemini (with backoff) → validated record.

    Raises:
        TransportError   — Gemini unreachable / rate limited past the retry bound,
                           or the reply envelope has an unexpected shape
        ValidationError  — the reply JSON doesn't satisfy PRODUCT_SCHEMA
        RuntimeError     — no API key configured
    """
    transport = transport or get_transport()
    payload = build_prompt(request)

    t0 = time.monotonic()
    raw = await transport.submit(payload, PRODUCT_SCHEMA)
    record = validate(raw, PRODUCT_SCHEMA)

    logger.info(
        "Lookup OK — %s → %r (%d price points, %d harmful) in %dms",
        request.label, record.product_name, len(record.price_history),
        len(record.harmful_content), int((time.monotonic() - t0) * 1000),
    )
    return record
