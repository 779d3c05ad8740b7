"""
Shared types and base class for all inference transports.

A transport implements send(), one attempt against Gemini, and raises
TransportError with a kind describing what went wrong. submit() wraps send()
in the backoff policy: RATE_LIMITED and TRANSIENT_FAILURE are retried,
INVALID_RESPONSE_SHAPE is raised straight away.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from backoff_policy import BackoffPolicy, run_with_backoff
from prompts import PromptPayload

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class TransportErrorKind(str, Enum):
    RATE_LIMITED           = "rate_limited"
    TRANSIENT_FAILURE      = "transient_failure"
    INVALID_RESPONSE_SHAPE = "invalid_response_shape"
    RETRIES_EXHAUSTED      = "retries_exhausted"


class TransportError(Exception):

    def __init__(
        self,
        kind: TransportErrorKind,
        message: str,
        last_cause: Optional["TransportError"] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind       = kind
        self.last_cause = last_cause
        self.status     = status


class RetryableTransportError(TransportError):
    """Raised by send() for failures the backoff loop should retry."""


def rate_limited(message: str, status: int = 429) -> RetryableTransportError:
    return RetryableTransportError(TransportErrorKind.RATE_LIMITED, message, status=status)


def transient(message: str, status: Optional[int] = None) -> RetryableTransportError:
    return RetryableTransportError(TransportErrorKind.TRANSIENT_FAILURE, message, status=status)


def invalid_shape(message: str) -> TransportError:
    return TransportError(TransportErrorKind.INVALID_RESPONSE_SHAPE, message)


def extract_candidate_text(envelope: Any) -> str:
    """
    Pull candidates[0].content.parts[0].text out of a generateContent reply
    (plain dict from the REST API). Raises INVALID_RESPONSE_SHAPE otherwise.
    """
    try:
        candidates = envelope["candidates"]
        if not candidates:
            raise invalid_shape("Reply has no candidates")
        parts = candidates[0]["content"]["parts"]
        if not parts:
            raise invalid_shape("Reply candidate has no content parts")
        text = parts[0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise invalid_shape(f"Invalid response structure from Gemini: missing {exc}") from exc
    if not isinstance(text, str):
        raise invalid_shape("Reply text part is not a string")
    return text


# ── Abstract base ──────────────────────────────────────────────────────────────

class InferenceTransport(ABC):
    """Base class all transports must implement."""

    name: str           # e.g. "rest"
    model_id: str       # e.g. "gemini-2.5-flash"

    def __init__(
        self,
        policy: Optional[BackoffPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep

    @abstractmethod
    async def send(self, payload: PromptPayload, schema: dict) -> str:
        """One attempt. Returns the raw JSON text or raises TransportError."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"

    async def submit(self, payload: PromptPayload, schema: dict) -> str:
        """send() with bounded exponential backoff on retryable failures."""

        def _exhausted(last: BaseException, attempts: int) -> TransportError:
            return TransportError(
                TransportErrorKind.RETRIES_EXHAUSTED,
                f"Gemini still failing after {attempts} attempts: {last}",
                last_cause=last if isinstance(last, TransportError) else None,
            )

        return await run_with_backoff(
            lambda: self.send(payload, schema),
            self.policy,
            retry_on=(RetryableTransportError,),
            on_exhausted=_exhausted,
            sleep=self._sleep,
            label=self.full_name,
        )
