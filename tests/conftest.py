"""
Shared pytest fixtures.

Every test starts without a cached transport, so tests that change
config.GOOGLE_API_KEY / INFERENCE_TRANSPORT see their own values.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def reset_transport(monkeypatch):
    import product_lookup
    monkeypatch.setattr(product_lookup, "_transport", None)
    yield


def make_reply(**overrides) -> dict:
    """A complete, valid product reply as Gemini would send it."""
    reply = {
        "productName": "Coca-Cola",
        "parentCompany": "The Coca-Cola Company",
        "priceHistory": [
            {"year": 1990, "price": "$0.50"},
            {"year": 2005, "price": "$1.00"},
            {"year": 2020, "price": "$1.75"},
        ],
        "ingredients": ["Carbonated water", "Sugar", "Caramel color", "Phosphoric acid", "Caffeine"],
        "content": "A sweetened carbonated soft drink.",
        "goodContent": ["Carbonated water"],
        "harmfulContent": ["Sugar", "Phosphoric acid"],
        "customerInfo": "Contains caffeine. Not recommended for children.",
    }
    reply.update(overrides)
    return reply


def reply_text(**overrides) -> str:
    return json.dumps(make_reply(**overrides))


class FakeSleep:
    """Records backoff delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
