"""
Tests for style.py — MarkdownV2 formatting helpers.

Covers:
  - esc(): all MarkdownV2 special characters are escaped
  - risk_bar() / risk_icon(): scale and clamping
  - product_card(): key fields, currency conversion, "no data" history
  - error / busy messages
"""
from __future__ import annotations

import pytest

import style
from conftest import reply_text
from derived import derive_view
from validator import validate


@pytest.fixture
def record():
    return validate(reply_text())


# ── esc() ─────────────────────────────────────────────────────────────────────

class TestEsc:
    MDV2_SPECIALS = r"\_*[]()~`>#+-=|{}.!"

    def test_all_special_characters_escaped(self):
        for ch in self.MDV2_SPECIALS:
            assert style.esc(ch) == f"\\{ch}", f"Character {ch!r} not escaped"

    def test_plain_text_unchanged(self):
        assert style.esc("Hello World") == "Hello World"

    def test_currency_symbols_pass_through(self):
        result = style.esc("₹830.00")
        assert result == "₹830\\.00"


# ── risk helpers ──────────────────────────────────────────────────────────────

class TestRiskBar:
    def test_empty(self):
        assert style.risk_bar(0) == "▱" * 10

    def test_full(self):
        assert style.risk_bar(100) == "▰" * 10

    def test_partial(self):
        assert style.risk_bar(40) == "▰▰▰▰▱▱▱▱▱▱"

    def test_clamped(self):
        assert style.risk_bar(250) == "▰" * 10
        assert style.risk_bar(-5) == "▱" * 10

    def test_icons(self):
        assert style.risk_icon(0) == "🟢"
        assert style.risk_icon(40) == "🟡"
        assert style.risk_icon(100) == "🔴"


# ── product_card() ────────────────────────────────────────────────────────────

class TestProductCard:
    def test_contains_key_fields(self, record):
        card = style.product_card(record, derive_view(record, "USD"))
        assert "Coca\\-Cola" in card
        assert "The Coca\\-Cola Company" in card
        assert "Phosphoric acid" in card
        assert "`40%`" in card

    def test_prices_in_selected_currency(self, record):
        card = style.product_card(record, derive_view(record, "EUR"))
        # 1.75 USD * 0.92
        assert "€1\\.61" in card
        assert "$" not in card

    def test_no_price_history(self):
        record = validate(reply_text(priceHistory=[]))
        card = style.product_card(record, derive_view(record, "USD"))
        assert "No data" in card

    def test_empty_harmful_list(self):
        record = validate(reply_text(harmfulContent=[]))
        card = style.product_card(record, derive_view(record, "USD"))
        assert "none listed" in card
        assert "`0%`" in card

    def test_truncated_when_too_long(self):
        record = validate(reply_text(content="x" * 5000))
        card = style.product_card(record, derive_view(record, "USD"))
        assert len(card) <= style.MAX_MESSAGE_LEN + 6
        assert card.endswith("\\.\\.\\.")

    def test_truncation_never_leaves_dangling_escape(self):
        # escaped dots make every other character a backslash, so some cut
        # points land between a backslash and the character it escapes
        for length in range(3000, 3100):
            record = validate(reply_text(customerInfo="." * length))
            card = style.product_card(record, derive_view(record, "USD"))
            assert card.endswith("\\.\\.\\.")
            body = card[:-6]
            trailing = len(body) - len(body.rstrip("\\"))
            assert trailing % 2 == 0, length

    def test_truncate_short_text_unchanged(self):
        assert style.truncate("hello", limit=10) == "hello"

    def test_truncate_drops_unpaired_backslash(self):
        assert style.truncate("ab\\.cd", limit=3) == "ab\\.\\.\\."


# ── Messages ──────────────────────────────────────────────────────────────────

class TestMessages:
    def test_error_carries_message(self):
        text = style.error_lookup_failed("Reply is missing required field(s): harmfulContent")
        assert "harmfulContent" in text
        assert "\\(s\\)" in text

    def test_welcome_and_help_not_empty(self):
        assert "PRODUCT INSIGHT" in style.welcome()
        assert "/currency" in style.help_text()

    def test_language_prompt_names_language(self):
        assert "Hindi" in style.language_prompt("hi-IN")

    def test_currency_set_shows_symbol(self):
        assert "₹" in style.currency_set("INR")

    def test_loading_by_image(self):
        assert "photo" in style.loading_lookup("photo", by_image=True)
