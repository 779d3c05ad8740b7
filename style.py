"""
style.py — visual style system for the bot.

Design language:
  • Structured cards with consistent emoji icons
  • Unicode box-drawing dividers
  • MarkdownV2 throughout

All text that goes into Telegram messages should be formatted through this module.
"""
from __future__ import annotations

import currency
from derived import DerivedView
from product_record import ProductRecord
from prompts import SUPPORTED_LANGUAGES

# ── Escape ────────────────────────────────────────────────────────────────────

def esc(text: str) -> str:
    """Escape all MarkdownV2 special characters."""
    for ch in r"\_*[]()~`>#+-=|{}.!":
        text = text.replace(ch, f"\\{ch}")
    return text


# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

MAX_MESSAGE_LEN = 4050


def truncate(text: str, limit: int = MAX_MESSAGE_LEN) -> str:
    """Cut an already-escaped message to Telegram's limit and mark the cut."""
    if len(text) <= limit:
        return text
    cut = text[:limit]
    # an odd run of trailing backslashes would escape the ellipsis
    if (len(cut) - len(cut.rstrip("\\"))) % 2:
        cut = cut[:-1]
    return cut + "\\.\\.\\."


def risk_icon(percent: int) -> str:
    if percent >= 60:
        return "🔴"
    if percent >= 20:
        return "🟡"
    return "🟢"


def risk_bar(percent: int, width: int = 10) -> str:
    """'▰▰▰▱▱▱▱▱▱▱' style bar for a 0–100 value."""
    filled = round(max(0, min(100, percent)) * width / 100)
    return "▰" * filled + "▱" * (width - filled)


def bullet_list(items, empty: str = "none listed") -> str:
    return "\n".join(f"  ▸ {esc(i)}" for i in items) or f"  ▸ _{esc(empty)}_"


# ══════════════════════════════════════════════════════════════════════════════
# START / HELP
# ══════════════════════════════════════════════════════════════════════════════

def welcome() -> str:
    return (
        f"🛍️ *PRODUCT INSIGHT*\n"
        f"{DIV}\n\n"
        f"Send a product name or a product photo and I'll look it up with AI\\.\n\n"
        f"✨  *What you get*\n"
        f"▸ Parent company and price history\n"
        f"▸ Key ingredients, good and harmful\n"
        f"▸ A simple health\\-risk score\n"
        f"▸ Prices in USD, INR or EUR\n\n"
        f"{DIV}\n"
        f"_✍️ Type a product name or 📸 send a photo_"
    )


def help_text() -> str:
    return (
        f"📖 *HOW TO USE*\n"
        f"{DIV}\n\n"
        f"*1️⃣  Type a product name*\n"
        f"_e\\.g\\. Coca\\-Cola, Nutella, Colgate Total_\n\n"
        f"*2️⃣  …or send a photo*\n"
        f"_Label facing the camera, well lit_\n\n"
        f"*3️⃣  Pick language and currency*\n"
        f"_/language and /currency_\n\n"
        f"{DIV}\n"
        f"⚠️ Prices and risk scores are AI\\-generated estimates\\.\n\n"
        f"_Commands: /start · /help · /language · /currency_"
    )


def language_prompt(current: str) -> str:
    name = SUPPORTED_LANGUAGES.get(current, current)
    return f"🌐 *Answer language*\n{SDIV}\nCurrently: _{esc(name)}_ \\({esc(current)}\\)"


def language_set(tag: str) -> str:
    return f"🌐 Language set to *{esc(SUPPORTED_LANGUAGES.get(tag, tag))}*"


def currency_prompt(current: str) -> str:
    return f"💱 *Display currency*\n{SDIV}\nCurrently: _{esc(current)}_ \\({esc(currency.symbol(current))}\\)"


def currency_set(code: str) -> str:
    return f"💱 Prices now shown in *{esc(code)}* \\({esc(currency.symbol(code))}\\)"


# ══════════════════════════════════════════════════════════════════════════════
# LOADING
# ══════════════════════════════════════════════════════════════════════════════

def loading_lookup(label: str, by_image: bool = False) -> str:
    what = "📸 _Identifying the product in your photo…_" if by_image else f"🏷️ _{esc(label[:80])}_"
    return (
        f"🔍 *Looking it up*\n"
        f"{SDIV}\n"
        f"{what}\n\n"
        f"⠙ Asking the AI…"
    )


# ══════════════════════════════════════════════════════════════════════════════
# PRODUCT CARD
# ══════════════════════════════════════════════════════════════════════════════

def price_history_lines(record: ProductRecord, view: DerivedView) -> str:
    if not record.has_price_history:
        return "  ▸ _No data_"
    return "\n".join(
        f"  ▸ `{p.year}`  {esc(view.display_price(p.price_usd))}"
        for p in record.price_history
    )


def product_card(record: ProductRecord, view: DerivedView) -> str:
    """Full result card for one ProductRecord in the chosen currency."""
    pct = view.health_risk_percent
    card = (
        f"✨ *{esc(record.product_name)}*\n"
        f"{DIV}\n"
        f"🏢 {esc(record.parent_company)}\n\n"
        f"📈 *Price history* \\({esc(view.currency_code)}\\)\n"
        f"{price_history_lines(record, view)}\n\n"
        f"🧪 *Key ingredients*\n{bullet_list(record.ingredients)}\n\n"
        f"📝 {esc(record.content)}\n\n"
        f"✅ *Good*\n{bullet_list(record.good_content)}\n\n"
        f"⚠️ *Potentially harmful*\n{bullet_list(record.harmful_content)}\n\n"
        f"{SDIV}\n"
        f"{risk_icon(pct)} *Health risk:* `{pct}%`  {risk_bar(pct)}\n"
        f"{SDIV}\n"
        f"ℹ️ {esc(record.customer_info)}"
    )
    return truncate(card)


# ══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGES
# ══════════════════════════════════════════════════════════════════════════════

def error_lookup_failed(message: str) -> str:
    return (
        f"❌ *Failed to fetch product details*\n"
        f"{DIV}\n\n"
        f"{esc(message[:500])}\n\n"
        f"_Please try again in a moment\\._"
    )


def error_not_configured() -> str:
    return (
        f"⚠️ *AI Not Configured*\n"
        f"{DIV}\n\n"
        f"The bot owner needs to set `GOOGLE\\_API\\_KEY`\\.\n\n"
        f"_Free keys available at aistudio\\.google\\.com_"
    )


def busy() -> str:
    return (
        f"⏳ *Still working\\!*\n"
        f"{SDIV}\n"
        f"_Please wait for the current lookup to finish\\._"
    )


def empty_query() -> str:
    return (
        f"✍️ *Send a Product*\n"
        f"{SDIV}\n"
        f"Please enter a product name or upload an image\\."
    )
