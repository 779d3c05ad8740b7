"""
bot.py — Telegram bot handlers.

All visual formatting is delegated to style.py.
All lookups go through product_lookup.py.
Session state is kept in-memory per chat_id; a chat runs at most one lookup at a time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

import config
import currency
import style
from derived import DerivedView, derive_view
from product_lookup import lookup_product
from product_record import ProductRecord
from prompts import SUPPORTED_LANGUAGES, ContractViolation, QueryRequest
from transports.base import TransportError
from validator import ValidationError

logger = logging.getLogger(__name__)

# ── Callback data ──────────────────────────────────────────────────────────────
CB_LANGUAGE = "lang:"       # + language tag
CB_CURRENCY = "cur:"        # + currency code


# ── Session ────────────────────────────────────────────────────────────────────

class LookupStatus(str, Enum):
    IDLE    = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED  = "failed"


@dataclass
class ChatSession:
    language_tag: str  = field(default_factory=lambda: config.DEFAULT_LANGUAGE)
    currency_code: str = field(default_factory=lambda: config.DEFAULT_CURRENCY)

    status: LookupStatus             = LookupStatus.IDLE
    record: Optional[ProductRecord]  = None
    error: Optional[Exception]       = None

    def begin(self) -> bool:
        """Start a lookup. False when one is already running for this chat."""
        if self.status is LookupStatus.LOADING:
            return False
        self.status = LookupStatus.LOADING
        self.record = None
        self.error  = None
        return True

    def succeed(self, record: ProductRecord) -> None:
        self.status = LookupStatus.SUCCESS
        self.record = record
        self.error  = None

    def fail(self, error: Exception) -> None:
        self.status = LookupStatus.FAILED
        self.record = None
        self.error  = error

    def view(self) -> Optional[DerivedView]:
        if self.record is None:
            return None
        return derive_view(self.record, self.currency_code)


_sessions: dict[int, ChatSession] = {}


def get_session(chat_id: int) -> ChatSession:
    if chat_id not in _sessions:
        _sessions[chat_id] = ChatSession()
    return _sessions[chat_id]


# ── Keyboards ──────────────────────────────────────────────────────────────────

def language_keyboard(current: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(
            f"{'✅ ' if tag == current else ''}{name}",
            callback_data=f"{CB_LANGUAGE}{tag}",
        )]
        for tag, name in SUPPORTED_LANGUAGES.items()
    ])


def currency_keyboard(current: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton(
            f"{'✅ ' if code == current else ''}{code} ({currency.symbol(code)})",
            callback_data=f"{CB_CURRENCY}{code}",
        )
        for code in currency.EXCHANGE_RATES
    ]])


# ── Handlers ───────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.welcome(), parse_mode="MarkdownV2")


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.help_text(), parse_mode="MarkdownV2")


async def cmd_language(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_session(update.effective_chat.id)
    await update.message.reply_text(
        style.language_prompt(session.language_tag),
        parse_mode="MarkdownV2",
        reply_markup=language_keyboard(session.language_tag),
    )


async def cmd_currency(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_session(update.effective_chat.id)
    await update.message.reply_text(
        style.currency_prompt(session.currency_code),
        parse_mode="MarkdownV2",
        reply_markup=currency_keyboard(session.currency_code),
    )


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    name = (update.message.text or "").strip()
    if not name:
        await update.message.reply_text(style.empty_query(), parse_mode="MarkdownV2")
        return
    session = get_session(update.effective_chat.id)

    async def _request() -> QueryRequest:
        return QueryRequest.by_name(name, session.language_tag)

    await _run_lookup(update, session, _request, label=name)


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_session(update.effective_chat.id)

    async def _request() -> QueryRequest:
        photo      = update.message.photo[-1]
        photo_file = await context.bot.get_file(photo.file_id)
        image_bytes = bytes(await photo_file.download_as_bytearray())
        return QueryRequest.by_image(image_bytes, session.language_tag)

    await _run_lookup(update, session, _request, label="photo", by_image=True)


async def _run_lookup(
    update: Update,
    session: ChatSession,
    make_request: Callable[[], Awaitable[QueryRequest]],
    label: str,
    by_image: bool = False,
) -> None:
    """Shared flow for text and photo lookups: guard → loading → lookup → card or error."""
    if not session.begin():
        await update.message.reply_text(style.busy(), parse_mode="MarkdownV2")
        return

    try:
        msg = await update.message.reply_text(
            style.loading_lookup(label, by_image=by_image),
            parse_mode="MarkdownV2",
        )
    except Exception as exc:
        # the chat must not stay LOADING when Telegram refuses the message
        logger.exception("Could not send loading message for %r", label)
        session.fail(exc)
        raise

    try:
        request = await make_request()
        record  = await lookup_product(request)
    except RuntimeError as exc:
        logger.error("Lookup not possible: %s", exc)
        session.fail(exc)
        await msg.edit_text(style.error_not_configured(), parse_mode="MarkdownV2")
        return
    except (ContractViolation, TransportError, ValidationError) as exc:
        logger.error("Lookup failed for %r: %s", label, exc)
        session.fail(exc)
        await msg.edit_text(style.error_lookup_failed(str(exc)), parse_mode="MarkdownV2")
        return
    except Exception as exc:
        # Telegram download errors and anything unexpected still end the lookup
        logger.exception("Unexpected lookup failure for %r", label)
        session.fail(exc)
        await msg.edit_text(style.error_lookup_failed(str(exc)), parse_mode="MarkdownV2")
        return

    session.succeed(record)
    await msg.edit_text(style.product_card(record, session.view()), parse_mode="MarkdownV2")


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()
    session = get_session(update.effective_chat.id)
    data    = query.data or ""

    # ── Language chosen ───────────────────────────────────────────────────────
    if data.startswith(CB_LANGUAGE):
        tag = data[len(CB_LANGUAGE):]
        if tag in SUPPORTED_LANGUAGES:
            session.language_tag = tag
            await query.edit_message_text(style.language_set(tag), parse_mode="MarkdownV2")
        return

    # ── Currency chosen → re-render the current result, if any ────────────────
    if data.startswith(CB_CURRENCY):
        code = data[len(CB_CURRENCY):]
        if code not in currency.EXCHANGE_RATES:
            return
        session.currency_code = code
        await query.edit_message_text(style.currency_set(code), parse_mode="MarkdownV2")
        if session.status is LookupStatus.SUCCESS and session.record is not None:
            await query.message.reply_text(
                style.product_card(session.record, session.view()),
                parse_mode="MarkdownV2",
            )
        return


async def handle_other(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.empty_query(), parse_mode="MarkdownV2")


# ── App factory ────────────────────────────────────────────────────────────────

def build_application() -> Application:
    if not config.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set. Add it to .env.")

    # Updates are handled concurrently; ChatSession.begin() keeps one lookup per chat.
    app = (
        Application.builder()
        .token(config.TELEGRAM_BOT_TOKEN)
        .concurrent_updates(True)
        .build()
    )

    app.add_handler(CommandHandler("start",    cmd_start))
    app.add_handler(CommandHandler("help",     cmd_help))
    app.add_handler(CommandHandler("language", cmd_language))
    app.add_handler(CommandHandler("currency", cmd_currency))
    app.add_handler(MessageHandler(filters.PHOTO,                   handle_photo))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))
    app.add_handler(CallbackQueryHandler(handle_callback))
    app.add_handler(MessageHandler(~filters.COMMAND,                handle_other))
    return app
