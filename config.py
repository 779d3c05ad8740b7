"""
Central configuration — reads from .env file.

Every value has a sensible default except the two secrets:
  TELEGRAM_BOT_TOKEN → required only to run the bot (main.py)
  GOOGLE_API_KEY     → required for any product lookup
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Telegram ──────────────────────────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Inference service (Google Gemini) ─────────────────────────────────────────
# Get a key at https://aistudio.google.com
GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL: str          = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# How lookups reach Gemini:
#   rest → plain HTTPS call with aiohttp (default)
#   sdk  → google-genai SDK
INFERENCE_TRANSPORT: str = os.getenv("INFERENCE_TRANSPORT", "rest")

# ── Retry policy ──────────────────────────────────────────────────────────────
# Total attempts (initial + retries). Delay before retry n is BASE_DELAY_SECS * 2**n.
MAX_ATTEMPTS: int      = int(os.getenv("MAX_ATTEMPTS", "5"))
BASE_DELAY_SECS: float = float(os.getenv("BASE_DELAY_SECS", "1.0"))

# ── Bot behaviour ─────────────────────────────────────────────────────────────
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en-US")
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")

# Optional log file in addition to stdout, e.g. data/bot.log
LOG_FILE: str | None = os.getenv("LOG_FILE", "").strip() or None
