"""
main.py — Single entry point.

Runs the Telegram bot in one asyncio event loop (polling).
"""
import asyncio
import logging
import signal
import sys
from pathlib import Path

import config
from bot import build_application

_handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    Path(config.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    _handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=_handlers,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def run() -> None:
    from product_lookup import transport_name

    ptb_app = build_application()
    logger.info("Inference transport: %s", transport_name())

    # ── Run PTB in async context (PTB v20 pattern for custom event loops) ──────
    stop_event = asyncio.Event()

    def _stop(*_):
        logger.info("Shutdown signal received.")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _stop)
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler for all signals
            pass

    async with ptb_app:
        await ptb_app.start()
        await ptb_app.updater.start_polling(
            allowed_updates=["message", "callback_query"],
            drop_pending_updates=True,
        )
        logger.info("✅ Bot is running. Press Ctrl+C to stop.")

        try:
            await stop_event.wait()
        except (KeyboardInterrupt, SystemExit):
            pass

        logger.info("Shutting down…")
        await ptb_app.updater.stop()
        await ptb_app.stop()

    logger.info("Goodbye.")


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
