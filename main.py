"""
main.py — Single entry point.

Runs the aiohttp lookup server until SIGINT/SIGTERM.

Architecture:
  asyncio event loop
    └── aiohttp web server  (POST /api/electro-lookup, GET /health)
         ├── generation providers  (gemini → groq → deepseek)
         └── search backends       (Google Custom Search → Serper)
"""
import asyncio
import logging
import signal
import sys

import config
import key_store

_handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    _handlers.append(logging.FileHandler(config.LOG_FILE, encoding="utf-8"))

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    handlers=_handlers,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def _log_key_status() -> None:
    for name, value in key_store.get_all_keys().items():
        logger.info("  %-18s %s", name, key_store.mask(value))


async def run() -> None:
    from server import start_server

    logger.info("API keys:")
    _log_key_status()

    runner = await start_server()

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

    # Block until signal received
    try:
        await stop_event.wait()
    except (KeyboardInterrupt, SystemExit):
        pass

    logger.info("Shutting down…")
    await runner.cleanup()
    logger.info("Goodbye.")


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
