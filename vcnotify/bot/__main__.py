"""
vcnotify.bot.__main__ — Entry point for ``python -m vcnotify.bot``
===================================================================

Startup refuses to run half-configured.  ``DISCORD_TOKEN`` must come from
the environment or ``.env``, and a data file that exists but cannot be
read or validated stops the process with exit code 1 instead of starting
with an empty store that the next command would write over.  A missing
data file is a normal first run.

Once the store is loaded its counts are logged, so an operator can see at
a glance that the expected guilds and subscriptions came back.

Run with::

    python -m vcnotify.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from vcnotify.bot.core import VcNotifyBot
from vcnotify.config import load_config
from vcnotify.storage.files import StorageError, load_store

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("vcnotify")


def main() -> None:
    """Bootstrap and run the vcnotify bot."""

    load_dotenv()
    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    cfg = load_config()
    logging.getLogger().setLevel(cfg.log_level_value)
    logger.info("Config loaded — data file: %s", cfg.data_path)

    try:
        store = load_store(cfg.data_path)
    except StorageError as exc:
        logger.critical("Error loading %s: %s", cfg.data_path, exc)
        sys.exit(1)
    logger.info("Loaded subscription information: %s", store.stats())

    bot = VcNotifyBot(cfg=cfg, store=store)
    logger.info("Starting vcnotify bot (prefix %r)…", cfg.command_prefix)
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
