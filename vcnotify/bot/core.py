"""
vcnotify.bot.core — Bot Instance & Cog Loader
==============================================

Defines :class:`VcNotifyBot`, a ``commands.Bot`` subclass that:

1. Carries the shared config (``bot.cfg``) and the single
   :class:`SubscriptionStore` (``bot.store``) for every Cog.
2. Loads the Cogs in ``vcnotify/bot/cogs/`` on startup.
3. Persists the store off the event loop after each successful mutation.
4. Logs gateway lifecycle events.

Intents: presences and members are privileged and must be enabled in the
Developer Portal.  Presence data drives the online/idle filter; members
are needed to see who shares a guild with whom.
"""

from __future__ import annotations

import asyncio
import logging

import discord
from discord.ext import commands

from vcnotify.config import VcNotifyConfig
from vcnotify.engine.store import SubscriptionStore
from vcnotify.services.notify_service import send_direct_message
from vcnotify.storage.files import run_io, save_store

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "vcnotify.bot.cogs.voice",
    "vcnotify.bot.cogs.subscriptions",
]


class VcNotifyBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`VcNotifyConfig` from ``config.yaml``.
    store:
        The subscription store loaded from ``cfg.data_path``.
    """

    def __init__(self, cfg: VcNotifyConfig, store: SubscriptionStore) -> None:
        intents = discord.Intents.default()
        intents.members = True           # Privileged: shared-guild checks, display names
        intents.presences = True         # Privileged: online/idle filter
        intents.message_content = True   # Privileged: prefix commands

        super().__init__(
            command_prefix=cfg.command_prefix,
            intents=intents,
            help_command=None,
        )

        self.cfg = cfg
        self.store = store
        self._save_lock = asyncio.Lock()

    async def send_dm(self, user_id: int, text: str) -> None:
        await send_direct_message(self, user_id, text)

    async def persist(self) -> bool:
        """Save the store to disk on a worker thread.

        Saves run one at a time so the file always ends up with the newest
        snapshot.  A failed save is logged and the in-memory state is kept.
        """
        try:
            async with self._save_lock:
                await run_io(save_store, self.cfg.data_path, self.store)
        except Exception:
            logger.exception("Error saving %s", self.cfg.data_path)
            return False
        return True

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load Cog extensions.  A broken Cog is logged, not fatal."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info(
            "Logged in as %s (ID: %s) in %d guilds",
            self.user.name, self.user.id, len(self.guilds),
        )

    async def on_resumed(self) -> None:
        logger.info("Gateway session resumed")

    async def on_guild_unavailable(self, guild: discord.Guild) -> None:
        logger.warning("Guild unavailable: %s (ID: %d)", guild.name, guild.id)

    async def on_command_error(
        self, ctx: commands.Context, error: commands.CommandError,
    ) -> None:
        if isinstance(error, commands.CommandNotFound):
            if ctx.guild is None:
                await ctx.send("Unknown command!")
            return
        if isinstance(error, commands.PrivateMessageOnly):
            logger.debug("Ignoring guild use of %s by %s", ctx.command, ctx.author)
            return
        logger.error(
            "Command %s failed for %s", ctx.command, ctx.author,
            exc_info=(type(error), error, error.__traceback__),
        )
