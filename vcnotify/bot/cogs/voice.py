"""
vcnotify.bot.cogs.voice — Voice Join Listener
==============================================

Feeds every ``on_voice_state_update`` into the notify service, which
decides whether it is a join and DMs the channel's subscribers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from vcnotify.services.notify_service import handle_voice_transition

if TYPE_CHECKING:
    from vcnotify.bot.core import VcNotifyBot

logger = logging.getLogger(__name__)


class Voice(commands.Cog, name="Voice"):
    """Turns voice joins into subscriber notifications."""

    def __init__(self, bot: VcNotifyBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        logger.debug(
            "Gateway event: VOICE_STATE %s (%s → %s)",
            member.name,
            getattr(before.channel, "name", "None"),
            getattr(after.channel, "name", "None"),
        )
        try:
            await handle_voice_transition(
                self.bot.store, member, before.channel, after.channel, self.bot.send_dm,
            )
        except Exception:
            logger.exception("Error processing voice state update for user %s", member.id)


async def setup(bot: VcNotifyBot) -> None:
    await bot.add_cog(Voice(bot))
