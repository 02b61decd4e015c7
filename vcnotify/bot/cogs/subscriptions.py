"""
vcnotify.bot.cogs.subscriptions — DM Subscription Commands
===========================================================

Prefix commands, accepted in DMs only:
- !add-vc-notify <channel id>       — get a DM when someone joins
- !remove-vc-notify <channel id>    — stop those DMs
- !add-afk-channel <channel id>     — (admin) mark a channel as AFK
- !remove-afk-channel <channel id>  — (admin) unmark it

Validation, admin gating and reply text live in
:mod:`vcnotify.services.subscription_service`; this Cog resolves channels
from the gateway cache and persists the store after a change.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from vcnotify.services.subscription_service import (
    ChannelInfo,
    ChannelLookup,
    CommandKind,
    execute_command,
)

if TYPE_CHECKING:
    from vcnotify.bot.core import VcNotifyBot

logger = logging.getLogger(__name__)


class Subscriptions(commands.Cog, name="Subscriptions"):
    """Subscribe to voice channels and manage AFK channels over DM."""

    def __init__(self, bot: VcNotifyBot) -> None:
        self.bot = bot

    def channel_lookup(self, user_id: int) -> ChannelLookup:
        """Build a lookup that resolves channel ids as seen by *user_id*."""
        def lookup(channel_id: int) -> ChannelInfo | None:
            channel = self.bot.get_channel(channel_id)
            guild = getattr(channel, "guild", None)
            if channel is None or guild is None:
                return None
            return ChannelInfo(
                id=channel.id,
                name=channel.name,
                guild_id=guild.id,
                guild_name=guild.name,
                is_voice=isinstance(channel, discord.VoiceChannel),
                requester_is_member=guild.get_member(user_id) is not None,
            )
        return lookup

    async def _run(self, ctx: commands.Context, kind: CommandKind, channel_id: str | None) -> None:
        logger.info("[command] %s: %s %s", ctx.author, kind, channel_id or "")
        outcome = execute_command(
            self.bot.store,
            kind,
            ctx.author.id,
            channel_id,
            self.channel_lookup(ctx.author.id),
            prefix=self.bot.cfg.command_prefix,
        )
        if outcome.changed:
            await self.bot.persist()
        await ctx.send(outcome.reply)

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    @commands.command(name=CommandKind.ADD_VC_NOTIFY.value)
    @commands.dm_only()
    async def add_vc_notify(self, ctx: commands.Context, channel_id: str | None = None) -> None:
        """Subscribe to join notifications for a voice channel."""
        await self._run(ctx, CommandKind.ADD_VC_NOTIFY, channel_id)

    @commands.command(name=CommandKind.REMOVE_VC_NOTIFY.value)
    @commands.dm_only()
    async def remove_vc_notify(self, ctx: commands.Context, channel_id: str | None = None) -> None:
        """Unsubscribe from join notifications for a voice channel."""
        await self._run(ctx, CommandKind.REMOVE_VC_NOTIFY, channel_id)

    # -------------------------------------------------------------------
    # AFK channels (admin only, checked against the store)
    # -------------------------------------------------------------------
    @commands.command(name=CommandKind.ADD_AFK_CHANNEL.value)
    @commands.dm_only()
    async def add_afk_channel(self, ctx: commands.Context, channel_id: str | None = None) -> None:
        """Mark a voice channel as AFK for its server."""
        await self._run(ctx, CommandKind.ADD_AFK_CHANNEL, channel_id)

    @commands.command(name=CommandKind.REMOVE_AFK_CHANNEL.value)
    @commands.dm_only()
    async def remove_afk_channel(self, ctx: commands.Context, channel_id: str | None = None) -> None:
        """Remove the AFK mark from a voice channel."""
        await self._run(ctx, CommandKind.REMOVE_AFK_CHANNEL, channel_id)


async def setup(bot: VcNotifyBot) -> None:
    await bot.add_cog(Subscriptions(bot))
