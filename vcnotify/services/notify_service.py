"""
vcnotify.services.notify_service — discord.py → Join Notifications
===================================================================

Glue between live discord.py objects and the pure engine:

1. Normalize the voice-state change into a :class:`VoiceTransition`.
2. Classify it with :func:`is_join_event` against the store's AFK
   channels for the member's guild.
3. On a join, capture channel members, guild presences, voice channels
   and display names into a :class:`GuildSnapshot`.
4. Hand everything to :func:`dispatch_notifications`.

The snapshot helpers only read plain attributes (``.members``, ``.id``,
``.status``, ``.display_name``), so tests can pass ``SimpleNamespace``
objects instead of real discord models.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vcnotify.engine.classifier import is_join_event
from vcnotify.engine.dispatcher import (
    GuildSnapshot,
    JoinContext,
    NotificationPlan,
    SendFn,
    VoiceChannelState,
    dispatch_notifications,
)
from vcnotify.engine.events import PresenceStatus, VoiceTransition
from vcnotify.engine.store import SubscriptionStore

if TYPE_CHECKING:
    import discord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Snapshot helpers
# ---------------------------------------------------------------------------
def get_channel_members(channel: discord.abc.GuildChannel) -> frozenset[int]:
    return frozenset(m.id for m in getattr(channel, "members", ()))


def get_guild_presences(guild: discord.Guild) -> dict[int, PresenceStatus]:
    """Presence of every cached guild member (needs the presences intent)."""
    return {m.id: PresenceStatus.parse(m.status) for m in guild.members}


def get_guild_voice_channels(
    guild: discord.Guild, store: SubscriptionStore,
) -> tuple[VoiceChannelState, ...]:
    """Every voice channel of *guild* with its members and AFK flag from the store."""
    return tuple(
        VoiceChannelState(
            channel_id=vc.id,
            is_afk=store.is_afk_channel(guild.id, vc.id),
            members=get_channel_members(vc),
        )
        for vc in guild.voice_channels
    )


def build_guild_snapshot(
    guild: discord.Guild,
    channel: discord.abc.GuildChannel,
    store: SubscriptionStore,
) -> GuildSnapshot:
    return GuildSnapshot(
        channel_members=get_channel_members(channel),
        presences=get_guild_presences(guild),
        voice_channels=get_guild_voice_channels(guild, store),
        display_names={m.id: m.display_name for m in guild.members},
    )


def build_join_context(member: discord.Member, channel: discord.abc.GuildChannel) -> JoinContext:
    return JoinContext(
        joiner_id=member.id,
        joiner_name=member.display_name,
        channel_id=channel.id,
        channel_name=channel.name,
        guild_id=member.guild.id,
        guild_name=member.guild.name,
    )


# ---------------------------------------------------------------------------
# Entry point from the voice cog
# ---------------------------------------------------------------------------
async def handle_voice_transition(
    store: SubscriptionStore,
    member: discord.Member,
    before_channel: discord.abc.GuildChannel | None,
    after_channel: discord.abc.GuildChannel | None,
    send: SendFn,
) -> NotificationPlan | None:
    """Classify a voice-state change and fan out notifications on a join.

    Returns the executed plan, or None when the change was not a join.
    """
    guild = member.guild
    transition = VoiceTransition(
        user_id=member.id,
        guild_id=guild.id,
        old_channel_id=getattr(before_channel, "id", None),
        new_channel_id=getattr(after_channel, "id", None),
    )

    if not is_join_event(
        transition.old_channel_id,
        transition.new_channel_id,
        lambda channel_id: store.is_afk_channel(transition.guild_id, channel_id),
    ):
        return None

    logger.debug(
        "Join event: user %d → channel %d in guild %d",
        transition.user_id, transition.new_channel_id, transition.guild_id,
    )
    join = build_join_context(member, after_channel)
    snapshot = build_guild_snapshot(guild, after_channel, store)
    return await dispatch_notifications(store, join, snapshot, send)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------
async def send_direct_message(client: discord.Client, user_id: int, text: str) -> None:
    """DM *user_id*.  discord.py errors propagate to the caller."""
    user = client.get_user(user_id) or await client.fetch_user(user_id)
    await user.send(text)
