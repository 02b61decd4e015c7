"""
vcnotify.services.subscription_service — DM Command Handling
=============================================================

Turns a raw ``!add-vc-notify 1234`` style command into a store mutation
and a reply for the requester.

Pipeline per command:

1. :func:`parse_channel_id` — argument present and a valid snowflake?
2. :func:`resolve_channel` — channel exists, is a voice channel, and the
   requester is a member of its guild?
3. :func:`apply_mutation` — admin gate for AFK commands, then the store
   write.

Rejections at any step raise :class:`CommandRejected` internally and come
back from :func:`execute_command` as a reply with ``changed=False``.
Persisting the store is the caller's job, and only when ``changed``.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass

from vcnotify.engine.events import (
    AddAfkChannel,
    AddSubscription,
    RemoveAfkChannel,
    RemoveSubscription,
    StoreMutation,
)
from vcnotify.engine.store import SubscriptionStore

logger = logging.getLogger(__name__)

MAX_SNOWFLAKE = 2**64 - 1


class CommandKind(enum.StrEnum):
    """The DM commands the bot understands (names without the prefix)."""
    ADD_VC_NOTIFY = "add-vc-notify"
    REMOVE_VC_NOTIFY = "remove-vc-notify"
    ADD_AFK_CHANNEL = "add-afk-channel"
    REMOVE_AFK_CHANNEL = "remove-afk-channel"

    def usage(self, prefix: str = "!") -> str:
        return f"Usage: `{prefix}{self.value} <channel id>`!"


class MutationResult(enum.StrEnum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    FORBIDDEN = "forbidden"


class CommandRejected(Exception):
    """A command was refused; ``str(exc)`` is the reply for the user."""


@dataclass(frozen=True, slots=True)
class ChannelInfo:
    """What a command needs to know about the channel it names."""

    id: int
    name: str
    guild_id: int
    guild_name: str
    is_voice: bool = True
    requester_is_member: bool = True


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    reply: str
    changed: bool = False


ChannelLookup = Callable[[int], ChannelInfo | None]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def parse_channel_id(kind: CommandKind, raw: str | None, prefix: str = "!") -> int:
    """Parse the channel argument of *kind*."""
    if raw is None or not raw.strip():
        raise CommandRejected(kind.usage(prefix))
    text = raw.strip().strip("<#>")
    if not text.isdecimal():
        raise CommandRejected("Not a valid channel ID!")
    channel_id = int(text)
    if not 0 < channel_id <= MAX_SNOWFLAKE:
        raise CommandRejected("Not a valid channel ID!")
    return channel_id


def resolve_channel(
    kind: CommandKind, raw: str | None, lookup: ChannelLookup, prefix: str = "!",
) -> ChannelInfo:
    """Parse and look up the channel argument, rejecting anything unusable."""
    channel_id = parse_channel_id(kind, raw, prefix)
    info = lookup(channel_id)
    # Unknown and not-shared channels get the same reply.
    if info is None or not info.requester_is_member:
        raise CommandRejected("I couldn't find a voice channel with that ID in any server we share!")
    if not info.is_voice:
        raise CommandRejected(f"{info.name} is not a voice channel!")
    return info


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------
def _add_subscription(store: SubscriptionStore, m: AddSubscription) -> MutationResult:
    added = store.add_subscription(m.user_id, m.guild_id, m.channel_id)
    return MutationResult.APPLIED if added else MutationResult.UNCHANGED


def _remove_subscription(store: SubscriptionStore, m: RemoveSubscription) -> MutationResult:
    removed = store.remove_subscription(m.user_id, m.guild_id, m.channel_id)
    return MutationResult.APPLIED if removed else MutationResult.UNCHANGED


def _add_afk_channel(store: SubscriptionStore, m: AddAfkChannel) -> MutationResult:
    if not store.is_admin(m.user_id, m.guild_id):
        return MutationResult.FORBIDDEN
    added = store.add_afk_channel(m.guild_id, m.channel_id)
    return MutationResult.APPLIED if added else MutationResult.UNCHANGED


def _remove_afk_channel(store: SubscriptionStore, m: RemoveAfkChannel) -> MutationResult:
    if not store.is_admin(m.user_id, m.guild_id):
        return MutationResult.FORBIDDEN
    removed = store.remove_afk_channel(m.guild_id, m.channel_id)
    return MutationResult.APPLIED if removed else MutationResult.UNCHANGED


_MUTATION_HANDLERS: dict[type, Callable[[SubscriptionStore, StoreMutation], MutationResult]] = {
    AddSubscription: _add_subscription,
    RemoveSubscription: _remove_subscription,
    AddAfkChannel: _add_afk_channel,
    RemoveAfkChannel: _remove_afk_channel,
}

_MUTATION_FOR_KIND: dict[CommandKind, type] = {
    CommandKind.ADD_VC_NOTIFY: AddSubscription,
    CommandKind.REMOVE_VC_NOTIFY: RemoveSubscription,
    CommandKind.ADD_AFK_CHANNEL: AddAfkChannel,
    CommandKind.REMOVE_AFK_CHANNEL: RemoveAfkChannel,
}


def apply_mutation(store: SubscriptionStore, mutation: StoreMutation) -> MutationResult:
    """Apply one store mutation.  AFK mutations require a guild admin."""
    handler = _MUTATION_HANDLERS.get(type(mutation))
    if handler is None:
        raise TypeError(f"Unsupported mutation: {mutation!r}")
    return handler(store, mutation)


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------
_REPLIES: dict[tuple[CommandKind, MutationResult], str] = {
    (CommandKind.ADD_VC_NOTIFY, MutationResult.APPLIED):
        "Subscribed to notifications for {channel} on {guild}!",
    (CommandKind.ADD_VC_NOTIFY, MutationResult.UNCHANGED):
        "You are already subscribed to {channel} on {guild}!",
    (CommandKind.REMOVE_VC_NOTIFY, MutationResult.APPLIED):
        "Unsubscribed from notifications for {channel} on {guild}!",
    (CommandKind.REMOVE_VC_NOTIFY, MutationResult.UNCHANGED):
        "You are not subscribed to this channel!",
    (CommandKind.ADD_AFK_CHANNEL, MutationResult.APPLIED):
        "Marked {channel} on {guild} as an AFK channel!",
    (CommandKind.ADD_AFK_CHANNEL, MutationResult.UNCHANGED):
        "{channel} on {guild} is already an AFK channel!",
    (CommandKind.REMOVE_AFK_CHANNEL, MutationResult.APPLIED):
        "{channel} on {guild} is no longer an AFK channel!",
    (CommandKind.REMOVE_AFK_CHANNEL, MutationResult.UNCHANGED):
        "That channel is not marked as an AFK channel!",
}

FORBIDDEN_REPLY = "Only server admins can manage AFK channels!"


def execute_command(
    store: SubscriptionStore,
    kind: CommandKind,
    user_id: int,
    raw_channel: str | None,
    lookup: ChannelLookup,
    *,
    prefix: str = "!",
) -> CommandOutcome:
    """Validate, apply and describe one DM command from *user_id*."""
    try:
        channel = resolve_channel(kind, raw_channel, lookup, prefix)
    except CommandRejected as exc:
        logger.info("Rejected %s from %d: %s", kind, user_id, exc)
        return CommandOutcome(reply=str(exc))

    mutation = _MUTATION_FOR_KIND[kind](
        user_id=user_id, guild_id=channel.guild_id, channel_id=channel.id,
    )
    result = apply_mutation(store, mutation)

    if result is MutationResult.FORBIDDEN:
        logger.warning(
            "Non-admin %d tried %s on channel %d in guild %d",
            user_id, kind, channel.id, channel.guild_id,
        )
        return CommandOutcome(reply=FORBIDDEN_REPLY)

    if result is MutationResult.APPLIED:
        logger.info("%s by %d: channel %d in guild %d", kind, user_id, channel.id, channel.guild_id)

    reply = _REPLIES[(kind, result)].format(channel=channel.name, guild=channel.guild_name)
    return CommandOutcome(reply=reply, changed=result is MutationResult.APPLIED)
