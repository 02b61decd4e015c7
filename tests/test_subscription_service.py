"""
tests/test_subscription_service.py — DM Command Handling Tests
===============================================================

Argument validation, channel resolution, admin gating and the
``changed`` flag that drives persistence.
"""

from __future__ import annotations

import pytest

from conftest import AFK_CHANNEL_ID, CHANNEL_ID, GUILD_ID, is_subscribed, make_store
from vcnotify.engine.events import AddAfkChannel, AddSubscription, RemoveSubscription
from vcnotify.services.subscription_service import (
    FORBIDDEN_REPLY,
    ChannelInfo,
    CommandKind,
    CommandOutcome,
    CommandRejected,
    MutationResult,
    apply_mutation,
    execute_command,
    parse_channel_id,
    resolve_channel,
)
from vcnotify.storage.models import AdminData

USER = 501
ADMIN = 777
TEXT_CHANNEL_ID = 5005
FOREIGN_CHANNEL_ID = 6006

CHANNELS = {
    CHANNEL_ID: ChannelInfo(id=CHANNEL_ID, name="General", guild_id=GUILD_ID, guild_name="Guild"),
    AFK_CHANNEL_ID: ChannelInfo(id=AFK_CHANNEL_ID, name="AFK", guild_id=GUILD_ID, guild_name="Guild"),
    TEXT_CHANNEL_ID: ChannelInfo(
        id=TEXT_CHANNEL_ID, name="chat", guild_id=GUILD_ID, guild_name="Guild", is_voice=False,
    ),
    FOREIGN_CHANNEL_ID: ChannelInfo(
        id=FOREIGN_CHANNEL_ID, name="Secret", guild_id=42, guild_name="Other",
        requester_is_member=False,
    ),
}


def lookup(channel_id: int) -> ChannelInfo | None:
    return CHANNELS.get(channel_id)


class TestParseChannelId:
    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_argument_gives_usage(self, raw):
        with pytest.raises(CommandRejected, match="Usage: `!add-vc-notify <channel id>`!"):
            parse_channel_id(CommandKind.ADD_VC_NOTIFY, raw)

    def test_usage_uses_prefix(self):
        with pytest.raises(CommandRejected, match=r"\?remove-vc-notify"):
            parse_channel_id(CommandKind.REMOVE_VC_NOTIFY, None, prefix="?")

    @pytest.mark.parametrize("raw", ["abc", "-5", "12.5", "0", str(2**64)])
    def test_invalid_ids(self, raw):
        with pytest.raises(CommandRejected, match="Not a valid channel ID!"):
            parse_channel_id(CommandKind.ADD_VC_NOTIFY, raw)

    def test_accepts_plain_and_mention(self):
        assert parse_channel_id(CommandKind.ADD_VC_NOTIFY, " 4001 ") == 4001
        assert parse_channel_id(CommandKind.ADD_VC_NOTIFY, "<#4001>") == 4001


class TestResolveChannel:
    def test_unknown_channel(self):
        with pytest.raises(CommandRejected, match="couldn't find"):
            resolve_channel(CommandKind.ADD_VC_NOTIFY, "123", lookup)

    def test_not_common_channel(self):
        with pytest.raises(CommandRejected, match="couldn't find"):
            resolve_channel(CommandKind.ADD_VC_NOTIFY, str(FOREIGN_CHANNEL_ID), lookup)

    def test_not_voice(self):
        with pytest.raises(CommandRejected, match="chat is not a voice channel!"):
            resolve_channel(CommandKind.ADD_VC_NOTIFY, str(TEXT_CHANNEL_ID), lookup)

    def test_ok(self):
        assert resolve_channel(CommandKind.ADD_VC_NOTIFY, str(CHANNEL_ID), lookup) == CHANNELS[CHANNEL_ID]


class TestApplyMutation:
    def test_subscription_roundtrip(self, store):
        add = AddSubscription(user_id=USER, guild_id=GUILD_ID, channel_id=CHANNEL_ID)
        assert apply_mutation(store, add) is MutationResult.APPLIED
        assert apply_mutation(store, add) is MutationResult.UNCHANGED
        remove = RemoveSubscription(user_id=USER, guild_id=GUILD_ID, channel_id=CHANNEL_ID)
        assert apply_mutation(store, remove) is MutationResult.APPLIED
        assert apply_mutation(store, remove) is MutationResult.UNCHANGED

    def test_afk_requires_admin(self, store):
        mutation = AddAfkChannel(user_id=USER, guild_id=GUILD_ID, channel_id=AFK_CHANNEL_ID)
        assert apply_mutation(store, mutation) is MutationResult.FORBIDDEN
        assert store.is_afk_channel(GUILD_ID, AFK_CHANNEL_ID) is False

    def test_unsupported_mutation(self, store):
        with pytest.raises(TypeError):
            apply_mutation(store, object())


class TestExecuteCommand:
    def test_add_vc_notify(self, store):
        out = execute_command(store, CommandKind.ADD_VC_NOTIFY, USER, str(CHANNEL_ID), lookup)
        assert out.changed is True
        assert out.reply == "Subscribed to notifications for General on Guild!"
        assert is_subscribed(store, USER)

        again = execute_command(store, CommandKind.ADD_VC_NOTIFY, USER, str(CHANNEL_ID), lookup)
        assert again.changed is False
        assert again.reply == "You are already subscribed to General on Guild!"

    def test_remove_vc_notify(self, store):
        store.add_subscription(USER, GUILD_ID, CHANNEL_ID)
        out = execute_command(store, CommandKind.REMOVE_VC_NOTIFY, USER, str(CHANNEL_ID), lookup)
        assert out.changed is True
        assert out.reply == "Unsubscribed from notifications for General on Guild!"

        again = execute_command(store, CommandKind.REMOVE_VC_NOTIFY, USER, str(CHANNEL_ID), lookup)
        assert again == CommandOutcome(reply="You are not subscribed to this channel!", changed=False)

    def test_rejection_does_not_mutate(self, store):
        out = execute_command(store, CommandKind.ADD_VC_NOTIFY, USER, "nope", lookup)
        assert out.changed is False
        assert out.reply == "Not a valid channel ID!"
        assert store.stats()["guilds"] == 0

    def test_non_admin_afk_rejected(self):
        store = make_store(admins=[AdminData(id=ADMIN)])
        out = execute_command(store, CommandKind.ADD_AFK_CHANNEL, USER, str(AFK_CHANNEL_ID), lookup)
        assert out.reply == FORBIDDEN_REPLY
        assert out.changed is False
        assert store.is_afk_channel(GUILD_ID, AFK_CHANNEL_ID) is False

    def test_admin_afk_lifecycle(self):
        store = make_store(admins=[AdminData(id=ADMIN)])
        add = execute_command(store, CommandKind.ADD_AFK_CHANNEL, ADMIN, str(AFK_CHANNEL_ID), lookup)
        assert add.changed is True
        assert add.reply == "Marked AFK on Guild as an AFK channel!"
        assert store.is_afk_channel(GUILD_ID, AFK_CHANNEL_ID) is True

        dup = execute_command(store, CommandKind.ADD_AFK_CHANNEL, ADMIN, str(AFK_CHANNEL_ID), lookup)
        assert dup.changed is False

        remove = execute_command(store, CommandKind.REMOVE_AFK_CHANNEL, ADMIN, str(AFK_CHANNEL_ID), lookup)
        assert remove.changed is True
        assert remove.reply == "AFK on Guild is no longer an AFK channel!"

        missing = execute_command(store, CommandKind.REMOVE_AFK_CHANNEL, ADMIN, str(AFK_CHANNEL_ID), lookup)
        assert missing.reply == "That channel is not marked as an AFK channel!"

    def test_non_admin_remove_afk_rejected(self):
        store = make_store(afk_channels=[AFK_CHANNEL_ID])
        out = execute_command(store, CommandKind.REMOVE_AFK_CHANNEL, USER, str(AFK_CHANNEL_ID), lookup)
        assert out.reply == FORBIDDEN_REPLY
        assert store.is_afk_channel(GUILD_ID, AFK_CHANNEL_ID) is True
