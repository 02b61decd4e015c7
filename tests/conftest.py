"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio

import pytest

from vcnotify.engine.store import SubscriptionStore
from vcnotify.storage.models import (
    AdminData,
    GuildData,
    NotifChannelData,
    StoreData,
)

GUILD_ID = 111222333
CHANNEL_ID = 4001       # notification channel "C"
OTHER_CHANNEL_ID = 4002  # another voice channel "E"
AFK_CHANNEL_ID = 4999

JOINER_ID = 9001        # "U"
ADMIN_ID = 9001


def run_async(coro):
    """Run an async coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def make_store(
    *,
    subscribers: list[int] | None = None,
    afk_channels: list[int] | None = None,
    admins: list[AdminData] | None = None,
    guild_id: int = GUILD_ID,
    channel_id: int = CHANNEL_ID,
) -> SubscriptionStore:
    """Build a one-guild store through the persisted schema."""
    notif_channels = []
    if subscribers is not None:
        notif_channels.append(NotifChannelData(id=channel_id, subscribed_users=subscribers))
    return SubscriptionStore.from_data(StoreData(guilds=[
        GuildData(
            id=guild_id,
            admins=admins or [],
            afk_channels=afk_channels or [],
            notif_channels=notif_channels,
        ),
    ]))


def is_subscribed(
    store: SubscriptionStore,
    user_id: int,
    guild_id: int = GUILD_ID,
    channel_id: int = CHANNEL_ID,
) -> bool:
    subscribers = store.find_subscribed_users(guild_id, channel_id)
    return subscribers is not None and user_id in subscribers


@pytest.fixture
def store() -> SubscriptionStore:
    """An empty store."""
    return SubscriptionStore()
