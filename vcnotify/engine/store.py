"""
vcnotify.engine.store — SubscriptionStore
==========================================

The in-memory record of who wants to hear about which voice channel::

    guild ─┬─ admins          {user_id → AdminUser}
           ├─ afk_channels    {channel_id}
           └─ notif_channels  {channel_id → NotifChannel{subscribed_users}}

One instance lives for the whole process and is shared by the voice
listener (reads), the DM commands (writes) and the persistence thread
(reads).  Every public method takes the store's :class:`ReadWriteLock`, so
callers never lock by hand.  Reads return immutable snapshots.

Guild and channel records are created on first write and are never pruned,
even when they become empty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from vcnotify.engine.rwlock import ReadWriteLock
from vcnotify.storage.models import (
    AdminData,
    GuildData,
    NotifChannelData,
    StoreData,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class AdminUser:
    id: int
    send_notif_copies: bool = False


@dataclass(slots=True)
class NotifChannel:
    id: int
    subscribed_users: set[int] = field(default_factory=set)


@dataclass(slots=True)
class GuildRecord:
    id: int
    admins: dict[int, AdminUser] = field(default_factory=dict)
    afk_channels: set[int] = field(default_factory=set)
    notif_channels: dict[int, NotifChannel] = field(default_factory=dict)

    def notif_channel(self, channel_id: int) -> NotifChannel:
        """Find-or-create the notification channel *channel_id*."""
        channel = self.notif_channels.get(channel_id)
        if channel is None:
            channel = NotifChannel(id=channel_id)
            self.notif_channels[channel_id] = channel
        return channel


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class SubscriptionStore:
    """Thread-safe guild → channel → subscriber store.

    Usage::

        store = SubscriptionStore()
        store.add_subscription(user_id, guild_id, channel_id)
        subscribers = store.find_subscribed_users(guild_id, channel_id)
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._guilds: dict[int, GuildRecord] = {}

    def _guild(self, guild_id: int) -> GuildRecord:
        """Find-or-create a guild record.  Caller must hold the write lock."""
        guild = self._guilds.get(guild_id)
        if guild is None:
            guild = GuildRecord(id=guild_id)
            self._guilds[guild_id] = guild
            logger.debug("Created guild record %d", guild_id)
        return guild

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def add_subscription(self, user_id: int, guild_id: int, channel_id: int) -> bool:
        """Subscribe *user_id* to joins in *channel_id*.  Idempotent.

        Returns True if the subscription is new, False if it already existed.
        """
        with self._lock.write():
            subscribers = self._guild(guild_id).notif_channel(channel_id).subscribed_users
            if user_id in subscribers:
                return False
            subscribers.add(user_id)
            return True

    def remove_subscription(self, user_id: int, guild_id: int, channel_id: int) -> bool:
        """Unsubscribe *user_id*.  Returns False (and changes nothing) if
        the guild, channel or subscription is unknown."""
        with self._lock.write():
            guild = self._guilds.get(guild_id)
            if guild is None:
                return False
            channel = guild.notif_channels.get(channel_id)
            if channel is None or user_id not in channel.subscribed_users:
                return False
            channel.subscribed_users.discard(user_id)
            return True

    def find_subscribed_users(self, guild_id: int, channel_id: int) -> frozenset[int] | None:
        """Snapshot of the subscribers of *channel_id*, or None if unknown."""
        with self._lock.read():
            guild = self._guilds.get(guild_id)
            if guild is None:
                return None
            channel = guild.notif_channels.get(channel_id)
            if channel is None:
                return None
            return frozenset(channel.subscribed_users)

    # -------------------------------------------------------------------
    # AFK channels
    # -------------------------------------------------------------------
    def add_afk_channel(self, guild_id: int, channel_id: int) -> bool:
        """Mark *channel_id* as AFK.  Returns False if it already was."""
        with self._lock.write():
            afk_channels = self._guild(guild_id).afk_channels
            if channel_id in afk_channels:
                return False
            afk_channels.add(channel_id)
            return True

    def remove_afk_channel(self, guild_id: int, channel_id: int) -> bool:
        with self._lock.write():
            guild = self._guilds.get(guild_id)
            if guild is None or channel_id not in guild.afk_channels:
                return False
            guild.afk_channels.discard(channel_id)
            return True

    def is_afk_channel(self, guild_id: int, channel_id: int) -> bool:
        with self._lock.read():
            guild = self._guilds.get(guild_id)
            return guild is not None and channel_id in guild.afk_channels

    # -------------------------------------------------------------------
    # Admins
    # -------------------------------------------------------------------
    def is_admin(self, user_id: int, guild_id: int) -> bool:
        with self._lock.read():
            guild = self._guilds.get(guild_id)
            return guild is not None and user_id in guild.admins

    def should_send_notif_copies(self, user_id: int, guild_id: int) -> bool:
        """True only for admins of *guild_id* with ``send_notif_copies`` set."""
        with self._lock.read():
            guild = self._guilds.get(guild_id)
            if guild is None:
                return False
            admin = guild.admins.get(user_id)
            return admin is not None and admin.send_notif_copies

    # -------------------------------------------------------------------
    # Persistence conversion
    # -------------------------------------------------------------------
    @classmethod
    def from_data(cls, data: StoreData) -> SubscriptionStore:
        """Build a store from the persisted schema.

        Duplicate ids in the document collapse into one entry; for admins
        listed twice the last entry wins.
        """
        store = cls()
        with store._lock.write():
            for g in data.guilds:
                guild = store._guild(g.id)
                for a in g.admins:
                    guild.admins[a.id] = AdminUser(id=a.id, send_notif_copies=a.send_notif_copies)
                guild.afk_channels.update(g.afk_channels)
                for c in g.notif_channels:
                    guild.notif_channel(c.id).subscribed_users.update(c.subscribed_users)
        return store

    def to_data(self) -> StoreData:
        """Snapshot the store as the persisted schema (ids sorted for stable diffs)."""
        with self._lock.read():
            return StoreData(
                guilds=[
                    GuildData(
                        id=g.id,
                        admins=[
                            AdminData(id=a.id, send_notif_copies=a.send_notif_copies)
                            for a in g.admins.values()
                        ],
                        afk_channels=sorted(g.afk_channels),
                        notif_channels=[
                            NotifChannelData(id=c.id, subscribed_users=sorted(c.subscribed_users))
                            for c in g.notif_channels.values()
                        ],
                    )
                    for g in self._guilds.values()
                ]
            )

    def stats(self) -> dict[str, int]:
        """Counts for log lines."""
        with self._lock.read():
            channels = [c for g in self._guilds.values() for c in g.notif_channels.values()]
            return {
                "guilds": len(self._guilds),
                "notif_channels": len(channels),
                "subscriptions": sum(len(c.subscribed_users) for c in channels),
                "afk_channels": sum(len(g.afk_channels) for g in self._guilds.values()),
                "admins": sum(len(g.admins) for g in self._guilds.values()),
            }
