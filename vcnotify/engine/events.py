"""
vcnotify.engine.events — Event Variants and Presence Status
============================================================

Everything that reaches the engine is normalized into one of a small,
closed set of frozen dataclasses:

- :class:`VoiceTransition` — a member moved between voice channels.
- :class:`AddSubscription` / :class:`RemoveSubscription` — DM commands.
- :class:`AddAfkChannel` / :class:`RemoveAfkChannel` — admin DM commands.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = [
    "PresenceStatus",
    "VoiceTransition",
    "AddSubscription",
    "RemoveSubscription",
    "AddAfkChannel",
    "RemoveAfkChannel",
    "StoreMutation",
]


class PresenceStatus(enum.StrEnum):
    """Platform-reported availability of a user."""
    ONLINE = "online"
    IDLE = "idle"
    DO_NOT_DISTURB = "dnd"
    INVISIBLE = "invisible"
    OFFLINE = "offline"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> PresenceStatus:
        """Map a discord.py ``Status`` (or its string value) to a PresenceStatus.

        ``do_not_disturb`` is discord.py's alias for ``dnd``.  Anything
        unrecognized becomes :attr:`UNKNOWN`.
        """
        raw = str(getattr(value, "value", value)).lower()
        if raw == "do_not_disturb":
            raw = "dnd"
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_reachable(self) -> bool:
        """Only online and idle users are sent join notifications."""
        return self in (PresenceStatus.ONLINE, PresenceStatus.IDLE)


# ---------------------------------------------------------------------------
# Voice
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class VoiceTransition:
    """A voice-state change.  ``None`` means "not in a voice channel"."""

    user_id: int
    guild_id: int
    old_channel_id: int | None
    new_channel_id: int | None


# ---------------------------------------------------------------------------
# Store mutations
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AddSubscription:
    user_id: int
    guild_id: int
    channel_id: int


@dataclass(frozen=True, slots=True)
class RemoveSubscription:
    user_id: int
    guild_id: int
    channel_id: int


@dataclass(frozen=True, slots=True)
class AddAfkChannel:
    user_id: int  # requesting admin
    guild_id: int
    channel_id: int


@dataclass(frozen=True, slots=True)
class RemoveAfkChannel:
    user_id: int  # requesting admin
    guild_id: int
    channel_id: int


StoreMutation = AddSubscription | RemoveSubscription | AddAfkChannel | RemoveAfkChannel
