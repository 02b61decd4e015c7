"""
vcnotify.engine.dispatcher — Join Notification Fan-out
=======================================================

Given a classified join, works out which subscribers of the destination
channel should get a DM and sends them.

Exclusion rules, applied per subscriber in order:

1. The joiner themself.
2. Already in the destination channel.
3. In another voice channel of the guild that is not an AFK channel.
4. No presence entry in the guild.
5. Status other than online / idle.

Planning (:func:`plan_notifications`) is synchronous and side-effect free.
Sending (:func:`dispatch_notifications`) is best-effort: a failed DM is
logged and the rest of the plan still goes out.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field

from vcnotify.engine.events import PresenceStatus
from vcnotify.engine.store import SubscriptionStore

logger = logging.getLogger(__name__)

SendFn = Callable[[int, str], Awaitable[object]]

JOIN_TEMPLATE = "{joiner} joined {channel} on {guild}!"
SUMMARY_TEMPLATE = "Sent join notifications to {names}!"
SUMMARY_NOBODY = "nobody"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class JoinContext:
    """Who joined what, with display names already resolved."""

    joiner_id: int
    joiner_name: str
    channel_id: int
    channel_name: str
    guild_id: int
    guild_name: str


@dataclass(frozen=True, slots=True)
class VoiceChannelState:
    channel_id: int
    is_afk: bool
    members: frozenset[int] = frozenset()


@dataclass(frozen=True, slots=True)
class GuildSnapshot:
    """Live presence / membership data captured at the moment of the join."""

    channel_members: frozenset[int]
    presences: Mapping[int, PresenceStatus]
    voice_channels: tuple[VoiceChannelState, ...] = ()
    display_names: Mapping[int, str] = field(default_factory=dict)

    def display_name(self, user_id: int) -> str:
        return self.display_names.get(user_id, str(user_id))

    def is_busy_elsewhere(self, user_id: int, channel_id: int) -> bool:
        """True if *user_id* sits in a non-AFK voice channel other than *channel_id*."""
        return any(
            user_id in vc.members
            for vc in self.voice_channels
            if vc.channel_id != channel_id and not vc.is_afk
        )


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Delivery:
    recipient_id: int
    text: str


@dataclass(slots=True)
class NotificationPlan:
    deliveries: list[Delivery] = field(default_factory=list)
    notified_names: list[str] = field(default_factory=list)
    summary: Delivery | None = None

    @property
    def recipients(self) -> set[int]:
        return {d.recipient_id for d in self.deliveries}


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------
def _skip_reason(candidate: int, join: JoinContext, snapshot: GuildSnapshot) -> str | None:
    if candidate == join.joiner_id:
        return "joiner"
    if candidate in snapshot.channel_members:
        return "already in channel"
    if snapshot.is_busy_elsewhere(candidate, join.channel_id):
        return "in another voice channel"
    status = snapshot.presences.get(candidate)
    if status is None:
        return "no presence"
    if not status.is_reachable:
        return f"status {status}"
    return None


def plan_notifications(
    store: SubscriptionStore,
    join: JoinContext,
    snapshot: GuildSnapshot,
) -> NotificationPlan:
    """Decide who gets a join DM and whether the joiner gets a summary."""
    plan = NotificationPlan()

    subscribers = store.find_subscribed_users(join.guild_id, join.channel_id)
    if subscribers is None:
        return plan

    text = JOIN_TEMPLATE.format(
        joiner=join.joiner_name, channel=join.channel_name, guild=join.guild_name,
    )
    for candidate in subscribers:
        reason = _skip_reason(candidate, join, snapshot)
        if reason is not None:
            logger.debug("Skipping subscriber %d for channel %d: %s", candidate, join.channel_id, reason)
            continue
        plan.deliveries.append(Delivery(recipient_id=candidate, text=text))
        plan.notified_names.append(snapshot.display_name(candidate))

    if store.should_send_notif_copies(join.joiner_id, join.guild_id):
        names = ", ".join(plan.notified_names) or SUMMARY_NOBODY
        plan.summary = Delivery(
            recipient_id=join.joiner_id,
            text=SUMMARY_TEMPLATE.format(names=names),
        )

    return plan


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------
async def _deliver(send: SendFn, delivery: Delivery) -> bool:
    try:
        await send(delivery.recipient_id, delivery.text)
    except Exception:
        logger.exception("Failed to send DM to user %d", delivery.recipient_id)
        return False
    return True


async def dispatch_notifications(
    store: SubscriptionStore,
    join: JoinContext,
    snapshot: GuildSnapshot,
    send: SendFn,
) -> NotificationPlan:
    """Plan and send join notifications, then the admin summary (if any).

    Returns the plan that was executed.  Never raises for delivery errors.
    """
    plan = plan_notifications(store, join, snapshot)

    if plan.deliveries:
        sent = 0
        for delivery in plan.deliveries:
            if await _deliver(send, delivery):
                sent += 1
        logger.info(
            "Join %d → channel %d: sent %d/%d notifications to %s",
            join.joiner_id, join.channel_id, sent, len(plan.deliveries),
            sorted(plan.recipients),
        )

    if plan.summary is not None:
        await _deliver(send, plan.summary)

    return plan
