"""
vcnotify.engine.classifier — Join Event Classification
=======================================================

Decides whether a voice-state change means somebody just became active
in a channel.  Hopping between active channels or parking in the AFK
channel must not notify anyone.
"""

from __future__ import annotations

from collections.abc import Callable


def is_join_event(
    old_channel_id: int | None,
    new_channel_id: int | None,
    is_afk: Callable[[int], bool],
) -> bool:
    """Return True if moving from *old_channel_id* to *new_channel_id* is a join.

    *is_afk* must answer for the destination's guild.

    ============  ==============  ======
    old           new             result
    ============  ==============  ======
    any           None            False
    any           AFK             False
    None          active          True
    AFK           active          True
    active        active          False
    ============  ==============  ======
    """
    if new_channel_id is None:
        return False
    if is_afk(new_channel_id):
        return False
    if old_channel_id is None:
        return True
    return is_afk(old_channel_id)
