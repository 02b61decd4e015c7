"""
vcnotify — Voice Channel Join Notifications for Discord
========================================================
Watches voice-channel transitions and sends a private message to every
user who subscribed to a channel when somebody joins it.

Package layout::

    vcnotify/
    ├── config.py          # YAML → typed Python config
    ├── storage/
    │   ├── models.py      # Pydantic schema of the JSON data file
    │   └── files.py       # Load / atomic save + thread bridge
    ├── engine/
    │   ├── events.py      # Event variants + PresenceStatus
    │   ├── rwlock.py      # Readers/writer lock
    │   ├── store.py       # SubscriptionStore (guilds → channels → users)
    │   ├── classifier.py  # is_join_event
    │   └── dispatcher.py  # Exclusion rules + notification fan-out
    ├── services/
    │   ├── subscription_service.py  # DM command validation + mutation
    │   └── notify_service.py        # discord.py → snapshot → dispatch
    └── bot/
        ├── core.py        # Bot subclass, cog loader, persistence hook
        └── cogs/
            ├── voice.py          # on_voice_state_update
            └── subscriptions.py  # !add-vc-notify and friends
"""

__version__ = "0.1.0"
