"""
vcnotify.storage.models — Pydantic Schema of the Data File
===========================================================

Mirrors the JSON document written to ``data_path``::

    {
      "guilds": [
        {
          "id": 111,
          "admins": [{"id": 222, "send_notif_copies": true}],
          "afk_channels": [333],
          "notif_channels": [{"id": 444, "subscribed_users": [555, 666]}]
        }
      ]
    }

Every list is optional so a hand-written file only needs the parts it uses.
Admins are only ever added by editing this file, so ids are validated
strictly: a quoted id, a float or a boolean is a load error, not a
coercion.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StrictBool

# Discord ids are unsigned 64-bit integers.
Snowflake = Annotated[int, Field(strict=True, ge=0, le=2**64 - 1)]


class AdminData(BaseModel):
    id: Snowflake
    send_notif_copies: StrictBool = False


class NotifChannelData(BaseModel):
    id: Snowflake
    subscribed_users: list[Snowflake] = Field(default_factory=list)


class GuildData(BaseModel):
    id: Snowflake
    admins: list[AdminData] = Field(default_factory=list)
    afk_channels: list[Snowflake] = Field(default_factory=list)
    notif_channels: list[NotifChannelData] = Field(default_factory=list)


class StoreData(BaseModel):
    """Root of the persisted document."""
    guilds: list[GuildData] = Field(default_factory=list)
