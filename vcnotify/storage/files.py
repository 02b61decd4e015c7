"""
vcnotify.storage.files — Data File Load / Save
===============================================

The whole :class:`SubscriptionStore` is serialized to one pretty-printed
JSON file (``data_path`` in ``config.yaml``).

- A missing file is normal on first run → empty store.
- Any other read or parse failure raises :class:`StorageError`; the bot
  refuses to start rather than run on unknown state.
- Saves write a sibling temp file and ``os.replace`` it over the target,
  so a crash mid-write never leaves a truncated file behind.

File I/O is blocking.  From async code, go through :func:`run_io`::

    await run_io(save_store, cfg.data_path, bot.store)
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import ParamSpec, TypeVar

from pydantic import ValidationError

from vcnotify.engine.store import SubscriptionStore
from vcnotify.storage.models import StoreData

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class StorageError(Exception):
    """The data file exists but could not be read, parsed or written."""


def load_store(path: str | Path) -> SubscriptionStore:
    """Read *path* into a new :class:`SubscriptionStore`.

    Raises
    ------
    StorageError
        If the file exists but is unreadable or does not match the schema.
    """
    data_path = Path(path)
    try:
        raw = data_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("%s not found, starting with an empty subscription store.", data_path)
        return SubscriptionStore()
    except UnicodeDecodeError as exc:
        raise StorageError(f"Invalid data in {data_path}: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot read {data_path}: {exc}") from exc

    try:
        data = StoreData.model_validate_json(raw)
    except ValidationError as exc:
        raise StorageError(f"Invalid data in {data_path}: {exc}") from exc

    return SubscriptionStore.from_data(data)


def save_store(path: str | Path, store: SubscriptionStore) -> None:
    """Atomically write *store* to *path*, creating parent directories.

    Raises
    ------
    StorageError
        If the file cannot be written.  The on-disk file is left untouched.
    """
    data_path = Path(path)
    payload = store.to_data().model_dump_json(indent=2)

    try:
        data_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{data_path.name}.", suffix=".tmp", dir=data_path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_name, data_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise StorageError(f"Cannot write {data_path}: {exc}") from exc

    logger.debug("Saved subscription data to %s", data_path)


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_io(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run blocking file I/O on a worker thread so the event loop stays free."""
    return await asyncio.to_thread(func, *args, **kwargs)
